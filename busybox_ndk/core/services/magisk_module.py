"""
Module assembler — lay out the Magisk module tree around the staged builds.

Pure templating: every file here is either static or depends only on
the BusyBox version. Per-architecture binaries are already staged under
``custom/<arch>/busybox`` by the compiler driver; at install time
``customize.sh`` moves the one matching the device into ``system/bin``
and drops the rest.
"""

from __future__ import annotations

import logging
from pathlib import Path

from busybox_ndk.core.models.arch import ARCHITECTURES
from busybox_ndk.core.models.build import BuildConfig, GeneratedFile

logger = logging.getLogger(__name__)

MODULE_ID = "android-busybox-ndk"
MODULE_NAME = "Android BusyBox NDK"
MODULE_AUTHOR = "Build Script"
MODULE_VERSION_CODE = 1

META_INF_DIR = "META-INF/com/google/android"
SYSTEM_BIN_DIR = "system/bin"
FALLBACK_ARCH_DIR = "arm64"


def generate_module_prop(version: str) -> GeneratedFile:
    content = (
        f"id={MODULE_ID}\n"
        f"name={MODULE_NAME}\n"
        f"version={version}\n"
        f"versionCode={MODULE_VERSION_CODE}\n"
        f"author={MODULE_AUTHOR}\n"
        f"description=BusyBox {version} compiled with Android NDK for Magisk\n"
    )
    return GeneratedFile(
        path="module.prop",
        content=content,
        mode=0o644,
        reason="Module metadata read by the Magisk manager",
    )


_UPDATE_BINARY = """\
#!/sbin/sh
# Magisk update-binary (stub, customize.sh handles the work)
exit 0
"""


def generate_update_binary() -> GeneratedFile:
    return GeneratedFile(
        path=f"{META_INF_DIR}/update-binary",
        content=_UPDATE_BINARY,
        reason="Installer entry point; defers to customize.sh",
    )


def generate_updater_script() -> GeneratedFile:
    return GeneratedFile(
        path=f"{META_INF_DIR}/updater-script",
        content='# Magisk updater-script\nui_print(" BusyBox NDK Module");\n',
        reason="Required by the flashable zip format",
    )


def _arch_case_arms() -> str:
    """``case`` arms mapping Magisk $ARCH values and device ABIs to staging dirs."""
    arms = []
    for spec in ARCHITECTURES.values():
        patterns = list(dict.fromkeys([spec.abi, spec.magisk_arch, spec.name]))
        arms.append(f"    {'|'.join(patterns)}) echo \"{spec.install_subdir}\" ;;")
    return "\n".join(arms)


_CUSTOMIZE_TEMPLATE = """\
#!/system/bin/sh
# Custom installation script for Magisk

arch_dir() {{
  case "$1" in
{case_arms}
    *) echo "" ;;
  esac
}}

# Magisk exports $ARCH; fall back to the ABI the device reports
ARCH_DIR="$(arch_dir "$ARCH")"
if [ -z "$ARCH_DIR" ]; then
  DEVICE_ABI="$(getprop ro.product.cpu.abi)"
  ARCH_DIR="$(arch_dir "$DEVICE_ABI")"
fi
[ -z "$ARCH_DIR" ] && ARCH_DIR="{fallback}"

ui_print "- Architecture detected: ${{ARCH:-$DEVICE_ABI}}"
ui_print "- Installing BusyBox for $ARCH_DIR..."

if [ ! -d "$MODPATH/custom/$ARCH_DIR" ]; then
  ui_print "! Error: Binary for $ARCH_DIR not found in module"
  abort
fi

# Keep only this device's build
mkdir -p "$MODPATH/system/bin"
cp -af "$MODPATH/custom/$ARCH_DIR/." "$MODPATH/system/bin/"
rm -rf "$MODPATH/custom"

set_perm "$MODPATH/system/bin/busybox" 0 0 0755

# Link every applet the ROM does not already provide
ROM_BIN="${{ROM_BIN:-/system/bin}}"
ui_print "- Creating applet symlinks..."
for applet in $("$MODPATH/system/bin/busybox" --list); do
  [ "$applet" = "busybox" ] && continue
  [ -e "$ROM_BIN/$applet" ] && continue
  ln -sf busybox "$MODPATH/system/bin/$applet"
done
"""


def generate_customize_script() -> GeneratedFile:
    content = _CUSTOMIZE_TEMPLATE.format(
        case_arms=_arch_case_arms(),
        fallback=FALLBACK_ARCH_DIR,
    )
    return GeneratedFile(
        path="customize.sh",
        content=content,
        reason="Selects the device architecture and links applets",
    )


def generate_post_fs_data() -> GeneratedFile:
    return GeneratedFile(
        path="post-fs-data.sh",
        content="#!/system/bin/sh\n# Post-fs-data script\n# Add any post-mount configurations here\n",
        reason="Placeholder lifecycle hook",
    )


def generate_service() -> GeneratedFile:
    return GeneratedFile(
        path="service.sh",
        content="#!/system/bin/sh\n# Service script\n# Add any service configurations here\n",
        reason="Placeholder lifecycle hook",
    )


def module_files(version: str) -> list[GeneratedFile]:
    """Every generated file of the module, in write order."""
    return [
        generate_module_prop(version),
        generate_update_binary(),
        generate_updater_script(),
        generate_post_fs_data(),
        generate_service(),
        generate_customize_script(),
    ]


def assemble_module(config: BuildConfig) -> list[Path]:
    """Create the module skeleton and write the generated files.

    Returns:
        Paths of the files written.
    """
    logger.info("Creating Magisk module structure...")
    root = config.module_dir
    (root / META_INF_DIR).mkdir(parents=True, exist_ok=True)
    (root / SYSTEM_BIN_DIR).mkdir(parents=True, exist_ok=True)

    written: list[Path] = []
    for generated in module_files(config.busybox_version):
        target = root / generated.path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(generated.content, encoding="utf-8")
        target.chmod(generated.mode)
        written.append(target)
    return written
