"""
Compiler driver — run BusyBox's own Makefile with the NDK cross toolchain.

``make -j<jobs>`` then ``make install`` with ``CROSS_COMPILE`` and
``ARCH`` exported. The ``_install`` tree that make leaves behind is then
staged under ``custom/<arch>`` in the module.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from busybox_ndk.core.engine.executor import StepRunner
from busybox_ndk.core.errors import StepError
from busybox_ndk.core.models.action import Action
from busybox_ndk.core.models.arch import get_arch
from busybox_ndk.core.models.build import ToolchainPaths

logger = logging.getLogger(__name__)

STAGING_ROOT = "custom"


def cross_prefix(toolchain: ToolchainPaths, arch: str, api_level: int) -> str:
    """Absolute tool prefix, e.g. ``.../bin/aarch64-linux-android21-``."""
    return f"{toolchain.bin_dir}/{get_arch(arch).prefix(api_level)}"


def build_env(toolchain: ToolchainPaths, arch: str, api_level: int) -> dict[str, str]:
    """Environment exported for both make invocations."""
    return {
        "CROSS_COMPILE": cross_prefix(toolchain, arch, api_level),
        "ARCH": arch,
    }


def compile_busybox(
    source_dir: Path,
    arch: str,
    toolchain: ToolchainPaths,
    api_level: int,
    jobs: int,
    runner: StepRunner,
) -> None:
    """Compile and ``make install`` one architecture. Any failure raises StepError."""
    logger.info("Compiling BusyBox for %s...", arch)
    env = build_env(toolchain, arch, api_level)

    runner.run(Action(
        id=f"{arch}:make",
        name=f"Compile {arch}",
        adapter="shell",
        for_arch=arch,
        params={
            "command": ["make", f"-j{jobs}"],
            "cwd": str(source_dir),
            "env": env,
        },
    ))
    runner.run(Action(
        id=f"{arch}:make-install",
        name=f"Install {arch}",
        adapter="shell",
        for_arch=arch,
        params={
            "command": ["make", "install"],
            "cwd": str(source_dir),
            "env": env,
        },
    ))


def staging_dir(module_dir: Path, arch: str) -> Path:
    return module_dir / STAGING_ROOT / get_arch(arch).install_subdir


def stage_install(source_dir: Path, module_dir: Path, arch: str) -> Path:
    """Copy the installed ``busybox`` binary into ``custom/<arch>/``.

    Only the multi-call binary is staged. The applet links ``make install``
    creates under ``_install`` are recreated on the device by customize.sh,
    which checks ``busybox --list`` against what the ROM already ships.

    Raises:
        StepError: If make install left no ``_install/bin/busybox``.
    """
    binary = source_dir / "_install" / "bin" / "busybox"
    if not binary.is_file():
        raise StepError(f"Stage {arch}", f"No _install/bin/busybox in {source_dir}")

    dest = staging_dir(module_dir, arch)
    dest.mkdir(parents=True, exist_ok=True)
    staged = dest / "busybox"
    shutil.copy2(binary, staged)
    staged.chmod(0o755)
    return staged
