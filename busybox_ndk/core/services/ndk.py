"""
NDK provisioner — guarantees a usable NDK toolchain before compiling.

If the configured NDK path exists it is trusted as-is (no network, no
integrity check). Otherwise the host's NDK archive is downloaded next
to the project, unzipped, and moved into place. Finally every target
triple gets binutils-style names (``aarch64-linux-android21-ar``)
pointing at the NDK's ``llvm-*`` tools, which is what BusyBox's
Makefile expects to find behind ``CROSS_COMPILE``.
"""

from __future__ import annotations

import logging
import platform
import shutil
from pathlib import Path

from busybox_ndk.core.engine.executor import StepRunner
from busybox_ndk.core.errors import StepError
from busybox_ndk.core.models.action import Action
from busybox_ndk.core.models.arch import all_triples
from busybox_ndk.core.models.build import BuildConfig, ToolchainPaths

logger = logging.getLogger(__name__)

NDK_DOWNLOAD_BASE = "https://dl.google.com/android/repository"

# (os, machine) → NDK prebuilt directory name
_HOST_TAGS = {
    ("linux", "x86_64"): "linux-x86_64",
    ("linux", "aarch64"): "linux-aarch64",
    ("linux", "arm64"): "linux-aarch64",
    ("darwin", "x86_64"): "darwin-x86_64",
    ("darwin", "arm64"): "darwin-arm64",
    ("darwin", "aarch64"): "darwin-arm64",
}
FALLBACK_HOST_TAG = "linux-x86_64"

LLVM_TOOLS = (
    "llvm-ar",
    "llvm-as",
    "llvm-nm",
    "llvm-objcopy",
    "llvm-objdump",
    "llvm-ranlib",
    "llvm-strip",
)


def _host_os(system: str | None = None) -> str:
    return (system or platform.system()).lower()


def detect_host_tag(system: str | None = None, machine: str | None = None) -> str:
    """Map the host OS and CPU to an NDK prebuilt toolchain directory.

    Unknown combinations fall back to ``linux-x86_64`` with a warning.
    """
    os_name = _host_os(system)
    arch = (machine or platform.machine()).lower()
    tag = _HOST_TAGS.get((os_name, arch))
    if tag is None:
        logger.warning("Unknown platform: %s-%s, defaulting to %s", os_name, arch, FALLBACK_HOST_TAG)
        return FALLBACK_HOST_TAG
    return tag


def ndk_archive_name(ndk_version: str, system: str | None = None) -> str:
    """Filename of the NDK release zip for the host OS."""
    return f"android-ndk-{ndk_version}-{_host_os(system)}.zip"


def ndk_download_url(ndk_version: str, system: str | None = None) -> str:
    return f"{NDK_DOWNLOAD_BASE}/{ndk_archive_name(ndk_version, system)}"


def provision_ndk(config: BuildConfig, runner: StepRunner) -> ToolchainPaths:
    """Make sure the NDK exists at ``config.ndk_path``.

    Returns:
        Toolchain locations for the detected host.

    Raises:
        StepError: If download or extraction fails, or the extracted
            tree is not where it should be.
    """
    paths = ToolchainPaths(ndk_path=config.ndk_path, host_tag=detect_host_tag())

    if config.ndk_path.exists():
        logger.info("NDK already exists at %s", config.ndk_path)
        return paths

    logger.info("Downloading Android NDK %s...", config.ndk_version)
    archive = ndk_archive_name(config.ndk_version)
    runner.run(Action(
        id="ndk:download",
        name="Download NDK",
        adapter="download",
        params={
            "url": ndk_download_url(config.ndk_version),
            "dest": str(config.work_dir / archive),
            "timeout": 300,
        },
    ))

    logger.info("Extracting NDK...")
    runner.run(Action(
        id="ndk:extract",
        name="Extract NDK",
        adapter="shell",
        params={
            "command": ["unzip", "-q", "-o", archive],
            "cwd": str(config.work_dir),
        },
    ))

    if runner.dry_run:
        return paths

    extracted = config.work_dir / f"android-ndk-{config.ndk_version}"
    if extracted.is_dir() and extracted.resolve() != config.ndk_path.resolve():
        config.ndk_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.move(str(extracted), str(config.ndk_path))

    if not config.ndk_path.is_dir():
        raise StepError("Extract NDK", f"NDK not found at {config.ndk_path} after extraction")

    return paths


def setup_toolchain_symlinks(paths: ToolchainPaths, api_level: int) -> list[Path]:
    """Create ``<triple>-<tool>`` symlinks for every target triple.

    Existing names are left untouched.

    Returns:
        The links that were created.
    """
    logger.info("Setting up NDK symlinks...")
    bin_dir = paths.bin_dir
    if not bin_dir.is_dir():
        raise StepError("NDK symlinks", f"Toolchain bin directory not found: {bin_dir}")

    created: list[Path] = []
    for tool in LLVM_TOOLS:
        target = bin_dir / tool
        if not target.is_file():
            continue
        short = tool.removeprefix("llvm-")
        for triple in all_triples(api_level):
            link = bin_dir / f"{triple}-{short}"
            if link.exists() or link.is_symlink():
                continue
            link.symlink_to(target.resolve())
            created.append(link)

    logger.debug("Created %d toolchain symlinks in %s", len(created), bin_dir)
    return created
