"""
Source acquirer — fetch the unmodified BusyBox tree for one architecture.

Each architecture gets its own ``build-<arch>/busybox`` checkout. The
presence of that directory is the only completeness signal: if it is
there, nothing is fetched.
"""

from __future__ import annotations

import logging
import shutil
import tarfile
from pathlib import Path

from busybox_ndk.core.engine.executor import StepRunner
from busybox_ndk.core.errors import StepError
from busybox_ndk.core.models.action import Action
from busybox_ndk.core.models.build import BuildConfig

logger = logging.getLogger(__name__)

BUSYBOX_DOWNLOAD_BASE = "https://busybox.net/downloads"
BUSYBOX_GIT_URL = "https://git.busybox.net/busybox"


def tarball_name(version: str) -> str:
    return f"busybox-{version}.tar.bz2"


def tarball_url(version: str) -> str:
    return f"{BUSYBOX_DOWNLOAD_BASE}/{tarball_name(version)}"


def git_tag(version: str) -> str:
    """Upstream release tag for a version (``1.36.1`` → ``1_36_1``)."""
    return version.replace(".", "_")


def acquire_source(config: BuildConfig, arch: str, runner: StepRunner) -> Path:
    """Ensure ``build-<arch>/busybox`` holds the requested BusyBox source.

    Returns:
        Path to the source tree.

    Raises:
        StepError: If the download, clone, or extraction fails.
    """
    build_dir = config.build_dir(arch)
    source_dir = config.source_dir(arch)
    if not runner.dry_run:
        build_dir.mkdir(parents=True, exist_ok=True)

    if source_dir.is_dir():
        logger.info("BusyBox source already present in %s", build_dir)
        return source_dir

    logger.info("Downloading BusyBox %s...", config.busybox_version)
    if config.source_method == "git":
        _clone(config, arch, runner)
    else:
        _download_tarball(config, arch, runner)
    return source_dir


def _clone(config: BuildConfig, arch: str, runner: StepRunner) -> None:
    runner.run(Action(
        id=f"{arch}:clone",
        name="Clone BusyBox",
        adapter="git",
        for_arch=arch,
        params={
            "operation": "clone",
            "url": BUSYBOX_GIT_URL,
            "ref": git_tag(config.busybox_version),
            "dest": "busybox",
            "cwd": str(config.build_dir(arch)),
        },
    ))


def _download_tarball(config: BuildConfig, arch: str, runner: StepRunner) -> None:
    build_dir = config.build_dir(arch)
    archive = build_dir / tarball_name(config.busybox_version)
    runner.run(Action(
        id=f"{arch}:download",
        name="Download BusyBox",
        adapter="download",
        for_arch=arch,
        params={
            "url": tarball_url(config.busybox_version),
            "dest": str(archive),
        },
    ))
    if runner.dry_run:
        return
    extract_tarball(archive, build_dir, config.busybox_version)


def extract_tarball(archive: Path, build_dir: Path, version: str) -> Path:
    """Unpack a release tarball and rename ``busybox-<version>`` to ``busybox``."""
    top = f"busybox-{version}"
    try:
        with tarfile.open(archive, "r:*") as tar:
            names = tar.getnames()
            if not any(n == top or n.startswith(f"{top}/") for n in names):
                raise StepError("Extract BusyBox", f"{archive.name} does not contain {top}/")
            tar.extractall(build_dir, filter="data")
    except (tarfile.TarError, OSError) as e:
        raise StepError("Extract BusyBox", f"Cannot extract {archive.name}: {e}") from e

    target = build_dir / "busybox"
    shutil.move(str(build_dir / top), str(target))
    return target
