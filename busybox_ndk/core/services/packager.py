"""
Packager — zip the module tree into the flashable artifact.

The zip's root is the module root (no wrapping directory). Directory
entries are written explicitly so empty directories such as
``system/bin/`` survive, and Unix mode bits travel in ``external_attr``
so the scripts stay executable after Magisk unpacks them.
"""

from __future__ import annotations

import logging
import os
import stat
import time
import zipfile
from pathlib import Path

logger = logging.getLogger(__name__)


def _zip_info(path: Path, arcname: str) -> zipfile.ZipInfo:
    st = path.lstat()
    is_dir = stat.S_ISDIR(st.st_mode)
    if is_dir and not arcname.endswith("/"):
        arcname += "/"
    info = zipfile.ZipInfo(arcname, date_time=time.localtime(st.st_mtime)[:6])
    info.external_attr = (st.st_mode & 0xFFFF) << 16
    if is_dir:
        info.external_attr |= 0x10  # MS-DOS directory flag
    elif not stat.S_ISLNK(st.st_mode):
        info.compress_type = zipfile.ZIP_DEFLATED
    return info


def package_module(module_dir: Path, zip_path: Path) -> Path:
    """Archive ``module_dir`` into ``zip_path``.

    Returns:
        The zip path.
    """
    logger.info("Packaging module...")
    zip_path.parent.mkdir(parents=True, exist_ok=True)
    zip_path.unlink(missing_ok=True)

    with zipfile.ZipFile(zip_path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for dirpath, dirnames, filenames in os.walk(module_dir):
            dirnames.sort()
            base = Path(dirpath)
            for name in dirnames:
                path = base / name
                arcname = path.relative_to(module_dir).as_posix()
                if path.is_symlink():
                    info = _zip_info(path, arcname)
                    zf.writestr(info, os.readlink(path))
                else:
                    zf.writestr(_zip_info(path, arcname), b"")
            for name in sorted(filenames):
                path = base / name
                arcname = path.relative_to(module_dir).as_posix()
                info = _zip_info(path, arcname)
                if path.is_symlink():
                    zf.writestr(info, os.readlink(path))
                else:
                    zf.writestr(info, path.read_bytes())

    logger.info("Module created: %s", zip_path.name)
    return zip_path


def format_summary(version: str, archs: tuple[str, ...], zip_name: str) -> list[str]:
    """Lines printed once the artifact exists."""
    return [
        "=== Build Summary ===",
        f"Version: {version}",
        f"Architectures: {' '.join(archs)}",
        f"Output: {zip_name}",
        "",
        "To install: Copy the ZIP to your device and install via Magisk",
    ]
