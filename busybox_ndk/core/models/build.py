"""
Build models — the resolved configuration of one pipeline run.

``BuildConfig`` is produced once by the config loader and is immutable
afterwards. Every later step reads its paths and settings from here.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from busybox_ndk.core.models.arch import DEFAULT_API_LEVEL, DEFAULT_ARCHS

DEFAULT_BUSYBOX_VERSION = "1.36.1"
DEFAULT_NDK_VERSION = "r25c"
BASELINE_CONFIG_FILE = "osm0sis-basic-unified.config"
ZIP_PREFIX = "android-busybox-ndk"


def _default_jobs() -> int:
    return os.cpu_count() or 1


class BuildConfig(BaseModel):
    """Everything the pipeline needs, fully resolved."""

    model_config = ConfigDict(frozen=True)

    busybox_version: str = DEFAULT_BUSYBOX_VERSION
    ndk_version: str = DEFAULT_NDK_VERSION
    archs: tuple[str, ...] = DEFAULT_ARCHS
    api_level: int = DEFAULT_API_LEVEL
    source_method: Literal["tarball", "git"] = "tarball"
    jobs: int = Field(default_factory=_default_jobs)

    work_dir: Path
    ndk_path: Path
    out_dir: Path
    baseline_config: Path
    patches_dir: Path

    @property
    def module_dir(self) -> Path:
        """Root of the Magisk module tree."""
        return self.out_dir / "module"

    @property
    def zip_name(self) -> str:
        return f"{ZIP_PREFIX}-v{self.busybox_version}.zip"

    @property
    def zip_path(self) -> Path:
        return self.out_dir / self.zip_name

    def build_dir(self, arch: str) -> Path:
        """Isolated build directory for one architecture."""
        return self.out_dir / f"build-{arch}"

    def source_dir(self, arch: str) -> Path:
        return self.build_dir(arch) / "busybox"

    def to_dict(self) -> dict:
        data = self.model_dump(mode="json")
        data["module_dir"] = str(self.module_dir)
        data["zip_path"] = str(self.zip_path)
        return data


class ToolchainPaths(BaseModel):
    """Locations inside a provisioned NDK."""

    model_config = ConfigDict(frozen=True)

    ndk_path: Path
    host_tag: str

    @property
    def prebuilt_dir(self) -> Path:
        return self.ndk_path / "toolchains" / "llvm" / "prebuilt" / self.host_tag

    @property
    def bin_dir(self) -> Path:
        return self.prebuilt_dir / "bin"

    @property
    def sysroot(self) -> Path:
        return self.prebuilt_dir / "sysroot"


class GeneratedFile(BaseModel):
    """A file produced by the module assembler.

    Attributes:
        path:    Relative path from the module root.
        content: Full file content.
        mode:    Permission bits applied after writing.
        reason:  Why this file exists in the module.
    """

    path: str
    content: str
    mode: int = 0o755
    reason: str = ""
