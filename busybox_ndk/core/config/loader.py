"""
Configuration loader — resolves a BuildConfig from defaults, an optional
busybox-ndk.yml, the environment, and command-line arguments.

Precedence (lowest → highest):
    literal defaults  <  busybox-ndk.yml  <  NDK_PATH / OUT_DIR env  <  CLI args

Nothing is validated beyond shape: an unknown architecture or a version
that does not exist upstream only surfaces when the build reaches it.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from busybox_ndk.core.errors import ConfigError
from busybox_ndk.core.models.build import (
    BASELINE_CONFIG_FILE,
    DEFAULT_NDK_VERSION,
    BuildConfig,
)

logger = logging.getLogger(__name__)

# Default config filename
PROJECT_CONFIG_FILE = "busybox-ndk.yml"

ENV_NDK_PATH = "NDK_PATH"
ENV_OUT_DIR = "OUT_DIR"


class ProjectFile(BaseModel):
    """Schema of busybox-ndk.yml. Every key is optional."""

    model_config = ConfigDict(extra="forbid")

    busybox_version: str | None = None
    ndk_version: str | None = None
    ndk_path: Path | None = None
    out_dir: Path | None = None
    archs: tuple[str, ...] | None = None
    api_level: int | None = None
    source_method: Literal["tarball", "git"] | None = None
    jobs: int | None = None
    baseline_config: Path | None = None
    patches_dir: Path | None = None

    @field_validator("busybox_version", "ndk_version", mode="before")
    @classmethod
    def _versions_as_text(cls, value: Any) -> Any:
        # YAML reads an unquoted 1.36 as a float
        if isinstance(value, (int, float)):
            return str(value)
        return value

    @field_validator("archs", mode="before")
    @classmethod
    def _split_arch_string(cls, value: Any) -> Any:
        if isinstance(value, str):
            return parse_arch_list(value)
        return value


def parse_arch_list(raw: str) -> tuple[str, ...]:
    """Split a whitespace-separated architecture list (``"arm arm64"``)."""
    return tuple(raw.split())


def find_project_file(start_dir: Path | None = None) -> Path | None:
    """Search for busybox-ndk.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to busybox-ndk.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / PROJECT_CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def load_project_file(path: Path) -> ProjectFile:
    """Read and validate busybox-ndk.yml.

    Relative paths in the file are resolved against the file's directory.

    Raises:
        ConfigError: If the file is missing, unreadable, or invalid.
    """
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading build config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        project = ProjectFile.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid build configuration in {path}: {e}") from e

    base = path.parent.resolve()
    updates = {}
    for key in ("ndk_path", "out_dir", "baseline_config", "patches_dir"):
        value = getattr(project, key)
        if value is not None and not value.is_absolute():
            updates[key] = base / value
    return project.model_copy(update=updates)


def resolve_config(
    busybox_version: str | None = None,
    archs: str | tuple[str, ...] | None = None,
    config_path: Path | None = None,
    work_dir: Path | None = None,
    env: Mapping[str, str] | None = None,
    **overrides: Any,
) -> BuildConfig:
    """Build the immutable configuration for one run.

    Args:
        busybox_version: First positional CLI argument.
        archs: Second positional CLI argument (whitespace-separated) or a tuple.
        config_path: Explicit busybox-ndk.yml. If None, searches upward
            from ``work_dir``; a missing file is fine.
        work_dir: Directory playing the role of the build script's home.
            Defaults to the config file's directory, else the cwd.
        env: Environment mapping (default: ``os.environ``).
        **overrides: Other BuildConfig fields set from CLI options
            (``api_level``, ``source_method``, ``jobs``). None values are ignored.

    Returns:
        A frozen BuildConfig.

    Raises:
        ConfigError: If the config file is invalid.
    """
    env = os.environ if env is None else env

    if config_path is None:
        config_path = find_project_file(work_dir)
    project = load_project_file(config_path) if config_path else ProjectFile()

    if work_dir is None:
        work_dir = config_path.parent if config_path else Path.cwd()
    work_dir = work_dir.resolve()

    values: dict[str, Any] = {
        k: v for k, v in project.model_dump().items() if v is not None
    }

    if env.get(ENV_NDK_PATH):
        values["ndk_path"] = Path(env[ENV_NDK_PATH])
    if env.get(ENV_OUT_DIR):
        values["out_dir"] = Path(env[ENV_OUT_DIR])

    if busybox_version:
        values["busybox_version"] = busybox_version
    if archs:
        values["archs"] = parse_arch_list(archs) if isinstance(archs, str) else tuple(archs)
    values.update({k: v for k, v in overrides.items() if v is not None})

    ndk_version = values.get("ndk_version", DEFAULT_NDK_VERSION)
    values.setdefault("ndk_path", work_dir / f"android-ndk-{ndk_version}")
    values.setdefault("out_dir", work_dir / "output")
    values.setdefault("baseline_config", work_dir / BASELINE_CONFIG_FILE)
    values.setdefault("patches_dir", work_dir / "patches")

    for key in ("ndk_path", "out_dir", "baseline_config", "patches_dir"):
        path = Path(values[key])
        values[key] = path if path.is_absolute() else work_dir / path

    try:
        config = BuildConfig(work_dir=work_dir, **values)
    except ValidationError as e:
        raise ConfigError(f"Invalid build configuration: {e}") from e

    logger.debug(
        "Resolved config: busybox %s, archs=%s, ndk=%s, out=%s",
        config.busybox_version, " ".join(config.archs), config.ndk_path, config.out_dir,
    )
    return config
