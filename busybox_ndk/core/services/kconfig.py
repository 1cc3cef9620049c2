"""
Config mutator — retarget a BusyBox ``.config`` at one NDK architecture.

The baseline config is copied verbatim, then specific Kconfig keys are
rewritten line by line. A line belongs to key ``K`` when it is either
``K=<value>`` or ``# K is not set``; nothing else is touched, and keys
missing from the baseline are simply not added.
"""

from __future__ import annotations

import logging
import re
import shutil
from collections.abc import Mapping
from pathlib import Path

from busybox_ndk.core.errors import StepError
from busybox_ndk.core.models.arch import get_arch
from busybox_ndk.core.models.build import ToolchainPaths

logger = logging.getLogger(__name__)

EXTRA_LDFLAGS = "-Wl,-z,max-page-size=16384"

# Kconfig value → None means "# KEY is not set"
Overrides = Mapping[str, str | None]

_UNSET_RE = re.compile(r"^# (CONFIG_\w+) is not set\s*$")
_SET_RE = re.compile(r"^(CONFIG_\w+)=")


def extra_cflags(api_level: int) -> str:
    return f"-DANDROID -D__ANDROID__ -D__ANDROID_API__={api_level} -Os"


def config_overrides(toolchain: ToolchainPaths, arch: str, api_level: int) -> dict[str, str | None]:
    """Kconfig keys to rewrite for one architecture, in application order."""
    prefix = get_arch(arch).prefix(api_level)
    return {
        "CONFIG_CROSS_COMPILER_PREFIX": _quote(f"{toolchain.bin_dir}/{prefix}"),
        "CONFIG_EXTRA_CFLAGS": _quote(extra_cflags(api_level)),
        "CONFIG_EXTRA_LDFLAGS": _quote(EXTRA_LDFLAGS),
        "CONFIG_STATIC": None,
        "CONFIG_STATIC_LIBGCC": None,
        "CONFIG_SYSROOT": _quote(str(toolchain.sysroot)),
    }


def _quote(value: str) -> str:
    return f'"{value}"'


def _line_key(line: str) -> str | None:
    m = _SET_RE.match(line) or _UNSET_RE.match(line)
    return m.group(1) if m else None


def _render(key: str, value: str | None) -> str:
    if value is None:
        return f"# {key} is not set"
    return f"{key}={value}"


def mutate_config(text: str, overrides: Overrides) -> str:
    """Rewrite the lines for each overridden key; leave every other line alone.

    Idempotent: applying the same overrides twice gives the same text.
    """
    out: list[str] = []
    for line in text.splitlines(keepends=True):
        key = _line_key(line.rstrip("\r\n"))
        if key is None or key not in overrides:
            out.append(line)
            continue
        body = line.rstrip("\r\n")
        newline = line[len(body):]
        out.append(_render(key, overrides[key]) + newline)
    return "".join(out)


def read_config_value(text: str, key: str) -> str | None:
    """Return the raw value of ``key`` (quotes included), or None if unset/absent."""
    for line in text.splitlines():
        if line.startswith(f"{key}="):
            return line[len(key) + 1:]
    return None


def write_build_config(baseline: Path, source_dir: Path, overrides: Overrides) -> Path:
    """Copy the baseline into ``source_dir/.config`` and apply the overrides.

    Raises:
        StepError: If the baseline config file does not exist.
    """
    if not baseline.is_file():
        raise StepError("Configure", f"Baseline config not found: {baseline}")

    target = source_dir / ".config"
    shutil.copyfile(baseline, target)
    original = target.read_text(encoding="utf-8")
    mutated = mutate_config(original, overrides)
    target.write_text(mutated, encoding="utf-8")

    missing = [k for k in overrides if read_config_value(original, k) is None and f"# {k} is not set" not in original]
    if missing:
        logger.debug("Keys absent from baseline (left alone): %s", ", ".join(missing))
    return target
