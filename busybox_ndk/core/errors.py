"""
Pipeline errors.

The build is fail-fast: the first failing step raises ``StepError`` and
the run stops. Adapters themselves never raise; ``StepRunner.run`` in the
engine converts a failed Receipt into one of these.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from busybox_ndk.core.models.action import Receipt


class ConfigError(Exception):
    """Raised when the project configuration file is invalid or unreadable."""


class StepError(Exception):
    """A pipeline step failed and the build must stop."""

    def __init__(self, step: str, message: str, receipt: Receipt | None = None):
        super().__init__(f"{step}: {message}")
        self.step = step
        self.message = message
        self.receipt = receipt


class UnknownArchitectureError(StepError):
    """An architecture name outside the fixed target table."""

    def __init__(self, name: str):
        super().__init__(
            "arch",
            f"Unknown architecture '{name}' (supported: arm, arm64, x86, x86_64)",
        )
        self.name = name
