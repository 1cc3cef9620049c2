"""
Action and Receipt models — what a build step asks for and what it got.

Every external side effect of a build (fetching an archive, running
make) is described as an ``Action`` and answered with a ``Receipt``. Adapters report failure through the receipt; they
do not raise.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


class Action(BaseModel):
    """One requested operation.

    Ids are deterministic (``arm64:make``, ``ndk:download``,
    ``arm:patch:0001-fix.patch``) so tests can target a single step.
    """

    id: str
    name: str = ""                  # shown in errors, e.g. "Compile arm64"
    adapter: str                    # shell | git | download
    params: dict[str, Any] = Field(default_factory=dict)
    for_arch: str | None = None     # None for run-wide steps (NDK)

    @property
    def label(self) -> str:
        return self.name or self.id


class Receipt(BaseModel):
    """Outcome of one action."""

    adapter: str
    action_id: str
    status: Literal["ok", "skipped", "failed"] = "ok"
    for_arch: str | None = None

    finished_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0

    output: str = ""
    error: str | None = None

    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    @property
    def marker(self) -> str:
        """One-character status for log lines."""
        return {"ok": "✓", "failed": "✗"}.get(self.status, "⊘")

    @classmethod
    def success(cls, adapter: str, action_id: str, output: str = "", **kwargs: Any) -> Receipt:
        return cls(adapter=adapter, action_id=action_id, status="ok", output=output, **kwargs)

    @classmethod
    def failure(cls, adapter: str, action_id: str, error: str, **kwargs: Any) -> Receipt:
        return cls(adapter=adapter, action_id=action_id, status="failed", error=error, **kwargs)

    @classmethod
    def skip(cls, adapter: str, action_id: str, reason: str = "", **kwargs: Any) -> Receipt:
        """A receipt for an action that was validated but not run."""
        return cls(adapter=adapter, action_id=action_id, status="skipped", output=reason, **kwargs)
