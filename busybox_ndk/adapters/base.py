"""
Adapter base — the contract between build steps and external tools.

A build step never runs make, git or the network itself. It hands an
``Action`` to the registry, which picks the adapter named by the
action and passes it an ``ExecutionContext``.
"""

from __future__ import annotations

import shutil
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from busybox_ndk.core.models.action import Action, Receipt


class ExecutionContext(BaseModel):
    """The action plus where and how to run it."""

    action: Action
    work_dir: str = "."
    dry_run: bool = False
    params: dict[str, Any] = Field(default_factory=dict)

    @property
    def working_dir(self) -> str:
        """Directory the tool runs in.

        An absolute ``cwd`` param wins; a relative one is joined to
        ``work_dir``.
        """
        cwd = self.params.get("cwd")
        if not cwd:
            return self.work_dir
        path = Path(cwd)
        if path.is_absolute():
            return str(path)
        return str(Path(self.work_dir) / path)

    def timeout(self, default: float | None = None) -> float | None:
        """The ``timeout`` param, or ``default``. None means no limit."""
        return self.params.get("timeout", default)

    def resolve(self, path: str) -> Path:
        """Resolve a path param against the working directory."""
        p = Path(path)
        return p if p.is_absolute() else Path(self.working_dir) / p


class Adapter(ABC):
    """Base class for adapters.

    Subclasses list the executables they wrap in ``tools``; the adapter
    is available when every one of them is on PATH. ``execute`` must return a Receipt for every
    outcome, failures included.
    """

    tools: tuple[str, ...] = ()

    @property
    @abstractmethod
    def name(self) -> str:
        """Adapter name that actions refer to ('shell', 'git', 'download')."""

    def is_available(self) -> bool:
        return all(shutil.which(tool) is not None for tool in self.tools)

    @abstractmethod
    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        """Check params before anything runs. Returns (ok, error message)."""

    @abstractmethod
    def execute(self, context: ExecutionContext) -> Receipt:
        """Run the action. Never raises."""

    def _failure(self, context: ExecutionContext, error: str, **kwargs: Any) -> Receipt:
        return Receipt.failure(adapter=self.name, action_id=context.action.id, error=error, **kwargs)

    def _success(self, context: ExecutionContext, output: str = "", **kwargs: Any) -> Receipt:
        return Receipt.success(adapter=self.name, action_id=context.action.id, output=output, **kwargs)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
