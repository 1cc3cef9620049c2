"""
Adapter registry — routes each action to the adapter that runs it.

Dispatch order for one action:

    resolve adapter → validate params → (dry run: skip) → execute

Every path ends in a Receipt. Unknown adapters, invalid params and
adapters that blow up all come back as failed receipts, stamped with
the action's architecture and timing.
"""

from __future__ import annotations

import logging
import time
from typing import Any

from busybox_ndk.adapters.base import Adapter, ExecutionContext
from busybox_ndk.core.models.action import Action, Receipt

logger = logging.getLogger(__name__)


class AdapterRegistry:
    """Name → adapter table plus the dispatch loop.

    In mock mode nothing is executed: every action gets a successful
    receipt without its adapter being consulted.
    """

    def __init__(self, mock_mode: bool = False):
        self._adapters: dict[str, Adapter] = {}
        self.mock_mode = mock_mode

    def register(self, adapter: Adapter) -> None:
        if adapter.name in self._adapters:
            logger.warning("Overwriting existing adapter: %s", adapter.name)
        self._adapters[adapter.name] = adapter
        logger.debug("Registered adapter: %s", adapter.name)

    def unregister(self, name: str) -> None:
        self._adapters.pop(name, None)

    def get(self, name: str) -> Adapter | None:
        return self._adapters.get(name)

    def list_adapters(self) -> list[str]:
        return list(self._adapters)

    def adapter_status(self) -> dict[str, dict[str, Any]]:
        """Availability of each adapter's underlying tool."""
        status = {}
        for name, adapter in self._adapters.items():
            try:
                available = adapter.is_available()
            except Exception:
                available = False
            status[name] = {
                "name": name,
                "available": available,
                "tools": list(adapter.tools),
                "type": adapter.__class__.__name__,
            }
        return status

    def missing_tools(self, names: list[str]) -> list[str]:
        """Adapters among ``names`` that are unregistered or unavailable."""
        if self.mock_mode:
            return []
        status = self.adapter_status()
        return [n for n in names if not status.get(n, {}).get("available")]

    def execute_action(
        self,
        action: Action,
        work_dir: str = ".",
        dry_run: bool = False,
    ) -> Receipt:
        """Dispatch one action. Never raises.

        Args:
            action: The action to run.
            work_dir: Base directory that relative ``cwd`` params resolve against.
            dry_run: Validate only; the receipt is ``skipped``.
        """
        start = time.monotonic()
        receipt = self._dispatch(action, work_dir, dry_run)
        receipt.for_arch = action.for_arch
        if not receipt.duration_ms:
            receipt.duration_ms = int((time.monotonic() - start) * 1000)
        return receipt

    def _dispatch(self, action: Action, work_dir: str, dry_run: bool) -> Receipt:
        if self.mock_mode:
            return Receipt.success(
                adapter=action.adapter,
                action_id=action.id,
                output=f"[mock] {action.adapter}:{action.id} executed",
                metadata={"mock": True, "dry_run": dry_run},
            )

        adapter = self._adapters.get(action.adapter)
        if adapter is None:
            return Receipt.failure(
                adapter=action.adapter,
                action_id=action.id,
                error=f"No adapter registered for '{action.adapter}'",
            )

        context = ExecutionContext(
            action=action,
            work_dir=work_dir,
            dry_run=dry_run,
            params=action.params,
        )

        try:
            valid, message = adapter.validate(context)
        except Exception as e:
            valid, message = False, f"validator raised {e}"
        if not valid:
            return Receipt.failure(
                adapter=action.adapter,
                action_id=action.id,
                error=f"Validation failed: {message}",
            )

        if dry_run:
            return Receipt.skip(
                adapter=action.adapter,
                action_id=action.id,
                reason=f"[dry-run] Would execute {action.adapter}:{action.id}",
                metadata={"dry_run": True},
            )

        try:
            return adapter.execute(context)
        except Exception as e:
            logger.error("Adapter %s raised during %s: %s", action.adapter, action.id, e)
            return Receipt.failure(
                adapter=action.adapter,
                action_id=action.id,
                error=f"Unexpected error: {e}",
            )


def default_registry(mock_mode: bool = False) -> AdapterRegistry:
    """Registry with every adapter the build pipeline uses."""
    from busybox_ndk.adapters.net.download import DownloadAdapter
    from busybox_ndk.adapters.shell.command import ShellCommandAdapter
    from busybox_ndk.adapters.vcs.git import GitAdapter

    registry = AdapterRegistry(mock_mode=mock_mode)
    registry.register(ShellCommandAdapter())
    registry.register(GitAdapter())
    registry.register(DownloadAdapter())
    return registry
