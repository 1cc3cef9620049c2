"""
Engine executor — dispatches pipeline actions and enforces fail-fast.

Pipeline steps build Actions and hand them to a ``StepRunner``. The
runner sends each one through the adapter registry, keeps every
receipt, and raises ``StepError`` on the first failure unless the
caller explicitly opted into best-effort handling. A verbose runner
also logs what each tool printed.

Flow:
    step → Action → registry → Receipt → (ok | StepError | tolerated)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from busybox_ndk.adapters.registry import AdapterRegistry
from busybox_ndk.core.errors import StepError
from busybox_ndk.core.models.action import Action, Receipt

logger = logging.getLogger(__name__)


@dataclass
class StepRunner:
    """Executes actions for one build run and records the receipts."""

    registry: AdapterRegistry
    work_dir: Path = Path(".")
    dry_run: bool = False
    verbose: bool = False
    receipts: list[Receipt] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.receipts if r.failed)

    def run(self, action: Action, tolerate_failure: bool = False) -> Receipt:
        """Execute one action.

        Args:
            action: The action to execute.
            tolerate_failure: If True, a failed receipt is logged and
                returned instead of raising.

        Returns:
            The receipt.

        Raises:
            StepError: If the action failed and failure is not tolerated.
        """
        receipt = self.registry.execute_action(
            action,
            work_dir=str(self.work_dir),
            dry_run=self.dry_run,
        )
        self.receipts.append(receipt)

        logger.debug("%s %s → %s (%dms)", receipt.marker, action.id, receipt.status, receipt.duration_ms)
        if self.verbose and receipt.status != "skipped":
            self._log_tool_output(action, receipt)

        if receipt.failed:
            if tolerate_failure:
                logger.info("%s failed (ignored): %s", action.label, receipt.error)
                return receipt
            raise StepError(action.label, receipt.error or "failed", receipt=receipt)

        return receipt

    def _log_tool_output(self, action: Action, receipt: Receipt) -> None:
        for stream, text in (
            ("stdout", receipt.output or receipt.metadata.get("stdout")),
            ("stderr", receipt.metadata.get("stderr")),
        ):
            if text:
                logger.info("%s %s:\n%s", action.label, stream, text)

    def to_dict(self) -> dict:
        return {
            "total": len(self.receipts),
            "failed": self.failed,
            "receipts": [r.model_dump(mode="json") for r in self.receipts],
        }

