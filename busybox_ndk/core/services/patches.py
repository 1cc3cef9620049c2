"""
Patch applier — best-effort ``git am`` of the optional patch set.

Patches are enhancements, not required fixes: a patch that does not
apply is logged and skipped, and the build carries on.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from busybox_ndk.core.engine.executor import StepRunner
from busybox_ndk.core.models.action import Action

logger = logging.getLogger(__name__)


@dataclass
class PatchReport:
    """Which patches went in for one architecture."""

    applied: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"applied": self.applied, "failed": self.failed}


def discover_patches(patches_dir: Path) -> list[Path]:
    """``*.patch`` files in lexicographic order; empty if the directory is missing."""
    if not patches_dir.is_dir():
        return []
    return sorted(p for p in patches_dir.glob("*.patch") if p.is_file())


def apply_patches(patches_dir: Path, source_dir: Path, arch: str, runner: StepRunner) -> PatchReport:
    """Apply each patch with ``git am``; failures never raise."""
    report = PatchReport()
    for patch in discover_patches(patches_dir):
        logger.info("Applying patch: %s", patch.name)
        receipt = runner.run(
            Action(
                id=f"{arch}:patch:{patch.name}",
                name=f"Apply {patch.name}",
                adapter="git",
                for_arch=arch,
                params={
                    "operation": "am",
                    "patch": str(patch.resolve()),
                    "cwd": str(source_dir),
                },
            ),
            tolerate_failure=True,
        )
        if receipt.failed:
            report.failed.append(patch.name)
        else:
            report.applied.append(patch.name)
    return report
