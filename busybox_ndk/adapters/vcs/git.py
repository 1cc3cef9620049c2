"""
Git adapter — release checkout and patch application.

Two operations: a shallow clone of one BusyBox release tag, and
``git am`` of a single mailbox patch. A patch that does not apply is
backed out with ``git am --abort`` so the next one starts from a clean
tree. Uses the git CLI, never a library binding.
"""

from __future__ import annotations

import logging
import subprocess

from busybox_ndk.adapters.base import Adapter, ExecutionContext
from busybox_ndk.core.models.action import Receipt

logger = logging.getLogger(__name__)

_REQUIRED = {
    "clone": ("url", "ref", "dest"),
    "am": ("patch",),
}


class GitError(RuntimeError):
    pass


class GitAdapter(Adapter):
    """Git operations.

    Action params:
        operation (str): 'clone' or 'am'.
        url, ref, dest (str): Repository, tag, and target directory (clone).
        depth (int): Clone depth (default: 1).
        patch (str): Mailbox patch path (am).
        timeout (float): Seconds (default: no limit).
        cwd (str): Working directory.
    """

    tools = ("git",)

    @property
    def name(self) -> str:
        return "git"

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        params = context.action.params
        operation = params.get("operation", "")
        if not operation:
            return False, "Missing required param: 'operation'"
        if operation not in _REQUIRED:
            return False, f"Unknown operation '{operation}'. Valid: {', '.join(sorted(_REQUIRED))}"
        for key in _REQUIRED[operation]:
            if not params.get(key):
                return False, f"Missing required param: '{key}' for {operation} operation"
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        operation = context.action.params["operation"]
        try:
            if operation == "clone":
                return self._clone(context)
            return self._am(context)
        except subprocess.TimeoutExpired as e:
            return self._failure(context, f"git timed out after {e.timeout}s")
        except (OSError, GitError) as e:
            return self._failure(context, f"Git error: {e}")

    # ── Operations ──────────────────────────────────────────────

    def _clone(self, ctx: ExecutionContext) -> Receipt:
        params = ctx.action.params
        output = self._git(
            [
                "clone",
                "--depth", str(params.get("depth", 1)),
                "--branch", params["ref"],
                params["url"],
                params["dest"],
            ],
            ctx.working_dir,
            ctx.timeout(),
        )
        return self._success(
            ctx, output, metadata={"url": params["url"], "ref": params["ref"], "dest": params["dest"]},
        )

    def _am(self, ctx: ExecutionContext) -> Receipt:
        patch = ctx.action.params["patch"]
        try:
            output = self._git(
                ["am", "--whitespace=nowarn", patch], ctx.working_dir, ctx.timeout(),
            )
        except GitError:
            subprocess.run(
                ["git", "am", "--abort"],
                cwd=ctx.working_dir,
                capture_output=True,
                text=True,
            )
            raise
        return self._success(ctx, output, metadata={"patch": patch})

    # ── Helpers ─────────────────────────────────────────────────

    def _git(self, args: list[str], cwd: str, timeout: float | None) -> str:
        """Run git and return stdout; non-zero exit raises GitError."""
        logger.debug("git %s (cwd=%s)", " ".join(args), cwd)
        result = subprocess.run(
            ["git", *args],
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
        if result.returncode != 0:
            raise GitError(result.stderr.strip() or f"git {args[0]} failed")
        return result.stdout.strip()
