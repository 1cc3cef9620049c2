"""
Shell command adapter — run make and unzip.

Runs one command in a working directory with extra environment
variables layered over the process environment. Only the tail of the
tool's output is kept; a BusyBox compile prints far more than anyone
reads.
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
import time
from pathlib import Path

from busybox_ndk.adapters.base import Adapter, ExecutionContext
from busybox_ndk.core.models.action import Receipt

logger = logging.getLogger(__name__)

_OUTPUT_TAIL = 4000


def _tail(text: str) -> str:
    return text.strip()[-_OUTPUT_TAIL:]


class ShellCommandAdapter(Adapter):
    """Execute commands and capture output.

    Action params:
        command (list[str] | str): argv list, or a string split with
            shlex unless ``shell`` is set.
        shell (bool): Run through ``/bin/sh`` (default: False).
        env (dict[str, str]): Extra environment variables.
        timeout (float): Seconds (default: no limit).
        cwd (str): Working directory.
    """

    tools = ("make", "unzip")

    @property
    def name(self) -> str:
        return "shell"

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        if not context.action.params.get("command"):
            return False, "Missing required param: 'command'"

        # In a dry run earlier steps have not created the directory yet
        cwd = context.working_dir
        if not context.dry_run and not Path(cwd).is_dir():
            return False, f"Working directory does not exist: {cwd}"

        return True, ""

    def _argv(self, context: ExecutionContext) -> list[str] | str:
        command = context.action.params["command"]
        if context.action.params.get("shell", False):
            return command if isinstance(command, str) else shlex.join(command)
        return shlex.split(command) if isinstance(command, str) else list(command)

    def execute(self, context: ExecutionContext) -> Receipt:
        args = self._argv(context)
        display = args if isinstance(args, str) else shlex.join(args)
        timeout = context.timeout()
        meta = {"command": display}

        env = os.environ.copy()
        env.update(context.action.params.get("env") or {})

        logger.debug("Executing: %s (cwd=%s)", display, context.working_dir)
        start = time.monotonic()
        try:
            result = subprocess.run(
                args,
                shell=isinstance(args, str),
                cwd=context.working_dir,
                env=env,
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired:
            return self._failure(
                context, f"Command timed out after {timeout}s", metadata={**meta, "timeout": timeout},
            )
        except OSError as e:
            return self._failure(context, f"Command execution error: {e}", metadata=meta)

        elapsed_ms = int((time.monotonic() - start) * 1000)
        meta["return_code"] = result.returncode

        if result.returncode == 0:
            return self._success(
                context,
                _tail(result.stdout),
                duration_ms=elapsed_ms,
                metadata={**meta, "stderr": _tail(result.stderr)},
            )

        return self._failure(
            context,
            _tail(result.stderr) or f"Command exited with code {result.returncode}",
            duration_ms=elapsed_ms,
            metadata={**meta, "stdout": _tail(result.stdout)},
        )
