"""
Mock adapter — stands in for make, git or the network in tests.

Each instance answers under one adapter name and records every context
it is handed. A test can script a receipt for a given action id, make
an action fail validation (to exercise dry runs), or attach a
side-effect callback that writes the files the real tool would have
left behind.
"""

from __future__ import annotations

from collections.abc import Callable

from busybox_ndk.adapters.base import Adapter, ExecutionContext
from busybox_ndk.core.models.action import Receipt

SideEffect = Callable[[ExecutionContext], None]


class MockAdapter(Adapter):
    """Scriptable test double; succeeds unless told otherwise."""

    def __init__(
        self,
        adapter_name: str = "mock",
        available: bool = True,
        default_output: str = "[mock] executed",
        side_effect: SideEffect | None = None,
    ):
        self._name = adapter_name
        self._available = available
        self._default_output = default_output
        self._side_effect = side_effect
        self._responses: dict[str, Receipt] = {}
        self._invalid: dict[str, str] = {}
        self.call_log: list[ExecutionContext] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def call_count(self) -> int:
        return len(self.call_log)

    @property
    def action_ids(self) -> list[str]:
        """Executed action ids, in order."""
        return [ctx.action.id for ctx in self.call_log]

    def is_available(self) -> bool:
        return self._available

    def set_response(self, action_id: str, receipt: Receipt) -> None:
        """Return ``receipt`` for ``action_id``; the side effect does not run."""
        self._responses[action_id] = receipt

    def set_failure(self, action_id: str, error: str = "Mock failure") -> None:
        self.set_response(
            action_id,
            Receipt.failure(adapter=self._name, action_id=action_id, error=error),
        )

    def set_invalid(self, action_id: str, reason: str = "Mock validation failure") -> None:
        self._invalid[action_id] = reason

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        reason = self._invalid.get(context.action.id)
        if reason is not None:
            return False, reason
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        self.call_log.append(context)

        scripted = self._responses.get(context.action.id)
        if scripted is not None:
            return scripted

        if self._side_effect is not None:
            self._side_effect(context)

        return self._success(context, self._default_output, metadata={"mock": True})

    def reset(self) -> None:
        """Forget calls and scripted behaviour."""
        self.call_log.clear()
        self._responses.clear()
        self._invalid.clear()
