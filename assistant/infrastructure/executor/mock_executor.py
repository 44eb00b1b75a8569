from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from assistant.application.exceptions import ExecutionFailure
from assistant.application.ports.action_executor import ActionExecutorPort
from assistant.domain.entities.executed_action import ExecutedAction, ResolvedAction
from assistant.domain.entities.extracted_data import ActionType


class InMemoryActionExecutor(ActionExecutorPort):
    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._created: dict[str, list[ExecutedAction]] = {}
        self._failures: list[str] = []
        self._counter = 0
        self._logger = logging.getLogger(__name__)

    def fail_next(self, reason: str) -> None:
        """Make the next execute() call raise ExecutionFailure(reason)."""
        self._failures.append(reason)

    def created_for(self, user_id: str) -> list[ExecutedAction]:
        return list(self._created.get(user_id, []))

    async def execute(self, user_id: str, action: ResolvedAction) -> ExecutedAction:
        if self._failures:
            reason = self._failures.pop(0)
            self._logger.warning("Mock executor failing on request", extra={"user_id": user_id, "reason": reason})
            raise ExecutionFailure(reason)
        if not action.title:
            raise ExecutionFailure("a title is required")

        self._counter += 1
        item_id = f"mock_{action.kind.value}_{self._counter}"
        executed = ExecutedAction(
            action_id=f"action_{self._counter}",
            kind=action.kind,
            title=action.title,
            created_at=self._clock(),
            start=action.start,
            end=action.end,
            created_task_id=item_id if action.kind == ActionType.task else None,
            created_event_id=item_id if action.kind == ActionType.event else None,
            created_intent_id=item_id if action.kind == ActionType.intent else None,
            list_id=action.list_id,
        )
        self._created.setdefault(user_id, []).append(executed)
        self._logger.info(
            "Mock action executed",
            extra={"user_id": user_id, "reason": f"{action.kind.value}:{item_id}"},
        )
        return executed
