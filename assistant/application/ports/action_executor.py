from __future__ import annotations

from abc import ABC, abstractmethod

from assistant.domain.entities.executed_action import ExecutedAction, ResolvedAction


class ActionExecutorPort(ABC):
    @abstractmethod
    async def execute(self, user_id: str, action: ResolvedAction) -> ExecutedAction:
        """Create the task, event or intent. Raises ExecutionFailure on failure."""
        raise NotImplementedError
