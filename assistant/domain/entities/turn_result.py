from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from assistant.domain.entities.conflict import Conflict
from assistant.domain.entities.executed_action import ExecutedAction
from assistant.domain.entities.parsed_action import ClarificationOption, MissingField


@dataclass(frozen=True)
class ClarificationNeeded:
    conversation_id: str | None
    question: str
    options: tuple[ClarificationOption, ...] = ()
    field: MissingField | None = None

    kind = "clarification_needed"

    @property
    def message(self) -> str:
        return self.question


@dataclass(frozen=True)
class ConflictDetected:
    conversation_id: str
    conflict: Conflict
    message: str
    options: tuple[ClarificationOption, ...] = ()

    kind = "conflict_detected"


@dataclass(frozen=True)
class Success:
    conversation_id: str
    message: str
    action: ExecutedAction | None = None  # None when the user cancelled

    kind = "success"


TurnResult = Union[ClarificationNeeded, ConflictDetected, Success]
