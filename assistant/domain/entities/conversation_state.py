from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from assistant.domain.entities.conflict import Conflict
from assistant.domain.entities.extracted_data import ExtractedData
from assistant.domain.entities.message import ConversationMessage
from assistant.domain.entities.parsed_action import ClarificationOption, MissingField


class ConversationStatus(str, Enum):
    active = "active"
    waiting_for_user = "waiting_for_user"
    completed = "completed"
    abandoned = "abandoned"


class ConversationStep(str, Enum):
    initial = "initial"
    clarifying = "clarifying"
    confirming = "confirming"
    executing = "executing"
    resolving_conflict = "resolving_conflict"


@dataclass(frozen=True)
class ConversationState:
    id: str
    user_id: str
    created_at: datetime
    last_activity_at: datetime
    timeout_at: datetime
    status: ConversationStatus = ConversationStatus.active
    current_step: ConversationStep = ConversationStep.initial
    extracted_data: ExtractedData = field(default_factory=ExtractedData)
    pending_fields: tuple[MissingField, ...] = ()
    conflict_info: Conflict | None = None  # set only while resolving_conflict
    clarification_options: tuple[ClarificationOption, ...] = ()
    messages: tuple[ConversationMessage, ...] = ()
    completed_at: datetime | None = None
    purge_at: datetime | None = None  # retention deadline once completed

    @property
    def expires_at(self) -> datetime:
        if self.purge_at is not None and self.purge_at < self.timeout_at:
            return self.purge_at
        return self.timeout_at

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at
