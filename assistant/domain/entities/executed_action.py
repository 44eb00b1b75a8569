from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

from assistant.domain.entities.extracted_data import ActionType
from assistant.domain.entities.recurrence import RecurrencePattern


@dataclass(frozen=True)
class ResolvedAction:
    kind: ActionType
    title: str
    description: str | None = None
    start: datetime | None = None
    end: datetime | None = None
    due_date: date | None = None
    duration_minutes: int | None = None
    recurrence: RecurrencePattern | None = None
    priority: str | None = None
    urgency: str | None = None
    category_id: str | None = None
    list_id: str | None = None


@dataclass(frozen=True)
class ExecutedAction:
    action_id: str
    kind: ActionType
    title: str
    created_at: datetime
    start: datetime | None = None
    end: datetime | None = None
    created_task_id: str | None = None
    created_event_id: str | None = None
    created_intent_id: str | None = None
    list_id: str | None = None
