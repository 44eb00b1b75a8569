from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time
from enum import Enum

from assistant.domain.entities.recurrence import RecurrencePattern


class IntentKind(str, Enum):
    create_task = "create_task"
    create_event = "create_event"
    create_structured_intent = "create_structured_intent"


class ActionType(str, Enum):
    task = "task"
    event = "event"
    intent = "intent"


@dataclass(frozen=True)
class ExtractedData:
    """Fields collected across turns. Every field is optional until execution."""

    intent: IntentKind | None = None
    action_type: ActionType | None = None
    title: str | None = None
    description: str | None = None
    date: date | None = None
    time: time | None = None
    duration_minutes: int | None = None
    recurrence: RecurrencePattern | None = None
    priority: str | None = None
    urgency: str | None = None
    category_id: str | None = None
    list_id: str | None = None
