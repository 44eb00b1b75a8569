from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, time
from enum import Enum
from typing import Any, Union

from assistant.domain.entities.recurrence import RecurrencePattern


class MissingField(str, Enum):
    title = "title"
    date = "date"
    time = "time"
    duration = "duration"
    category = "category"
    list = "list"


@dataclass(frozen=True)
class ClarificationOption:
    id: str
    label: str
    value: Any = None


@dataclass(frozen=True)
class Confidence:
    is_confident: bool = True
    missing_fields: tuple[MissingField, ...] = ()
    question: str | None = None
    options: tuple[ClarificationOption, ...] = ()


@dataclass(frozen=True)
class CreateTask:
    confidence: Confidence = field(default_factory=Confidence)
    title: str | None = None
    description: str | None = None
    due_date: date | None = None
    due_time: time | None = None
    duration_minutes: int | None = None
    recurrence: RecurrencePattern | None = None
    priority: str | None = None  # "high", "normal", "low"
    urgency: str | None = None
    list_id: str | None = None

    kind = "create_task"


@dataclass(frozen=True)
class CreateEvent:
    confidence: Confidence = field(default_factory=Confidence)
    title: str | None = None
    description: str | None = None
    start_date: date | None = None
    start_time: time | None = None
    duration_minutes: int | None = None
    recurrence: RecurrencePattern | None = None

    kind = "create_event"


@dataclass(frozen=True)
class CreateStructuredIntent:
    confidence: Confidence = field(default_factory=Confidence)
    title: str | None = None
    description: str | None = None
    category_id: str | None = None  # life area
    list_id: str | None = None  # intent board
    priority: str | None = None
    urgency: str | None = None

    kind = "create_structured_intent"


@dataclass(frozen=True)
class ClarificationRequired:
    confidence: Confidence = field(default_factory=lambda: Confidence(is_confident=False))

    kind = "clarification_required"


ParsedAction = Union[CreateTask, CreateEvent, CreateStructuredIntent, ClarificationRequired]
