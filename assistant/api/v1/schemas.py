import datetime as dt
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class TurnKind(str, Enum):
    clarification_needed = "clarification_needed"
    conflict_detected = "conflict_detected"
    success = "success"


class VoiceCommandRequestSchema(BaseModel):
    user_id: str = Field(min_length=1)
    transcript: str = ""
    conversation_id: str | None = None


class ClarifyRequestSchema(BaseModel):
    user_id: str = Field(min_length=1)
    conversation_id: str = Field(min_length=1)
    free_text: str | None = None
    selected_option_id: str | None = None


class OptionSchema(BaseModel):
    id: str
    label: str
    value: Any = None


class TimeSlotSchema(BaseModel):
    start: dt.datetime
    end: dt.datetime
    score: float | None = None
    reason: str | None = None


class ConflictEventSchema(BaseModel):
    id: str
    title: str
    start: dt.datetime
    end: dt.datetime
    is_flexible: bool
    attendee_count: int
    source: str


class ConflictSchema(BaseModel):
    type: str
    severity: str
    title: str
    start: dt.datetime
    end: dt.datetime
    conflicting_events: list[ConflictEventSchema] = Field(default_factory=list)
    alternatives: list[TimeSlotSchema] = Field(default_factory=list)
    message: str
    overlap_minutes: int = 0


class ExecutedActionSchema(BaseModel):
    action_id: str
    kind: str
    title: str
    created_at: dt.datetime
    start: dt.datetime | None = None
    end: dt.datetime | None = None
    created_task_id: str | None = None
    created_event_id: str | None = None
    created_intent_id: str | None = None
    list_id: str | None = None


class TurnResponseSchema(BaseModel):
    kind: TurnKind
    conversation_id: str | None = None
    message: str
    field: str | None = None
    options: list[OptionSchema] = Field(default_factory=list)
    conflict: ConflictSchema | None = None
    action: ExecutedActionSchema | None = None


class MessageSchema(BaseModel):
    role: str
    content: str
    timestamp: dt.datetime
    parsed: dict[str, Any] | None = None


class ExtractedDataSchema(BaseModel):
    intent: str | None = None
    action_type: str | None = None
    title: str | None = None
    description: str | None = None
    date: dt.date | None = None
    time: dt.time | None = None
    duration_minutes: int | None = None
    recurrence: dict[str, Any] | None = None
    priority: str | None = None
    urgency: str | None = None
    category_id: str | None = None
    list_id: str | None = None


class ConversationSchema(BaseModel):
    id: str
    user_id: str
    status: str
    current_step: str
    extracted_data: ExtractedDataSchema
    pending_fields: list[str] = Field(default_factory=list)
    options: list[OptionSchema] = Field(default_factory=list)
    conflict: ConflictSchema | None = None
    messages: list[MessageSchema] = Field(default_factory=list)
    created_at: dt.datetime
    last_activity_at: dt.datetime
    timeout_at: dt.datetime
    completed_at: dt.datetime | None = None


class ConversationListSchema(BaseModel):
    conversations: list[ConversationSchema]


class StatsSchema(BaseModel):
    total: int
    active: int
    waiting_for_user: int
    completed: int
    abandoned: int


class DeleteResponseSchema(BaseModel):
    deleted: bool
