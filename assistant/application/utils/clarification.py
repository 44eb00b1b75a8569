from __future__ import annotations

from dataclasses import dataclass

from assistant.application.utils.action_builder import merge_parsed_action
from assistant.domain.entities.extracted_data import ActionType, ExtractedData
from assistant.domain.entities.parsed_action import (
    ClarificationOption,
    ClarificationRequired,
    MissingField,
    ParsedAction,
)

QUESTIONS: dict[MissingField, str] = {
    MissingField.title: "What would you like to add?",
    MissingField.date: "When would you like to schedule this?",
    MissingField.time: "What time works best for you?",
    MissingField.duration: "How long do you think this will take?",
    MissingField.category: "Which life area should this go in?",
    MissingField.list: "Which board should this go on?",
}

_unmapped = set(MissingField) - set(QUESTIONS)
if _unmapped:
    raise RuntimeError(f"No clarification question for: {sorted(f.value for f in _unmapped)}")

GENERIC_QUESTION = "Could you tell me a bit more about what you'd like to do?"

# Ask for the name first, then when, then how long, then where it goes.
FIELD_PRIORITY: tuple[MissingField, ...] = (
    MissingField.title,
    MissingField.time,
    MissingField.date,
    MissingField.duration,
    MissingField.category,
    MissingField.list,
)

GENERIC_TITLES = frozenset({"", "meeting", "event", "call", "appointment", "task", "voice event"})

DEFAULT_OPTIONS: dict[MissingField, tuple[ClarificationOption, ...]] = {
    MissingField.time: (
        ClarificationOption(id="1", label="9:00 AM", value="09:00"),
        ClarificationOption(id="2", label="12:00 PM", value="12:00"),
        ClarificationOption(id="3", label="3:00 PM", value="15:00"),
        ClarificationOption(id="4", label="5:00 PM", value="17:00"),
    ),
    MissingField.duration: (
        ClarificationOption(id="1", label="30 minutes", value=30),
        ClarificationOption(id="2", label="1 hour", value=60),
        ClarificationOption(id="3", label="1.5 hours", value=90),
        ClarificationOption(id="4", label="2 hours", value=120),
    ),
}

MANDATORY_FIELDS: dict[ActionType, tuple[MissingField, ...]] = {
    ActionType.task: (MissingField.title,),
    ActionType.event: (MissingField.title, MissingField.date, MissingField.time),
    ActionType.intent: (MissingField.title, MissingField.category, MissingField.list),
}


@dataclass(frozen=True)
class ClarificationPrompt:
    question: str
    field: MissingField | None = None
    options: tuple[ClarificationOption, ...] = ()


def has_field(data: ExtractedData, missing: MissingField) -> bool:
    if missing is MissingField.title:
        return bool(data.title) and data.title.strip().lower() not in GENERIC_TITLES
    if missing is MissingField.date:
        return data.date is not None
    if missing is MissingField.time:
        return data.time is not None
    if missing is MissingField.duration:
        return bool(data.duration_minutes)
    if missing is MissingField.category:
        return bool(data.category_id)
    if missing is MissingField.list:
        return bool(data.list_id)
    raise ValueError(f"unknown field {missing!r}")


def outstanding_fields(parsed: ParsedAction, extracted: ExtractedData | None = None) -> tuple[MissingField, ...]:
    """Fields still unknown after merging, reported ones first, sorted by FIELD_PRIORITY."""
    data = extracted if extracted is not None else merge_parsed_action(ExtractedData(), parsed)
    wanted = set(parsed.confidence.missing_fields)
    if data.action_type is not None:
        wanted.update(MANDATORY_FIELDS[data.action_type])
    return tuple(f for f in FIELD_PRIORITY if f in wanted and not has_field(data, f))


def requires_clarification(parsed: ParsedAction, extracted: ExtractedData | None = None) -> bool:
    if isinstance(parsed, ClarificationRequired):
        return True
    if not parsed.confidence.is_confident:
        return True
    return bool(outstanding_fields(parsed, extracted))


def build_clarification(parsed: ParsedAction, extracted: ExtractedData | None = None) -> ClarificationPrompt:
    fields = outstanding_fields(parsed, extracted)
    field = fields[0] if fields else None
    options = parsed.confidence.options or (DEFAULT_OPTIONS.get(field, ()) if field else ())
    if parsed.confidence.question:
        return ClarificationPrompt(question=parsed.confidence.question, field=field, options=options)
    if field is not None:
        return ClarificationPrompt(question=QUESTIONS[field], field=field, options=options)
    return ClarificationPrompt(question=GENERIC_QUESTION, options=options)


def generate_clarification_question(parsed: ParsedAction, extracted: ExtractedData | None = None) -> str:
    return build_clarification(parsed, extracted).question
