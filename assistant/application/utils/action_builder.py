from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta
from typing import Any
from zoneinfo import ZoneInfo

from assistant.domain.entities.executed_action import ResolvedAction
from assistant.domain.entities.extracted_data import ActionType, ExtractedData, IntentKind
from assistant.domain.entities.parsed_action import (
    ClarificationRequired,
    CreateEvent,
    CreateStructuredIntent,
    CreateTask,
    ParsedAction,
)


def _fields_of(parsed: ParsedAction) -> dict[str, Any]:
    if isinstance(parsed, CreateTask):
        return {
            "intent": IntentKind.create_task,
            "action_type": ActionType.task,
            "title": parsed.title,
            "description": parsed.description,
            "date": parsed.due_date,
            "time": parsed.due_time,
            "duration_minutes": parsed.duration_minutes,
            "recurrence": parsed.recurrence,
            "priority": parsed.priority,
            "urgency": parsed.urgency,
            "list_id": parsed.list_id,
        }
    if isinstance(parsed, CreateEvent):
        return {
            "intent": IntentKind.create_event,
            "action_type": ActionType.event,
            "title": parsed.title,
            "description": parsed.description,
            "date": parsed.start_date,
            "time": parsed.start_time,
            "duration_minutes": parsed.duration_minutes,
            "recurrence": parsed.recurrence,
        }
    if isinstance(parsed, CreateStructuredIntent):
        return {
            "intent": IntentKind.create_structured_intent,
            "action_type": ActionType.intent,
            "title": parsed.title,
            "description": parsed.description,
            "category_id": parsed.category_id,
            "list_id": parsed.list_id,
            "priority": parsed.priority,
            "urgency": parsed.urgency,
        }
    if isinstance(parsed, ClarificationRequired):
        return {}
    raise TypeError(f"unsupported parsed action {type(parsed).__name__}")


def merge_parsed_action(extracted: ExtractedData, parsed: ParsedAction) -> ExtractedData:
    """Overlay the fields this action kind carries; empty values never erase earlier answers.

    A parse of a different action kind is a new request and starts from empty data.
    """
    fields = _fields_of(parsed)
    if extracted.action_type is not None and fields.get("action_type") not in (None, extracted.action_type):
        extracted = ExtractedData()
    updates = {
        key: value
        for key, value in fields.items()
        if value is not None and not (isinstance(value, str) and not value.strip())
    }
    if not updates:
        return extracted
    return replace(extracted, **updates)


def affects_calendar(data: ExtractedData) -> bool:
    if data.action_type == ActionType.event:
        return True
    return data.action_type == ActionType.task and data.date is not None and data.time is not None


def requested_window(
    data: ExtractedData,
    timezone: ZoneInfo,
    default_duration_minutes: int = 60,
) -> tuple[datetime, datetime]:
    if data.date is None or data.time is None:
        raise ValueError("a calendar window needs both date and time")
    start = datetime.combine(data.date, data.time, tzinfo=timezone)
    duration = data.duration_minutes or default_duration_minutes
    return start, start + timedelta(minutes=duration)


def with_start(data: ExtractedData, start: datetime, timezone: ZoneInfo) -> ExtractedData:
    local = start.astimezone(timezone)
    return replace(data, date=local.date(), time=local.time().replace(tzinfo=None))


def resolve_action(
    data: ExtractedData,
    timezone: ZoneInfo,
    default_duration_minutes: int = 60,
) -> ResolvedAction:
    kind = data.action_type or ActionType.task
    start = end = None
    if data.date is not None and data.time is not None:
        start, end = requested_window(data, timezone, default_duration_minutes)
    return ResolvedAction(
        kind=kind,
        title=(data.title or "").strip(),
        description=data.description,
        start=start,
        end=end,
        due_date=data.date,
        duration_minutes=data.duration_minutes or (default_duration_minutes if start else None),
        recurrence=data.recurrence,
        priority=data.priority,
        urgency=data.urgency,
        category_id=data.category_id,
        list_id=data.list_id,
    )


def extracted_to_payload(data: ExtractedData) -> dict[str, Any]:
    """JSON-friendly view used for message payloads and NLU prompts."""
    payload: dict[str, Any] = {}
    for key, value in vars(data).items():
        if value is None:
            continue
        if hasattr(value, "value"):
            payload[key] = value.value
        elif hasattr(value, "isoformat"):
            payload[key] = value.isoformat()
        elif key == "recurrence":
            payload[key] = {
                "frequency": value.frequency.value,
                "interval": value.interval,
                "by_day": list(value.by_day),
                "by_month_day": value.by_month_day,
                "until": value.until.isoformat() if value.until else None,
                "count": value.count,
            }
        else:
            payload[key] = value
    return payload
