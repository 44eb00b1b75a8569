from __future__ import annotations

import re
from collections.abc import Sequence
from datetime import datetime
from zoneinfo import ZoneInfo

from assistant.domain.entities.conflict import Conflict, ConflictEvent
from assistant.domain.entities.executed_action import ExecutedAction
from assistant.domain.entities.extracted_data import ActionType

MAX_LISTED_ALTERNATIVES = 3

CANCEL_WORDS = ("cancel", "never mind", "nevermind", "stop", "forget it")
OVERRIDE_WORDS = ("anyway", "keep it", "override", "book it", "schedule it")


def format_time(value: datetime) -> str:
    """2:00 PM"""
    return f"{value.strftime('%I').lstrip('0') or '12'}:{value.strftime('%M %p')}"


def format_when(value: datetime) -> str:
    """Tuesday, October 20 at 2:00 PM"""
    return f"{value.strftime('%A, %B')} {value.day} at {format_time(value)}"


def build_conflict_message(title: str, events: Sequence[ConflictEvent], timezone: ZoneInfo) -> str:
    if len(events) == 1:
        event = events[0]
        at = format_time(event.start.astimezone(timezone))
        return f'{title} conflicts with "{event.title}" scheduled at {at}.'
    names = ", ".join(f'"{e.title}"' for e in events)
    return f"{title} conflicts with {len(events)} existing events: {names}."


def build_conflict_prompt(conflict: Conflict, timezone: ZoneInfo) -> str:
    alternatives = conflict.alternatives[:MAX_LISTED_ALTERNATIVES]
    if not alternatives:
        return (
            f"{conflict.message}\n\n"
            "I couldn't find a free alternative. "
            'Say "keep it" to schedule anyway, or "cancel".'
        )
    lines = [conflict.message, "", "Here are some alternative times:"]
    for index, slot in enumerate(alternatives, start=1):
        line = f"{index}. {format_when(slot.start.astimezone(timezone))}"
        if slot.reason:
            line += f" ({slot.reason})"
        lines.append(line)
    lines.append("")
    lines.append('Reply with the number of the time you want, or say "cancel".')
    return "\n".join(lines)


def build_success_message(action: ExecutedAction, timezone: ZoneInfo) -> str:
    if action.kind == ActionType.event and action.start is not None:
        return f'Scheduled "{action.title}" for {format_when(action.start.astimezone(timezone))}.'
    if action.kind == ActionType.task:
        return f'Added "{action.title}" to your tasks.'
    if action.kind == ActionType.intent:
        return f'Added "{action.title}" to your board.'
    return "Done."


def build_cancel_message(title: str | None) -> str:
    if title:
        return f'Okay, I\'ve cancelled "{title}". Nothing was scheduled.'
    return "Okay, I've cancelled that. Nothing was scheduled."


def build_invalid_choice_message(option_count: int) -> str:
    if option_count <= 0:
        return 'Say "keep it" to schedule at the original time, or "cancel".'
    return f'Please choose one of the listed times (1-{option_count}), or say "cancel".'


def build_reschedule_transcript(title: str | None, start: datetime, timezone: ZoneInfo) -> str:
    return f'Reschedule "{title or "it"}" to {format_when(start.astimezone(timezone))}.'


def build_execution_failure_message(reason: str) -> str:
    reason = reason.strip().rstrip(".") or "something went wrong"
    return f"I couldn't complete that: {reason}. Please try again."


CONFLICT_CHECK_FAILED_MESSAGE = "I couldn't reach your calendar to check for conflicts. Please try again in a moment."
NLU_FAILED_MESSAGE = "Sorry, I didn't catch that. Could you say it again?"
EXPIRED_MESSAGE = "That request expired. Please start again."
EMPTY_TURN_MESSAGE = "What would you like to do?"


_CLAUSE_BREAK = re.compile(r"[,.;!?]|\bbut\b")
_NEGATION = re.compile(r"\b(?:not|don't|dont|no need to)\b")


def _phrase_pattern(phrases: Sequence[str]) -> re.Pattern[str]:
    return re.compile(r"\b(?:" + "|".join(re.escape(p) for p in phrases) + r")\b")


_CANCEL = _phrase_pattern(CANCEL_WORDS)
_OVERRIDE = _phrase_pattern(OVERRIDE_WORDS)


def _says(pattern: re.Pattern[str], text: str) -> bool:
    """Whole-phrase match that is not negated earlier in the same clause."""
    normalized = text.lower().replace("\u2019", "'")
    for clause in _CLAUSE_BREAK.split(normalized):
        for match in pattern.finditer(clause):
            if not _NEGATION.search(clause[: match.start()]):
                return True
    return False


def is_cancel(text: str) -> bool:
    return _says(_CANCEL, text)


def is_override(text: str) -> bool:
    return _says(_OVERRIDE, text)


_ORDINALS = {
    "first": 1,
    "one": 1,
    "second": 2,
    "two": 2,
    "third": 3,
    "three": 3,
    "fourth": 4,
    "four": 4,
    "fifth": 5,
    "five": 5,
}

# a bare number, not a clock time like "3pm", "3 p.m." or "10:30"
_OPTION_NUMBER = re.compile(r"(?<![\d:])\b(\d{1,2})\b(?!\s*(?::|[ap]\.?m\b|o'clock))")


def parse_option_index(text: str) -> int | None:
    """1-based option number from "2", "option 2", "the second one"."""
    normalized = text.lower().strip()
    match = _OPTION_NUMBER.search(normalized)
    if match:
        return int(match.group(1))
    for token in re.findall(r"[a-z]+", normalized):
        if token in _ORDINALS:
            return _ORDINALS[token]
    return None
