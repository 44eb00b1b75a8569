from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime
from zoneinfo import ZoneInfo

from assistant.application.ports.nlu import NLUContext, NLUPort
from assistant.application.utils.clarification import GENERIC_TITLES
from assistant.application.utils.date_parser import (
    DATE_PHRASE,
    DURATION_PHRASE,
    RECURRENCE_PHRASE,
    TIME_PHRASE,
    parse_date_preference,
    parse_duration_minutes,
    parse_recurrence,
    parse_time_of_day,
)
from assistant.domain.entities.extracted_data import ActionType
from assistant.domain.entities.parsed_action import (
    ClarificationRequired,
    CreateEvent,
    CreateStructuredIntent,
    CreateTask,
    MissingField,
    ParsedAction,
)

COMMAND = re.compile(
    r"^\s*(?:(?:please|hey|ok|okay|actually|can you|could you)[\s,]+)*"
    r"(?:remind me to|remind me|schedule|book|set up|create|add|put|plan|make|new)\b"
    r"(?:\s+(?:a|an|the|my|me)\b)?\s*",
    re.IGNORECASE,
)
KIND_PREFIX = re.compile(
    r"^(?:a\s+|an\s+|new\s+)?(?:task|todo|to-do|reminder|goal|intention|event)\s*(?:to|called|named|for|:)\s+",
    re.IGNORECASE,
)
CATEGORY_PHRASE = re.compile(
    r"\b(?:in|under)\s+(?:my\s+|the\s+)?([a-z]+(?: [a-z]+)?)\s+(?:life\s+)?area\b",
    re.IGNORECASE,
)
BOARD_PHRASE = re.compile(
    r"\b(?:on|to)\s+(?:my\s+|the\s+)?([a-z]+(?: [a-z]+)?)\s+board\b",
    re.IGNORECASE,
)
PRIORITY_PHRASE = re.compile(r"\b(?:urgent(?:ly)?|asap|high priority|low priority|important)\b", re.IGNORECASE)
DESTINATION_PHRASE = re.compile(
    r"\b(?:to|on|in)\s+(?:my\s+|the\s+)?(?:calendar|tasks?|task list|to-?do list|list)\b",
    re.IGNORECASE,
)
TRAILING_FILLER = re.compile(r"(?:\s+(?:at|on|for|by|and|to|from|around|about))+$", re.IGNORECASE)

INTENT_WORDS = re.compile(r"\b(?:goal|intention|intent|habit|board|life area)\b", re.IGNORECASE)
TASK_WORDS = re.compile(r"\b(?:task|todo|to-do|remind|reminder)\b", re.IGNORECASE)
EVENT_WORDS = re.compile(
    r"\b(?:schedule|book|meeting|meet|appointment|event|call|sync|standup|lunch|dinner|interview|session)\b",
    re.IGNORECASE,
)

NOT_A_TITLE = GENERIC_TITLES | {"todo", "reminder", "goal", "something", "a task", "an event", "a meeting", "a goal"}


def slugify(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")


class RuleBasedNLU(NLUPort):
    """
    Deterministic English parser for dev and tests.

    A transcript that starts with a command verb is parsed as a fresh
    request; anything else is read as an answer to the pending question.
    """

    def __init__(self, timezone: ZoneInfo, clock: Callable[[], datetime] | None = None) -> None:
        self._timezone = timezone
        self._clock = clock or (lambda: datetime.now(tz=timezone))

    async def parse(self, transcript: str, context: NLUContext) -> ParsedAction:
        text = (transcript or "").strip()
        if context.extracted_data.action_type is not None and not COMMAND.match(text):
            return self._parse_answer(text, context)

        kind = self._detect_kind(text)
        if kind is None:
            return ClarificationRequired()
        return self._build(kind, text, self._extract_title(text))

    def _detect_kind(self, text: str) -> ActionType | None:
        if INTENT_WORDS.search(text):
            return ActionType.intent
        if TASK_WORDS.search(text):
            return ActionType.task
        if EVENT_WORDS.search(text):
            return ActionType.event
        if COMMAND.match(text):
            return ActionType.task
        return None

    def _parse_answer(self, text: str, context: NLUContext) -> ParsedAction:
        kind = context.extracted_data.action_type
        leftover = self._extract_title(text)
        pending = context.pending_fields or ()

        title = None
        if leftover and (MissingField.title in pending or not context.extracted_data.title):
            if not pending or pending[0] is MissingField.title:
                title = leftover

        parsed = self._build(kind, text, title)
        if kind is ActionType.intent and leftover and not title and pending:
            if pending[0] is MissingField.category and parsed.category_id is None:
                parsed = replace(parsed, category_id=slugify(leftover))
            elif pending[0] is MissingField.list and parsed.list_id is None:
                parsed = replace(parsed, list_id=slugify(leftover))
        return parsed

    def _build(self, kind: ActionType, text: str, title: str | None) -> ParsedAction:
        reference = self._clock().astimezone(self._timezone).date()
        when_date = parse_date_preference(text, self._timezone, reference_date=reference)
        when_time = parse_time_of_day(text)
        duration = parse_duration_minutes(text)
        recurrence = parse_recurrence(text)
        priority, urgency = _priority(text)

        if kind is ActionType.event:
            return CreateEvent(
                title=title,
                start_date=when_date,
                start_time=when_time,
                duration_minutes=duration,
                recurrence=recurrence,
            )
        if kind is ActionType.intent:
            category = CATEGORY_PHRASE.search(text)
            board = BOARD_PHRASE.search(text)
            return CreateStructuredIntent(
                title=title,
                category_id=slugify(category.group(1)) if category else None,
                list_id=slugify(board.group(1)) if board else None,
                priority=priority,
                urgency=urgency,
            )
        return CreateTask(
            title=title,
            due_date=when_date,
            due_time=when_time,
            duration_minutes=duration,
            recurrence=recurrence,
            priority=priority,
            urgency=urgency,
        )

    def _extract_title(self, text: str) -> str | None:
        rest = COMMAND.sub("", text, count=1)
        for pattern in (
            RECURRENCE_PHRASE,
            DURATION_PHRASE,
            TIME_PHRASE,
            DATE_PHRASE,
            CATEGORY_PHRASE,
            BOARD_PHRASE,
            DESTINATION_PHRASE,
            PRIORITY_PHRASE,
        ):
            rest = pattern.sub(" ", rest)
        rest = re.sub(r"\s+", " ", rest).strip(" ,.!?-")
        rest = KIND_PREFIX.sub("", rest)
        rest = TRAILING_FILLER.sub("", rest).strip(" ,.!?-")
        if rest.lower() in NOT_A_TITLE:
            return None
        return rest


def _priority(text: str) -> tuple[str | None, str | None]:
    normalized = text.lower()
    if re.search(r"\blow priority\b", normalized):
        return "low", None
    if re.search(r"\b(urgent(ly)?|asap)\b", normalized):
        return "high", "high"
    if re.search(r"\b(high priority|important)\b", normalized):
        return "high", None
    return None, None
