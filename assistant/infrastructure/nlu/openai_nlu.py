from __future__ import annotations

import json
from collections.abc import Callable
from datetime import date, datetime, time
from typing import Any
from zoneinfo import ZoneInfo

from openai import AsyncOpenAI

from assistant.application.exceptions import NLUContractError, NLUUpstreamError
from assistant.application.ports.nlu import NLUContext, NLUPort
from assistant.application.utils.action_builder import extracted_to_payload
from assistant.core.config import settings
from assistant.domain.entities.parsed_action import (
    ClarificationOption,
    ClarificationRequired,
    Confidence,
    CreateEvent,
    CreateStructuredIntent,
    CreateTask,
    MissingField,
    ParsedAction,
)
from assistant.domain.entities.recurrence import Frequency, RecurrencePattern
from assistant.infrastructure.nlu.prompts import build_parse_prompt


class OpenAINLU(NLUPort):
    """
    OpenAI-backed adapter implementing NLUPort.

    Contract guarantees:
    - parse returns one ParsedAction variant
    - Raises:
        NLUUpstreamError: networking/provider failures
        NLUContractError: invalid JSON or wrong schema/shape
    """

    def __init__(
        self,
        timezone: ZoneInfo,
        client: AsyncOpenAI | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.client = client or AsyncOpenAI(api_key=settings.OPENAI_API_KEY)
        self._timezone = timezone
        self._clock = clock or (lambda: datetime.now(tz=timezone))

    async def parse(self, transcript: str, context: NLUContext) -> ParsedAction:
        prompt = build_parse_prompt(
            transcript=transcript,
            today=self._clock().astimezone(self._timezone).date(),
            timezone=str(self._timezone),
            context=extracted_to_payload(context.extracted_data),
            pending_fields=[f.value for f in context.pending_fields],
        )

        text = await self._call_text(
            model=settings.OPENAI_MODEL_PARSE,
            prompt=prompt,
            temperature=settings.OPENAI_TEMPERATURE_PARSE,
        )

        return parse_action_payload(_parse_json(text, what="parse"))

    async def _call_text(self, model: str, prompt: str, temperature: float) -> str:
        try:
            resp = await self.client.chat.completions.create(
                model=model,
                messages=[
                    {"role": "system", "content": "Return only valid JSON. Do not include markdown or extra text."},
                    {"role": "user", "content": prompt},
                ],
                temperature=temperature,
                max_tokens=600,
                response_format={"type": "json_object"},
            )
        except Exception as e:
            raise NLUUpstreamError(f"OpenAI API error: {e}") from e

        content = (resp.choices[0].message.content or "").strip() if resp.choices else ""
        if not content:
            raise NLUContractError("NLU returned empty response text.")

        return content


def parse_action_payload(data: Any) -> ParsedAction:
    if not isinstance(data, dict):
        raise NLUContractError("Parse: expected a JSON object with a 'kind' key.")

    kind = data.get("kind")
    confidence = _confidence(data)

    if kind == "clarification_required":
        return ClarificationRequired(confidence=confidence)

    try:
        title = _optional_str(data.get("title"))
        description = _optional_str(data.get("description"))
        duration = _optional_int(data.get("duration_minutes"))
        if kind == "create_event":
            return CreateEvent(
                confidence=confidence,
                title=title,
                description=description,
                start_date=_optional_date(data.get("date")),
                start_time=_optional_time(data.get("time")),
                duration_minutes=duration,
                recurrence=_recurrence(data.get("recurrence")),
            )
        if kind == "create_task":
            return CreateTask(
                confidence=confidence,
                title=title,
                description=description,
                due_date=_optional_date(data.get("date")),
                due_time=_optional_time(data.get("time")),
                duration_minutes=duration,
                recurrence=_recurrence(data.get("recurrence")),
                priority=_optional_str(data.get("priority")),
                urgency=_optional_str(data.get("urgency")),
                list_id=_optional_str(data.get("list_id")),
            )
        if kind == "create_structured_intent":
            return CreateStructuredIntent(
                confidence=confidence,
                title=title,
                description=description,
                category_id=_optional_str(data.get("category_id")),
                list_id=_optional_str(data.get("list_id")),
                priority=_optional_str(data.get("priority")),
                urgency=_optional_str(data.get("urgency")),
            )
    except (KeyError, TypeError, ValueError) as e:
        raise NLUContractError(f"Parse: invalid field shape: {e}")

    raise NLUContractError(f"Parse: unknown kind {kind!r}.")


def _confidence(data: dict) -> Confidence:
    missing_raw = data.get("missing_fields") or []
    options_raw = data.get("options") or []
    if not isinstance(missing_raw, list) or not isinstance(options_raw, list):
        raise NLUContractError("Parse: 'missing_fields' and 'options' must be lists.")

    missing: list[MissingField] = []
    for item in missing_raw:
        try:
            missing.append(MissingField(str(item).strip().lower()))
        except ValueError:
            raise NLUContractError(f"Parse: unknown missing field {item!r}.")

    options: list[ClarificationOption] = []
    for index, item in enumerate(options_raw, start=1):
        if not isinstance(item, dict) or not item.get("label"):
            raise NLUContractError("Parse: each option must be an object with a label.")
        options.append(
            ClarificationOption(
                id=str(item.get("id") or index),
                label=str(item["label"]),
                value=item.get("value"),
            )
        )

    return Confidence(
        is_confident=bool(data.get("is_confident", True)),
        missing_fields=tuple(missing),
        question=_optional_str(data.get("clarification_question")),
        options=tuple(options),
    )


def _recurrence(raw: Any) -> RecurrencePattern | None:
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise TypeError("recurrence must be an object")
    return RecurrencePattern(
        frequency=Frequency(str(raw["frequency"]).upper()),
        interval=int(raw.get("interval") or 1),
        by_day=tuple(str(d).upper() for d in raw.get("by_day") or ()),
        by_month_day=_optional_int(raw.get("by_month_day")),
    )


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def _optional_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    return int(value)


def _optional_date(value: Any) -> date | None:
    if not value:
        return None
    return date.fromisoformat(str(value))


def _optional_time(value: Any) -> time | None:
    if not value:
        return None
    return time.fromisoformat(str(value))


def _parse_json(text: str, what: str) -> Any:
    try:
        return json.loads(text)
    except Exception:
        snippet = text[:200].replace("\n", " ")
        raise NLUContractError(f"{what.capitalize()}: invalid JSON. Snippet: {snippet!r}")
