from __future__ import annotations

import logging
from datetime import date, datetime, time
from typing import Any

import httpx

from assistant.application.exceptions import ProviderUnavailable
from assistant.application.ports.calendar import CalendarProviderPort
from assistant.application.utils.conflict_classifier import is_flexible
from assistant.core.config import settings
from assistant.domain.entities.conflict import ConflictEvent

FREE_MARKERS = frozenset({"free", "transparent"})


class HttpCalendarProvider(CalendarProviderPort):
    """
    Reads busy events for one provider ("google", "microsoft", ...) from the
    calendar gateway:

        GET {base_url}/providers/{name}/busy?userId=&timeMin=&timeMax=&calendars=
        -> {"events": [{"id", "title", "start": {"dateTime"|"date"}, "end": {...},
                        "attendees": [...], "showAs"}]}
    """

    def __init__(
        self,
        name: str,
        api_key: str | None = None,
        base_url: str | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
    ) -> None:
        self.name = name
        self._api_key = api_key or settings.CALENDAR_API_KEY
        if not self._api_key:
            raise ValueError("CALENDAR_API_KEY is required for the HTTP calendar provider")

        self._base_url = (base_url or settings.CALENDAR_API_BASE_URL).rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout or settings.CALENDAR_TIMEOUT_SECONDS)
        self._logger = logging.getLogger(__name__)

    async def list_busy_events(
        self,
        user_id: str,
        window_start: datetime,
        window_end: datetime,
        include_all_calendars: bool = True,
    ) -> list[ConflictEvent]:
        url = f"{self._base_url}/providers/{self.name}/busy"
        params = {
            "userId": user_id,
            "timeMin": window_start.isoformat(),
            "timeMax": window_end.isoformat(),
            "calendars": "all" if include_all_calendars else "primary",
        }
        headers = {"Authorization": f"Bearer {self._api_key}"}

        try:
            response = await self._client.get(url, params=params, headers=headers)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise ProviderUnavailable(self.name, str(e)) from e

        raw_events = data.get("events") if isinstance(data, dict) else None
        if not isinstance(raw_events, list):
            raise ProviderUnavailable(self.name, "response has no 'events' list")

        events: list[ConflictEvent] = []
        for raw in raw_events:
            if isinstance(raw, dict) and str(raw.get("showAs") or raw.get("transparency") or "").lower() in FREE_MARKERS:
                continue
            event = self._to_event(raw, window_start.tzinfo)
            if event is None:
                self._logger.warning(
                    "Skipping malformed calendar event",
                    extra={"user_id": user_id, "provider": self.name},
                )
                continue
            events.append(event)
        return events

    async def aclose(self) -> None:
        await self._client.aclose()

    def _to_event(self, raw: Any, tzinfo) -> ConflictEvent | None:
        if not isinstance(raw, dict):
            return None
        try:
            start, all_day = _parse_boundary(raw["start"], tzinfo)
            end, _ = _parse_boundary(raw["end"], tzinfo)
            attendees = raw.get("attendees")
            attendee_count = len(attendees) if isinstance(attendees, list) else int(raw.get("attendeeCount") or 0)
        except (KeyError, TypeError, ValueError):
            return None
        if end <= start:
            return None

        show_as = raw.get("showAs") or raw.get("transparency")

        return ConflictEvent(
            id=str(raw.get("id") or ""),
            title=str(raw.get("title") or raw.get("summary") or "Busy"),
            start=start,
            end=end,
            is_flexible=is_flexible(attendee_count, all_day=all_day, show_as=show_as),
            attendee_count=attendee_count,
            source=self.name,
        )


def _parse_boundary(value: Any, tzinfo) -> tuple[datetime, bool]:
    """Accepts {"dateTime": iso}, {"date": "YYYY-MM-DD"} or a bare ISO string."""
    if isinstance(value, dict):
        if value.get("dateTime"):
            return _parse_datetime(value["dateTime"], tzinfo), False
        if value.get("date"):
            day = date.fromisoformat(value["date"])
            return datetime.combine(day, time.min, tzinfo=tzinfo), True
        raise ValueError("boundary has neither dateTime nor date")
    if isinstance(value, str):
        return _parse_datetime(value, tzinfo), False
    raise TypeError("unsupported boundary shape")


def _parse_datetime(value: str, tzinfo) -> datetime:
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tzinfo)
    return parsed

