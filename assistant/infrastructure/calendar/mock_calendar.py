from __future__ import annotations

import logging
from datetime import datetime

from assistant.application.ports.calendar import CalendarProviderPort
from assistant.application.utils.overlap import overlaps
from assistant.domain.entities.conflict import ConflictEvent


class InMemoryCalendarProvider(CalendarProviderPort):
    def __init__(self, name: str = "memory", events: list[ConflictEvent] | None = None) -> None:
        self.name = name
        self._events: dict[str, list[ConflictEvent]] = {}
        self._logger = logging.getLogger(__name__)
        for event in events or []:
            self.add_event("*", event)

    def add_event(self, user_id: str, event: ConflictEvent) -> None:
        """Register a busy event for one user, or for everyone with user_id "*"."""
        self._events.setdefault(user_id, []).append(event)
        self._logger.info(
            "Mock calendar event added",
            extra={"user_id": user_id, "provider": self.name, "reason": event.title},
        )

    async def list_busy_events(
        self,
        user_id: str,
        window_start: datetime,
        window_end: datetime,
        include_all_calendars: bool = True,
    ) -> list[ConflictEvent]:
        candidates = self._events.get(user_id, []) + self._events.get("*", [])
        return [e for e in candidates if overlaps(window_start, window_end, e.start, e.end)]
