from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from dataclasses import replace
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from assistant.application.exceptions import ConflictCheckFailed
from assistant.application.ports.calendar import CalendarProviderPort
from assistant.application.utils.conflict_classifier import ConflictClassifier
from assistant.application.utils.messages import build_conflict_message
from assistant.application.utils.overlap import overlap_minutes, overlaps
from assistant.application.utils.slot_generator import SlotGenerator, free_slots
from assistant.application.utils.slot_scorer import SlotScorer
from assistant.domain.entities.conflict import Conflict, ConflictEvent, RequestedEvent
from assistant.domain.entities.time_slot import TimeSlot

DEFAULT_TITLE = "New event"


class ConflictDetectionEngine:
    def __init__(
        self,
        providers: Sequence[CalendarProviderPort],
        timezone: ZoneInfo,
        slot_generator: SlotGenerator | None = None,
        scorer: SlotScorer | None = None,
        classifier: ConflictClassifier | None = None,
        clock: Callable[[], datetime] | None = None,
        max_suggestions: int = 5,
        buffer_minutes: int = 15,
    ) -> None:
        self._providers = list(providers)
        self._timezone = timezone
        self._slot_generator = slot_generator or SlotGenerator(timezone)
        self._scorer = scorer or SlotScorer()
        self._classifier = classifier or ConflictClassifier()
        self._clock = clock or (lambda: datetime.now(tz=self._timezone))
        self._max_suggestions = max_suggestions
        self._buffer_minutes = buffer_minutes
        self._logger = logging.getLogger(__name__)

    async def check_conflicts(
        self,
        user_id: str,
        start: datetime,
        end: datetime,
        title: str | None = None,
        include_all_calendars: bool = True,
    ) -> Conflict | None:
        """
        Return a Conflict when [start, end) collides with a busy event, else None.

        Raises ConflictCheckFailed if no provider could be read: an unknown
        calendar is never reported as a clear one.
        """
        start, end = self._localize(start), self._localize(end)
        busy = await self._fetch_busy_events(user_id, start, end, include_all_calendars)
        colliding = [e for e in busy if overlaps(start, end, e.start, e.end)]
        if not colliding:
            return None

        colliding.sort(key=lambda e: (e.start, e.title))
        conflict_type, severity = self._classifier.classify(colliding)
        requested_title = title or DEFAULT_TITLE
        duration = max(int((end - start).total_seconds() // 60), 1)

        try:
            alternatives = await self.find_alternative_slots(
                user_id,
                duration,
                start,
                max_suggestions=self._max_suggestions,
                buffer_minutes=self._buffer_minutes,
            )
        except ConflictCheckFailed:
            self._logger.warning(
                "Alternative search skipped, calendars unreachable",
                extra={"user_id": user_id, "reason": "all providers failed"},
            )
            alternatives = []

        overlap = max(overlap_minutes(start, end, e.start, e.end) for e in colliding)
        self._logger.info(
            "Conflict detected",
            extra={
                "user_id": user_id,
                "reason": (
                    f"type={conflict_type.value} severity={severity.value} "
                    f"events={len(colliding)} overlap={overlap}m"
                ),
            },
        )
        return Conflict(
            type=conflict_type,
            severity=severity,
            requested_event=RequestedEvent(title=requested_title, start=start, end=end),
            conflicting_events=tuple(colliding),
            alternatives=tuple(alternatives),
            overlap_minutes=overlap,
            message=build_conflict_message(requested_title, colliding, self._timezone),
        )

    async def find_alternative_slots(
        self,
        user_id: str,
        duration_minutes: int,
        preferred: datetime,
        max_suggestions: int = 5,
        preferred_time_of_day: str | None = None,
        work_hours_only: bool = True,
        buffer_minutes: int = 15,
        same_day_only: bool = False,
    ) -> list[TimeSlot]:
        preferred = self._localize(preferred).astimezone(self._timezone)
        window_start, window_end = self._slot_generator.horizon(preferred, same_day_only=same_day_only)
        pad = timedelta(minutes=max(buffer_minutes, 0))
        busy = await self._fetch_busy_events(user_id, window_start - pad, window_end + pad, True)

        candidates = self._slot_generator.candidates(
            preferred,
            duration_minutes,
            work_hours_only=work_hours_only,
            same_day_only=same_day_only,
            not_before=self._clock(),
        )
        available = free_slots(candidates, busy, buffer_minutes)
        return self._scorer.rank(available, preferred, preferred_time_of_day, limit=max_suggestions)

    async def _fetch_busy_events(
        self,
        user_id: str,
        window_start: datetime,
        window_end: datetime,
        include_all_calendars: bool,
    ) -> list[ConflictEvent]:
        if not self._providers:
            return []

        results = await asyncio.gather(
            *(
                provider.list_busy_events(user_id, window_start, window_end, include_all_calendars)
                for provider in self._providers
            ),
            return_exceptions=True,
        )

        events: list[ConflictEvent] = []
        failures = 0
        for provider, result in zip(self._providers, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                failures += 1
                self._logger.warning(
                    "Calendar provider failed",
                    extra={"user_id": user_id, "provider": provider.name, "reason": str(result)},
                )
                continue
            events.extend(self._localize_event(e) for e in result)

        if failures == len(self._providers):
            raise ConflictCheckFailed(f"all {failures} calendar provider(s) failed")
        return events

    def _localize(self, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=self._timezone)
        return value

    def _localize_event(self, event: ConflictEvent) -> ConflictEvent:
        if event.start.tzinfo is not None and event.end.tzinfo is not None:
            return event
        return replace(event, start=self._localize(event.start), end=self._localize(event.end))
