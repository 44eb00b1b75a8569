from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from assistant.application.utils.overlap import overlaps
from assistant.domain.entities.conflict import ConflictEvent
from assistant.domain.entities.time_slot import TimeSlot


@dataclass(frozen=True)
class WorkingHours:
    start_hour: int = 9
    end_hour: int = 17

    def __post_init__(self) -> None:
        if not (0 <= self.start_hour < self.end_hour <= 24):
            raise ValueError(f"invalid working hours {self.start_hour}-{self.end_hour}")


ALL_DAY = WorkingHours(0, 24)


class SlotGenerator:
    def __init__(
        self,
        timezone: ZoneInfo,
        working_hours: WorkingHours | None = None,
        stride_minutes: int = 30,
        search_days: int = 7,
    ) -> None:
        if stride_minutes <= 0:
            raise ValueError("stride_minutes must be positive")
        self._timezone = timezone
        self._working_hours = working_hours or WorkingHours()
        self._stride = timedelta(minutes=stride_minutes)
        self._search_days = search_days

    def horizon(self, preferred: datetime, same_day_only: bool = False) -> tuple[datetime, datetime]:
        """[start, end) of the search window: the preferred day, or `search_days` days from its midnight."""
        first_day = preferred.astimezone(self._timezone).date()
        days = 1 if same_day_only else self._search_days
        start = self._at(first_day, 0)
        end = self._at(first_day + timedelta(days=days), 0)
        return start, end

    def candidates(
        self,
        preferred: datetime,
        duration_minutes: int,
        work_hours_only: bool = True,
        same_day_only: bool = False,
        not_before: datetime | None = None,
    ) -> Iterator[TimeSlot]:
        if duration_minutes <= 0:
            raise ValueError("duration_minutes must be positive")
        duration = timedelta(minutes=duration_minutes)
        hours = self._working_hours if work_hours_only else ALL_DAY
        first_day = preferred.astimezone(self._timezone).date()
        days = 1 if same_day_only else self._search_days

        for offset in range(days):
            day = first_day + timedelta(days=offset)
            if work_hours_only and day.weekday() >= 5:
                continue
            day_start = self._at(day, hours.start_hour)
            day_end = self._at(day, hours.end_hour)
            current = day_start
            while current < day_end:
                end = current + duration
                if end > day_end:
                    break
                if not_before is None or current >= not_before:
                    yield TimeSlot(start=current, end=end)
                current += self._stride

    def _at(self, day: date, hour: int) -> datetime:
        if hour >= 24:
            day, hour = day + timedelta(days=hour // 24), hour % 24
        return datetime.combine(day, time(hour=hour), tzinfo=self._timezone)


def free_slots(
    candidates: Iterable[TimeSlot],
    busy: Iterable[ConflictEvent],
    buffer_minutes: int = 0,
) -> list[TimeSlot]:
    """Drop candidates that, padded by `buffer_minutes` on both sides, overlap any busy event."""
    busy_list = sorted(busy, key=lambda e: e.start)
    pad = timedelta(minutes=max(buffer_minutes, 0))
    out: list[TimeSlot] = []
    for slot in candidates:
        start = slot.start - pad
        end = slot.end + pad
        if not any(overlaps(start, end, e.start, e.end) for e in busy_list):
            out.append(slot)
    return out
