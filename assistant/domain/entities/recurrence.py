from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum


class Frequency(str, Enum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"


@dataclass(frozen=True)
class RecurrencePattern:
    frequency: Frequency
    interval: int = 1
    by_day: tuple[str, ...] = ()  # "MO", "TU", ... (RFC 5545 weekday codes)
    by_month_day: int | None = None
    until: date | None = None
    count: int | None = None

    def __post_init__(self) -> None:
        if self.interval < 1:
            raise ValueError("interval must be >= 1")
        if self.until is not None and self.count is not None:
            raise ValueError("until and count are mutually exclusive")
