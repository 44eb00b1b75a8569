from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from assistant.domain.entities.time_slot import TimeSlot


class ConflictType(str, Enum):
    hard_conflict = "hard_conflict"
    soft_conflict = "soft_conflict"
    partial_overlap = "partial_overlap"
    adjacent = "adjacent"  # reserved, never produced by the classifier
    overbooked = "overbooked"


class ConflictSeverity(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    ConflictSeverity.low: 0,
    ConflictSeverity.medium: 1,
    ConflictSeverity.high: 2,
}


@dataclass(frozen=True)
class ConflictEvent:
    id: str
    title: str
    start: datetime
    end: datetime
    is_flexible: bool = True
    attendee_count: int = 0
    source: str = "unknown"  # provider tag, e.g. "google", "microsoft"


@dataclass(frozen=True)
class RequestedEvent:
    title: str
    start: datetime
    end: datetime


@dataclass(frozen=True)
class Conflict:
    type: ConflictType
    severity: ConflictSeverity
    requested_event: RequestedEvent
    conflicting_events: tuple[ConflictEvent, ...]
    alternatives: tuple[TimeSlot, ...] = ()
    message: str = ""
    overlap_minutes: int = 0  # longest overlap with a single busy event
