from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from assistant.domain.entities.conflict import ConflictEvent, ConflictSeverity, ConflictType

OPAQUE_MARKERS = frozenset({"busy", "opaque", "oof", "outofoffice", "workingelsewhere"})


@dataclass(frozen=True)
class SeverityWeights:
    per_event: int = 2
    per_inflexible_event: int = 3
    per_attendee: int = 1
    high_threshold: int = 10
    medium_threshold: int = 5


def is_flexible(attendee_count: int = 0, all_day: bool = False, show_as: str | None = None) -> bool:
    """Guess whether an external calendar entry could be moved without breaking a commitment."""
    if attendee_count > 1:
        return False
    if all_day:
        return True
    if show_as and show_as.strip().lower().replace("_", "") in OPAQUE_MARKERS:
        return False
    return True


class ConflictClassifier:
    def __init__(self, weights: SeverityWeights | None = None) -> None:
        self._weights = weights or SeverityWeights()

    def classify(self, events: Sequence[ConflictEvent]) -> tuple[ConflictType, ConflictSeverity]:
        return self.conflict_type(events), self.severity(events)

    def conflict_type(self, events: Sequence[ConflictEvent]) -> ConflictType:
        if not events:
            raise ValueError("cannot classify an empty set of colliding events")
        if any(e.attendee_count > 1 for e in events):
            return ConflictType.hard_conflict
        if all(e.is_flexible for e in events):
            return ConflictType.soft_conflict
        if len(events) > 1:
            return ConflictType.overbooked
        return ConflictType.partial_overlap

    def severity_score(self, events: Sequence[ConflictEvent]) -> int:
        w = self._weights
        inflexible = sum(1 for e in events if not e.is_flexible)
        attendees = sum(max(e.attendee_count, 0) for e in events)
        return w.per_event * len(events) + w.per_inflexible_event * inflexible + w.per_attendee * attendees

    def severity(self, events: Sequence[ConflictEvent]) -> ConflictSeverity:
        score = self.severity_score(events)
        if score >= self._weights.high_threshold:
            return ConflictSeverity.high
        if score >= self._weights.medium_threshold:
            return ConflictSeverity.medium
        return ConflictSeverity.low
