from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import datetime

from assistant.domain.entities.time_slot import TimeSlot

TIME_OF_DAY_BANDS = {
    "morning": (8, 12),
    "afternoon": (12, 17),
    "evening": (17, 21),
}


@dataclass(frozen=True)
class SlotScoringWeights:
    base: float = 100
    same_day_bonus: float = 50
    per_day_penalty: float = 5
    preferred_band_bonus: float = 20
    core_hours: tuple[int, int] = (10, 16)
    core_hours_bonus: float = 10
    early_before_hour: int = 8
    late_from_hour: int = 18
    off_hours_penalty: float = 15


class SlotScorer:
    """
    Ranks candidate slots against the originally requested instant.

    Both `slot.start` and `preferred` must already be expressed in the user's
    local timezone, since bands and day boundaries are wall-clock based.
    """

    def __init__(self, weights: SlotScoringWeights | None = None) -> None:
        self._weights = weights or SlotScoringWeights()

    def score(self, slot: TimeSlot, preferred: datetime, preferred_time_of_day: str | None = None) -> float:
        w = self._weights
        score = w.base
        day_distance = abs((slot.start.date() - preferred.date()).days)
        if day_distance == 0:
            score += w.same_day_bonus
        score -= w.per_day_penalty * day_distance

        hour = slot.start.hour
        band = TIME_OF_DAY_BANDS.get(preferred_time_of_day or "")
        if band and band[0] <= hour < band[1]:
            score += w.preferred_band_bonus
        if w.core_hours[0] <= hour < w.core_hours[1]:
            score += w.core_hours_bonus
        if hour < w.early_before_hour or hour >= w.late_from_hour:
            score -= w.off_hours_penalty
        return max(score, 0)

    def rank(
        self,
        slots: Iterable[TimeSlot],
        preferred: datetime,
        preferred_time_of_day: str | None = None,
        limit: int = 5,
    ) -> list[TimeSlot]:
        scored = [
            replace(
                slot,
                score=self.score(slot, preferred, preferred_time_of_day),
                reason=slot_reason(slot, preferred),
            )
            for slot in slots
        ]
        scored.sort(key=lambda s: (-s.score, s.start))
        return scored[: max(limit, 0)]


def slot_reason(slot: TimeSlot, preferred: datetime) -> str:
    days = (slot.start.date() - preferred.date()).days
    if days == 0:
        if slot.start.hour < 12:
            return "Available this morning"
        if slot.start.hour < 17:
            return "Available this afternoon"
        return "Available later today"
    if days == 1:
        return "Available tomorrow"
    if 1 < days <= 7:
        return f"Available in {days} days"
    return "Available soon."
