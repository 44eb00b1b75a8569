"""
Tests for candidate slot generation, busy filtering and slot ranking.
"""

from __future__ import annotations

import random
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from assistant.application.utils.overlap import overlaps
from assistant.application.utils.slot_generator import SlotGenerator, WorkingHours, free_slots
from assistant.application.utils.slot_scorer import SlotScorer, slot_reason
from assistant.domain.entities.conflict import ConflictEvent
from assistant.domain.entities.time_slot import TimeSlot

UTC = ZoneInfo("UTC")
TUESDAY_2PM = datetime(2026, 10, 20, 14, 0, tzinfo=UTC)


def test_candidates_stay_inside_working_hours_and_skip_weekends():
    generator = SlotGenerator(UTC, working_hours=WorkingHours(9, 17), stride_minutes=30, search_days=7)

    slots = list(generator.candidates(TUESDAY_2PM, 60))

    assert slots
    for slot in slots:
        assert slot.start.weekday() < 5
        assert slot.start.hour >= 9
        assert slot.end <= slot.start.replace(hour=17, minute=0)
        assert slot.duration_minutes == 60


def test_candidates_respect_not_before():
    generator = SlotGenerator(UTC)
    now = TUESDAY_2PM.replace(hour=11, minute=10)

    slots = list(generator.candidates(TUESDAY_2PM, 30, same_day_only=True, not_before=now))

    assert slots[0].start == TUESDAY_2PM.replace(hour=11, minute=30)
    assert all(s.start >= now for s in slots)


def test_candidate_longer_than_the_day_yields_nothing():
    generator = SlotGenerator(UTC, working_hours=WorkingHours(9, 10))

    assert list(generator.candidates(TUESDAY_2PM, 90, same_day_only=True)) == []


def test_invalid_working_hours_are_rejected():
    with pytest.raises(ValueError):
        WorkingHours(17, 9)


def test_free_slots_keep_the_buffer_around_busy_events():
    busy = [ConflictEvent(id="1", title="Standup", start=TUESDAY_2PM, end=TUESDAY_2PM + timedelta(hours=1))]
    candidates = [
        TimeSlot(start=TUESDAY_2PM - timedelta(minutes=30), end=TUESDAY_2PM),
        TimeSlot(start=TUESDAY_2PM + timedelta(hours=1), end=TUESDAY_2PM + timedelta(hours=2)),
        TimeSlot(start=TUESDAY_2PM + timedelta(hours=2), end=TUESDAY_2PM + timedelta(hours=3)),
    ]

    assert free_slots(candidates, busy, buffer_minutes=0) == candidates
    assert free_slots(candidates, busy, buffer_minutes=15) == candidates[2:]


def test_free_slots_never_overlap_busy_events_on_random_calendars():
    generator = SlotGenerator(UTC, search_days=5)
    rng = random.Random(3)
    for _ in range(50):
        busy = []
        for i in range(rng.randint(0, 8)):
            start = TUESDAY_2PM.replace(hour=8) + timedelta(days=rng.randint(0, 4), minutes=15 * rng.randint(0, 40))
            busy.append(ConflictEvent(id=str(i), title="b", start=start, end=start + timedelta(minutes=rng.choice([15, 30, 60, 90]))))
        buffer_minutes = rng.choice([0, 10, 15])
        pad = timedelta(minutes=buffer_minutes)

        for slot in free_slots(generator.candidates(TUESDAY_2PM, 30), busy, buffer_minutes):
            assert not any(overlaps(slot.start - pad, slot.end + pad, e.start, e.end) for e in busy)


def test_same_day_core_hours_rank_first():
    scorer = SlotScorer()
    same_day_core = TimeSlot(start=TUESDAY_2PM.replace(hour=15), end=TUESDAY_2PM.replace(hour=16))
    same_day_early = TimeSlot(start=TUESDAY_2PM.replace(hour=7), end=TUESDAY_2PM.replace(hour=8))
    next_day = TimeSlot(start=TUESDAY_2PM + timedelta(days=1), end=TUESDAY_2PM + timedelta(days=1, hours=1))

    assert scorer.score(same_day_core, TUESDAY_2PM) == 160
    assert scorer.score(same_day_early, TUESDAY_2PM) == 135
    assert scorer.score(next_day, TUESDAY_2PM) == 105

    ranked = scorer.rank([next_day, same_day_early, same_day_core], TUESDAY_2PM, limit=2)
    assert [s.start for s in ranked] == [same_day_core.start, same_day_early.start]
    assert ranked[0].reason == "Available this afternoon"


def test_preferred_band_adds_bonus():
    scorer = SlotScorer()
    morning = TimeSlot(start=TUESDAY_2PM.replace(hour=9), end=TUESDAY_2PM.replace(hour=10))

    assert scorer.score(morning, TUESDAY_2PM, "morning") - scorer.score(morning, TUESDAY_2PM) == 20


def test_ranking_is_sorted_by_score_then_start():
    scorer = SlotScorer()
    generator = SlotGenerator(UTC)
    ranked = scorer.rank(generator.candidates(TUESDAY_2PM, 30), TUESDAY_2PM, limit=20)

    keys = [(-s.score, s.start) for s in ranked]
    assert keys == sorted(keys)


def test_slot_reasons():
    def slot(days: int, hour: int) -> TimeSlot:
        start = TUESDAY_2PM.replace(hour=hour) + timedelta(days=days)
        return TimeSlot(start=start, end=start + timedelta(minutes=30))

    assert slot_reason(slot(0, 9), TUESDAY_2PM) == "Available this morning"
    assert slot_reason(slot(0, 18), TUESDAY_2PM) == "Available later today"
    assert slot_reason(slot(1, 9), TUESDAY_2PM) == "Available tomorrow"
    assert slot_reason(slot(3, 9), TUESDAY_2PM) == "Available in 3 days"
    assert slot_reason(slot(9, 9), TUESDAY_2PM) == "Available soon."
