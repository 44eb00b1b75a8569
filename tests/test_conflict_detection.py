"""
Tests for conflict detection across calendar providers and alternative slot search.
"""

from __future__ import annotations

import asyncio
import random
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from assistant.application.exceptions import ConflictCheckFailed, ProviderUnavailable
from assistant.application.ports.calendar import CalendarProviderPort
from assistant.application.use_cases.conflict_detection import ConflictDetectionEngine
from assistant.application.utils.overlap import overlaps
from assistant.domain.entities.conflict import ConflictEvent, ConflictSeverity, ConflictType
from assistant.infrastructure.calendar.mock_calendar import InMemoryCalendarProvider

UTC = ZoneInfo("UTC")
TUESDAY_2PM = datetime(2026, 10, 20, 14, 0, tzinfo=UTC)


class UnavailableProvider(CalendarProviderPort):
    def __init__(self, name: str = "broken") -> None:
        self.name = name

    async def list_busy_events(self, user_id, window_start, window_end, include_all_calendars=True):
        raise ProviderUnavailable(self.name, "timeout")


def _team_meeting() -> ConflictEvent:
    return ConflictEvent(
        id="evt-1",
        title="Team Meeting",
        start=TUESDAY_2PM,
        end=TUESDAY_2PM + timedelta(hours=1),
        is_flexible=False,
        attendee_count=3,
        source="google",
    )


def test_free_calendar_has_no_conflict(engine):
    conflict = asyncio.run(engine.check_conflicts("u1", TUESDAY_2PM, TUESDAY_2PM + timedelta(minutes=30)))

    assert conflict is None


def test_event_touching_the_request_is_not_a_conflict(engine, calendar):
    calendar.add_event("u1", _team_meeting())

    conflict = asyncio.run(
        engine.check_conflicts("u1", TUESDAY_2PM + timedelta(hours=1), TUESDAY_2PM + timedelta(hours=2))
    )

    assert conflict is None


def test_meeting_with_attendees_is_a_hard_conflict_with_alternatives(engine, calendar):
    calendar.add_event("u1", _team_meeting())

    conflict = asyncio.run(
        engine.check_conflicts("u1", TUESDAY_2PM, TUESDAY_2PM + timedelta(minutes=30), title="Team sync")
    )

    assert conflict.type == ConflictType.hard_conflict
    assert conflict.severity == ConflictSeverity.medium
    assert [e.id for e in conflict.conflicting_events] == ["evt-1"]
    assert conflict.requested_event.title == "Team sync"
    assert conflict.message == 'Team sync conflicts with "Team Meeting" scheduled at 2:00 PM.'
    assert 0 < len(conflict.alternatives) <= 5
    assert conflict.alternatives[0].start == TUESDAY_2PM.replace(hour=10)
    assert conflict.alternatives[0].reason == "Available this morning"


def test_conflict_reports_how_long_the_overlap_is(engine, calendar):
    calendar.add_event("u1", _team_meeting())

    conflict = asyncio.run(
        engine.check_conflicts("u1", TUESDAY_2PM + timedelta(minutes=45), TUESDAY_2PM + timedelta(minutes=75))
    )

    assert conflict.overlap_minutes == 15


def test_alternatives_avoid_busy_time_with_buffer(engine, calendar, clock):
    calendar.add_event("u1", _team_meeting())
    pad = timedelta(minutes=15)

    conflict = asyncio.run(engine.check_conflicts("u1", TUESDAY_2PM, TUESDAY_2PM + timedelta(minutes=30)))

    for slot in conflict.alternatives:
        assert slot.start >= clock.now
        assert slot.duration_minutes == 30
        assert not overlaps(slot.start - pad, slot.end + pad, TUESDAY_2PM, TUESDAY_2PM + timedelta(hours=1))
    scores = [s.score for s in conflict.alternatives]
    assert scores == sorted(scores, reverse=True)


def test_multiple_collisions_are_reported_in_start_order(engine, calendar):
    calendar.add_event("u1", ConflictEvent(id="b", title="Lunch", start=TUESDAY_2PM + timedelta(minutes=30), end=TUESDAY_2PM + timedelta(hours=1), is_flexible=False))
    calendar.add_event("u1", ConflictEvent(id="a", title="Focus", start=TUESDAY_2PM, end=TUESDAY_2PM + timedelta(minutes=30)))

    conflict = asyncio.run(engine.check_conflicts("u1", TUESDAY_2PM, TUESDAY_2PM + timedelta(hours=1)))

    assert [e.id for e in conflict.conflicting_events] == ["a", "b"]
    assert conflict.type == ConflictType.overbooked
    assert conflict.message == 'New event conflicts with 2 existing events: "Focus", "Lunch".'


def test_events_of_other_users_are_ignored(engine, calendar):
    calendar.add_event("someone-else", _team_meeting())

    assert asyncio.run(engine.check_conflicts("u1", TUESDAY_2PM, TUESDAY_2PM + timedelta(minutes=30))) is None


def test_one_failing_provider_does_not_hide_the_others(calendar, clock):
    calendar.add_event("u1", _team_meeting())
    engine = ConflictDetectionEngine(providers=[UnavailableProvider(), calendar], timezone=UTC, clock=clock)

    conflict = asyncio.run(engine.check_conflicts("u1", TUESDAY_2PM, TUESDAY_2PM + timedelta(minutes=30)))

    assert conflict is not None
    assert conflict.type == ConflictType.hard_conflict


def test_all_providers_failing_is_not_reported_as_free(clock):
    engine = ConflictDetectionEngine(
        providers=[UnavailableProvider("google"), UnavailableProvider("microsoft")],
        timezone=UTC,
        clock=clock,
    )

    with pytest.raises(ConflictCheckFailed):
        asyncio.run(engine.check_conflicts("u1", TUESDAY_2PM, TUESDAY_2PM + timedelta(minutes=30)))


def test_no_providers_means_no_conflicts(clock):
    engine = ConflictDetectionEngine(providers=[], timezone=UTC, clock=clock)

    assert asyncio.run(engine.check_conflicts("u1", TUESDAY_2PM, TUESDAY_2PM + timedelta(minutes=30))) is None


def test_naive_datetimes_are_read_in_the_engine_timezone(calendar, clock):
    calendar.add_event("u1", _team_meeting())
    engine = ConflictDetectionEngine(providers=[calendar], timezone=UTC, clock=clock)

    conflict = asyncio.run(engine.check_conflicts("u1", datetime(2026, 10, 20, 14, 15), datetime(2026, 10, 20, 14, 45)))

    assert conflict is not None
    assert conflict.requested_event.start.tzinfo is not None


def test_find_alternative_slots_same_day_only(engine, calendar):
    calendar.add_event("u1", _team_meeting())

    slots = asyncio.run(engine.find_alternative_slots("u1", 60, TUESDAY_2PM, max_suggestions=3, same_day_only=True))

    assert len(slots) == 3
    assert all(s.start.date() == TUESDAY_2PM.date() for s in slots)


def test_find_alternative_slots_never_suggests_past_times(calendar, clock):
    clock.now = TUESDAY_2PM.replace(hour=12, minute=5)
    engine = ConflictDetectionEngine(providers=[calendar], timezone=UTC, clock=clock)

    slots = asyncio.run(engine.find_alternative_slots("u1", 30, TUESDAY_2PM, max_suggestions=10))

    assert slots
    assert all(s.start >= clock.now for s in slots)


def test_alternatives_never_collide_on_random_calendars(clock):
    rng = random.Random(42)
    for _ in range(25):
        calendar = InMemoryCalendarProvider()
        for i in range(rng.randint(1, 10)):
            start = TUESDAY_2PM.replace(hour=9) + timedelta(days=rng.randint(0, 3), minutes=30 * rng.randint(0, 16))
            calendar.add_event("u1", ConflictEvent(id=str(i), title="busy", start=start, end=start + timedelta(minutes=rng.choice([30, 60, 120]))))
        engine = ConflictDetectionEngine(providers=[calendar], timezone=UTC, clock=clock, buffer_minutes=10)

        slots = asyncio.run(engine.find_alternative_slots("u1", 45, TUESDAY_2PM, max_suggestions=5, buffer_minutes=10))
        busy = asyncio.run(calendar.list_busy_events("u1", TUESDAY_2PM - timedelta(days=2), TUESDAY_2PM + timedelta(days=10)))

        pad = timedelta(minutes=10)
        for slot in slots:
            assert not any(overlaps(slot.start - pad, slot.end + pad, e.start, e.end) for e in busy)
