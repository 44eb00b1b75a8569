"""
Tests for relative date, clock time, duration and recurrence parsing.
"""

from __future__ import annotations

from datetime import date, time
from zoneinfo import ZoneInfo

import pytest

from assistant.application.utils.date_parser import (
    map_vague_time_to_range,
    parse_date_preference,
    parse_duration_minutes,
    parse_recurrence,
    parse_time_of_day,
    parse_time_preference,
)
from assistant.domain.entities.recurrence import Frequency

UTC = ZoneInfo("UTC")
MONDAY = date(2026, 10, 19)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("today", MONDAY),
        ("tomorrow at 3", date(2026, 10, 20)),
        ("the day after tomorrow", date(2026, 10, 21)),
        ("on friday", date(2026, 10, 23)),
        ("monday", date(2026, 10, 26)),
        ("next wednesday", date(2026, 10, 28)),
        ("november 3rd", date(2026, 11, 3)),
        ("january 5", date(2027, 1, 5)),
        ("12/24", date(2026, 12, 24)),
        ("3/1/27", date(2027, 3, 1)),
        ("sometime soon", None),
    ],
)
def test_parse_date_preference(text, expected):
    assert parse_date_preference(text, UTC, reference_date=MONDAY) == expected


def test_impossible_calendar_date_is_ignored():
    assert parse_date_preference("february 30", UTC, reference_date=MONDAY) is None


@pytest.mark.parametrize(
    "text, expected",
    [
        ("at 2pm", (14, 0)),
        ("12am", (0, 0)),
        ("12 pm", (12, 0)),
        ("9:45", (9, 45)),
        ("7:15 pm", (19, 15)),
        ("noon", (12, 0)),
        ("midnight", (0, 0)),
        ("25:00", None),
        ("whenever", None),
    ],
)
def test_parse_time_preference(text, expected):
    assert parse_time_preference(text) == expected


def test_vague_time_maps_to_start_of_range():
    assert parse_time_of_day("tomorrow afternoon") == time(12, 0)
    assert parse_time_of_day("in the evening") == time(17, 0)
    assert map_vague_time_to_range("Morning") == (9, 12)
    assert map_vague_time_to_range("brunch") is None


@pytest.mark.parametrize(
    "text, expected",
    [
        ("for 30 min", 30),
        ("for 45 minutes", 45),
        ("1.5 hours", 90),
        ("2 hours and 15 minutes", 135),
        ("half an hour", 30),
        ("an hour and a half", 90),
        ("an hour", 60),
        ("a couple of hours", 120),
        ("0 minutes", None),
        ("quick", None),
    ],
)
def test_parse_duration_minutes(text, expected):
    assert parse_duration_minutes(text) == expected


def test_parse_recurrence_variants():
    assert parse_recurrence("every day").frequency == Frequency.DAILY
    assert parse_recurrence("every other week").interval == 2
    assert parse_recurrence("every 3 days").interval == 3
    assert parse_recurrence("weekdays").by_day == ("MO", "TU", "WE", "TH", "FR")
    assert parse_recurrence("tuesdays and thursdays").by_day == ("TU", "TH")
    assert parse_recurrence("every 15th of the month").by_month_day == 15
    assert parse_recurrence("annually").frequency == Frequency.YEARLY
    assert parse_recurrence("tomorrow at noon") is None
