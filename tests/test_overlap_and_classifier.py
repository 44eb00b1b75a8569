"""
Tests for interval overlap and conflict classification.
"""

from __future__ import annotations

import random
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from assistant.application.utils.conflict_classifier import ConflictClassifier, SeverityWeights, is_flexible
from assistant.application.utils.overlap import overlap_minutes, overlaps
from assistant.domain.entities.conflict import ConflictEvent, ConflictSeverity, ConflictType

UTC = ZoneInfo("UTC")
BASE = datetime(2026, 10, 20, 9, 0, tzinfo=UTC)


def _at(minutes: int) -> datetime:
    return BASE + timedelta(minutes=minutes)


def _event(start: int = 0, end: int = 60, attendees: int = 0, flexible: bool = True, title: str = "e") -> ConflictEvent:
    return ConflictEvent(
        id=title,
        title=title,
        start=_at(start),
        end=_at(end),
        is_flexible=flexible,
        attendee_count=attendees,
    )


def test_touching_intervals_do_not_overlap():
    """Half-open intervals: one ending exactly when the other starts is not a collision."""
    assert not overlaps(_at(0), _at(60), _at(60), _at(120))
    assert not overlaps(_at(60), _at(120), _at(0), _at(60))


def test_contained_and_partial_intervals_overlap():
    assert overlaps(_at(0), _at(120), _at(30), _at(60))
    assert overlaps(_at(0), _at(60), _at(59), _at(90))
    assert overlap_minutes(_at(0), _at(60), _at(45), _at(90)) == 15
    assert overlap_minutes(_at(0), _at(60), _at(60), _at(90)) == 0


def test_overlap_is_symmetric_on_random_intervals():
    rng = random.Random(7)
    for _ in range(500):
        a0, b0 = rng.randint(0, 600), rng.randint(0, 600)
        a1, b1 = a0 + rng.randint(1, 120), b0 + rng.randint(1, 120)
        forward = overlaps(_at(a0), _at(a1), _at(b0), _at(b1))
        assert forward == overlaps(_at(b0), _at(b1), _at(a0), _at(a1))
        assert forward == (overlap_minutes(_at(a0), _at(a1), _at(b0), _at(b1)) > 0)


def test_conflict_type_rules():
    classifier = ConflictClassifier()

    assert classifier.conflict_type([_event(attendees=3, flexible=False)]) == ConflictType.hard_conflict
    assert classifier.conflict_type([_event(), _event(title="f")]) == ConflictType.soft_conflict
    assert classifier.conflict_type([_event(flexible=False), _event(title="f")]) == ConflictType.overbooked
    assert classifier.conflict_type([_event(flexible=False)]) == ConflictType.partial_overlap


def test_empty_event_list_is_rejected():
    with pytest.raises(ValueError):
        ConflictClassifier().classify([])


def test_three_attendee_meeting_is_medium_severity():
    classifier = ConflictClassifier()
    events = [_event(attendees=3, flexible=False)]

    assert classifier.severity_score(events) == 8
    assert classifier.severity(events) == ConflictSeverity.medium


def test_severity_thresholds_follow_weights():
    classifier = ConflictClassifier(SeverityWeights(high_threshold=4, medium_threshold=2))

    assert classifier.severity([_event()]) == ConflictSeverity.medium
    assert classifier.severity([_event(), _event(title="f")]) == ConflictSeverity.high


def test_adding_an_event_never_lowers_severity():
    classifier = ConflictClassifier()
    rng = random.Random(11)
    for _ in range(200):
        events = [
            _event(attendees=rng.randint(0, 6), flexible=rng.random() < 0.5, title=str(i))
            for i in range(rng.randint(1, 4))
        ]
        extra = _event(attendees=rng.randint(0, 6), flexible=rng.random() < 0.5, title="extra")
        assert classifier.severity(events + [extra]).rank >= classifier.severity(events).rank


def test_flexibility_heuristic():
    assert not is_flexible(attendee_count=2)
    assert is_flexible(attendee_count=1)
    assert is_flexible(all_day=True)
    assert not is_flexible(show_as="busy")
    assert not is_flexible(show_as="out_of_office")
    assert is_flexible(show_as="tentative")
