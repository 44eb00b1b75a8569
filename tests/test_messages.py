"""
Tests for reading short replies given while a scheduling conflict is open.
"""

from __future__ import annotations

import pytest

from assistant.application.utils.messages import is_cancel, is_override, parse_option_index


@pytest.mark.parametrize("text", ["cancel", "Never mind.", "ok stop", "forget it, thanks", "no, cancel it"])
def test_cancel_phrases(text):
    assert is_cancel(text)


@pytest.mark.parametrize(
    "text",
    ["don't cancel, take 2", "do not cancel", "stopwatch", "cancellation policy?", "don’t stop"],
)
def test_negated_or_embedded_cancel_words_are_ignored(text):
    assert not is_cancel(text)


def test_override_needs_a_whole_phrase_that_is_not_negated():
    assert is_override("keep it")
    assert is_override("book it anyway")
    assert not is_override("don't book it")
    assert not is_override("bookit")


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("2", 2),
        ("option 3", 3),
        ("the second one", 2),
        ("don't cancel, take 2", 2),
        ("3pm is fine", None),
        ("3 p.m. works", None),
        ("how about 10:30", None),
        ("at 4 o'clock", None),
        ("hmm what", None),
    ],
)
def test_option_numbers_are_not_confused_with_clock_times(text, expected):
    assert parse_option_index(text) == expected
