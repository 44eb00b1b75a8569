from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from assistant.domain.entities.recurrence import Frequency, RecurrencePattern

VAGUE_TIME_RANGES = {
    "morning": (9, 12),
    "afternoon": (12, 17),
    "evening": (17, 20),
    "night": (18, 21),
}

DAY_NAMES = {
    "monday": 0,
    "tuesday": 1,
    "wednesday": 2,
    "thursday": 3,
    "friday": 4,
    "saturday": 5,
    "sunday": 6,
}

DAY_CODES = ("MO", "TU", "WE", "TH", "FR", "SA", "SU")

MONTH_NAMES = {
    "january": 1,
    "february": 2,
    "march": 3,
    "april": 4,
    "may": 5,
    "june": 6,
    "july": 7,
    "august": 8,
    "september": 9,
    "october": 10,
    "november": 11,
    "december": 12,
}

_DAY_ALTERNATION = "|".join(DAY_NAMES)
_MONTH_ALTERNATION = "|".join(MONTH_NAMES)

# Phrases consumed by the parsers below; stripped from a transcript to leave the title.
DATE_PHRASE = re.compile(
    rf"\b(?:on\s+|by\s+|for\s+|next\s+|this\s+)?"
    rf"(?:today|tonight|tomorrow|day after tomorrow|{_DAY_ALTERNATION}"
    rf"|(?:{_MONTH_ALTERNATION})\s+\d{{1,2}}(?:st|nd|rd|th)?"
    rf"|\d{{1,2}}[/-]\d{{1,2}}(?:[/-]\d{{2,4}})?)\b",
    re.IGNORECASE,
)
TIME_PHRASE = re.compile(
    r"\b(?:at\s+|by\s+|around\s+)?(?:\d{1,2}:\d{2}\s*(?:am|pm)?|\d{1,2}\s*(?:am|pm)|noon|midnight)\b"
    r"|\b(?:in the\s+|this\s+)?(?:morning|afternoon|evening)\b",
    re.IGNORECASE,
)
DURATION_PHRASE = re.compile(
    r"\b(?:for\s+)?(?:about\s+)?"
    r"(?:\d+(?:\.\d+)?\s*(?:hours?|hrs?|h)(?:\s*(?:and\s*)?\d+\s*(?:minutes?|mins?|m))?"
    r"|\d+\s*(?:minutes?|mins?)"
    r"|half an hour|half hour|an hour and a half|an hour|one hour|a couple of hours)\b",
    re.IGNORECASE,
)
RECURRENCE_PHRASE = re.compile(
    rf"\b(?:every\s+\d{{1,2}}(?:st|nd|rd|th)(?:\s+of\s+the\s+month)?"
    rf"|every\s+\d+\s+(?:days?|weeks?|months?)"
    rf"|every\s+(?:other\s+)?(?:day|weekday|week|month|year|morning|evening|night|{_DAY_ALTERNATION})"
    rf"(?:\s+and\s+(?:{_DAY_ALTERNATION}))*"
    rf"|(?:{_DAY_ALTERNATION})s(?:\s+and\s+(?:{_DAY_ALTERNATION})s)*"
    rf"|daily|weekly|monthly|yearly|annually|weekdays|on weekdays)\b",
    re.IGNORECASE,
)


def parse_date_preference(text: str, timezone: ZoneInfo, reference_date: date | None = None) -> date | None:
    """Parse date preference from text. Returns date or None if not found."""
    if reference_date is None:
        reference_date = datetime.now(timezone).date()

    normalized = text.lower().strip()

    if re.search(r"\bday after tomorrow\b", normalized):
        return reference_date + timedelta(days=2)

    if re.search(r"\b(today|tonight)\b", normalized):
        return reference_date

    if re.search(r"\btomorrow\b", normalized):
        return reference_date + timedelta(days=1)

    for day_name, day_num in DAY_NAMES.items():
        if re.search(rf"\bnext\s+{day_name}\b", normalized):
            days_ahead = (day_num - reference_date.weekday()) % 7 or 7
            if days_ahead < 7:
                days_ahead += 7
            return reference_date + timedelta(days=days_ahead)

    for day_name, day_num in DAY_NAMES.items():
        if re.search(rf"\b{day_name}\b", normalized):
            days_ahead = (day_num - reference_date.weekday()) % 7 or 7
            return reference_date + timedelta(days=days_ahead)

    month_match = re.search(rf"\b({_MONTH_ALTERNATION})\s+(\d{{1,2}})(?:st|nd|rd|th)?\b", normalized)
    if month_match:
        month_num = MONTH_NAMES[month_match.group(1)]
        day = int(month_match.group(2))
        year = reference_date.year
        if month_num < reference_date.month or (month_num == reference_date.month and day < reference_date.day):
            year += 1
        try:
            return date(year, month_num, day)
        except ValueError:
            pass

    match = re.search(r"\b(\d{1,2})[/-](\d{1,2})(?:[/-](\d{2,4}))?\b", normalized)
    if match:
        month = int(match.group(1))
        day = int(match.group(2))
        year = int(match.group(3)) if match.group(3) else reference_date.year
        if year < 100:
            year += 2000
        if not match.group(3) and (month < reference_date.month or (month == reference_date.month and day < reference_date.day)):
            year += 1
        try:
            return date(year, month, day)
        except ValueError:
            pass

    return None


def parse_time_preference(text: str) -> tuple[int, int] | None:
    """Parse time preference from text. Returns (hour, minute) or None."""
    normalized = text.lower().strip()

    if re.search(r"\bnoon\b", normalized):
        return (12, 0)
    if re.search(r"\bmidnight\b", normalized):
        return (0, 0)

    time_patterns = [
        r"\b(\d{1,2}):(\d{2})\s*(am|pm)?\b",
        r"\b(\d{1,2})\s*(am|pm)\b",
    ]

    for pattern in time_patterns:
        match = re.search(pattern, normalized)
        if match:
            hour = int(match.group(1))
            minute = int(match.group(2)) if match.lastindex >= 2 and match.group(2).isdigit() else 0
            am_pm = match.group(match.lastindex) if match.group(match.lastindex) in ("am", "pm") else None

            if am_pm == "pm" and hour != 12:
                hour += 12
            elif am_pm == "am" and hour == 12:
                hour = 0

            if 0 <= hour <= 23 and 0 <= minute <= 59:
                return (hour, minute)

    return None


def parse_time_of_day(text: str) -> time | None:
    """Exact clock time, or the start of a vague range such as "afternoon"."""
    parsed = parse_time_preference(text)
    if parsed is not None:
        return time(parsed[0], parsed[1])
    for word, (start_hour, _) in VAGUE_TIME_RANGES.items():
        if re.search(rf"\b{word}\b", text.lower()):
            return time(start_hour, 0)
    return None


def map_vague_time_to_range(vague_time: str) -> tuple[int, int] | None:
    """Map vague time description to hour range. Returns (start_hour, end_hour) or None."""
    normalized = vague_time.lower().strip()
    return VAGUE_TIME_RANGES.get(normalized)


def parse_duration_minutes(text: str) -> int | None:
    """"for 30 min" -> 30, "1.5 hours" -> 90, "an hour" -> 60."""
    normalized = text.lower().strip()

    combined = re.search(
        r"\b(\d+(?:\.\d+)?)\s*(?:hours?|hrs?|h)\b(?:\s*(?:and\s*)?(\d+)\s*(?:minutes?|mins?|m)\b)?",
        normalized,
    )
    if combined:
        minutes = round(float(combined.group(1)) * 60)
        if combined.group(2):
            minutes += int(combined.group(2))
        return minutes or None

    only_minutes = re.search(r"\b(\d+)\s*(?:minutes?|mins?)\b", normalized)
    if only_minutes:
        return int(only_minutes.group(1)) or None

    if re.search(r"\ban hour and a half\b", normalized):
        return 90
    if re.search(r"\b(half an hour|half hour)\b", normalized):
        return 30
    if re.search(r"\ba couple of hours\b", normalized):
        return 120
    if re.search(r"\b(an|one) hour\b", normalized):
        return 60
    return None


def parse_recurrence(text: str) -> RecurrencePattern | None:
    """Recognise "every day", "weekly", "every monday and wednesday", "weekdays"."""
    normalized = text.lower().strip()
    interval = 2 if re.search(r"\bevery other\b", normalized) else 1

    if re.search(r"\b(weekdays|every weekday)\b", normalized):
        return RecurrencePattern(frequency=Frequency.WEEKLY, by_day=DAY_CODES[:5])

    month_day = re.search(r"\bevery\s+(\d{1,2})(?:st|nd|rd|th)(?:\s+of\s+the\s+month)?\b", normalized)
    if month_day and 1 <= int(month_day.group(1)) <= 31:
        return RecurrencePattern(frequency=Frequency.MONTHLY, by_month_day=int(month_day.group(1)))

    every_n = re.search(r"\bevery\s+(\d+)\s+(days?|weeks?|months?)\b", normalized)
    if every_n and int(every_n.group(1)) >= 1:
        unit = every_n.group(2).rstrip("s")
        frequency = {"day": Frequency.DAILY, "week": Frequency.WEEKLY, "month": Frequency.MONTHLY}[unit]
        return RecurrencePattern(frequency=frequency, interval=int(every_n.group(1)))

    named_days = [
        DAY_CODES[num]
        for name, num in DAY_NAMES.items()
        if re.search(rf"\bevery\s+(?:other\s+)?(?:\w+\s+and\s+)*{name}\b", normalized)
        or re.search(rf"\b{name}s\b", normalized)
    ]
    if named_days:
        return RecurrencePattern(frequency=Frequency.WEEKLY, interval=interval, by_day=tuple(named_days))

    if re.search(r"\b(daily|every (?:other )?(?:day|morning|evening|night))\b", normalized):
        return RecurrencePattern(frequency=Frequency.DAILY, interval=interval)
    if re.search(r"\b(weekly|every (?:other )?week)\b", normalized):
        return RecurrencePattern(frequency=Frequency.WEEKLY, interval=interval)
    if re.search(r"\b(monthly|every (?:other )?month)\b", normalized):
        return RecurrencePattern(frequency=Frequency.MONTHLY, interval=interval)
    if re.search(r"\b(yearly|annually|every (?:other )?year)\b", normalized):
        return RecurrencePattern(frequency=Frequency.YEARLY, interval=interval)
    return None
