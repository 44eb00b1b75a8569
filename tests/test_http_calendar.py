"""
Tests for the calendar gateway adapter against a mocked HTTP transport.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

import httpx
import pytest

from assistant.application.exceptions import ProviderUnavailable
from assistant.infrastructure.calendar.http_calendar import HttpCalendarProvider

UTC = ZoneInfo("UTC")
WINDOW_START = datetime(2026, 10, 20, 0, 0, tzinfo=UTC)
WINDOW_END = WINDOW_START + timedelta(days=1)


def _provider(handler, name: str = "google") -> HttpCalendarProvider:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpCalendarProvider(name, api_key="test-key", base_url="https://calendar.test/v1/", client=client)


def _fetch(provider: HttpCalendarProvider, include_all: bool = True):
    return asyncio.run(provider.list_busy_events("u1", WINDOW_START, WINDOW_END, include_all))


def test_busy_events_are_mapped_and_free_ones_skipped():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={
                "events": [
                    {
                        "id": "a",
                        "title": "Team Meeting",
                        "start": {"dateTime": "2026-10-20T14:00:00Z"},
                        "end": {"dateTime": "2026-10-20T15:00:00Z"},
                        "attendees": ["x@example.com", "y@example.com", "z@example.com"],
                    },
                    {
                        "id": "b",
                        "summary": "Focus time",
                        "start": "2026-10-20T09:00:00",
                        "end": "2026-10-20T10:00:00",
                        "showAs": "tentative",
                    },
                    {
                        "id": "c",
                        "title": "Holiday",
                        "start": {"date": "2026-10-20"},
                        "end": {"date": "2026-10-21"},
                        "transparency": "transparent",
                    },
                ]
            },
        )

    events = _fetch(_provider(handler), include_all=False)

    assert [e.id for e in events] == ["a", "b"]
    meeting, focus = events
    assert meeting.start == datetime(2026, 10, 20, 14, 0, tzinfo=UTC)
    assert meeting.attendee_count == 3
    assert meeting.is_flexible is False
    assert meeting.source == "google"
    assert focus.title == "Focus time"
    assert focus.start.tzinfo is not None
    assert focus.is_flexible is True

    request = seen[0]
    assert request.url.path == "/v1/providers/google/busy"
    assert request.url.params["userId"] == "u1"
    assert request.url.params["calendars"] == "primary"
    assert request.headers["Authorization"] == "Bearer test-key"


def test_all_day_busy_event_is_kept_as_flexible():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={"events": [{"id": "d", "title": "Offsite", "start": {"date": "2026-10-20"}, "end": {"date": "2026-10-21"}}]},
        )

    [event] = _fetch(_provider(handler))

    assert event.start == WINDOW_START
    assert event.end == WINDOW_END
    assert event.is_flexible is True


def test_malformed_events_are_skipped():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "events": [
                    "garbage",
                    {"id": "no-end", "start": {"dateTime": "2026-10-20T14:00:00Z"}},
                    {"id": "backwards", "start": "2026-10-20T15:00:00Z", "end": "2026-10-20T14:00:00Z"},
                    {"id": "ok", "start": "2026-10-20T16:00:00Z", "end": "2026-10-20T17:00:00Z"},
                ]
            },
        )

    assert [e.id for e in _fetch(_provider(handler))] == ["ok"]


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(503, text="unavailable"),
        httpx.Response(200, text="<html>not json</html>"),
        httpx.Response(200, json={"items": []}),
    ],
)
def test_unusable_responses_mark_the_provider_unavailable(response):
    with pytest.raises(ProviderUnavailable) as exc_info:
        _fetch(_provider(lambda request: response, name="microsoft"))

    assert exc_info.value.provider == "microsoft"


def test_network_errors_mark_the_provider_unavailable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    with pytest.raises(ProviderUnavailable):
        _fetch(_provider(handler))


def test_api_key_is_required():
    with pytest.raises(ValueError):
        HttpCalendarProvider("google", api_key="", base_url="https://calendar.test")
