"""
Shared fixtures: a controllable clock and a fully wired in-memory orchestrator.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from assistant.application.use_cases.conflict_detection import ConflictDetectionEngine
from assistant.application.use_cases.conversation_store import ConversationStore
from assistant.application.use_cases.orchestrator import ConversationOrchestrator
from assistant.infrastructure.calendar.mock_calendar import InMemoryCalendarProvider
from assistant.infrastructure.executor.mock_executor import InMemoryActionExecutor
from assistant.infrastructure.nlu.rule_based_nlu import RuleBasedNLU
from assistant.infrastructure.store.memory_store import MemoryConversationRepository

UTC = ZoneInfo("UTC")

# Monday; "tomorrow" is Tuesday 2026-10-20.
MONDAY_MORNING = datetime(2026, 10, 19, 9, 0, tzinfo=UTC)


class FakeClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(MONDAY_MORNING)


@pytest.fixture
def store(clock) -> ConversationStore:
    return ConversationStore(
        repository=MemoryConversationRepository(),
        ttl=timedelta(minutes=30),
        completed_retention=timedelta(minutes=5),
        clock=clock,
        timezone=UTC,
    )


@pytest.fixture
def calendar() -> InMemoryCalendarProvider:
    return InMemoryCalendarProvider(name="google")


@pytest.fixture
def executor(clock) -> InMemoryActionExecutor:
    return InMemoryActionExecutor(clock=clock)


@pytest.fixture
def engine(calendar, clock) -> ConflictDetectionEngine:
    return ConflictDetectionEngine(providers=[calendar], timezone=UTC, clock=clock)


@pytest.fixture
def make_orchestrator(store, calendar, executor, clock):
    """Build an orchestrator; any collaborator can be swapped by keyword."""

    def _make(**overrides) -> ConversationOrchestrator:
        providers = overrides.pop("providers", [calendar])
        parts = {
            "store": store,
            "nlu": RuleBasedNLU(timezone=UTC, clock=clock),
            "conflicts": ConflictDetectionEngine(providers=providers, timezone=UTC, clock=clock),
            "executor": executor,
            "timezone": UTC,
            "default_duration_minutes": 60,
        }
        parts.update(overrides)
        return ConversationOrchestrator(**parts)

    return _make
