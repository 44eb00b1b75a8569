from datetime import timedelta
from functools import lru_cache
import logging
from zoneinfo import ZoneInfo

from assistant.core.config import settings
from assistant.application.ports.action_executor import ActionExecutorPort
from assistant.application.ports.calendar import CalendarProviderPort
from assistant.application.ports.nlu import NLUPort
from assistant.application.use_cases.conflict_detection import ConflictDetectionEngine
from assistant.application.use_cases.conversation_store import ConversationStore
from assistant.application.use_cases.orchestrator import ConversationOrchestrator
from assistant.application.utils.slot_generator import SlotGenerator, WorkingHours
from assistant.infrastructure.calendar.http_calendar import HttpCalendarProvider
from assistant.infrastructure.calendar.mock_calendar import InMemoryCalendarProvider
from assistant.infrastructure.executor.mock_executor import InMemoryActionExecutor
from assistant.infrastructure.nlu.openai_nlu import OpenAINLU
from assistant.infrastructure.nlu.rule_based_nlu import RuleBasedNLU
from assistant.infrastructure.store.memory_store import MemoryConversationRepository


def get_timezone() -> ZoneInfo:
    return ZoneInfo(settings.TIMEZONE)


@lru_cache
def get_conversation_store() -> ConversationStore:
    return ConversationStore(
        repository=MemoryConversationRepository(),
        ttl=timedelta(minutes=settings.CONVERSATION_TTL_MINUTES),
        completed_retention=timedelta(minutes=settings.COMPLETED_RETENTION_MINUTES),
        timezone=get_timezone(),
    )


@lru_cache
def get_nlu() -> NLUPort:
    if settings.OPENAI_API_KEY and settings.OPENAI_API_KEY.strip():
        return OpenAINLU(timezone=get_timezone())
    return RuleBasedNLU(timezone=get_timezone())


@lru_cache
def get_calendar_providers() -> tuple[CalendarProviderPort, ...]:
    logger = logging.getLogger(__name__)
    if not settings.CALENDAR_API_KEY or settings.ENV.lower() in {"dev", "local"}:
        logger.info("Using InMemoryCalendarProvider", extra={"reason": f"ENV={settings.ENV}"})
        return (InMemoryCalendarProvider(),)
    return tuple(HttpCalendarProvider(name=name) for name in settings.CALENDAR_PROVIDER_NAMES)


@lru_cache
def get_action_executor() -> ActionExecutorPort:
    return InMemoryActionExecutor()


@lru_cache
def get_conflict_engine() -> ConflictDetectionEngine:
    tz = get_timezone()
    return ConflictDetectionEngine(
        providers=get_calendar_providers(),
        timezone=tz,
        slot_generator=SlotGenerator(
            tz,
            working_hours=WorkingHours(settings.WORK_HOURS_START, settings.WORK_HOURS_END),
            stride_minutes=settings.SLOT_STRIDE_MINUTES,
            search_days=settings.SLOT_SEARCH_DAYS,
        ),
        max_suggestions=settings.MAX_ALTERNATIVES,
        buffer_minutes=settings.BOOKING_BUFFER_MINUTES,
    )


@lru_cache
def get_orchestrator() -> ConversationOrchestrator:
    return ConversationOrchestrator(
        store=get_conversation_store(),
        nlu=get_nlu(),
        conflicts=get_conflict_engine(),
        executor=get_action_executor(),
        timezone=get_timezone(),
        default_duration_minutes=settings.DEFAULT_EVENT_DURATION_MINUTES,
    )
