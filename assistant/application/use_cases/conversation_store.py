from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Any
from zoneinfo import ZoneInfo

from assistant.application.ports.conversation_repository import ConversationRepositoryPort
from assistant.application.utils.clarification import generate_clarification_question, requires_clarification
from assistant.application.utils.messages import build_success_message
from assistant.domain.entities.conversation_state import (
    ConversationState,
    ConversationStatus,
    ConversationStep,
)
from assistant.domain.entities.executed_action import ExecutedAction
from assistant.domain.entities.message import ConversationMessage, MessageRole
from assistant.domain.entities.parsed_action import ParsedAction

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ConversationStore:
    """
    Registry of live conversations.

    Every mutation refreshes `timeout_at = now + ttl`. Reads never raise:
    an unknown, expired or purged id yields None and callers start fresh.
    Turns for one id are assumed sequential, so writes are last-writer-wins.
    """

    def __init__(
        self,
        repository: ConversationRepositoryPort,
        ttl: timedelta = timedelta(minutes=30),
        completed_retention: timedelta = timedelta(minutes=5),
        clock: Clock = utc_now,
        timezone: ZoneInfo = ZoneInfo("UTC"),
    ) -> None:
        self._repository = repository
        self._ttl = ttl
        self._completed_retention = completed_retention
        self._clock = clock
        self._timezone = timezone
        self._abandoned_count = 0
        self._logger = logging.getLogger(__name__)

    def create(self, user_id: str, first_transcript: str, parsed: dict[str, Any] | None = None) -> ConversationState:
        now = self._clock()
        state = ConversationState(
            id=str(uuid.uuid4()),
            user_id=user_id,
            created_at=now,
            last_activity_at=now,
            timeout_at=now + self._ttl,
            messages=(
                ConversationMessage(role=MessageRole.user, content=first_transcript, timestamp=now, parsed=parsed),
            ),
        )
        self._repository.put(state)
        self._logger.info("Conversation created", extra={"conversation_id": state.id, "user_id": user_id})
        return state

    def get(self, conversation_id: str) -> ConversationState | None:
        state = self._repository.get(conversation_id)
        if state is None:
            return None
        if state.is_expired(self._clock()):
            self._evict(state)
            return None
        return state

    def update(self, conversation_id: str, **changes: Any) -> ConversationState | None:
        state = self.get(conversation_id)
        if state is None:
            return None
        now = self._clock()
        state = replace(state, **changes, last_activity_at=now, timeout_at=now + self._ttl)
        self._repository.put(state)
        return state

    def add_message(
        self,
        conversation_id: str,
        role: MessageRole,
        content: str,
        parsed: dict[str, Any] | None = None,
    ) -> ConversationState | None:
        state = self.get(conversation_id)
        if state is None:
            return None
        message = ConversationMessage(role=role, content=content, timestamp=self._clock(), parsed=parsed)
        return self.update(conversation_id, messages=state.messages + (message,))

    def requires_clarification(self, parsed: ParsedAction, state: ConversationState | None = None) -> bool:
        return requires_clarification(parsed, state.extracted_data if state else None)

    def generate_clarification_question(self, parsed: ParsedAction, state: ConversationState | None = None) -> str:
        return generate_clarification_question(parsed, state.extracted_data if state else None)

    def complete(
        self,
        conversation_id: str,
        executed_action: ExecutedAction | None = None,
        message: str | None = None,
    ) -> ConversationState | None:
        state = self.get(conversation_id)
        if state is None:
            return None
        now = self._clock()
        text = message
        if text is None and executed_action is not None:
            text = build_success_message(executed_action, self._timezone)
        messages = state.messages
        if text:
            messages = messages + (ConversationMessage(role=MessageRole.assistant, content=text, timestamp=now),)
        state = self.update(
            conversation_id,
            status=ConversationStatus.completed,
            current_step=ConversationStep.executing,
            conflict_info=None,
            clarification_options=(),
            pending_fields=(),
            messages=messages,
            completed_at=now,
            purge_at=now + self._completed_retention,
        )
        self._logger.info("Conversation completed", extra={"conversation_id": conversation_id})
        return state

    def abandon(self, conversation_id: str) -> bool:
        state = self._repository.get(conversation_id)
        if state is None:
            return False
        self._evict(state)
        return True

    def list_for_user(self, user_id: str) -> list[ConversationState]:
        now = self._clock()
        live: list[ConversationState] = []
        for state in self._repository.values():
            if state.user_id != user_id:
                continue
            if state.is_expired(now):
                self._evict(state)
                continue
            live.append(state)
        live.sort(key=lambda s: s.created_at)
        return live

    def sweep(self) -> int:
        purged = self._repository.sweep(self._clock())
        for state in purged:
            if state.status != ConversationStatus.completed:
                self._abandoned_count += 1
        if purged:
            self._logger.info("Swept expired conversations", extra={"reason": f"purged={len(purged)}"})
        return len(purged)

    async def run_sweeper(self, interval_seconds: float) -> None:
        while True:
            await asyncio.sleep(interval_seconds)
            self.sweep()

    def stats(self) -> dict[str, int]:
        now = self._clock()
        counts = {status: 0 for status in ConversationStatus}
        for state in self._repository.values():
            if not state.is_expired(now):
                counts[state.status] += 1
        return {
            "total": counts[ConversationStatus.active]
            + counts[ConversationStatus.waiting_for_user]
            + counts[ConversationStatus.completed],
            "active": counts[ConversationStatus.active] + counts[ConversationStatus.waiting_for_user],
            "waiting_for_user": counts[ConversationStatus.waiting_for_user],
            "completed": counts[ConversationStatus.completed],
            "abandoned": self._abandoned_count,
        }

    def _evict(self, state: ConversationState) -> None:
        self._repository.delete(state.id)
        if state.status != ConversationStatus.completed:
            self._abandoned_count += 1
            self._logger.info(
                "Conversation abandoned",
                extra={"conversation_id": state.id, "user_id": state.user_id, "step": state.current_step.value},
            )
