from __future__ import annotations

import heapq
import itertools
from datetime import datetime

from assistant.application.ports.conversation_repository import ConversationRepositoryPort
from assistant.domain.entities.conversation_state import ConversationState


class MemoryConversationRepository(ConversationRepositoryPort):
    """
    Process-local storage: a dict of states plus a min-heap keyed by expiry.

    Each `put` pushes a fresh heap entry; entries whose expiry no longer
    matches the stored state are stale and skipped during `sweep`.
    """

    def __init__(self) -> None:
        self._states: dict[str, ConversationState] = {}
        self._expiry_index: list[tuple[datetime, int, str]] = []
        self._sequence = itertools.count()

    def get(self, conversation_id: str) -> ConversationState | None:
        return self._states.get(conversation_id)

    def put(self, state: ConversationState) -> None:
        self._states[state.id] = state
        heapq.heappush(self._expiry_index, (state.expires_at, next(self._sequence), state.id))

    def delete(self, conversation_id: str) -> ConversationState | None:
        return self._states.pop(conversation_id, None)

    def sweep(self, now: datetime) -> list[ConversationState]:
        purged: list[ConversationState] = []
        while self._expiry_index and self._expiry_index[0][0] < now:
            expires_at, _, conversation_id = heapq.heappop(self._expiry_index)
            state = self._states.get(conversation_id)
            if state is None or state.expires_at != expires_at:
                continue
            del self._states[conversation_id]
            purged.append(state)
        if len(self._expiry_index) > 4 * max(len(self._states), 16):
            self._compact()
        return purged

    def values(self) -> list[ConversationState]:
        return list(self._states.values())

    def __len__(self) -> int:
        return len(self._states)

    def _compact(self) -> None:
        self._expiry_index = [
            entry
            for entry in self._expiry_index
            if entry[2] in self._states and self._states[entry[2]].expires_at == entry[0]
        ]
        heapq.heapify(self._expiry_index)
