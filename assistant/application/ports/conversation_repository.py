from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from assistant.domain.entities.conversation_state import ConversationState


class ConversationRepositoryPort(ABC):
    @abstractmethod
    def get(self, conversation_id: str) -> ConversationState | None:
        raise NotImplementedError

    @abstractmethod
    def put(self, state: ConversationState) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete(self, conversation_id: str) -> ConversationState | None:
        raise NotImplementedError

    @abstractmethod
    def sweep(self, now: datetime) -> list[ConversationState]:
        """
        Remove and return every state whose expiry is before `now`.
        Implementations should not scan states that are still live.
        """
        raise NotImplementedError

    @abstractmethod
    def values(self) -> list[ConversationState]:
        raise NotImplementedError
