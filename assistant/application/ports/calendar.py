from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from assistant.domain.entities.conflict import ConflictEvent


class CalendarProviderPort(ABC):
    name: str = "calendar"

    @abstractmethod
    async def list_busy_events(
        self,
        user_id: str,
        window_start: datetime,
        window_end: datetime,
        include_all_calendars: bool = True,
    ) -> list[ConflictEvent]:
        """
        Return busy events intersecting [window_start, window_end).

        Raises ProviderUnavailable when the source cannot be read.
        """
        raise NotImplementedError
