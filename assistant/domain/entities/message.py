from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any


class MessageRole(str, Enum):
    user = "user"
    assistant = "assistant"
    system = "system"


@dataclass(frozen=True)
class ConversationMessage:
    role: MessageRole
    content: str
    timestamp: datetime
    parsed: dict[str, Any] | None = None
