"""Data models for storage layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class ConversationEntry:
    user_message: str
    ai_response: str
    timestamp: datetime = field(default_factory=_utcnow)

    def to_json(self) -> dict[str, Any]:
        return {
            "timestamp": int(self.timestamp.timestamp() * 1000),
            "userMessage": self.user_message,
            "aiResponse": self.ai_response,
        }

    @classmethod
    def from_json(cls, data: Any) -> ConversationEntry:
        """Parse a stored entry. Raises ValueError if the shape is wrong."""
        if not isinstance(data, dict):
            raise ValueError(f"conversation entry must be an object, got {type(data).__name__}")
        user_message = data.get("userMessage")
        ai_response = data.get("aiResponse")
        if not isinstance(user_message, str) or not isinstance(ai_response, str):
            raise ValueError("conversation entry is missing userMessage/aiResponse")
        raw_ts = data.get("timestamp", 0)
        if not isinstance(raw_ts, (int, float)):
            raise ValueError("conversation entry timestamp must be epoch milliseconds")
        try:
            timestamp = datetime.fromtimestamp(raw_ts / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as e:
            raise ValueError(f"conversation entry timestamp out of range: {raw_ts!r}") from e
        return cls(user_message=user_message, ai_response=ai_response, timestamp=timestamp)
