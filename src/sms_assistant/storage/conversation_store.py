"""Bounded, expiring conversation history per sender."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

from sms_assistant.log import get_logger
from sms_assistant.storage.kv_store import KeyValueStore
from sms_assistant.storage.models import ConversationEntry

logger = get_logger(__name__)

MAX_HISTORY = 10
DEFAULT_TTL_DAYS = 7
SECONDS_PER_DAY = 60 * 60 * 24


class ConversationStore:
    """Reads and writes the last few exchanges for each sender.

    The whole history of one sender is stored as a single JSON list whose
    expiry is reset on every write. Reads and writes are not atomic with each
    other: two concurrent messages from the same sender both read the same
    history and the later write wins.
    """

    def __init__(
        self,
        kv: KeyValueStore,
        max_entries: int = MAX_HISTORY,
        now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self._kv = kv
        self._max_entries = max_entries
        self._now = now

    async def get(self, identifier: str, limit: int = MAX_HISTORY) -> list[ConversationEntry]:
        """Return up to *limit* most recent entries, oldest first.

        Any read failure or malformed value yields an empty history.
        """
        try:
            raw = await self._kv.get(identifier)
        except Exception as e:
            logger.warning("history_read_failed", identifier=identifier, error=str(e))
            return []

        if raw is None:
            return []
        if not isinstance(raw, list):
            logger.warning("history_malformed", identifier=identifier, kind=type(raw).__name__)
            return []

        try:
            entries = [ConversationEntry.from_json(item) for item in raw]
        except ValueError as e:
            logger.warning("history_malformed", identifier=identifier, error=str(e))
            return []

        return entries[-limit:] if limit > 0 else []

    async def append(
        self,
        identifier: str,
        user_message: str,
        ai_response: str,
        ttl_days: int = DEFAULT_TTL_DAYS,
    ) -> bool:
        """Add one exchange and persist. Returns False if the write failed."""
        try:
            history = await self.get(identifier, limit=self._max_entries)
            history.append(
                ConversationEntry(
                    user_message=user_message,
                    ai_response=ai_response,
                    timestamp=self._now(),
                )
            )
            history = history[-self._max_entries:]
            await self._kv.put(
                identifier,
                [entry.to_json() for entry in history],
                ttl_seconds=SECONDS_PER_DAY * ttl_days,
            )
        except Exception as e:
            logger.error("history_write_failed", identifier=identifier, error=str(e))
            return False

        logger.debug("history_stored", identifier=identifier, entries=len(history))
        return True
