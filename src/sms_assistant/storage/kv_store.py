"""Durable per-identifier key/value stores with time-to-live expiry."""

from __future__ import annotations

import json
import time
from abc import ABC, abstractmethod
from typing import Any, Callable

from sms_assistant.log import get_logger
from sms_assistant.storage.database import Database

logger = get_logger(__name__)


class KeyValueStore(ABC):
    """JSON values keyed by identifier. Expired values read as absent."""

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Return the stored JSON value, or None if absent or expired."""
        ...

    @abstractmethod
    async def put(self, key: str, value: Any, ttl_seconds: int) -> None:
        """Store *value*, replacing any previous one, expiring after *ttl_seconds*."""
        ...


class MemoryKeyValueStore(KeyValueStore):
    """Process-local store. Contents are lost on restart."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._items: dict[str, tuple[str, float]] = {}

    async def get(self, key: str) -> Any | None:
        item = self._items.get(key)
        if item is None:
            return None
        raw, expires_at = item
        if expires_at <= self._clock():
            del self._items[key]
            return None
        return json.loads(raw)

    async def put(self, key: str, value: Any, ttl_seconds: int) -> None:
        # Serialize on write so stored values are independent of the caller's objects
        self._items[key] = (json.dumps(value), self._clock() + ttl_seconds)


class SqliteKeyValueStore(KeyValueStore):
    """SQLite-backed store on the shared Database connection."""

    def __init__(self, db: Database, clock: Callable[[], float] = time.time):
        self._db = db
        self._clock = clock

    async def get(self, key: str) -> Any | None:
        cursor = await self._db.conn.execute(
            "SELECT value_json, expires_at FROM kv_entries WHERE key = ?",
            (key,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        if row["expires_at"] <= self._clock():
            await self._db.conn.execute("DELETE FROM kv_entries WHERE key = ?", (key,))
            await self._db.conn.commit()
            return None
        return json.loads(row["value_json"])

    async def put(self, key: str, value: Any, ttl_seconds: int) -> None:
        await self._db.conn.execute(
            """INSERT INTO kv_entries (key, value_json, expires_at)
               VALUES (?, ?, ?)
               ON CONFLICT(key) DO UPDATE SET
                   value_json = excluded.value_json,
                   expires_at = excluded.expires_at,
                   updated_at = strftime('%Y-%m-%dT%H:%M:%f','now')""",
            (key, json.dumps(value), self._clock() + ttl_seconds),
        )
        await self._db.conn.commit()

    async def purge_expired(self) -> int:
        """Delete every expired row. Returns number of deleted rows."""
        cursor = await self._db.conn.execute(
            "DELETE FROM kv_entries WHERE expires_at <= ?",
            (self._clock(),),
        )
        await self._db.conn.commit()
        if cursor.rowcount:
            logger.info("kv_expired_purged", count=cursor.rowcount)
        return cursor.rowcount
