"""SQLite keyed cache with lazy TTL expiry.

The underlying store has no notion of expiry: every row carries the epoch
millisecond timestamp of its write, and ``KeyedTTLCache`` alone decides
whether a row is still valid. Expired rows are deleted when they are read
(no background sweep); ``purge_expired`` exists for the one-shot cleanup done
when the application opens the cache.

All cache operations catch ``aiosqlite.Error`` internally and degrade
gracefully: read failures return ``None`` (treated as cache miss by callers),
write failures are logged and ignored. A payload that no longer decodes into
the cache's value type is evicted and reported as a miss. Infrastructure
errors never cross the cache class boundary.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Generic, TypeVar

import aiosqlite
import structlog
from pydantic import TypeAdapter, ValidationError

from columnindex.models.cache import CacheEntry

log = structlog.get_logger()

V = TypeVar("V")

DEFAULT_TTL_HOURS = 24

_CREATE_CACHE_TABLE = """
CREATE TABLE IF NOT EXISTS ttl_cache (
    key          TEXT PRIMARY KEY,
    payload      TEXT NOT NULL,
    stored_at_ms INTEGER NOT NULL
)
"""

_CREATE_CACHE_INDEX = "CREATE INDEX IF NOT EXISTS idx_ttl_cache_stored ON ttl_cache(stored_at_ms)"


def epoch_ms() -> int:
    return int(time.time() * 1000)


async def init_db(db: aiosqlite.Connection) -> None:
    """Create tables and set WAL mode. Called once at startup."""
    await db.execute("PRAGMA journal_mode = WAL")
    await db.execute(_CREATE_CACHE_TABLE)
    await db.execute(_CREATE_CACHE_INDEX)
    await db.commit()


class KeyedTTLCache(Generic[V]):
    """String-keyed JSON cache implementing CacheProtocol.

    Values are serialised and validated through ``adapter``, so a row written
    by an older, incompatible version of the value type reads as a miss.
    """

    def __init__(
        self,
        db: aiosqlite.Connection,
        adapter: TypeAdapter[V],
        *,
        ttl_hours: float = DEFAULT_TTL_HOURS,
        clock: Callable[[], int] = epoch_ms,
    ) -> None:
        self._db = db
        self._adapter = adapter
        self._ttl_ms = int(ttl_hours * 3600 * 1000)
        self._clock = clock

    @property
    def ttl_ms(self) -> int:
        return self._ttl_ms

    def is_expired(self, stored_at_ms: int, now_ms: int | None = None) -> bool:
        now = self._clock() if now_ms is None else now_ms
        return now - stored_at_ms >= self._ttl_ms

    async def get(self, key: str) -> V | None:
        """Return the cached value, or ``None`` on miss, expiry, corruption or read failure."""
        entry = await self.get_entry(key)
        return None if entry is None else entry.value

    async def get_entry(self, key: str) -> CacheEntry[V] | None:
        try:
            cursor = await self._db.execute(
                # Read as bytes: a TEXT row that is not valid UTF-8 must reach validation
                "SELECT CAST(payload AS BLOB), stored_at_ms FROM ttl_cache WHERE key = ?",
                (key,),
            )
            row = await cursor.fetchone()
        except aiosqlite.Error:
            log.warning("cache_read_error", key=key, exc_info=True)
            return None

        if row is None:
            return None

        payload, stored_at_ms = row
        if not isinstance(stored_at_ms, int):
            log.warning("cache_entry_corrupt", key=key, reason="bad_timestamp")
            await self.remove(key)
            return None

        if self.is_expired(stored_at_ms):
            log.debug("cache_entry_expired", key=key, stored_at_ms=stored_at_ms)
            await self.remove(key)
            return None

        try:
            value = self._adapter.validate_json(payload)
        except (ValidationError, TypeError):
            log.warning("cache_entry_corrupt", key=key, reason="bad_payload")
            await self.remove(key)
            return None

        return CacheEntry(value=value, stored_at_ms=stored_at_ms)

    async def set(self, key: str, value: V) -> None:
        """Write ``value`` under ``key``, replacing any prior entry. Non-fatal on failure."""
        payload = self._adapter.dump_json(value).decode("utf-8")
        try:
            await self._db.execute(
                "INSERT OR REPLACE INTO ttl_cache (key, payload, stored_at_ms) VALUES (?, ?, ?)",
                (key, payload, self._clock()),
            )
            await self._db.commit()
        except aiosqlite.Error:
            log.warning("cache_write_error", key=key, exc_info=True)

    async def remove(self, key: str) -> None:
        """Delete the entry under ``key`` if present. Non-fatal on failure."""
        try:
            await self._db.execute("DELETE FROM ttl_cache WHERE key = ?", (key,))
            await self._db.commit()
        except aiosqlite.Error:
            log.warning("cache_delete_error", key=key, exc_info=True)

    async def purge_expired(self) -> int:
        """Delete every expired row and return how many were removed. Non-fatal on failure."""
        cutoff = self._clock() - self._ttl_ms
        try:
            cursor = await self._db.execute(
                "DELETE FROM ttl_cache WHERE stored_at_ms <= ?", (cutoff,)
            )
            deleted = cursor.rowcount
            await self._db.commit()
        except aiosqlite.Error:
            log.warning("cache_purge_error", exc_info=True)
            return 0
        log.info("cache_purge_complete", deleted=deleted)
        return deleted
