# src/cache/service.py — v1
"""QueryCache façade — single entry point for the literature-search cache.

Usage:
    cache = QueryCache.from_settings()
    result = await cache.lookup("denver health emergency ultrasound")
    if not result.is_hit:
        payload = await fetch_upstream(...)
        try:
            await cache.populate("denver health emergency ultrasound", payload=payload)
        except CacheIOError:
            pass  # serve the fresh payload uncached

A lookup never raises on corrupt, unreadable, expired or version-mismatched
data: all of those become misses, and expired entries are deleted on the way
(lazy eviction). Only malformed requests (RequestValidationError) and failed
writes (CacheIOError from populate) reach the caller.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping, Sequence
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from scholarcache.cache.base_cache_store import BaseCacheStore
from scholarcache.cache.constants import DEFAULT_OFFSET, DEFAULT_PAGE_SIZE, MS_PER_DAY
from scholarcache.cache.errors import CacheIOError, CorruptEntryError
from scholarcache.cache.fingerprint import compute_fingerprint, short_key
from scholarcache.cache.freshness import classify, is_valid
from scholarcache.cache.models import (
    CacheConfig,
    CacheEntry,
    CacheLookupResult,
    CacheStats,
    MissReason,
)
from scholarcache.cache.stats import compute_stats
from scholarcache.logging.context import set_cache_context

if TYPE_CHECKING:
    from scholarcache.config.settings import Settings

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


def _iso(epoch_ms: int) -> datetime:
    return datetime.fromtimestamp(epoch_ms / 1000, tz=timezone.utc)


def count_results(payload: Any, field: str) -> int:
    """Length of payload[field] when it is a sequence, else 0."""
    if not isinstance(payload, Mapping):
        return 0
    value = payload.get(field)
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return len(value)
    return 0


class QueryCache:
    """Disk-backed, time-expiring cache of search results keyed by request fingerprint."""

    def __init__(
        self,
        store: BaseCacheStore,
        config: CacheConfig | None = None,
        clock: Callable[[], int] | None = None,
    ) -> None:
        """Initialize the façade.

        Args:
            store: Entry store backend.
            config: Validity window, format version and result field.
            clock: Returns current epoch milliseconds. Defaults to wall clock.
        """
        self._store = store
        self._config = config or CacheConfig()
        self._clock = clock or _now_ms

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> QueryCache:
        """Build a QueryCache with the backend and window from settings."""
        from scholarcache.cache.cache_factory import create_cache_store
        from scholarcache.config.settings import Settings

        settings = settings or Settings()
        return cls(create_cache_store(settings), settings.cache_config())

    @property
    def store(self) -> BaseCacheStore:
        return self._store

    @property
    def config(self) -> CacheConfig:
        return self._config

    def fingerprint(
        self,
        query: Any,
        offset: Any = DEFAULT_OFFSET,
        page_size: Any = DEFAULT_PAGE_SIZE,
        scope_id: Any = None,
    ) -> str:
        """Fingerprint a request under this cache's format version."""
        return compute_fingerprint(
            query, offset, page_size, scope_id,
            format_version=self._config.format_version,
        )

    async def lookup(
        self,
        query: Any,
        offset: Any = DEFAULT_OFFSET,
        page_size: Any = DEFAULT_PAGE_SIZE,
        scope_id: Any = None,
    ) -> CacheLookupResult:
        """Return a hit with the cached entry, or a miss with its reason.

        Raises:
            RequestValidationError: If the request is malformed.
        """
        key = self.fingerprint(query, offset, page_size, scope_id)
        set_cache_context("lookup", short_key(key))

        try:
            entry = await self._store.get(key)
        except CorruptEntryError as e:
            logger.warning("Corrupt cache entry, treating as miss: %s", e)
            return self._miss(key, "corrupt")
        except CacheIOError as e:
            logger.warning("Unreadable cache entry, treating as miss: %s", e)
            return self._miss(key, "unreadable")

        if entry is None:
            logger.debug("Cache miss - no entry for %s", short_key(key))
            return self._miss(key, "absent")

        now = self._clock()
        freshness = classify(
            entry, now, self._config.validity_window_ms, self._config.format_version
        )
        if freshness != "valid":
            logger.info(
                "Cache %s - will fetch fresh data: key=%s, entry_version=%s",
                freshness, short_key(key), entry.format_version,
                extra={"data": {"miss_reason": freshness, "age_ms": now - entry.written_at_ms}},
            )
            await self._evict(key)
            return self._miss(key, freshness)  # type: ignore[arg-type]

        age_days = round((now - entry.written_at_ms) / MS_PER_DAY)
        logger.info(
            "Cache hit: key=%s, age=%d days, results=%d",
            short_key(key), age_days, entry.result_count,
            extra={"data": {"age_ms": now - entry.written_at_ms, "result_count": entry.result_count}},
        )
        return CacheLookupResult(fingerprint=key, is_hit=True, entry=entry)

    async def populate(
        self,
        query: Any,
        offset: Any = DEFAULT_OFFSET,
        page_size: Any = DEFAULT_PAGE_SIZE,
        scope_id: Any = None,
        *,
        payload: Any,
    ) -> CacheEntry:
        """Wrap a freshly fetched payload with metadata and persist it.

        The payload must be JSON-serializable. A failed write leaves any
        previous entry for the same fingerprint intact.

        Returns:
            The CacheEntry that was written.

        Raises:
            RequestValidationError: If the request is malformed.
            CacheIOError: If the payload cannot be serialized or the store
                could not write the entry.
        """
        key = self.fingerprint(query, offset, page_size, scope_id)
        set_cache_context("populate", short_key(key))

        entry = self._build_entry(payload, self._clock())
        try:
            await self._store.put(key, entry)
        except CacheIOError as e:
            logger.error("Error writing to cache: %s", e)
            raise

        logger.info(
            "Data cached: key=%s, results=%d, expires_at=%s",
            short_key(key), entry.result_count, entry.expires_at.isoformat(),
            extra={"data": {"result_count": entry.result_count, "written_at_ms": entry.written_at_ms}},
        )
        return entry

    async def invalidate(
        self,
        query: Any,
        offset: Any = DEFAULT_OFFSET,
        page_size: Any = DEFAULT_PAGE_SIZE,
        scope_id: Any = None,
    ) -> bool:
        """Delete the entry for a request. Returns whether one existed."""
        key = self.fingerprint(query, offset, page_size, scope_id)
        set_cache_context("invalidate", short_key(key))
        removed = await self._store.delete(key)
        logger.info("Cache entry invalidated: key=%s, removed=%s", short_key(key), removed)
        return removed

    async def report(self) -> CacheStats:
        """Aggregate statistics over every persisted entry (read-only)."""
        set_cache_context("report")
        return await compute_stats(
            self._store,
            self._clock(),
            self._config.validity_window_ms,
            self._config.format_version,
        )

    async def cleanup_expired(self) -> int:
        """Delete every expired, version-mismatched or corrupt entry.

        On-demand only; nothing schedules it.

        Returns:
            Number of entries removed.
        """
        set_cache_context("cleanup")
        now = self._clock()
        stale: list[str] = []
        async for stored in self._store.iter_entries():
            if stored.is_corrupt or not is_valid(
                stored.entry, now,
                self._config.validity_window_ms, self._config.format_version,
            ):
                stale.append(stored.key)

        removed = 0
        for key in stale:
            if await self._evict(key):
                removed += 1

        if removed:
            logger.info("Cleaned up expired cache entries: %d", removed)
        return removed

    async def clear(self) -> int:
        """Delete every entry. Returns the number removed."""
        set_cache_context("clear")
        removed = await self._store.clear()
        logger.info("Cache cleared: %d entries", removed)
        return removed

    def _build_entry(self, payload: Any, now: int) -> CacheEntry:
        return CacheEntry(
            written_at_ms=now,
            format_version=self._config.format_version,
            payload=payload,
            result_count=count_results(payload, self._config.result_field),
            cached_at=_iso(now),
            expires_at=_iso(now + self._config.validity_window_ms),
        )

    async def _evict(self, key: str) -> bool:
        """Best-effort delete; failures are logged, never raised."""
        try:
            return await self._store.delete(key)
        except CacheIOError as e:
            logger.warning("Failed to evict cache entry: %s", e)
            return False

    @staticmethod
    def _miss(key: str, reason: MissReason) -> CacheLookupResult:
        return CacheLookupResult(fingerprint=key, is_hit=False, miss_reason=reason)
