# src/cache/base_cache_store.py — v2
"""Abstract cache store interface.

Every store persists one independent unit per fingerprint. A put is a
whole-entry replace that no reader may observe half-written.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator

from scholarcache.cache.models import CacheEntry, StoredEntry


class BaseCacheStore(ABC):
    """Unified interface for cache storage backends."""

    @abstractmethod
    async def get(self, key: str) -> CacheEntry | None:
        """Retrieve cache entry by fingerprint key.

        Returns None when absent. Raises CorruptEntryError when content
        exists but does not deserialize.
        """

    @abstractmethod
    async def put(self, key: str, entry: CacheEntry) -> None:
        """Store cache entry, replacing any prior entry. Raises CacheIOError."""

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Remove cache entry. Idempotent; returns whether anything was removed."""

    @abstractmethod
    def iter_entries(self) -> AsyncIterator[StoredEntry]:
        """Lazily scan every persisted entry, yielding corrupt units with entry=None."""

    @abstractmethod
    async def clear(self) -> int:
        """Remove every entry and return how many were removed."""

    @property
    @abstractmethod
    def location(self) -> str:
        """Human-readable storage location."""
