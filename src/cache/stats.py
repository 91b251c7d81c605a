# src/cache/stats.py — v1
"""Read-only statistics over all persisted cache entries.

Classifies each entry with the freshness policy and accumulates counts and
on-disk size. Never deletes anything, even entries it finds expired.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from scholarcache.cache.base_cache_store import BaseCacheStore
from scholarcache.cache.constants import CACHE_FORMAT_VERSION
from scholarcache.cache.freshness import is_valid
from scholarcache.cache.models import CacheStats

logger = logging.getLogger(__name__)


async def compute_stats(
    store: BaseCacheStore,
    now_ms: int,
    validity_window_ms: int,
    format_version: str = CACHE_FORMAT_VERSION,
) -> CacheStats:
    """Scan the store once and aggregate entry counts.

    Args:
        store: Cache store to audit.
        now_ms: Reference time in epoch milliseconds.
        validity_window_ms: Freshness window.
        format_version: Current cache format version.

    Returns:
        CacheStats. Corrupt entries count as expired and also as corrupt.
    """
    stats = CacheStats(
        cache_location=store.location,
        format_version=format_version,
        validity_window_ms=validity_window_ms,
        generated_at=datetime.now(timezone.utc),
    )

    async for stored in store.iter_entries():
        stats.total_entries += 1
        stats.total_size_bytes += stored.size_bytes

        if stored.is_corrupt:
            logger.debug("Unreadable cache entry during scan: %s", stored.error)
            stats.corrupt_count += 1
            stats.expired_count += 1
        elif is_valid(stored.entry, now_ms, validity_window_ms, format_version):
            stats.valid_count += 1
        else:
            stats.expired_count += 1

    return stats
