# src/cache/freshness.py — v1
"""Freshness policy: decides whether a cache entry is still usable."""

from __future__ import annotations

from typing import Literal

from scholarcache.cache.constants import (
    CACHE_FORMAT_VERSION,
    DEFAULT_VALIDITY_WINDOW_MS,
    MS_PER_DAY,
)
from scholarcache.cache.models import CacheEntry

Freshness = Literal["valid", "expired", "version_mismatch", "absent"]

__all__ = [
    "DEFAULT_VALIDITY_WINDOW_MS",
    "Freshness",
    "classify",
    "days_to_ms",
    "is_valid",
]


def classify(
    entry: CacheEntry | None,
    now_ms: int,
    validity_window_ms: int,
    format_version: str = CACHE_FORMAT_VERSION,
) -> Freshness:
    """Classify an entry against the current time and format version.

    Negative ages (writer clock ahead of reader) count as valid.
    """
    if entry is None:
        return "absent"
    if entry.format_version != format_version:
        return "version_mismatch"
    if now_ms - entry.written_at_ms < validity_window_ms:
        return "valid"
    return "expired"


def is_valid(
    entry: CacheEntry | None,
    now_ms: int,
    validity_window_ms: int,
    format_version: str = CACHE_FORMAT_VERSION,
) -> bool:
    """True when the entry exists, matches the format version and is younger than the window."""
    return classify(entry, now_ms, validity_window_ms, format_version) == "valid"


def days_to_ms(days: float) -> int:
    """Convert a duration in days to integer milliseconds."""
    return int(days * MS_PER_DAY)
