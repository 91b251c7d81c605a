# src/cache/models.py — v2
"""Cache domain models: SearchRequest, CacheEntry, CacheLookupResult, CacheStats."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from scholarcache.cache.constants import (
    CACHE_FORMAT_VERSION,
    DEFAULT_OFFSET,
    DEFAULT_PAGE_SIZE,
    DEFAULT_RESULT_FIELD,
    DEFAULT_VALIDITY_WINDOW_MS,
)

MissReason = Literal["absent", "expired", "version_mismatch", "corrupt", "unreadable"]


class SearchRequest(BaseModel):
    """Normalized logical search request (input to fingerprinting)."""

    model_config = ConfigDict(frozen=True)

    query: str
    offset: int = Field(default=DEFAULT_OFFSET, ge=0)
    page_size: int = Field(default=DEFAULT_PAGE_SIZE, gt=0)
    scope_id: str | None = None

    @field_validator("query", mode="before")
    @classmethod
    def normalize_query(cls, v: Any) -> str:
        """Trim and lowercase; an empty query is a caller bug."""
        if not isinstance(v, str):
            raise ValueError("query must be a string")
        normalized = v.strip().lower()
        if not normalized:
            raise ValueError("query must not be empty")
        return normalized

    @field_validator("offset", "page_size", mode="before")
    @classmethod
    def reject_bool(cls, v: Any) -> Any:
        # bool is an int subclass and would otherwise coerce silently
        if isinstance(v, bool):
            raise ValueError("must be an integer, not a boolean")
        return v


class FingerprintKey(BaseModel):
    """Canonical record hashed into a fingerprint.

    Field order is fixed by this schema, so serialization is stable.
    """

    query: str
    offset: int
    page_size: int
    scope_id: str | None
    format_version: str


class CacheEntry(BaseModel):
    """Single persisted cache entry for one fingerprint.

    cached_at/expires_at are informational; freshness is always re-derived
    from written_at_ms at read time.
    """

    written_at_ms: int
    format_version: str
    payload: Any = None
    result_count: int = 0
    cached_at: datetime
    expires_at: datetime


@dataclass
class StoredEntry:
    """One unit yielded by a store scan."""

    key: str
    entry: CacheEntry | None
    size_bytes: int = 0
    error: str | None = None

    @property
    def is_corrupt(self) -> bool:
        return self.entry is None


class CacheLookupResult(BaseModel):
    """Outcome of a lookup: a hit carrying the entry, or a miss with a reason."""

    fingerprint: str
    is_hit: bool = False
    miss_reason: MissReason | None = None
    entry: CacheEntry | None = None

    @property
    def payload(self) -> Any:
        return self.entry.payload if self.entry is not None else None


class CacheConfig(BaseModel):
    """Explicit cache configuration passed to QueryCache at construction."""

    validity_window_ms: int = Field(default=DEFAULT_VALIDITY_WINDOW_MS, gt=0)
    format_version: str = Field(default=CACHE_FORMAT_VERSION, min_length=1)
    result_field: str = DEFAULT_RESULT_FIELD


class CacheStats(BaseModel):
    """Aggregate statistics over all persisted entries.

    corrupt_count is a subset of expired_count.
    """

    total_entries: int = 0
    valid_count: int = 0
    expired_count: int = 0
    corrupt_count: int = 0
    total_size_bytes: int = 0
    cache_location: str = ""
    format_version: str = CACHE_FORMAT_VERSION
    validity_window_ms: int = DEFAULT_VALIDITY_WINDOW_MS
    generated_at: datetime | None = None

    @property
    def total_size_kb(self) -> int:
        return round(self.total_size_bytes / 1024)
