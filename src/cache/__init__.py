"""Query-result cache: fingerprinting, stores, freshness policy, façade and stats."""

from scholarcache.cache.errors import (
    CacheError,
    CacheIOError,
    CorruptEntryError,
    RequestValidationError,
)
from scholarcache.cache.models import CacheConfig, CacheEntry, CacheLookupResult, CacheStats
from scholarcache.cache.service import QueryCache

__all__ = [
    "CacheConfig",
    "CacheEntry",
    "CacheError",
    "CacheIOError",
    "CacheLookupResult",
    "CacheStats",
    "CorruptEntryError",
    "QueryCache",
    "RequestValidationError",
]
