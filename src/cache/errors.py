# src/cache/errors.py — v1
"""Cache error taxonomy.

A miss is not an error: it is a CacheLookupResult with is_hit=False.
"""

from __future__ import annotations


class CacheError(Exception):
    """Base class for all cache errors."""


class RequestValidationError(CacheError, ValueError):
    """Raised when a logical search request is malformed (caller bug)."""


class CacheIOError(CacheError):
    """Raised when the storage medium rejects a write or delete."""

    def __init__(self, key: str, message: str) -> None:
        super().__init__(f"{message} (key={key[:8]}...)")
        self.key = key


class CorruptEntryError(CacheError):
    """Raised by stores when persisted content fails to deserialize."""

    def __init__(self, key: str, message: str) -> None:
        super().__init__(f"Corrupt cache entry {key[:8]}...: {message}")
        self.key = key
