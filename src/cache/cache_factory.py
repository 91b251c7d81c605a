# src/cache/cache_factory.py — v3
"""Factory for cache store instantiation."""

from __future__ import annotations

from scholarcache.cache.base_cache_store import BaseCacheStore
from scholarcache.config.settings import Settings

_DEFAULT_CACHE_ROOT = "~/.scholarcache/cache"
_SQLITE_FILENAME = "scholarcache.db"


def create_cache_store(settings: Settings | None = None) -> BaseCacheStore:
    """Instantiate the configured cache backend.

    Args:
        settings: Application settings. Defaults to JSON backend.

    Returns:
        Configured BaseCacheStore implementation.
    """
    backend = "json" if settings is None else settings.cache_backend
    cache_root = _DEFAULT_CACHE_ROOT if settings is None else str(settings.cache_root)

    if backend == "json":
        from scholarcache.cache.json_store import JsonCacheStore
        return JsonCacheStore(cache_root=cache_root)

    if backend == "sqlite":
        from scholarcache.cache.sqlite_store import SqliteCacheStore
        return SqliteCacheStore(db_path=f"{cache_root}/{_SQLITE_FILENAME}")

    raise ValueError(f"Unsupported cache backend: {backend!r}")
