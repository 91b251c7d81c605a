# src/cache/json_store.py — v2
"""JSON file-based cache store (default CACHE_BACKEND=json).

Stores one <fingerprint>.json file per entry under CACHE_ROOT. Writes go to a
temporary file in the same directory and are moved into place with
os.replace, so a reader sees either the old entry or the new one. Blocking
file I/O runs in worker threads.
"""

from __future__ import annotations

import asyncio
import logging
import os
import tempfile
from collections.abc import AsyncIterator
from pathlib import Path

from scholarcache.cache.base_cache_store import BaseCacheStore
from scholarcache.cache.errors import CacheIOError, CorruptEntryError
from scholarcache.cache.models import CacheEntry, StoredEntry

logger = logging.getLogger(__name__)

_ENTRY_SUFFIX = ".json"
_TMP_SUFFIX = ".tmp"


class JsonCacheStore(BaseCacheStore):
    """File-based cache store using JSON files."""

    def __init__(self, cache_root: Path | str) -> None:
        # Created lazily on first write.
        self._root = Path(cache_root).expanduser()

    @property
    def location(self) -> str:
        return str(self._root)

    async def get(self, key: str) -> CacheEntry | None:
        """Retrieve cache entry by key."""
        return await asyncio.to_thread(self._read_entry, key, self._entry_path(key))

    async def put(self, key: str, entry: CacheEntry) -> None:
        """Atomically store a cache entry."""
        try:
            data = entry.model_dump_json(indent=2)
        except ValueError as e:
            # PydanticSerializationError is a ValueError
            raise CacheIOError(key, f"Failed to serialize cache entry: {e}") from e
        await asyncio.to_thread(self._write_atomic, key, data)

    async def delete(self, key: str) -> bool:
        """Remove a cache entry."""
        return await asyncio.to_thread(self._unlink, key, self._entry_path(key))

    async def iter_entries(self) -> AsyncIterator[StoredEntry]:
        """Yield every persisted entry; corrupt files are yielded with entry=None."""
        paths = await asyncio.to_thread(self._list_paths)
        for path in paths:
            record = await asyncio.to_thread(self._scan_one, path)
            if record is not None:
                yield record

    async def clear(self) -> int:
        """Delete every entry file and any temp files left by interrupted writes.

        Only entry files count towards the returned total.
        """
        paths = await asyncio.to_thread(self._list_paths)
        removed = 0
        for path in paths:
            if await asyncio.to_thread(self._unlink, path.stem, path):
                removed += 1
        for tmp_path in await asyncio.to_thread(self._list_tmp_paths):
            await asyncio.to_thread(self._discard_tmp, tmp_path)
        return removed

    # --- blocking helpers (run in worker threads) ---

    def _read_entry(self, key: str, path: Path) -> CacheEntry | None:
        try:
            raw = path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise CacheIOError(key, f"Failed to read cache entry: {e}") from e
        try:
            # Invalid UTF-8 surfaces here as a ValidationError too
            return CacheEntry.model_validate_json(raw)
        except ValueError as e:
            raise CorruptEntryError(key, str(e)) from e

    def _write_atomic(self, key: str, data: str) -> None:
        path = self._entry_path(key)
        tmp_name: str | None = None
        try:
            self._root.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self._root,
                prefix=f".{path.stem[:16]}.",
                suffix=_TMP_SUFFIX,
                delete=False,
            ) as fh:
                tmp_name = fh.name
                fh.write(data)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, path)
        except OSError as e:
            if tmp_name is not None:
                self._discard_tmp(Path(tmp_name))
            raise CacheIOError(key, f"Failed to write cache entry: {e}") from e

    def _unlink(self, key: str, path: Path) -> bool:
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise CacheIOError(key, f"Failed to delete cache entry: {e}") from e
        return True

    def _list_paths(self) -> list[Path]:
        if not self._root.is_dir():
            return []
        return sorted(self._root.glob(f"*{_ENTRY_SUFFIX}"))

    def _list_tmp_paths(self) -> list[Path]:
        if not self._root.is_dir():
            return []
        return sorted(self._root.glob(f".*{_TMP_SUFFIX}"))

    def _scan_one(self, path: Path) -> StoredEntry | None:
        key = path.stem
        try:
            size = path.stat().st_size
        except FileNotFoundError:
            # Removed between listing and stat.
            return None
        try:
            entry = self._read_entry(key, path)
        except (CorruptEntryError, CacheIOError) as e:
            return StoredEntry(key=key, entry=None, size_bytes=size, error=str(e))
        if entry is None:
            return None
        return StoredEntry(key=key, entry=entry, size_bytes=size)

    @staticmethod
    def _discard_tmp(tmp_path: Path) -> None:
        try:
            tmp_path.unlink(missing_ok=True)
        except OSError as e:
            logger.debug("Failed to remove temp file %s: %s", tmp_path, e)

    def _entry_path(self, key: str) -> Path:
        """Return file path for a cache key."""
        safe_key = key.replace("/", "_").replace("\\", "_")
        return self._root / f"{safe_key}{_ENTRY_SUFFIX}"
