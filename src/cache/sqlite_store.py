# src/cache/sqlite_store.py — v3
"""SQLite-based cache store (CACHE_BACKEND=sqlite).

Uses stdlib sqlite3. One row per fingerprint;
INSERT OR REPLACE gives whole-entry replace semantics inside a transaction.
Queries run in worker threads over one shared connection guarded by a lock.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
import threading
from collections.abc import AsyncIterator
from pathlib import Path

from scholarcache.cache.base_cache_store import BaseCacheStore
from scholarcache.cache.errors import CacheIOError, CorruptEntryError
from scholarcache.cache.models import CacheEntry, StoredEntry

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS cache_entries (
    key TEXT PRIMARY KEY,
    data TEXT NOT NULL,
    written_at_ms INTEGER,
    updated_at TEXT DEFAULT CURRENT_TIMESTAMP
);
"""

_SCAN_KEY = "*"


class SqliteCacheStore(BaseCacheStore):
    """SQLite-backed cache store for larger entry populations."""

    def __init__(self, db_path: Path | str) -> None:
        self._db_path = Path(db_path).expanduser()
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)

    @property
    def location(self) -> str:
        return str(self._db_path)

    async def get(self, key: str) -> CacheEntry | None:
        """Retrieve cache entry by key."""
        row = await asyncio.to_thread(
            self._run, key, "read",
            "SELECT data FROM cache_entries WHERE key = ?", (key,), "one",
        )
        if row is None:
            return None
        return _parse(key, row[0])

    async def put(self, key: str, entry: CacheEntry) -> None:
        """Store a cache entry (upsert)."""
        try:
            data = entry.model_dump_json()
        except ValueError as e:
            raise CacheIOError(key, f"Failed to serialize cache entry: {e}") from e
        await asyncio.to_thread(
            self._run, key, "write",
            """INSERT OR REPLACE INTO cache_entries
               (key, data, written_at_ms) VALUES (?, ?, ?)""",
            (key, data, entry.written_at_ms), "commit",
        )

    async def delete(self, key: str) -> bool:
        """Remove a cache entry."""
        rowcount = await asyncio.to_thread(
            self._run, key, "delete",
            "DELETE FROM cache_entries WHERE key = ?", (key,), "commit",
        )
        return rowcount > 0

    async def iter_entries(self) -> AsyncIterator[StoredEntry]:
        """Yield every stored row; undecodable rows are yielded with entry=None."""
        rows = await asyncio.to_thread(
            self._run, _SCAN_KEY, "scan",
            "SELECT key, data FROM cache_entries ORDER BY key", (), "all",
        )
        for key, data in rows:
            size = len(data.encode("utf-8"))
            try:
                entry = _parse(key, data)
            except CorruptEntryError as e:
                yield StoredEntry(key=key, entry=None, size_bytes=size, error=str(e))
                continue
            yield StoredEntry(key=key, entry=entry, size_bytes=size)

    async def clear(self) -> int:
        """Delete every row."""
        return await asyncio.to_thread(
            self._run, _SCAN_KEY, "clear",
            "DELETE FROM cache_entries", (), "commit",
        )

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            self._conn.close()

    # --- blocking helper (runs in worker threads) ---

    def _run(self, key: str, action: str, sql: str, params: tuple, mode: str):
        """Execute one statement under the connection lock.

        mode: "one" / "all" fetch rows, "commit" runs in a transaction and
        returns the affected row count.
        """
        try:
            with self._lock:
                if mode == "commit":
                    with self._conn:
                        return self._conn.execute(sql, params).rowcount
                cursor = self._conn.execute(sql, params)
                return cursor.fetchone() if mode == "one" else cursor.fetchall()
        except sqlite3.Error as e:
            raise CacheIOError(key, f"Failed to {action} cache entry: {e}") from e


def _parse(key: str, data: str) -> CacheEntry:
    try:
        return CacheEntry.model_validate_json(data)
    except ValueError as e:
        raise CorruptEntryError(key, str(e)) from e
