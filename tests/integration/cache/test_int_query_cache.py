# tests/integration/cache/test_int_query_cache.py — v1
"""Integration tests for QueryCache over real JSON and SQLite stores.

Covers restart persistence, backend parity and concurrent access on the
same fingerprint. No external services required.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import pytest

from scholarcache.cache.json_store import JsonCacheStore
from scholarcache.cache.models import CacheConfig
from scholarcache.cache.service import QueryCache
from scholarcache.cache.sqlite_store import SqliteCacheStore
from scholarcache.config.settings import Settings

QUERY = "denver health emergency ultrasound"
DAY_MS = 24 * 60 * 60 * 1000


@pytest.fixture(params=["json", "sqlite"])
def store(request, tmp_path: Path):
    if request.param == "json":
        yield JsonCacheStore(cache_root=tmp_path / "cache")
    else:
        s = SqliteCacheStore(db_path=tmp_path / "cache" / "scholarcache.db")
        yield s
        s.close()


@pytest.fixture
def cache(store, cache_config, clock) -> QueryCache:
    return QueryCache(store, cache_config, clock=clock)


class TestEndToEnd:
    @pytest.mark.asyncio
    async def test_populate_then_lookup(self, cache, sample_payload):
        before = await cache.lookup(QUERY, 0, 10, None)
        assert before.is_hit is False

        await cache.populate(QUERY, 0, 10, None, payload=sample_payload)
        after = await cache.lookup(QUERY, 0, 10, None)
        assert after.is_hit is True
        assert after.entry.result_count == 2
        assert after.payload["organic_results"][0]["title"] == "Test Research Paper 1"

        other = await cache.lookup("emergency ultrasound training", 0, 10, None)
        assert other.is_hit is False

    @pytest.mark.asyncio
    async def test_stats_after_expiry(self, cache, sample_payload, clock):
        await cache.populate("stale", payload=sample_payload)
        clock.advance(31 * DAY_MS)
        await cache.populate("fresh", payload=sample_payload)

        stats = await cache.report()
        assert stats.total_entries == 2
        assert stats.valid_count == 1
        assert stats.expired_count == 1
        assert stats.total_size_bytes > 0

        # report never evicts; lookup does
        assert (await cache.report()).total_entries == 2
        assert (await cache.lookup("stale")).miss_reason == "expired"
        assert (await cache.report()).total_entries == 1

    @pytest.mark.asyncio
    async def test_cleanup_then_stats(self, cache, sample_payload, clock):
        for i in range(3):
            await cache.populate(f"old {i}", payload=sample_payload)
        clock.advance(31 * DAY_MS)
        await cache.populate("new", payload=sample_payload)

        assert await cache.cleanup_expired() == 3
        stats = await cache.report()
        assert stats.total_entries == 1
        assert stats.valid_count == 1


class TestPersistence:
    @pytest.mark.asyncio
    async def test_survives_restart(self, tmp_path: Path, sample_payload):
        settings = Settings(_env_file=None, cache_root=tmp_path / "cache")
        first = QueryCache.from_settings(settings)
        await first.populate(QUERY, payload=sample_payload)

        second = QueryCache.from_settings(settings)
        result = await second.lookup(QUERY)
        assert result.is_hit is True
        assert result.payload == sample_payload

    @pytest.mark.asyncio
    async def test_sqlite_survives_restart(self, tmp_path: Path, sample_payload):
        settings = Settings(_env_file=None, cache_backend="sqlite", cache_root=tmp_path)
        first = QueryCache.from_settings(settings)
        await first.populate(QUERY, payload=sample_payload)
        first.store.close()

        second = QueryCache.from_settings(settings)
        try:
            assert (await second.lookup(QUERY)).is_hit is True
        finally:
            second.store.close()

    @pytest.mark.asyncio
    async def test_entry_file_layout(self, tmp_path: Path, sample_payload, clock):
        store = JsonCacheStore(cache_root=tmp_path / "cache")
        cache = QueryCache(store, CacheConfig(), clock=clock)
        await cache.populate(QUERY, payload=sample_payload)

        path = tmp_path / "cache" / f"{cache.fingerprint(QUERY)}.json"
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["written_at_ms"] == clock.now_ms
        assert data["format_version"] == "1.2"
        assert data["result_count"] == 2
        assert data["payload"] == sample_payload


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_concurrent_writes_same_key(self, cache):
        payloads = [{"organic_results": list(range(n))} for n in range(1, 11)]
        await asyncio.gather(*(cache.populate(QUERY, payload=p) for p in payloads))

        result = await cache.lookup(QUERY)
        assert result.is_hit is True
        assert result.payload in payloads
        assert result.entry.result_count == len(result.payload["organic_results"])
        assert (await cache.report()).total_entries == 1

    @pytest.mark.asyncio
    async def test_reads_during_writes_never_corrupt(self, cache, sample_payload):
        await cache.populate(QUERY, payload=sample_payload)
        writes = [cache.populate(QUERY, payload={"organic_results": [i]}) for i in range(10)]
        reads = [cache.lookup(QUERY) for _ in range(10)]
        results = await asyncio.gather(*writes, *reads)

        for lookup in results[10:]:
            assert lookup.is_hit is True
            assert lookup.miss_reason is None
        assert (await cache.report()).corrupt_count == 0

    @pytest.mark.asyncio
    async def test_concurrent_distinct_keys(self, cache, sample_payload):
        queries = [f"query {i}" for i in range(20)]
        await asyncio.gather(*(cache.populate(q, payload=sample_payload) for q in queries))
        hits = await asyncio.gather(*(cache.lookup(q) for q in queries))
        assert all(h.is_hit for h in hits)
        assert (await cache.report()).total_entries == 20
