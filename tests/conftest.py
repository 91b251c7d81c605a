# tests/conftest.py — v2
"""Shared test fixtures for all unit and integration tests.

Provides a controllable clock, sample upstream payloads and per-test cache
roots. No external services — every store lives under tmp_path.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from scholarcache.cache.json_store import JsonCacheStore
from scholarcache.cache.models import CacheConfig
from scholarcache.cache.service import QueryCache
from scholarcache.logging.context import clear_context

# 2026-02-16T00:00:00Z
T0_MS = 1_771_200_000_000
DAY_MS = 24 * 60 * 60 * 1000


class FakeClock:
    """Manually advanced epoch-millisecond clock."""

    def __init__(self, now_ms: int = T0_MS) -> None:
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, ms: int) -> None:
        self.now_ms += ms


# === FIXTURES: Sample data ===


@pytest.fixture
def sample_payload() -> dict[str, Any]:
    """Upstream-shaped payload with two organic results."""
    return {
        "organic_results": [
            {
                "title": "Test Research Paper 1",
                "link": "https://example.com/paper1",
                "snippet": "This is a test research paper about emergency ultrasound.",
            },
            {
                "title": "Test Research Paper 2",
                "link": "https://example.com/paper2",
                "snippet": "Another test paper about Denver Health research.",
            },
        ],
        "search_information": {"total_results": 2},
        "metadata": {"from_cache": False},
    }


# === FIXTURES: Clock and stores ===


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def tmp_cache_dir(tmp_path: Path) -> Path:
    """Cache root that does not exist yet (stores create it on first write)."""
    return tmp_path / "cache"


@pytest.fixture
def json_store(tmp_cache_dir: Path) -> JsonCacheStore:
    return JsonCacheStore(cache_root=tmp_cache_dir)


@pytest.fixture
def cache_config() -> CacheConfig:
    return CacheConfig(validity_window_ms=30 * DAY_MS, format_version="1.2")


@pytest.fixture
def query_cache(json_store: JsonCacheStore, cache_config: CacheConfig, clock: FakeClock) -> QueryCache:
    return QueryCache(json_store, cache_config, clock=clock)


@pytest.fixture(autouse=True)
def _reset_log_context():
    yield
    clear_context()
