# tests/integration/logging/test_int_logging_subsystem.py — v2
"""Integration tests for the logging subsystem around cache operations.

Covers: logging/logger.py, logging/context.py and the cache façade's log
lines. No external services required.
"""

from __future__ import annotations

import json
import logging

import pytest

from scholarcache.logging.context import set_request_context
from scholarcache.logging.logger import setup_logging

QUERY = "denver health emergency ultrasound"


@pytest.fixture
def json_log_file(tmp_path):
    root = logging.getLogger("scholarcache")
    saved_handlers, saved_level = list(root.handlers), root.level
    log_file = tmp_path / "logs" / "cache.log"
    setup_logging(level="DEBUG", log_format="json", log_file=str(log_file))
    yield log_file
    for handler in root.handlers:
        handler.close()
    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)


def _lines(log_file):
    for handler in logging.getLogger("scholarcache").handlers:
        handler.flush()
    return [json.loads(line) for line in log_file.read_text(encoding="utf-8").splitlines()]


class TestCacheLogLines:
    @pytest.mark.asyncio
    async def test_hit_carries_context(self, json_log_file, query_cache, sample_payload):
        set_request_context("req-123")
        await query_cache.populate(QUERY, payload=sample_payload)
        await query_cache.lookup(QUERY)

        lines = _lines(json_log_file)
        hit = next(line for line in lines if line["message"].startswith("Cache hit"))
        assert hit["level"] == "INFO"
        assert hit["logger"] == "scholarcache.cache.service"
        assert hit["context"]["request_id"] == "req-123"
        assert hit["context"]["operation"] == "lookup"
        assert hit["context"]["fingerprint"] == query_cache.fingerprint(QUERY)[:8] + "..."

    @pytest.mark.asyncio
    async def test_populate_logged(self, json_log_file, query_cache, sample_payload):
        await query_cache.populate(QUERY, payload=sample_payload)
        lines = _lines(json_log_file)
        cached = next(line for line in lines if line["message"].startswith("Data cached"))
        assert "results=2" in cached["message"]
        assert cached["context"]["operation"] == "populate"

    @pytest.mark.asyncio
    async def test_expiry_logged(self, json_log_file, query_cache, sample_payload, clock):
        await query_cache.populate(QUERY, payload=sample_payload)
        clock.advance(31 * 24 * 60 * 60 * 1000)
        await query_cache.lookup(QUERY)
        messages = [line["message"] for line in _lines(json_log_file)]
        assert any(m.startswith("Cache expired - will fetch fresh data") for m in messages)

    @pytest.mark.asyncio
    async def test_corrupt_entry_logged_as_warning(self, json_log_file, query_cache, tmp_cache_dir):
        tmp_cache_dir.mkdir(parents=True)
        (tmp_cache_dir / f"{query_cache.fingerprint(QUERY)}.json").write_text("{", encoding="utf-8")
        await query_cache.lookup(QUERY)
        warnings = [line for line in _lines(json_log_file) if line["level"] == "WARNING"]
        assert warnings
        assert warnings[0]["message"].startswith("Corrupt cache entry")

    @pytest.mark.asyncio
    async def test_hit_line_carries_data(self, json_log_file, query_cache, sample_payload, clock):
        await query_cache.populate(QUERY, payload=sample_payload)
        clock.advance(1_000)
        await query_cache.lookup(QUERY)
        hit = next(line for line in _lines(json_log_file) if line["message"].startswith("Cache hit"))
        assert hit["data"] == {"age_ms": 1_000, "result_count": 2}
