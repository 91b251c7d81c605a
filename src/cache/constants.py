# src/cache/constants.py — v1
"""Cache-wide constants shared by fingerprinting, freshness and configuration."""

from __future__ import annotations

# Bump when the cached payload schema changes: every existing entry then
# reads as a miss without any file being deleted.
CACHE_FORMAT_VERSION = "1.2"

MS_PER_DAY = 24 * 60 * 60 * 1000

DEFAULT_VALIDITY_DAYS = 30
DEFAULT_VALIDITY_WINDOW_MS = DEFAULT_VALIDITY_DAYS * MS_PER_DAY

DEFAULT_OFFSET = 0
DEFAULT_PAGE_SIZE = 10

# Payload field probed for a measurable sequence when computing result_count.
DEFAULT_RESULT_FIELD = "organic_results"
