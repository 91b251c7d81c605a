# src/cache/fingerprint.py — v3
"""Search request fingerprinting.

A fingerprint is the SHA-256 hex digest of a canonical JSON record built from
the normalized request plus the cache format version. It is the sole identity
of a cache entry.
"""

from __future__ import annotations

import hashlib
from typing import Any

from pydantic import ValidationError

from scholarcache.cache.constants import (
    CACHE_FORMAT_VERSION,
    DEFAULT_OFFSET,
    DEFAULT_PAGE_SIZE,
)
from scholarcache.cache.errors import RequestValidationError
from scholarcache.cache.models import FingerprintKey, SearchRequest

__all__ = [
    "CACHE_FORMAT_VERSION",
    "build_request",
    "compute_fingerprint",
    "fingerprint_request",
    "short_key",
]


def build_request(
    query: Any,
    offset: Any = DEFAULT_OFFSET,
    page_size: Any = DEFAULT_PAGE_SIZE,
    scope_id: Any = None,
) -> SearchRequest:
    """Validate and normalize a logical search request.

    Args:
        query: Search text; trimmed and lowercased.
        offset: Pagination start index (int or numeric string, >= 0).
        page_size: Number of results per page (int or numeric string, > 0).
        scope_id: Optional author/entity scope. None is distinct from any id.

    Returns:
        Frozen SearchRequest.

    Raises:
        RequestValidationError: If any field is malformed.
    """
    try:
        return SearchRequest(
            query=query, offset=offset, page_size=page_size, scope_id=scope_id
        )
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            for err in e.errors()
        )
        raise RequestValidationError(f"Invalid search request: {problems}") from e


def fingerprint_request(
    request: SearchRequest, *, format_version: str = CACHE_FORMAT_VERSION
) -> str:
    """Hash an already validated request into a 64-char hex fingerprint."""
    key = FingerprintKey(
        query=request.query,
        offset=request.offset,
        page_size=request.page_size,
        scope_id=request.scope_id,
        format_version=format_version,
    )
    return hashlib.sha256(key.model_dump_json().encode("utf-8")).hexdigest()


def compute_fingerprint(
    query: Any,
    offset: Any = DEFAULT_OFFSET,
    page_size: Any = DEFAULT_PAGE_SIZE,
    scope_id: Any = None,
    *,
    format_version: str = CACHE_FORMAT_VERSION,
) -> str:
    """Validate a logical request and return its fingerprint."""
    request = build_request(query, offset, page_size, scope_id)
    return fingerprint_request(request, format_version=format_version)


def short_key(fingerprint: str) -> str:
    """Abbreviated fingerprint for log lines."""
    return f"{fingerprint[:8]}..."
