# src/main.py — v2
"""CLI entry point — stats, cleanup, clear, key, lookup commands.

Usage:
    scholarcache stats [--json]
    scholarcache cleanup
    scholarcache clear
    scholarcache key <query> [--offset N] [--num N] [--scope ID]
    scholarcache lookup <query> [--offset N] [--num N] [--scope ID]
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
import uuid
from pathlib import Path
from typing import TYPE_CHECKING

from scholarcache.version import __version__

if TYPE_CHECKING:
    from scholarcache.config.settings import Settings

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    from scholarcache.config.settings import load_settings

    try:
        overrides: dict[str, object] = {}
        if args.cache_root is not None:
            overrides["cache_root"] = args.cache_root
        if args.verbose:
            overrides["log_level"] = "DEBUG"
        settings = load_settings(**overrides)
    except Exception as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 2

    _setup_logging(settings)

    try:
        return asyncio.run(args.func(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="scholarcache",
        description=f"scholarcache v{__version__} — Literature search result cache",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--cache-root", type=Path, default=None,
        help="Override CACHE_ROOT",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- stats ---
    p_stats = subparsers.add_parser("stats", help="Show cache statistics")
    p_stats.add_argument(
        "--json", dest="as_json", action="store_true",
        help="Print statistics as JSON",
    )
    p_stats.set_defaults(func=_cmd_stats)

    # --- cleanup ---
    p_cleanup = subparsers.add_parser(
        "cleanup", help="Delete expired and unreadable entries",
    )
    p_cleanup.set_defaults(func=_cmd_cleanup)

    # --- clear ---
    p_clear = subparsers.add_parser("clear", help="Delete every cache entry")
    p_clear.set_defaults(func=_cmd_clear)

    # --- key / lookup ---
    for name, func, help_text in (
        ("key", _cmd_key, "Print the fingerprint of a search request"),
        ("lookup", _cmd_lookup, "Look a search request up in the cache"),
    ):
        p = subparsers.add_parser(name, help=help_text)
        p.add_argument("query", help="Search query text")
        p.add_argument("--offset", default=0, help="Pagination offset (default: 0)")
        p.add_argument(
            "--num", dest="page_size", default=10,
            help="Page size (default: 10)",
        )
        p.add_argument("--scope", dest="scope_id", default=None, help="Scope id")
        p.set_defaults(func=func)

    return parser


async def _cmd_stats(args: argparse.Namespace, settings: Settings) -> int:
    """Display cache statistics."""
    from scholarcache.cache.service import QueryCache

    cache = QueryCache.from_settings(settings)
    stats = await cache.report()

    if args.as_json:
        data = stats.model_dump(mode="json")
        data["total_size_kb"] = stats.total_size_kb
        print(json.dumps(data, indent=2))
        return 0

    _print_stats(stats)
    return 0


async def _cmd_cleanup(args: argparse.Namespace, settings: Settings) -> int:
    """Purge expired entries and show the resulting statistics."""
    from scholarcache.cache.service import QueryCache

    cache = QueryCache.from_settings(settings)
    removed = await cache.cleanup_expired()
    print(f"Removed {removed} expired entries")
    _print_stats(await cache.report())
    return 0


async def _cmd_clear(args: argparse.Namespace, settings: Settings) -> int:
    """Delete every cache entry."""
    from scholarcache.cache.service import QueryCache

    cache = QueryCache.from_settings(settings)
    removed = await cache.clear()
    print(f"Cleared {removed} entries")
    return 0


async def _cmd_key(args: argparse.Namespace, settings: Settings) -> int:
    """Print the fingerprint of a search request."""
    from scholarcache.cache.fingerprint import compute_fingerprint

    print(compute_fingerprint(
        args.query, args.offset, args.page_size, args.scope_id,
        format_version=settings.cache_format_version,
    ))
    return 0


async def _cmd_lookup(args: argparse.Namespace, settings: Settings) -> int:
    """Look up a request; exit 0 on hit, 3 on miss."""
    from scholarcache.cache.service import QueryCache
    from scholarcache.logging.context import set_request_context

    set_request_context(uuid.uuid4().hex[:8])
    cache = QueryCache.from_settings(settings)
    result = await cache.lookup(args.query, args.offset, args.page_size, args.scope_id)

    if not result.is_hit:
        print(f"MISS ({result.miss_reason}) {result.fingerprint}")
        return 3

    entry = result.entry
    print(f"HIT {result.fingerprint}")
    print(f"  Results:    {entry.result_count}")
    print(f"  Cached at:  {entry.cached_at.isoformat()}")
    print(f"  Expires at: {entry.expires_at.isoformat()}")
    return 0


def _print_stats(stats: object) -> None:
    """Print a human-readable CacheStats summary."""
    print(f"\nCache statistics for {stats.cache_location}:")
    print(f"  Entries:   {stats.total_entries}")
    print(f"  Valid:     {stats.valid_count}")
    print(f"  Expired:   {stats.expired_count} (corrupt: {stats.corrupt_count})")
    print(f"  Size:      {stats.total_size_kb} KB")
    print(f"  Version:   {stats.format_version}")


def _setup_logging(settings: Settings) -> None:
    """Configure logging for CLI usage."""
    from scholarcache.logging.logger import setup_logging

    setup_logging(
        level=settings.log_level,
        log_format=settings.log_format,
        log_file=str(settings.log_file) if settings.log_file else None,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )


if __name__ == "__main__":
    sys.exit(main())
