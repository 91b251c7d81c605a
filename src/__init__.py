"""scholarcache — disk-backed cache for literature search results."""

from scholarcache.version import __version__

__all__ = ["__version__"]
