"""Cache layer for Scribe.

Provides an in-memory page cache for rendered blog pages:
- Cached routes answer repeat requests without running the handler
- Change events purge affected pages before the mutating request returns
- Keys are normalized request paths, so prefixes select whole sections
"""

from scribe.cache.handler import CachedPageRoute, cache_page_handler
from scribe.cache.invalidation import register_page_cache_invalidation
from scribe.cache.keys import BlogUrls, normalize_path, request_cache_key
from scribe.cache.page import CacheEntry, PageCache

__all__ = [
    "BlogUrls",
    "CacheEntry",
    "CachedPageRoute",
    "PageCache",
    "cache_page_handler",
    "normalize_path",
    "register_page_cache_invalidation",
    "request_cache_key",
]
