"""Page cache invalidation wiring.

Registered once at application startup. On ``change(type=post)``:
- invalidate the blog route prefix, so index, page, tag and feed pages are
  rendered again
- invalidate the post's own URL as a prefix, which also covers its
  ``.json`` variant and ``?secret=`` views of private posts
"""

from __future__ import annotations

import logging

from scribe.cache.keys import BlogUrls
from scribe.cache.page import PageCache
from scribe.events.bus import ChangeBus
from scribe.events.schemas import ChangeEvent, EntityType

logger = logging.getLogger(__name__)


def register_page_cache_invalidation(bus: ChangeBus, cache: PageCache, urls: BlogUrls) -> None:
    """Subscribe the page cache to post change events on ``bus``."""

    def invalidate_post_listings(event: ChangeEvent) -> None:
        removed = cache.invalidate_by_prefix(urls.listing_prefix)
        logger.info(
            "Post changed; cleared %d listing pages under %r",
            removed,
            urls.listing_prefix or "/",
        )

    def invalidate_post_page(event: ChangeEvent) -> None:
        if event.payload is None:
            return
        post_url = urls.post(event.payload)
        removed = cache.invalidate_by_prefix(post_url)
        logger.info("Post changed; cleared %d cached views of %s", removed, post_url)

    bus.on_change(EntityType.POST, invalidate_post_listings)
    bus.on_change(EntityType.POST, invalidate_post_page)
