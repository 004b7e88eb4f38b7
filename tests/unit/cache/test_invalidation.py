"""Tests for page cache invalidation on post changes."""

from __future__ import annotations

import pytest

from scribe.cache.invalidation import register_page_cache_invalidation
from scribe.cache.keys import BlogUrls
from scribe.cache.page import CacheEntry, PageCache
from scribe.core.model import Post
from scribe.events.bus import ChangeBus
from tests.factories import make_post

CACHED_KEYS = (
    "/blog",
    "/blog/page/2",
    "/blog/tagged/python",
    "/blog/rss",
    "/blog/2024/03/12-my-slug",
    "/blog/2024/03/12-my-slug.json",
    "/blog/2024/03/12-my-slug?secret=abc",
    "/about",
)


@pytest.fixture
def bus(cache: PageCache, urls: BlogUrls) -> ChangeBus:
    bus = ChangeBus()
    register_page_cache_invalidation(bus, cache, urls)
    return bus


@pytest.fixture
def filled(cache: PageCache) -> PageCache:
    for key in CACHED_KEYS:
        cache.put(key, CacheEntry(key=key, body=key.encode(), content_type="text/html"))
    return cache


class TestPostChangeInvalidation:
    """Test the listeners registered for post changes."""

    def test_registers_two_post_listeners(self, bus: ChangeBus) -> None:
        assert bus.listener_count("post") == 2
        assert bus.listener_count("comment") == 0

    def test_post_change_clears_blog_pages(
        self, bus: ChangeBus, filled: PageCache, post: Post
    ) -> None:
        """Listings, feed and every view of the post are purged."""
        bus.emit_change("post", post)

        assert filled.keys() == ["/about"]

    def test_pages_outside_prefix_survive(
        self, bus: ChangeBus, filled: PageCache, post: Post
    ) -> None:
        bus.emit_change("post", post)
        assert filled.get("/about") is not None

    def test_none_payload_clears_listings(self, bus: ChangeBus, filled: PageCache) -> None:
        """A change with no post still purges the listing prefix."""
        bus.emit_change("post", None)

        assert "/blog" not in filled
        assert "/blog/rss" not in filled
        assert "/about" in filled

    def test_comment_change_does_not_invalidate(
        self, bus: ChangeBus, filled: PageCache, post: Post
    ) -> None:
        """Only post changes are wired to the page cache."""
        bus.emit_change("comment", post)

        assert len(filled) == len(CACHED_KEYS)

    def test_repeated_change_is_idempotent(
        self, bus: ChangeBus, filled: PageCache, post: Post
    ) -> None:
        bus.emit_change("post", post)
        bus.emit_change("post", post)

        assert filled.keys() == ["/about"]

    def test_served_after_emit_is_fresh(
        self, bus: ChangeBus, filled: PageCache, post: Post
    ) -> None:
        """Once emit returns, no pre-change entry can be read."""
        bus.emit_change("post", post)

        for key in CACHED_KEYS[:-1]:
            assert filled.get(key) is None


class TestRootMountedBlog:
    """Test invalidation for a blog served at the site root."""

    def test_post_change_clears_post_pages(self, cache: PageCache) -> None:
        bus = ChangeBus()
        register_page_cache_invalidation(bus, cache, BlogUrls(""))
        post = make_post(id=4, slug="root")
        key = "/2024/03/4-root"
        cache.put(key, CacheEntry(key=key, body=b"x", content_type="text/html"))

        bus.emit_change("post", post)

        assert key not in cache
