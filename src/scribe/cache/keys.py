"""URL rules and cache key derivation for Scribe.

Cache keys are normalized request paths:
- scheme and host are ignored
- a trailing slash is dropped (except for "/")
- query parameters, when present, are appended in sorted order

Because keys are paths, the blog's URL construction rules double as the
invalidation policy: clearing the route prefix clears every listing page,
and clearing a post URL clears that post's page and its variants.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol
from urllib.parse import quote, urlencode

from starlette.requests import Request


class PostLike(Protocol):
    """The fields a post URL is built from."""

    id: int
    slug: str
    published_at: datetime | None
    created_at: datetime | None


def normalize_path(path: str) -> str:
    """Strip a trailing slash from ``path`` unless it is the root."""
    if len(path) > 1 and path.endswith("/"):
        return path.rstrip("/") or "/"
    return path or "/"


def request_cache_key(request: Request) -> str:
    """Derive the page cache key for ``request``."""
    key = normalize_path(request.url.path)
    items = sorted(request.query_params.multi_items())
    if items:
        key = f"{key}?{urlencode(items)}"
    return key


class BlogUrls:
    """URL construction rules for the public blog."""

    def __init__(self, prefix: str = "/blog") -> None:
        self.prefix = prefix.rstrip("/")

    @property
    def listing_prefix(self) -> str:
        """Key prefix covering every listing, tag, feed and post page."""
        return self.prefix

    def index(self) -> str:
        return self.prefix or "/"

    def page(self, page_num: int) -> str:
        if page_num <= 1:
            return self.index()
        return f"{self.prefix}/page/{page_num}"

    def tagged(self, tag: str, page_num: int = 1) -> str:
        base = f"{self.prefix}/tagged/{quote(tag, safe='')}"
        if page_num <= 1:
            return base
        return f"{base}/page/{page_num}"

    def search(self, page_num: int = 1) -> str:
        if page_num <= 1:
            return f"{self.prefix}/search"
        return f"{self.prefix}/search/page/{page_num}"

    def rss(self) -> str:
        return f"{self.prefix}/rss"

    def post(self, post: PostLike) -> str:
        """Detail page URL: ``{prefix}/{YYYY}/{MM}/{id}-{slug}``."""
        stamp = post.published_at or post.created_at
        if stamp is None:
            raise ValueError(f"Post {post.id} has no publication or creation date")
        return f"{self.prefix}/{stamp.year:04d}/{stamp.month:02d}/{post.id}-{post.slug}"
