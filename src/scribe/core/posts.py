"""Helpers for presenting posts.

- Slug generation and parsing of ``.json`` post URLs
- Pagination math for listing pages
- The JSON shape of a post served at ``<post url>.json``
"""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass
from typing import Any
from urllib.parse import urljoin

from scribe.cache.keys import BlogUrls
from scribe.core.model import Post

JSON_SUFFIX = ".json"


@dataclass(frozen=True)
class ParsedSlug:
    slug: str
    is_json: bool


def parse_slug(raw: str) -> ParsedSlug:
    """Split a trailing ``.json`` off a slug path segment."""
    if raw.endswith(JSON_SUFFIX):
        return ParsedSlug(slug=raw[: -len(JSON_SUFFIX)], is_json=True)
    return ParsedSlug(slug=raw, is_json=False)


def slugify(text: str, max_length: int = 80) -> str:
    """Build a URL slug from a title.

    >>> slugify("Hello, World!")
    'hello-world'
    """
    normalized = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    slug = re.sub(r"[^a-z0-9]+", "-", normalized.lower()).strip("-")
    slug = slug[:max_length].rstrip("-")
    return slug or "post"


def total_pages(total: int, page_size: int) -> int:
    """Number of pages needed for ``total`` items."""
    if page_size <= 0:
        raise ValueError("page_size must be positive")
    return -(-total // page_size)


@dataclass(frozen=True)
class Pagination:
    """Navigation values for a listing page (page numbers are 1-based)."""

    page_num: int
    total_pages: int
    prev_page: int | None
    next_page: int | None


def paginate(page_index: int, pages: int) -> Pagination:
    """Compute navigation for the 0-based ``page_index`` of ``pages`` pages."""
    return Pagination(
        page_num=page_index + 1,
        total_pages=pages,
        prev_page=page_index if page_index > 0 else None,
        next_page=page_index + 2 if page_index + 1 < pages else None,
    )


def canonical_url(post: Post, urls: BlogUrls, blog_url: str) -> str:
    """The post's canonical URL: its metadata override or its absolute URL."""
    if post.metadata.canonical_url:
        return post.metadata.canonical_url
    return urljoin(blog_url, urls.post(post))


def post_json(post: Post, urls: BlogUrls) -> dict[str, Any]:
    """Public JSON representation of a post."""
    return {
        "id": post.id,
        "slug": post.slug,
        "title": post.title,
        "description": post.description,
        "content": post.content,
        "tags": list(post.tags),
        "author": {"name": post.author.name},
        "published_at": post.published_at.isoformat() if post.published_at else None,
        "updated_at": post.updated_at.isoformat(),
        "url": urls.post(post),
        "metadata": post.metadata.model_dump(),
    }
