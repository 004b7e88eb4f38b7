"""Tests for post presentation helpers."""

from __future__ import annotations

import pytest

from scribe.cache.keys import BlogUrls
from scribe.core.model import Post, PostMetadata
from scribe.core.posts import (
    canonical_url,
    paginate,
    parse_slug,
    post_json,
    slugify,
    total_pages,
)
from tests.factories import make_post


class TestParseSlug:
    """Test ``.json`` suffix handling."""

    def test_plain_slug(self) -> None:
        parsed = parse_slug("my-slug")
        assert parsed.slug == "my-slug"
        assert parsed.is_json is False

    def test_json_suffix(self) -> None:
        parsed = parse_slug("my-slug.json")
        assert parsed.slug == "my-slug"
        assert parsed.is_json is True


class TestSlugify:
    """Test slug generation from titles."""

    def test_basic(self) -> None:
        assert slugify("Hello, World!") == "hello-world"

    def test_accents_are_folded(self) -> None:
        assert slugify("Café Déjà Vu") == "cafe-deja-vu"

    def test_max_length(self) -> None:
        slug = slugify("word " * 40, max_length=20)
        assert len(slug) <= 20
        assert not slug.endswith("-")

    def test_fallback(self) -> None:
        assert slugify("!!!") == "post"


class TestPagination:
    """Test page math."""

    @pytest.mark.parametrize(
        ("total", "size", "expected"),
        [(0, 10, 0), (1, 10, 1), (10, 10, 1), (11, 10, 2), (25, 10, 3)],
    )
    def test_total_pages(self, total: int, size: int, expected: int) -> None:
        assert total_pages(total, size) == expected

    def test_total_pages_rejects_zero_size(self) -> None:
        with pytest.raises(ValueError):
            total_pages(5, 0)

    def test_first_page(self) -> None:
        """The first page has no previous page."""
        nav = paginate(0, 3)
        assert nav.page_num == 1
        assert nav.prev_page is None
        assert nav.next_page == 2

    def test_middle_page(self) -> None:
        """prev_page is page_index, next_page is page_index + 2."""
        nav = paginate(1, 3)
        assert nav.prev_page == 1
        assert nav.next_page == 3

    def test_last_page(self) -> None:
        nav = paginate(2, 3)
        assert nav.prev_page == 2
        assert nav.next_page is None

    def test_single_page(self) -> None:
        nav = paginate(0, 1)
        assert nav.prev_page is None
        assert nav.next_page is None


class TestPostPresentation:
    """Test canonical URLs and the JSON form of a post."""

    def test_canonical_url_defaults_to_post_url(self, post: Post, urls: BlogUrls) -> None:
        assert (
            canonical_url(post, urls, "https://example.com")
            == "https://example.com/blog/2024/03/12-my-slug"
        )

    def test_canonical_url_override(self, urls: BlogUrls) -> None:
        post = make_post(metadata=PostMetadata(canonical_url="https://elsewhere.org/p"))
        assert canonical_url(post, urls, "https://example.com") == "https://elsewhere.org/p"

    def test_post_json(self, post: Post, urls: BlogUrls) -> None:
        data = post_json(post, urls)

        assert data["id"] == 12
        assert data["url"] == "/blog/2024/03/12-my-slug"
        assert data["tags"] == ["python"]
        assert data["published_at"] == "2024-03-05T12:00:00+00:00"

    def test_post_json_hides_private_fields(self, urls: BlogUrls) -> None:
        """Author email and viewing keys are not exposed."""
        data = post_json(make_post(private_viewing_key="s3cret"), urls)

        assert "email" not in data["author"]
        assert "private_viewing_key" not in data
