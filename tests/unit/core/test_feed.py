"""Tests for RSS feed serialization."""

from __future__ import annotations

from xml.etree import ElementTree as ET

from scribe.cache.keys import BlogUrls
from scribe.core.feed import GENERATOR, RssFeedBuilder
from tests.factories import make_post


def build(urls: BlogUrls, posts: list) -> ET.Element:
    builder = RssFeedBuilder(
        title="Scribe",
        description="Notes",
        site_url="https://example.com",
        urls=urls,
    )
    return ET.fromstring(builder.build(posts))


class TestRssFeedBuilder:
    """Test the RSS 2.0 channel."""

    def test_channel_metadata(self, urls: BlogUrls) -> None:
        rss = build(urls, [])

        assert rss.tag == "rss"
        assert rss.get("version") == "2.0"
        channel = rss.find("channel")
        assert channel.findtext("title") == "Scribe"
        assert channel.findtext("description") == "Notes"
        assert channel.findtext("link") == "https://example.com"
        assert channel.findtext("generator") == GENERATOR
        assert channel.findall("item") == []

    def test_items(self, urls: BlogUrls) -> None:
        """Each post becomes an item with an absolute link."""
        posts = [
            make_post(id=2, slug="second", title="Second", tags=["a", "b"]),
            make_post(id=1, slug="first", title="First", tags=[]),
        ]

        items = build(urls, posts).find("channel").findall("item")

        assert [item.findtext("title") for item in items] == ["Second", "First"]
        first = items[0]
        assert first.findtext("link") == "https://example.com/blog/2024/03/2-second"
        assert first.findtext("guid") == first.findtext("link")
        assert [c.text for c in first.findall("category")] == ["a", "b"]
        assert first.findtext("pubDate").endswith("+0000")

    def test_text_is_escaped(self, urls: BlogUrls) -> None:
        """Markup in titles survives as text."""
        items = build(urls, [make_post(title="<b>Bold</b> & more")]).find("channel")
        assert items.find("item").findtext("title") == "<b>Bold</b> & more"
