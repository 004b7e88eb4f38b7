"""RSS 2.0 feed serialization.

Uses stdlib xml.etree.ElementTree; the feed carries the newest listed
posts with absolute links and tag categories.
"""

from __future__ import annotations

from datetime import UTC, datetime
from email.utils import format_datetime
from urllib.parse import urljoin
from xml.etree import ElementTree as ET

from scribe.cache.keys import BlogUrls
from scribe.core.model import Post

RSS_CONTENT_TYPE = "application/rss+xml"
GENERATOR = "scribe"


class RssFeedBuilder:
    """Serialize posts into an RSS 2.0 channel."""

    def __init__(self, title: str, description: str, site_url: str, urls: BlogUrls) -> None:
        self.title = title
        self.description = description
        self.site_url = site_url
        self.urls = urls

    def build(self, posts: list[Post]) -> bytes:
        """Serialize ``posts`` to UTF-8 encoded RSS XML."""
        rss = ET.Element("rss", {"version": "2.0"})
        channel = ET.SubElement(rss, "channel")
        ET.SubElement(channel, "title").text = self.title
        ET.SubElement(channel, "description").text = self.description
        ET.SubElement(channel, "link").text = self.site_url
        ET.SubElement(channel, "generator").text = GENERATOR
        ET.SubElement(channel, "lastBuildDate").text = format_datetime(datetime.now(UTC))

        for post in posts:
            channel.append(self._item(post))

        return ET.tostring(rss, encoding="utf-8", xml_declaration=True)

    def _item(self, post: Post) -> ET.Element:
        link = urljoin(self.site_url, self.urls.post(post))
        item = ET.Element("item")
        ET.SubElement(item, "title").text = post.title
        ET.SubElement(item, "description").text = post.description
        ET.SubElement(item, "link").text = link
        ET.SubElement(item, "guid", {"isPermaLink": "true"}).text = link
        for tag in post.tags:
            ET.SubElement(item, "category").text = tag
        stamp = post.published_at or post.created_at
        ET.SubElement(item, "pubDate").text = format_datetime(stamp.astimezone(UTC))
        return item
