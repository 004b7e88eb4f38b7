"""Global pytest configuration and fixtures."""

from __future__ import annotations

import pytest

from scribe.cache.keys import BlogUrls
from scribe.cache.page import PageCache
from scribe.core.model import Post
from tests.factories import make_post


@pytest.fixture
def post() -> Post:
    """A published post at /blog/2024/03/12-my-slug."""
    return make_post()


@pytest.fixture
def urls() -> BlogUrls:
    """URL rules for a blog mounted at /blog."""
    return BlogUrls("/blog")


@pytest.fixture
def cache() -> PageCache:
    """A fresh, empty page cache."""
    return PageCache()
