"""Tests for HTTP metrics path normalization."""

from __future__ import annotations

import pytest
from fastapi import FastAPI

from scribe.observability.metrics import MetricsMiddleware


@pytest.fixture
def middleware() -> MetricsMiddleware:
    return MetricsMiddleware(FastAPI())


class TestPathNormalization:
    """Test that label cardinality stays bounded."""

    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            ("/blog", "/blog"),
            ("/blog/page/7", "/blog/page/{n}"),
            ("/blog/tagged/python", "/blog/tagged/{tag}"),
            ("/blog/tagged/python/page/2", "/blog/tagged/{tag}/page/{n}"),
            ("/blog/2024/03/12-hello", "/blog/{post}"),
            ("/blog/2024/03/12-hello.json", "/blog/{post}"),
        ],
    )
    def test_normalize(self, middleware: MetricsMiddleware, path: str, expected: str) -> None:
        assert middleware._normalize_path(path) == expected
