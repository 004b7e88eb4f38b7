"""Tests for Akismet spam checks."""

from __future__ import annotations

from urllib.parse import parse_qs

import httpx
import pytest

from scribe.integrations.akismet import AkismetClient, AkismetComment
from scribe.integrations.base import IntegrationError


def client_for(handler) -> AkismetClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return AkismetClient(api_key="key123", blog_url="https://example.com", client=http)


@pytest.fixture
def comment() -> AkismetComment:
    return AkismetComment(
        user_ip="10.0.0.1",
        user_agent="pytest",
        referrer=None,
        comment_author="Bob",
        comment_author_email="bob@example.com",
        comment_author_url=None,
        comment_content="Nice post",
    )


class TestAkismetClient:
    """Test the comment-check call."""

    def test_check_url(self) -> None:
        client = AkismetClient(api_key="key123", blog_url="https://example.com")
        assert client.check_url == "https://key123.rest.akismet.com/1.1/comment-check"
        assert client.is_available is True
        assert AkismetClient(None, "https://example.com").is_available is False

    async def test_ham(self, comment: AkismetComment) -> None:
        """A "false" body means the comment is not spam."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, text="false")

        assert await client_for(handler).check_spam(comment) is False

        form = parse_qs(seen[0].content.decode())
        assert form["blog"] == ["https://example.com"]
        assert form["comment_author"] == ["Bob"]
        assert "referrer" not in form

    async def test_spam(self, comment: AkismetComment) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="true")

        assert await client_for(handler).check_spam(comment) is True

    async def test_invalid_key(self, comment: AkismetComment) -> None:
        """Anything but true/false is an integration failure."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="invalid", headers={"X-akismet-debug-help": "bad key"})

        with pytest.raises(IntegrationError, match="bad key"):
            await client_for(handler).check_spam(comment)

    async def test_transport_error(self, comment: AkismetComment) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow")

        with pytest.raises(IntegrationError):
            await client_for(handler).check_spam(comment)
