"""Akismet spam classification for comments.

Spam is not rejected: the comment is stored with ``spam=True`` and hidden
from the public post page.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass

import httpx

from scribe.integrations.base import IntegrationError

logger = logging.getLogger(__name__)


@dataclass
class AkismetComment:
    """Fields Akismet uses to classify a comment."""

    user_ip: str | None
    user_agent: str | None
    referrer: str | None
    comment_author: str | None
    comment_author_email: str | None
    comment_author_url: str | None
    comment_content: str | None
    comment_type: str = "comment"


class AkismetClient:
    """Client for the Akismet comment-check API."""

    def __init__(
        self,
        api_key: str | None,
        blog_url: str,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ):
        self.api_key = api_key
        self.blog_url = blog_url
        self._client = client
        self._timeout = timeout

    @property
    def is_available(self) -> bool:
        return bool(self.api_key)

    @property
    def check_url(self) -> str:
        return f"https://{self.api_key}.rest.akismet.com/1.1/comment-check"

    async def check_spam(self, comment: AkismetComment) -> bool:
        """Return True when Akismet classifies ``comment`` as spam.

        Raises:
            IntegrationError: If Akismet is unreachable or rejects the key.
        """
        data = {k: v for k, v in asdict(comment).items() if v is not None}
        data["blog"] = self.blog_url

        try:
            if self._client is not None:
                response = await self._client.post(self.check_url, data=data)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.post(self.check_url, data=data)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise IntegrationError("akismet", str(e)) from e

        verdict = response.text.strip()
        if verdict not in ("true", "false"):
            debug_help = response.headers.get("X-akismet-debug-help", verdict)
            raise IntegrationError("akismet", f"unexpected response: {debug_help}")

        if verdict == "true":
            logger.info("Akismet flagged comment from %s as spam", comment.comment_author)
        return verdict == "true"
