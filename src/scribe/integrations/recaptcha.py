"""reCAPTCHA verification for comment submission.

The check is skipped entirely when either key is unset.
"""

from __future__ import annotations

import logging

import httpx

from scribe.integrations.base import IntegrationError

logger = logging.getLogger(__name__)

VERIFY_URL = "https://www.google.com/recaptcha/api/siteverify"


class RecaptchaVerifier:
    """Verifies reCAPTCHA response tokens against Google's siteverify API."""

    def __init__(
        self,
        site_key: str | None,
        secret_key: str | None,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ):
        self.site_key = site_key
        self.secret_key = secret_key
        self._client = client
        self._timeout = timeout

    @property
    def is_available(self) -> bool:
        return bool(self.site_key and self.secret_key)

    @property
    def client_key(self) -> str | None:
        """Site key rendered into the comment form."""
        return self.site_key if self.is_available else None

    async def verify(self, token: str | None, remote_ip: str | None = None) -> bool:
        """Return whether ``token`` is a valid, unused reCAPTCHA response.

        Raises:
            IntegrationError: If the verification service is unreachable.
        """
        if not token:
            return False

        data = {"secret": self.secret_key or "", "response": token}
        if remote_ip:
            data["remoteip"] = remote_ip

        try:
            if self._client is not None:
                response = await self._client.post(VERIFY_URL, data=data)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.post(VERIFY_URL, data=data)
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise IntegrationError("recaptcha", str(e)) from e

        success = bool(payload.get("success"))
        if not success:
            logger.info("reCAPTCHA rejected: %s", payload.get("error-codes", []))
        return success
