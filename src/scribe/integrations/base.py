"""Shared pieces for outbound integrations."""

from __future__ import annotations


class IntegrationError(Exception):
    """An outbound service could not be reached or answered unexpectedly."""

    def __init__(self, service: str, detail: str):
        self.service = service
        self.detail = detail
        super().__init__(f"{service}: {detail}")
