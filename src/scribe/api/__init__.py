"""HTTP layer for Scribe."""

from scribe.api.app import create_app

__all__ = ["create_app"]
