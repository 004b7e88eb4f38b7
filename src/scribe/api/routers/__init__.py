"""API routers for Scribe."""

from scribe.api.routers import admin, health, metrics
from scribe.api.routers.blog import create_blog_router

__all__ = ["admin", "create_blog_router", "health", "metrics"]
