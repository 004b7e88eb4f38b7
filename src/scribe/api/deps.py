"""Shared FastAPI dependencies for Scribe routers.

Application-owned components (settings, page cache, change bus,
integrations) live on ``app.state`` and are injected from there, so every
app instance, including each test app, has its own.
"""

from __future__ import annotations

import hmac
from typing import Annotated

from fastapi import Depends, Header, Request

from scribe.api.errors import UnauthorizedError
from scribe.cache.keys import BlogUrls
from scribe.cache.page import PageCache
from scribe.config import Settings
from scribe.events.bus import ChangeBus
from scribe.integrations.akismet import AkismetClient
from scribe.integrations.mail import CommentNotifier
from scribe.integrations.recaptcha import RecaptchaVerifier


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_page_cache(request: Request) -> PageCache | None:
    """The app's page cache, or None when page caching is disabled."""
    return request.app.state.page_cache


def get_change_bus(request: Request) -> ChangeBus:
    return request.app.state.change_bus


def get_blog_urls(request: Request) -> BlogUrls:
    return request.app.state.blog_urls


def get_recaptcha(request: Request) -> RecaptchaVerifier:
    return request.app.state.recaptcha


def get_akismet(request: Request) -> AkismetClient:
    return request.app.state.akismet


def get_notifier(request: Request) -> CommentNotifier:
    return request.app.state.notifier


def require_admin(
    config: Annotated[Settings, Depends(get_settings)],
    authorization: Annotated[str | None, Header()] = None,
) -> None:
    """Require ``Authorization: Bearer <admin_token>``.

    The admin API is closed entirely while no token is configured.
    """
    if not config.admin_token:
        raise UnauthorizedError("Admin API is disabled")
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not hmac.compare_digest(
        token.encode("utf-8"), config.admin_token.encode("utf-8")
    ):
        raise UnauthorizedError()


SettingsDep = Annotated[Settings, Depends(get_settings)]
PageCacheDep = Annotated[PageCache | None, Depends(get_page_cache)]
ChangeBusDep = Annotated[ChangeBus, Depends(get_change_bus)]
BlogUrlsDep = Annotated[BlogUrls, Depends(get_blog_urls)]
