"""FastAPI application factory for Scribe.

Creates the application with:
- Public blog routes, cached in process memory
- Admin JSON API for posts and comments
- Change bus wired to page cache invalidation
- Lifecycle management for the database
- Prometheus metrics and correlation IDs
- HTML error pages for the blog, JSON errors for the API
- ORJSON for fast JSON serialization
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, cast

from fastapi import FastAPI
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.types import ExceptionHandler

from scribe.api.errors import (
    ScribeError,
    generic_exception_handler,
    http_exception_handler,
    integration_exception_handler,
    scribe_exception_handler,
)
from scribe.api.middleware import CorrelationMiddleware
from scribe.api.routers import admin, create_blog_router, health
from scribe.api.routers import metrics as metrics_router
from scribe.cache.invalidation import register_page_cache_invalidation
from scribe.cache.keys import BlogUrls
from scribe.cache.page import PageCache
from scribe.config import Settings, settings
from scribe.events.bus import ChangeBus
from scribe.integrations.akismet import AkismetClient
from scribe.integrations.base import IntegrationError
from scribe.integrations.mail import CommentNotifier, SmtpConfig
from scribe.integrations.recaptcha import RecaptchaVerifier
from scribe.observability import configure_logging
from scribe.observability.metrics import MetricsMiddleware, get_metrics
from scribe.persistence.db import Database

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifecycle.

    On startup:
    - Configure structured logging
    - Initialize Prometheus metrics
    - Create missing database tables in the app's database

    On shutdown:
    - Close database connections
    """
    config: Settings = app.state.settings

    # JSON in production, console in dev
    configure_logging(
        json_format=config.env != "dev",
        level=config.log_level,
    )
    get_metrics()

    logger.info(f"Starting Scribe ({config.env})")
    await app.state.database.create_all()
    logger.info("Scribe startup complete")

    yield

    logger.info("Shutting down Scribe")
    await app.state.database.dispose()
    logger.info("Scribe shutdown complete")


def create_app(config: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Each call builds its own database handle, page cache and change bus from
    ``config`` and subscribes the cache to post changes, so separate apps
    never share data or cached pages.
    """
    config = config or settings

    app = FastAPI(
        title=config.blog_title,
        description=config.blog_description,
        version="0.1.0",
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url=None,
        openapi_url="/openapi.json",
    )

    urls = BlogUrls(config.route_prefix)
    bus = ChangeBus()
    page_cache = PageCache() if config.enable_page_cache else None
    if page_cache is not None:
        register_page_cache_invalidation(bus, page_cache, urls)
    else:
        logger.info("Page cache disabled")

    app.state.settings = config
    app.state.database = Database.from_settings(config)
    app.state.blog_urls = urls
    app.state.change_bus = bus
    app.state.page_cache = page_cache
    app.state.recaptcha = RecaptchaVerifier(
        site_key=config.recaptcha_site_key,
        secret_key=config.recaptcha_secret_key,
        timeout=config.integration_timeout,
    )
    app.state.akismet = AkismetClient(
        api_key=config.akismet_api_key,
        blog_url=config.blog_url,
        timeout=config.integration_timeout,
    )
    app.state.notifier = CommentNotifier(
        smtp=SmtpConfig(
            host=config.smtp_host,
            port=config.smtp_port,
            username=config.smtp_username,
            password=config.smtp_password,
            use_tls=config.smtp_use_tls,
        ),
        from_email=config.comments_noreply_email,
        blog_title=config.blog_title,
    )

    # CorrelationMiddleware is innermost so metrics see the request context
    app.add_middleware(CorrelationMiddleware)
    if config.enable_metrics:
        app.add_middleware(MetricsMiddleware)

    app.add_exception_handler(ScribeError, cast(ExceptionHandler, scribe_exception_handler))
    app.add_exception_handler(
        StarletteHTTPException, cast(ExceptionHandler, http_exception_handler)
    )
    app.add_exception_handler(
        IntegrationError, cast(ExceptionHandler, integration_exception_handler)
    )
    app.add_exception_handler(Exception, cast(ExceptionHandler, generic_exception_handler))

    app.include_router(health.router)
    if config.enable_metrics:
        app.include_router(metrics_router.router)
    app.include_router(admin.router)
    app.include_router(create_blog_router(config.route_prefix))

    return app
