"""Page cache middleware for route handlers.

Wraps a Starlette request handler ``H(request) -> Response``:

1. Derive the key for the request.
2. On a hit, answer from the cache without calling ``H``.
3. On a miss, call ``H``; if it returns a 200 with a body, store it.

When ``H`` raises, nothing is stored and the exception propagates to the
application's exception handlers.

Routes opt in by being declared on a router whose ``route_class`` is
``CachedPageRoute``. The cache instance is read from
``request.app.state.page_cache``; when it is absent the route runs
uncached.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from fastapi.routing import APIRoute
from starlette.requests import Request
from starlette.responses import Response

from scribe.cache.keys import request_cache_key
from scribe.cache.page import CacheEntry, PageCache
from scribe.observability.metrics import record_cache_hit, record_cache_miss

logger = logging.getLogger(__name__)

RouteHandler = Callable[[Request], Awaitable[Response]]
KeyFunc = Callable[[Request], str]
CacheGetter = Callable[[Request], "PageCache | None"]

CACHE_STATUS_HEADER = "X-Page-Cache"
DEFAULT_CONTENT_TYPE = "text/html; charset=utf-8"


def app_page_cache(request: Request) -> PageCache | None:
    """Return the page cache owned by the request's application."""
    return getattr(request.app.state, "page_cache", None)


def cache_page_handler(
    handler: RouteHandler,
    key_func: KeyFunc = request_cache_key,
    cache_getter: CacheGetter = app_page_cache,
) -> RouteHandler:
    """Wrap ``handler`` so its GET responses are served from the page cache."""

    async def cached_handler(request: Request) -> Response:
        cache = cache_getter(request)
        if cache is None or request.method not in ("GET", "HEAD"):
            return await handler(request)

        key = key_func(request)
        entry = cache.get(key)
        if entry is not None:
            record_cache_hit()
            return Response(
                content=entry.body,
                media_type=entry.content_type,
                headers={CACHE_STATUS_HEADER: "hit"},
            )

        record_cache_miss()
        generation = cache.generation
        response = await handler(request)

        body = getattr(response, "body", None)
        if response.status_code == 200 and isinstance(body, bytes):
            content_type = response.headers.get("content-type", DEFAULT_CONTENT_TYPE)
            cache.put(
                key,
                CacheEntry(key=key, body=body, content_type=content_type),
                generation=generation,
            )
            logger.debug("Cached page %s (%d bytes)", key, len(body))
        response.headers[CACHE_STATUS_HEADER] = "miss"
        return response

    return cached_handler


class CachedPageRoute(APIRoute):
    """API route whose handler is wrapped by the page cache."""

    def get_route_handler(self) -> RouteHandler:
        return cache_page_handler(super().get_route_handler())
