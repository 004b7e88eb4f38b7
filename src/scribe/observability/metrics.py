"""Prometheus metrics for Scribe.

Provides metrics collection and exposure:
- HTTP request metrics (latency, count)
- Page cache metrics (hits, misses, invalidations, size)
- Content metrics (change events, comment submissions)

Usage:
    from scribe.observability.metrics import get_metrics

    metrics = get_metrics()
    metrics.http_requests_total.labels(method="GET", path="/blog", status=200).inc()
"""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable

from prometheus_client import REGISTRY, Counter, Gauge, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

if TYPE_CHECKING:
    from starlette.types import ASGIApp

logger = logging.getLogger(__name__)


@dataclass
class MetricsRegistry:
    """Registry for Prometheus metrics.

    Collectors live in the process-wide Prometheus registry, so there is one
    instance per process. Each app decides through its own settings whether
    it records HTTP metrics and serves /metrics.
    """

    # HTTP metrics
    http_requests_total: Any = None
    http_request_duration_seconds: Any = None

    # Page cache metrics
    cache_hits_total: Any = None
    cache_misses_total: Any = None
    cache_invalidations_total: Any = None
    cache_entries: Any = None

    # Content metrics
    change_events_total: Any = None
    comments_submitted_total: Any = None

    # Internal state
    _initialized: bool = field(default=False, repr=False)
    _registry: Any = field(default=None, repr=False)

    def initialize(self) -> None:
        """Initialize Prometheus metrics."""
        if self._initialized:
            return

        self._registry = REGISTRY

        self.http_requests_total = Counter(
            "scribe_http_requests_total",
            "Total HTTP requests",
            ["method", "path", "status"],
        )

        self.http_request_duration_seconds = Histogram(
            "scribe_http_request_duration_seconds",
            "HTTP request latency in seconds",
            ["method", "path"],
            buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
        )

        self.cache_hits_total = Counter(
            "scribe_page_cache_hits_total",
            "Page cache hits",
        )

        self.cache_misses_total = Counter(
            "scribe_page_cache_misses_total",
            "Page cache misses",
        )

        self.cache_invalidations_total = Counter(
            "scribe_page_cache_invalidations_total",
            "Page cache invalidation calls",
            ["kind"],
        )

        self.cache_entries = Gauge(
            "scribe_page_cache_entries",
            "Entries currently held by the page cache",
        )

        self.change_events_total = Counter(
            "scribe_change_events_total",
            "Change events emitted",
            ["entity_type"],
        )

        self.comments_submitted_total = Counter(
            "scribe_comments_submitted_total",
            "Comment submissions",
            ["outcome"],
        )

        self._initialized = True
        logger.info("Prometheus metrics initialized")

    def generate_latest(self) -> bytes:
        """Generate Prometheus metrics in exposition format."""
        if self._registry is None:
            return b"# Metrics disabled\n"
        return generate_latest(self._registry)


# Global metrics registry
metrics_registry = MetricsRegistry()


def get_metrics() -> MetricsRegistry:
    """Get the global metrics registry.

    Initializes metrics on first access.
    """
    if not metrics_registry._initialized:
        metrics_registry.initialize()
    return metrics_registry


_POST_PATH = re.compile(r"/\d{4}/\d{2}/\d+-[^/]+$")
_PAGE_PATH = re.compile(r"/page/\d+$")
_TAG_PATH = re.compile(r"/tagged/[^/]+")


class MetricsMiddleware(BaseHTTPMiddleware):
    """Middleware for HTTP request metrics.

    Records:
    - Request count by method, path, status
    - Request duration histogram
    """

    def __init__(self, app: "ASGIApp") -> None:
        super().__init__(app)
        self.metrics = get_metrics()

    async def dispatch(self, request: Request, call_next: Callable[[Request], Any]) -> Response:
        """Record metrics for HTTP requests."""
        if request.url.path in ("/health/live", "/health/ready", "/metrics"):
            return await call_next(request)

        method = request.method
        path = self._normalize_path(request.url.path)

        start_time = time.perf_counter()
        status_code = 500  # Default in case of exception

        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            duration = time.perf_counter() - start_time

            if self.metrics.http_requests_total:
                self.metrics.http_requests_total.labels(
                    method=method,
                    path=path,
                    status=status_code,
                ).inc()

            if self.metrics.http_request_duration_seconds:
                self.metrics.http_request_duration_seconds.labels(
                    method=method,
                    path=path,
                ).observe(duration)

    def _normalize_path(self, path: str) -> str:
        """Replace slugs, tags and page numbers with placeholders.

        Examples:
            /blog/2024/03/12-hello -> /blog/{post}
            /blog/tagged/python/page/2 -> /blog/tagged/{tag}/page/{n}
        """
        path = _POST_PATH.sub("/{post}", path)
        path = _TAG_PATH.sub("/tagged/{tag}", path)
        path = _PAGE_PATH.sub("/page/{n}", path)
        return path


def record_cache_hit() -> None:
    """Record page cache hit."""
    metrics = get_metrics()
    if metrics.cache_hits_total:
        metrics.cache_hits_total.inc()


def record_cache_miss() -> None:
    """Record page cache miss."""
    metrics = get_metrics()
    if metrics.cache_misses_total:
        metrics.cache_misses_total.inc()


def record_cache_invalidation(kind: str) -> None:
    """Record an invalidation call.

    Args:
        kind: "key" for exact invalidation, "prefix" for prefix invalidation
    """
    metrics = get_metrics()
    if metrics.cache_invalidations_total:
        metrics.cache_invalidations_total.labels(kind=kind).inc()


def set_cache_entries(count: int) -> None:
    """Record the current page cache size."""
    metrics = get_metrics()
    if metrics.cache_entries:
        metrics.cache_entries.set(count)


def record_change_event(entity_type: str) -> None:
    """Record change event emission."""
    metrics = get_metrics()
    if metrics.change_events_total:
        metrics.change_events_total.labels(entity_type=entity_type).inc()


def record_comment(outcome: str) -> None:
    """Record a comment submission.

    Args:
        outcome: accepted, spam, invalid, or captcha_failed
    """
    metrics = get_metrics()
    if metrics.comments_submitted_total:
        metrics.comments_submitted_total.labels(outcome=outcome).inc()
