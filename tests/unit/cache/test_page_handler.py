"""Tests for the page cache route wrapper."""

from __future__ import annotations

import pytest
from fastapi import APIRouter, FastAPI, HTTPException
from fastapi.testclient import TestClient
from starlette.responses import HTMLResponse, RedirectResponse, Response

from scribe.cache.handler import CACHE_STATUS_HEADER, CachedPageRoute
from scribe.cache.page import CacheEntry, PageCache


class Counter:
    def __init__(self) -> None:
        self.calls = 0


@pytest.fixture
def counter() -> Counter:
    return Counter()


@pytest.fixture
def app(cache: PageCache, counter: Counter) -> FastAPI:
    """App with a few cached routes that count their invocations."""
    app = FastAPI()
    app.state.page_cache = cache
    router = APIRouter(route_class=CachedPageRoute)

    @router.get("/page", response_class=HTMLResponse)
    async def page() -> HTMLResponse:
        counter.calls += 1
        return HTMLResponse(f"<p>render {counter.calls}</p>")

    @router.get("/missing")
    async def missing() -> Response:
        counter.calls += 1
        raise HTTPException(status_code=404)

    @router.get("/moved")
    async def moved() -> Response:
        counter.calls += 1
        return RedirectResponse("/page")

    @router.get("/boom")
    async def boom() -> Response:
        counter.calls += 1
        raise RuntimeError("render failed")

    @router.post("/page")
    async def submit() -> Response:
        counter.calls += 1
        return Response("posted")

    app.include_router(router)
    return app


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app, raise_server_exceptions=False)


class TestCachedPageRoute:
    """Test hit and miss behavior."""

    def test_miss_renders_and_stores(
        self, client: TestClient, cache: PageCache, counter: Counter
    ) -> None:
        """The first request runs the handler and fills the cache."""
        response = client.get("/page")

        assert response.status_code == 200
        assert response.headers[CACHE_STATUS_HEADER] == "miss"
        assert counter.calls == 1
        stored = cache.get("/page")
        assert stored is not None
        assert stored.body == b"<p>render 1</p>"
        assert stored.content_type.startswith("text/html")

    def test_hit_skips_handler(self, client: TestClient, counter: Counter) -> None:
        """A cached page is served without running the handler again."""
        first = client.get("/page")
        second = client.get("/page")

        assert counter.calls == 1
        assert second.headers[CACHE_STATUS_HEADER] == "hit"
        assert second.content == first.content
        assert second.headers["content-type"].startswith("text/html")

    def test_preloaded_entry_is_served(
        self, client: TestClient, cache: PageCache, counter: Counter
    ) -> None:
        """Whatever is stored under the key is returned verbatim."""
        cache.put("/page", CacheEntry(key="/page", body=b"cached", content_type="text/plain"))

        response = client.get("/page")

        assert response.text == "cached"
        assert counter.calls == 0

    def test_invalidation_forces_render(
        self, client: TestClient, cache: PageCache, counter: Counter
    ) -> None:
        """After invalidation the next request renders fresh content."""
        client.get("/page")
        cache.invalidate("/page")

        response = client.get("/page")

        assert counter.calls == 2
        assert response.text == "<p>render 2</p>"

    def test_trailing_slash_shares_entry(self, client: TestClient, counter: Counter) -> None:
        """Requests differing only by a trailing slash hit the same entry."""
        client.get("/page")
        response = client.get("/page/", follow_redirects=True)

        assert response.text == "<p>render 1</p>"
        assert counter.calls == 1


class TestUncachedOutcomes:
    """Test responses that must never be stored."""

    def test_http_error_not_cached(
        self, client: TestClient, cache: PageCache, counter: Counter
    ) -> None:
        """A 404 is rendered each time and never stored."""
        assert client.get("/missing").status_code == 404
        assert client.get("/missing").status_code == 404

        assert counter.calls == 2
        assert len(cache) == 0

    def test_handler_failure_writes_nothing(
        self, client: TestClient, cache: PageCache, counter: Counter
    ) -> None:
        """An exception propagates and leaves the cache untouched."""
        response = client.get("/boom")

        assert response.status_code == 500
        assert "/boom" not in cache

    def test_redirect_not_cached(self, client: TestClient, cache: PageCache) -> None:
        client.get("/moved", follow_redirects=False)
        assert "/moved" not in cache

    def test_post_bypasses_cache(
        self, client: TestClient, cache: PageCache, counter: Counter
    ) -> None:
        """Non-GET requests always reach the handler."""
        client.get("/page")
        response = client.post("/page")

        assert response.text == "posted"
        assert CACHE_STATUS_HEADER not in response.headers
        assert counter.calls == 2

    def test_no_cache_on_app_runs_handler(self, app: FastAPI, counter: Counter) -> None:
        """Without a page cache on app state every request renders."""
        app.state.page_cache = None
        client = TestClient(app)

        client.get("/page")
        client.get("/page")

        assert counter.calls == 2
