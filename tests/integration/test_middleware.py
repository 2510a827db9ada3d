"""
cache-all — HTTP Middleware Integration Tests

Runs a small Starlette app through httpx's ASGI transport with the cache
middleware installed.
"""

from collections.abc import AsyncGenerator
from typing import Any
from unittest.mock import AsyncMock

import httpx
import pytest
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse
from starlette.routing import Route

from cache_all.cache import Cache
from cache_all.cache.middleware import CACHE_HEADER, build_cache_key
from cache_all.errors import CacheIOError

pytestmark = pytest.mark.integration


def build_app(cache: Cache, calls: list[str]) -> Starlette:
    async def items(request: Request) -> JSONResponse:
        calls.append(request.url.path)
        return JSONResponse({"items": [1, 2, 3], "page": request.query_params.get("page", "1")})

    async def greeting(request: Request) -> PlainTextResponse:
        calls.append(request.url.path)
        return PlainTextResponse("héllo")

    async def missing(request: Request) -> JSONResponse:
        calls.append(request.url.path)
        return JSONResponse({"error": "not found"}, status_code=404)

    async def session(request: Request) -> JSONResponse:
        calls.append(request.url.path)
        response = JSONResponse({"ok": True}, status_code=int(request.query_params.get("status", "200")))
        response.set_cookie("a", "1")
        response.set_cookie("b", "2")
        return response

    async def create(request: Request) -> JSONResponse:
        calls.append(request.url.path)
        return JSONResponse({"created": True}, status_code=201)

    return Starlette(
        routes=[
            Route("/items", items),
            Route("/greeting", greeting),
            Route("/missing", missing),
            Route("/session", session),
            Route("/create", create, methods=["POST"]),
        ],
        middleware=[Middleware(BaseHTTPMiddleware, dispatch=cache.middleware(60, "api"))],
    )


class TestCacheMiddleware:
    @pytest.fixture
    async def cache(self) -> AsyncGenerator[Cache, None]:
        facade = Cache()
        await facade.init({"backend": "memory"})
        yield facade
        await facade.close()

    @pytest.fixture
    def calls(self) -> list[str]:
        return []

    @pytest.fixture
    async def client(self, cache: Cache, calls: list[str]) -> AsyncGenerator[httpx.AsyncClient, None]:
        transport = httpx.ASGITransport(app=build_app(cache, calls))
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            yield client

    async def test_miss_then_hit(self, client: httpx.AsyncClient, calls: list[str]) -> None:
        first = await client.get("/items")
        second = await client.get("/items")

        assert first.headers[CACHE_HEADER] == "MISS"
        assert second.headers[CACHE_HEADER] == "HIT"
        assert first.json() == second.json() == {"items": [1, 2, 3], "page": "1"}
        assert second.headers["content-type"] == "application/json"
        assert calls == ["/items"]

    async def test_query_string_is_part_of_key(self, client: httpx.AsyncClient, calls: list[str]) -> None:
        await client.get("/items?page=1")
        response = await client.get("/items?page=2")

        assert response.headers[CACHE_HEADER] == "MISS"
        assert response.json()["page"] == "2"
        assert len(calls) == 2

    async def test_stored_under_prefixed_key(self, client: httpx.AsyncClient, cache: Cache) -> None:
        await client.get("/greeting")

        stored = await cache.get("api:/greeting")

        assert stored["body"] == "héllo"
        assert stored["status_code"] == 200
        assert stored["media_type"].startswith("text/plain")

    async def test_text_hit_keeps_body(self, client: httpx.AsyncClient) -> None:
        await client.get("/greeting")
        response = await client.get("/greeting")

        assert response.headers[CACHE_HEADER] == "HIT"
        assert response.text == "héllo"

    async def test_errors_not_cached(self, client: httpx.AsyncClient, calls: list[str]) -> None:
        await client.get("/missing")
        response = await client.get("/missing")

        assert response.status_code == 404
        assert response.headers[CACHE_HEADER] == "MISS"
        assert calls == ["/missing", "/missing"]

    @pytest.mark.parametrize("status", [200, 404])
    async def test_miss_keeps_repeated_headers(self, client: httpx.AsyncClient, status: int) -> None:
        response = await client.get(f"/session?status={status}")

        assert response.status_code == status
        assert response.headers[CACHE_HEADER] == "MISS"
        cookies = response.headers.get_list("set-cookie")
        assert [c.split(";")[0] for c in cookies] == ["a=1", "b=2"]
        assert response.headers["content-length"] == str(len(response.content))

    async def test_post_passes_through(self, client: httpx.AsyncClient, cache: Cache, calls: list[str]) -> None:
        await client.post("/create")
        response = await client.post("/create")

        assert response.status_code == 201
        assert CACHE_HEADER not in response.headers
        assert calls == ["/create", "/create"]
        assert await cache.get_all() == []

    async def test_remove_invalidates(self, client: httpx.AsyncClient, cache: Cache, calls: list[str]) -> None:
        await client.get("/items")
        await cache.remove_by_pattern("^api:/items")

        response = await client.get("/items")

        assert response.headers[CACHE_HEADER] == "MISS"
        assert len(calls) == 2

    async def test_disabled_cache_passes_through(self, calls: list[str]) -> None:
        cache = Cache()
        await cache.init({"isEnable": False})
        transport = httpx.ASGITransport(app=build_app(cache, calls))

        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            await client.get("/items")
            response = await client.get("/items")

        assert response.headers[CACHE_HEADER] == "MISS"
        assert calls == ["/items", "/items"]

    async def test_cache_failures_fall_through(self, calls: list[str]) -> None:
        cache = AsyncMock(spec=Cache)
        cache.get.side_effect = CacheIOError("disk gone")
        cache.set.side_effect = CacheIOError("disk gone")
        dispatch = Cache.middleware(cache, 60, "api")
        app = Starlette(
            routes=[Route("/items", lambda request: JSONResponse({"ok": True}))],
            middleware=[Middleware(BaseHTTPMiddleware, dispatch=dispatch)],
        )
        transport = httpx.ASGITransport(app=app)

        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/items")

        assert response.status_code == 200
        assert response.json() == {"ok": True}
        cache.set.assert_awaited_once()


class TestBuildCacheKey:
    @pytest.mark.parametrize(
        ("scope", "prefix", "expected"),
        [
            ({"path": "/items", "query_string": b""}, "api", "api:/items"),
            ({"path": "/items", "query_string": b"page=2"}, "api", "api:/items?page=2"),
            ({"path": "/items", "query_string": b""}, "", "/items"),
        ],
    )
    def test_build_cache_key(self, scope: dict[str, Any], prefix: str, expected: str) -> None:
        request = Request({"type": "http", "method": "GET", "headers": [], **scope})

        assert build_cache_key(request, prefix) == expected
