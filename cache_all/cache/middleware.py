"""
cache-all — HTTP Response Caching Middleware

Starlette-compatible interceptor that caches successful GET responses.

Usage:
    from starlette.applications import Starlette
    from starlette.middleware import Middleware
    from starlette.middleware.base import BaseHTTPMiddleware

    app = Starlette(
        routes=routes,
        middleware=[Middleware(BaseHTTPMiddleware, dispatch=cache.middleware(60, "api"))],
    )

Responses carry ``X-Cache: HIT`` when served from the cache and
``X-Cache: MISS`` when produced by the downstream handler.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from starlette.requests import Request
from starlette.responses import Response

from ..errors import CacheAllError

if TYPE_CHECKING:
    from .facade import Cache

logger = logging.getLogger(__name__)

CACHE_HEADER = "X-Cache"
CACHEABLE_METHODS = frozenset({"GET"})

CallNext = Callable[[Request], Awaitable[Response]]


def build_cache_key(request: Request, prefix: str = "") -> str:
    """Derive the cache key from the prefix, path and query string."""
    target = request.url.path
    if request.url.query:
        target = f"{target}?{request.url.query}"
    return f"{prefix}:{target}" if prefix else target


def _cached_response(payload: dict[str, Any]) -> Response:
    response = Response(
        content=payload["body"],
        status_code=payload.get("status_code", 200),
        media_type=payload.get("media_type"),
    )
    response.headers[CACHE_HEADER] = "HIT"
    return response


async def _buffer_response(response: Response) -> bytes:
    # call_next hands back a streaming response; drain it so it can be stored and replayed
    body_iterator = getattr(response, "body_iterator", None)
    if body_iterator is None:
        return bytes(response.body)
    chunks = [chunk if isinstance(chunk, bytes) else chunk.encode("utf-8") async for chunk in body_iterator]
    return b"".join(chunks)


def _replay_response(response: Response, body: bytes) -> Response:
    """Rebuild a drained response, keeping every downstream header (repeated ones included)."""
    fresh = Response(content=body, status_code=response.status_code, background=response.background)
    length = [(name, value) for name, value in fresh.raw_headers if name == b"content-length"]
    fresh.raw_headers = [(name, value) for name, value in response.raw_headers if name != b"content-length"] + length
    return fresh


def cache_middleware(cache: Cache, ttl: int | None = None, prefix: str = "") -> Callable[[Request, CallNext], Awaitable[Response]]:
    """
    Create a dispatch function caching GET responses in ``cache``.

    Args:
        cache: Initialized Cache facade
        ttl: Seconds to keep responses (cache default when None)
        prefix: Key prefix for this group of routes

    Returns:
        ``async def dispatch(request, call_next) -> Response``
    """

    async def dispatch(request: Request, call_next: CallNext) -> Response:
        if request.method not in CACHEABLE_METHODS:
            return await call_next(request)

        key = build_cache_key(request, prefix)

        try:
            cached = await cache.get(key)
        except CacheAllError as e:
            logger.warning(
                f"Cache lookup failed for '{key}', serving uncached: {e}",
                extra={"key": key, "error": str(e)},
                exc_info=True,
            )
            cached = None

        if isinstance(cached, dict) and "body" in cached:
            logger.debug(f"Serving '{key}' from cache", extra={"key": key})
            return _cached_response(cached)

        response = await call_next(request)
        body = await _buffer_response(response)

        fresh = _replay_response(response, body)
        fresh.headers[CACHE_HEADER] = "MISS"

        if 200 <= response.status_code < 300:
            try:
                text = body.decode("utf-8")
            except UnicodeDecodeError:
                logger.debug(f"Response for '{key}' is not UTF-8, not caching", extra={"key": key})
                return fresh

            payload = {
                "status_code": response.status_code,
                "media_type": response.headers.get("content-type"),
                "body": text,
            }
            try:
                await cache.set(key, payload, ttl)
            except CacheAllError as e:
                logger.warning(
                    f"Failed to cache response for '{key}': {e}",
                    extra={"key": key, "error": str(e)},
                    exc_info=True,
                )

        return fresh

    return dispatch
