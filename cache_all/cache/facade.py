"""
cache-all — Cache Facade

The object applications hold on to. Wraps one active backend, applies the
enable/disable gate and the default TTL, and normalizes results:

- set/remove/remove_by_pattern/clear -> CacheStatus(status=1) when executed
- get/get_all/has -> raw values

When the facade was never initialized, or ``is_enable`` is false, every call
short-circuits without touching a backend: mutators return
CacheStatus(status=0), get returns None, has returns False and get_all
returns an empty list.

Usage:
    cache = Cache()
    await cache.init({"backend": "file", "ttl": 60, "file": {"path": "./storage/cache"}})
    await cache.set("foo", {"bar": "baz"})
    value = await cache.get("foo")
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from ..config import CacheConfig
from .interface import CacheEntry, CacheInterface, Pattern

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheStatus:
    """Outcome of a mutating call: 0 = disabled/no-op, 1 = executed."""

    status: int

    @property
    def executed(self) -> bool:
        return self.status == 1


DISABLED = CacheStatus(status=0)
EXECUTED = CacheStatus(status=1)


class Cache:
    """
    Cache facade over a single backend.

    Re-running init() builds a fresh backend from the new config and swaps it
    in wholesale; the previous backend is closed afterwards.
    """

    def __init__(
        self,
        config: CacheConfig | dict[str, Any] | None = None,
        backend: CacheInterface | None = None,
    ) -> None:
        """
        Args:
            config: Configuration used by init() when called without arguments
            backend: Pre-built backend to use instead of one chosen from config
        """
        self._pending_config = config
        self._injected_backend = backend
        self._config: CacheConfig | None = None
        self._backend: CacheInterface | None = None

    @property
    def config(self) -> CacheConfig | None:
        return self._config

    @property
    def backend(self) -> CacheInterface | None:
        return self._backend

    @property
    def is_enabled(self) -> bool:
        return self._backend is not None and self._config is not None and self._config.is_enable

    async def init(self, config: CacheConfig | dict[str, Any] | None = None) -> None:
        """
        Validate config and (re)build the backend.

        Args:
            config: CacheConfig, dict (snake_case or camelCase) or None for the constructor config

        Raises:
            ConfigurationError: If config does not validate or the backend cannot be created
            CacheIOError / CacheConnectionError: If storage cannot be prepared
        """
        if config is None:
            config = self._pending_config
        new_config = CacheConfig.from_any(config)

        previous = self._backend
        if not new_config.is_enable:
            self._config = new_config
            self._backend = None
            logger.info("Cache disabled by configuration; all calls are no-ops")
        else:
            if self._injected_backend is not None:
                new_backend = self._injected_backend
            else:
                from .factory import create_backend

                new_backend = create_backend(new_config)
            await new_backend.init(new_config)
            self._config = new_config
            self._backend = new_backend
            logger.info(
                f"Cache initialized with backend: {new_backend.backend_name}",
                extra={"backend": new_backend.backend_name, "ttl": new_config.ttl},
            )

        if previous is not None and previous is not self._backend:
            await previous.close()

    async def set(self, key: str, value: Any, ttl: int | None = None) -> CacheStatus:
        """Store ``value`` for ``ttl`` seconds (config default when None)."""
        if not self.is_enabled:
            return DISABLED
        assert self._backend is not None and self._config is not None
        await self._backend.set(key, value, self._config.ttl if ttl is None else ttl)
        return EXECUTED

    async def get(self, key: str) -> Any | None:
        if not self.is_enabled:
            return None
        assert self._backend is not None
        return await self._backend.get(key)

    async def has(self, key: str) -> bool:
        if not self.is_enabled:
            return False
        assert self._backend is not None
        return await self._backend.has(key)

    async def get_all(self) -> list[CacheEntry]:
        if not self.is_enabled:
            return []
        assert self._backend is not None
        return await self._backend.get_all()

    async def remove(self, key: str) -> CacheStatus:
        if not self.is_enabled:
            return DISABLED
        assert self._backend is not None
        await self._backend.remove(key)
        return EXECUTED

    async def remove_by_pattern(self, pattern: Pattern) -> CacheStatus:
        if not self.is_enabled:
            return DISABLED
        assert self._backend is not None
        await self._backend.remove_by_pattern(pattern)
        return EXECUTED

    async def clear(self) -> CacheStatus:
        if not self.is_enabled:
            return DISABLED
        assert self._backend is not None
        await self._backend.clear()
        return EXECUTED

    async def get_stats(self) -> dict[str, Any]:
        if self._backend is None:
            return {"backend": None, "enabled": False}
        stats = await self._backend.get_stats()
        stats["enabled"] = self.is_enabled
        return stats

    async def close(self) -> None:
        """Close the active backend; the facade behaves as uninitialized afterwards."""
        backend, self._backend = self._backend, None
        if backend is not None:
            await backend.close()

    def middleware(self, ttl: int | None = None, prefix: str = "") -> Callable[..., Awaitable[Any]]:
        """
        Build an HTTP interceptor that serves GET responses from this cache.

        Args:
            ttl: Seconds to keep responses (config default when None)
            prefix: Key prefix distinguishing this route group

        Returns:
            ``async def dispatch(request, call_next)`` for Starlette's BaseHTTPMiddleware
        """
        from .middleware import cache_middleware

        return cache_middleware(self, ttl, prefix)
