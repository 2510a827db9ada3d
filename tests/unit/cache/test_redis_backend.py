"""
cache-all — Redis Cache Backend Tests

The first suite runs against an injected mock client and always runs.
The second suite requires a Redis server on localhost:6379 (or TEST_REDIS_URL)
and is skipped otherwise.
"""

import asyncio
import socket
from collections.abc import AsyncGenerator, AsyncIterator
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from cache_all.cache.backends.redis import RedisCacheBackend
from cache_all.cache.interface import CacheEntry
from cache_all.config import CacheConfig
from cache_all.errors import CacheConnectionError, CacheIOError, ValidationError


def _redis_reachable() -> bool:
    try:
        with socket.create_connection(("localhost", 6379), timeout=1):
            return True
    except OSError:
        return False


redis_available = pytest.mark.skipif(not _redis_reachable(), reason="Redis server not available")


def make_config(**redis: Any) -> CacheConfig:
    return CacheConfig(backend="redis", namespace="test", redis=redis)


def scan_results(*keys: str) -> MagicMock:
    async def _iter(*args: Any, **kwargs: Any) -> AsyncIterator[str]:
        for key in keys:
            yield key

    return MagicMock(side_effect=_iter)


class TestRedisCacheBackendWithMockClient:
    """Command mapping checked against a mock client."""

    @pytest.fixture
    def client(self) -> AsyncMock:
        client = AsyncMock()
        client.ping.return_value = True
        return client

    @pytest.fixture
    async def cache(self, client: AsyncMock) -> RedisCacheBackend:
        backend = RedisCacheBackend(client=client)
        await backend.init(make_config())
        return backend

    async def test_init_pings(self, cache: RedisCacheBackend, client: AsyncMock) -> None:
        client.ping.assert_awaited()
        assert cache.namespace == "test"
        assert cache.initialized is True

    async def test_init_connection_failure(self, client: AsyncMock) -> None:
        client.ping.side_effect = RedisConnectionError("refused")
        backend = RedisCacheBackend(client=client)

        with pytest.raises(CacheConnectionError):
            await backend.init(make_config())
        assert backend.initialized is False

    async def test_set_uses_namespace_and_ttl(self, cache: RedisCacheBackend, client: AsyncMock) -> None:
        assert await cache.set("foo1", {"bar": "baz"}, ttl=90) == {"bar": "baz"}

        client.set.assert_awaited_once_with(name="test:foo1", value='{"bar":"baz"}', ex=90)

    async def test_set_validates(self, cache: RedisCacheBackend, client: AsyncMock) -> None:
        with pytest.raises(ValidationError):
            await cache.set("foo", None, ttl=60)
        client.set.assert_not_awaited()

    async def test_get_decodes_json(self, cache: RedisCacheBackend, client: AsyncMock) -> None:
        client.get.return_value = '{"bar":"baz"}'

        assert await cache.get("foo1") == {"bar": "baz"}
        client.get.assert_awaited_once_with("test:foo1")

    async def test_get_missing(self, cache: RedisCacheBackend, client: AsyncMock) -> None:
        client.get.return_value = None

        assert await cache.get("nope") is None

    async def test_command_failure_becomes_io_error(self, cache: RedisCacheBackend, client: AsyncMock) -> None:
        client.get.side_effect = RedisConnectionError("gone")

        with pytest.raises(CacheIOError):
            await cache.get("foo")

    async def test_has(self, cache: RedisCacheBackend, client: AsyncMock) -> None:
        client.exists.return_value = 1
        assert await cache.has("foo") is True

        client.exists.return_value = 0
        assert await cache.has("foo") is False

    async def test_remove(self, cache: RedisCacheBackend, client: AsyncMock) -> None:
        client.delete.return_value = 0

        assert await cache.remove("never-set") is True
        client.delete.assert_awaited_once_with("test:never-set")

    async def test_remove_by_pattern_filters_unprefixed_keys(
        self, cache: RedisCacheBackend, client: AsyncMock
    ) -> None:
        client.scan_iter = scan_results("test:other_foo", "test:pattern_foo", "test:pattern_foo2")
        client.delete.return_value = 2

        assert await cache.remove_by_pattern("^pattern") == 2
        client.delete.assert_awaited_once_with("test:pattern_foo", "test:pattern_foo2")

    async def test_clear_deletes_namespace(self, cache: RedisCacheBackend, client: AsyncMock) -> None:
        client.scan_iter = scan_results("test:a", "test:b")
        client.delete.return_value = 2

        assert await cache.clear() is True
        client.scan_iter.assert_called_once_with(match="test:*", count=1000)
        client.delete.assert_awaited_once_with("test:a", "test:b")

    async def test_get_all(self, cache: RedisCacheBackend, client: AsyncMock) -> None:
        client.scan_iter = scan_results("test:foo", "test:gone")
        client.mget.return_value = ['"bar"', None]

        assert await cache.get_all() == [
            CacheEntry(key="foo", value="bar"),
            CacheEntry(key="gone", value=None),
        ]

    async def test_injected_client_not_closed(self, cache: RedisCacheBackend, client: AsyncMock) -> None:
        await cache.close()

        client.aclose.assert_not_awaited()
        assert cache.initialized is False


@redis_available
class TestRedisCacheBackend:
    """Test suite for RedisCacheBackend against a live server."""

    @pytest.fixture
    async def cache(self, test_redis_url: str) -> AsyncGenerator[RedisCacheBackend, None]:
        """Create a fresh Redis cache instance for each test."""
        backend = RedisCacheBackend()
        await backend.init(make_config(url=test_redis_url, max_connections=5, socket_timeout=2))
        # Clear any existing data
        await backend.clear()
        yield backend
        # Cleanup after test
        await backend.clear()
        await backend.close()

    async def test_set_and_get(self, cache: RedisCacheBackend) -> None:
        await cache.set("foo", "bar", ttl=60)
        await cache.set("foo1", {"bar": "baz"}, ttl=60)

        assert await cache.get("foo") == "bar"
        assert await cache.get("foo1") == {"bar": "baz"}
        assert await cache.has("foo") is True

    async def test_get_nonexistent_key(self, cache: RedisCacheBackend) -> None:
        assert await cache.get("nonexistent") is None
        assert await cache.has("nonexistent") is False

    async def test_ttl_expiration(self, cache: RedisCacheBackend) -> None:
        await cache.set("key1", "value1", ttl=1)
        assert await cache.get("key1") == "value1"

        # Wait for expiration (2.0s to ensure TTL=1s is fully expired)
        await asyncio.sleep(2.0)

        assert await cache.get("key1") is None
        assert await cache.has("key1") is False

    async def test_remove(self, cache: RedisCacheBackend) -> None:
        await cache.set("foo", "bar", ttl=60)

        assert await cache.remove("foo") is True
        assert await cache.remove("foo") is True
        assert await cache.get("foo") is None

    async def test_remove_by_pattern(self, cache: RedisCacheBackend) -> None:
        await cache.set("other_foo", "bar", ttl=60)
        await cache.set("pattern_foo", "bar", ttl=60)
        await cache.set("pattern_foo2", "bar", ttl=60)
        await cache.set("pattern_foo3", "bar", ttl=60)

        assert await cache.remove_by_pattern("pattern") == 3

        assert await cache.get("pattern_foo") is None
        assert await cache.get("pattern_foo2") is None
        assert await cache.get("pattern_foo3") is None
        assert await cache.get("other_foo") == "bar"

    async def test_clear_and_get_all(self, cache: RedisCacheBackend) -> None:
        await cache.set("foo", "bar", ttl=60)
        assert await cache.get_all() == [CacheEntry(key="foo", value="bar")]

        assert await cache.clear() is True
        assert await cache.clear() is True
        assert await cache.get_all() == []

    async def test_namespace_isolation(self, cache: RedisCacheBackend, test_redis_url: str) -> None:
        other = RedisCacheBackend()
        await other.init(CacheConfig(backend="redis", namespace="other", redis={"url": test_redis_url}))
        try:
            await cache.set("shared", "mine", ttl=60)
            await other.set("shared", "theirs", ttl=60)

            await cache.clear()

            assert await other.get("shared") == "theirs"
        finally:
            await other.clear()
            await other.close()

    async def test_get_stats(self, cache: RedisCacheBackend) -> None:
        stats = await cache.get_stats()

        assert stats["backend"] == "redis"
        assert stats["namespace"] == "test"
        assert stats["connected"] is True
