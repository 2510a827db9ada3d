"""
cache-all — Redis Cache Backend

Asynchronous Redis cache implementation with:
- JSON serialization for values
- Per-key TTL delegated to Redis (SET ... EX)
- Namespace prefixing for safe multi-tenant usage
- SCAN based pattern removal, clear and get_all

Requires: redis>=5.0 with asyncio support

Example:
    backend = RedisCacheBackend()
    await backend.init(CacheConfig(backend="redis", redis={"url": "redis://localhost:6379/0"}))
    await backend.set("greeting", {"msg": "hello"}, ttl=60)
    val = await backend.get("greeting")
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING, Any

from ...errors import CacheConnectionError, CacheIOError
from ..codec import deserialize_value, serialize_value
from ..interface import CacheEntry, CacheInterface, Pattern, compile_pattern

if TYPE_CHECKING:
    from ...config import CacheConfig

logger = logging.getLogger(__name__)

try:
    # redis-py asyncio client (v4+)
    from redis.asyncio import Redis
    from redis.exceptions import RedisError
except ImportError as e:  # pragma: no cover
    raise ImportError(
        "Redis async client is required but not installed. "
        "Install with: pip install 'redis>=5.0.0' or add 'redis' to your dependencies."
    ) from e

# Keys fetched/deleted per SCAN/DEL round-trip
BATCH_SIZE = 1000


class RedisCacheBackend(CacheInterface):
    """
    Redis cache backend with JSON serialization and TTL.

    Notes:
    - Keys are prefixed with the configured namespace to avoid collisions.
    - Values are stored as UTF-8 JSON strings.
    - Expiration is handled by Redis itself.
    - A pre-built client can be injected; it is then not closed by close().
    """

    backend_name = "redis"

    def __init__(self, client: Redis | None = None) -> None:
        super().__init__()
        self.namespace = "cache"
        self._client: Redis | None = client
        self._owns_client = client is None

    # ------------ Helpers ------------

    def _make_key(self, key: str) -> str:
        """Create namespaced key."""
        return f"{self.namespace}:{key}"

    def _strip_key(self, ns_key: str) -> str:
        return ns_key[len(self.namespace) + 1 :]

    @property
    def client(self) -> Redis:
        self._ensure_initialized()
        assert self._client is not None
        return self._client

    @staticmethod
    def _build_client(config: CacheConfig) -> Redis:
        settings = config.redis
        if settings.url:
            return Redis.from_url(  # type: ignore[call-overload]
                url=settings.url,
                decode_responses=True,
                max_connections=settings.max_connections,
                socket_timeout=settings.socket_timeout,
            )
        return Redis(
            host=settings.host,
            port=settings.port,
            db=settings.database,
            password=settings.password,
            decode_responses=True,
            max_connections=settings.max_connections,
            socket_timeout=settings.socket_timeout,
        )

    def _io_error(self, action: str, e: Exception, **context: Any) -> CacheIOError:
        logger.error(
            f"Failed to {action} in Redis: {e}",
            extra={"namespace": self.namespace, "error": str(e), **context},
            exc_info=True,
        )
        return CacheIOError(
            f"Failed to {action} in Redis: {e}",
            details={"namespace": self.namespace, "error": str(e), **context},
        )

    async def _scan_keys(self) -> AsyncIterator[str]:
        """Yield every namespaced key in this backend's namespace."""
        async for ns_key in self.client.scan_iter(match=f"{self.namespace}:*", count=BATCH_SIZE):
            yield ns_key

    async def _delete(self, ns_keys: list[str]) -> int:
        deleted = 0
        for i in range(0, len(ns_keys), BATCH_SIZE):
            deleted += int(await self.client.delete(*ns_keys[i : i + BATCH_SIZE]))
        self._deletes += deleted
        return deleted

    # ------------ Core Interface ------------

    async def init(self, config: CacheConfig) -> None:
        """Connect (or reconnect) and verify the server answers PING."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

        self._initialized = False
        self.namespace = config.namespace
        if self._client is None:
            self._client = self._build_client(config)

        try:
            await self._client.ping()
        except (RedisError, OSError) as e:
            logger.error(
                f"Failed to connect to Redis: {e}",
                extra={"namespace": self.namespace, "error": str(e)},
                exc_info=True,
            )
            raise CacheConnectionError("redis", details={"error": str(e)}) from e

        self._initialized = True
        logger.info(f"Redis cache initialized for namespace '{self.namespace}'")

    async def set(self, key: str, value: Any, ttl: int) -> Any:
        """Store a value with TTL."""
        self._ensure_initialized()
        self._validate_set(key, value, ttl)
        payload = serialize_value(value)

        try:
            await self.client.set(name=self._make_key(key), value=payload, ex=ttl)
        except RedisError as e:
            raise self._io_error("set key", e, key=key, ttl=ttl) from e

        self._sets += 1
        return value

    async def get(self, key: str) -> Any | None:
        """Retrieve a value by key."""
        self._ensure_initialized()
        try:
            data = await self.client.get(self._make_key(key))
        except RedisError as e:
            raise self._io_error("get key", e, key=key) from e

        if data is None:
            self._misses += 1
            return None

        self._hits += 1
        return deserialize_value(data)

    async def has(self, key: str) -> bool:
        """Check if a key exists."""
        self._ensure_initialized()
        try:
            return bool(await self.client.exists(self._make_key(key)))
        except RedisError as e:
            raise self._io_error("check key", e, key=key) from e

    async def remove(self, key: str) -> bool:
        """Delete a single key."""
        self._ensure_initialized()
        try:
            await self._delete([self._make_key(key)])
        except RedisError as e:
            raise self._io_error("delete key", e, key=key) from e
        return True

    async def remove_by_pattern(self, pattern: Pattern) -> int:
        """SCAN the namespace and DEL keys whose un-prefixed name matches ``pattern``."""
        self._ensure_initialized()
        regex = compile_pattern(pattern)

        try:
            matches = [ns_key async for ns_key in self._scan_keys() if regex.search(self._strip_key(ns_key))]
            removed = await self._delete(matches) if matches else 0
        except RedisError as e:
            raise self._io_error("remove keys by pattern", e, pattern=regex.pattern) from e

        logger.info(f"Removed {removed} key(s) matching {regex.pattern!r} from namespace '{self.namespace}'")
        return removed

    async def clear(self) -> bool:
        """
        Clear all entries under the namespace.

        Implementation: SCAN match "<namespace>:*" and DEL in batches.
        """
        self._ensure_initialized()
        try:
            keys = [ns_key async for ns_key in self._scan_keys()]
            total_deleted = await self._delete(keys) if keys else 0
        except RedisError as e:
            raise self._io_error("clear namespace", e) from e

        logger.info(f"Cleared {total_deleted} keys from namespace '{self.namespace}'")
        return True

    async def get_all(self) -> list[CacheEntry]:
        """Fetch every key in the namespace with MGET."""
        self._ensure_initialized()
        try:
            ns_keys = [ns_key async for ns_key in self._scan_keys()]
            if not ns_keys:
                return []
            values = await self.client.mget(ns_keys)
        except RedisError as e:
            raise self._io_error("read all keys", e) from e

        entries = []
        # mget preserves order; keys that expired between SCAN and MGET come back as None
        for ns_key, raw in zip(ns_keys, values, strict=True):
            value = None if raw is None else deserialize_value(raw)
            entries.append(CacheEntry(key=self._strip_key(ns_key), value=value))
        return entries

    async def get_stats(self) -> dict[str, Any]:
        """Return cache statistics and basic Redis info."""
        stats = await super().get_stats()
        stats["namespace"] = self.namespace
        stats["connected"] = False

        if not self._initialized:
            return stats

        try:
            # PING to check connectivity
            stats["connected"] = bool(await self.client.ping())
            info = await self.client.info(section="server")
            stats["redis_version"] = info.get("redis_version")
        except RedisError as e:
            # If INFO is restricted or fails, keep minimal stats
            logger.warning(f"Failed to get Redis INFO (restricted or unavailable): {e}", extra={"error": str(e)})

        return stats

    async def close(self) -> None:
        """Close the Redis client and release resources."""
        await super().close()
        if self._client is None or not self._owns_client:
            return

        try:
            await self._client.aclose()
            logger.info(f"Closed Redis cache backend for namespace '{self.namespace}'")
        except (RedisError, OSError) as e:
            logger.error(
                f"Error closing Redis client: {e}", extra={"namespace": self.namespace, "error": str(e)}, exc_info=True
            )
        finally:
            self._client = None
