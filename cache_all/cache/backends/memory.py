"""
cache-all — Memory Cache Backend

In-process cache implementation with TTL support.
Values go through the same JSON codec as the file backend, so callers get
independent copies back and unserializable values fail the same way.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from ..codec import CacheRecord, build_record
from ..interface import CacheEntry, CacheInterface, Pattern, compile_pattern

if TYPE_CHECKING:
    from ...config import CacheConfig

logger = logging.getLogger(__name__)


class MemoryCacheBackend(CacheInterface):
    """
    In-memory cache backend.

    Features:
    - Per-key TTL support with lazy expiration
    - O(1) get/set/remove operations
    - No size bound; entries live until they expire or are removed
    """

    backend_name = "memory"

    def __init__(self) -> None:
        super().__init__()
        # Cache storage: key -> record
        self._cache: dict[str, CacheRecord] = {}

    def _live_record(self, key: str) -> CacheRecord | None:
        record = self._cache.get(key)
        if record is None:
            return None
        if record.is_expired():
            # Remove expired entry
            del self._cache[key]
            self._deletes += 1
            return None
        return record

    async def init(self, config: CacheConfig) -> None:
        """Start from an empty map."""
        self._cache = {}
        self._initialized = True
        logger.debug("Memory cache backend initialized")

    async def set(self, key: str, value: Any, ttl: int) -> Any:
        """Store value in cache."""
        self._ensure_initialized()
        self._validate_set(key, value, ttl)

        self._cache[key] = build_record(value, ttl)
        self._sets += 1
        return value

    async def get(self, key: str) -> Any | None:
        """Retrieve value from cache."""
        self._ensure_initialized()

        record = self._live_record(key)
        if record is None:
            self._misses += 1
            return None

        self._hits += 1
        return record.decode()

    async def has(self, key: str) -> bool:
        """Check if key exists and is not expired."""
        self._ensure_initialized()
        return self._live_record(key) is not None

    async def remove(self, key: str) -> bool:
        """Delete key from cache."""
        self._ensure_initialized()
        if self._cache.pop(key, None) is not None:
            self._deletes += 1
        return True

    async def remove_by_pattern(self, pattern: Pattern) -> int:
        """Delete every key matching ``pattern``."""
        self._ensure_initialized()
        regex = compile_pattern(pattern)

        matches = [key for key in self._cache if regex.search(key)]
        for key in matches:
            del self._cache[key]

        self._deletes += len(matches)
        logger.debug(f"Removed {len(matches)} memory cache entries matching {regex.pattern!r}")
        return len(matches)

    async def clear(self) -> bool:
        """Clear all entries from cache."""
        self._ensure_initialized()
        size = len(self._cache)
        self._cache.clear()
        self._deletes += size
        logger.info(f"Cleared {size} entries from memory cache")
        return True

    async def get_all(self) -> list[CacheEntry]:
        """Read every stored key through get()."""
        self._ensure_initialized()
        return [CacheEntry(key=key, value=await self.get(key)) for key in list(self._cache)]

    async def get_stats(self) -> dict[str, Any]:
        stats = await super().get_stats()
        stats["size"] = len(self._cache)
        return stats

    async def close(self) -> None:
        """Drop all entries."""
        await super().close()
        self._cache.clear()
        logger.debug("Memory cache backend closed")
