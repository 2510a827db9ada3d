"""
cache-all — Cache Interface

Defines the abstract contract that all cache backends must implement.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ..errors import NotInitializedError, ValidationError

if TYPE_CHECKING:
    from ..config import CacheConfig

Pattern = str | re.Pattern[str]


@dataclass(frozen=True)
class CacheEntry:
    """One key/value pair returned by get_all()."""

    key: str
    value: Any


def compile_pattern(pattern: Pattern) -> re.Pattern[str]:
    """Compile a removal pattern; plain strings act as regular expressions."""
    if isinstance(pattern, re.Pattern):
        return pattern
    if not isinstance(pattern, str) or not pattern:
        raise ValidationError("Pattern must be a non-empty string or compiled regex", {"pattern": repr(pattern)})
    try:
        return re.compile(pattern)
    except re.error as e:
        raise ValidationError(f"Invalid pattern {pattern!r}: {e}", {"pattern": pattern}) from e


class CacheInterface(ABC):
    """
    Abstract base class for cache backends.

    All cache implementations must implement this interface to ensure
    consistent behavior across different backends (memory, file, Redis).
    Every operation is a single awaitable with one outcome: a result or an
    exception.
    """

    backend_name = "abstract"

    def __init__(self) -> None:
        self._initialized = False
        self._hits = 0
        self._misses = 0
        self._sets = 0
        self._deletes = 0

    @property
    def initialized(self) -> bool:
        return self._initialized

    def _ensure_initialized(self) -> None:
        if not self._initialized:
            raise NotInitializedError(self.backend_name)

    @staticmethod
    def _validate_set(key: str, value: Any, ttl: int) -> None:
        if not key:
            raise ValidationError("Cache key must not be empty")
        if value is None:
            raise ValidationError("Cannot cache a missing value", {"key": key})
        if isinstance(ttl, bool) or not isinstance(ttl, int) or ttl <= 0:
            raise ValidationError("TTL must be a positive number of seconds", {"key": key, "ttl": ttl})

    @abstractmethod
    async def init(self, config: CacheConfig) -> None:
        """
        Prepare storage and rebuild in-memory state.

        Safe to call repeatedly; every call fully replaces prior state.

        Args:
            config: Validated cache configuration
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: int) -> Any:
        """
        Store a value in the cache.

        Args:
            key: Cache key
            value: Value to cache (must be JSON serializable, not None)
            ttl: Time-to-live in seconds

        Returns:
            The original value

        Raises:
            ValidationError: If value is None or ttl is not positive
            SerializationError: If value cannot be serialized
        """
        pass

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """
        Retrieve a value from the cache.

        Args:
            key: Cache key

        Returns:
            Cached value if found and not expired, None otherwise

        Raises:
            DeserializationError: If the stored record is corrupt
        """
        pass

    @abstractmethod
    async def has(self, key: str) -> bool:
        """
        Check if a key exists and is not expired, without decoding its value.

        Args:
            key: Cache key to check

        Returns:
            True if get() would return a value, False otherwise
        """
        pass

    @abstractmethod
    async def remove(self, key: str) -> bool:
        """
        Delete a key from the cache. Removing an absent key is not an error.

        Args:
            key: Cache key to delete

        Returns:
            True once the key is gone
        """
        pass

    @abstractmethod
    async def remove_by_pattern(self, pattern: Pattern) -> int:
        """
        Delete every entry whose stored identifier matches ``pattern``.

        Args:
            pattern: Regular expression (string or compiled), searched anywhere in the identifier

        Returns:
            Number of entries removed
        """
        pass

    @abstractmethod
    async def clear(self) -> bool:
        """
        Clear all entries from the cache.

        Returns:
            True if cache was cleared successfully
        """
        pass

    @abstractmethod
    async def get_all(self) -> list[CacheEntry]:
        """
        Read every indexed entry through the same path as get().

        Returns:
            One CacheEntry per indexed key (value is None for entries that expired)
        """
        pass

    async def get_stats(self) -> dict[str, Any]:
        """
        Get cache statistics.

        Returns:
            Dictionary with cache statistics (hits, misses, size, etc.)
        """
        total_requests = self._hits + self._misses
        hit_rate = (self._hits / total_requests * 100) if total_requests > 0 else 0.0
        return {
            "backend": self.backend_name,
            "initialized": self._initialized,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round(hit_rate, 2),
            "sets": self._sets,
            "deletes": self._deletes,
        }

    async def close(self) -> None:
        """
        Close the cache backend and release resources.

        Should be called during graceful shutdown.
        """
        self._initialized = False
