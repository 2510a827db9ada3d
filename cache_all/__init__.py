"""
cache-all — Pluggable Key-Value Cache

One async contract (set, get, has, remove, remove_by_pattern, clear,
get_all, middleware) over memory, file and Redis backends.
"""

__version__ = "1.0.0"

from .cache import Cache, CacheEntry, CacheInterface, CacheStatus, create_cache, get_cache
from .config import CacheBackend, CacheConfig
from .errors import (
    CacheAllError,
    CacheError,
    CacheIOError,
    ConfigurationError,
    DeserializationError,
    NotInitializedError,
    SerializationError,
    ValidationError,
)

__all__ = [
    "Cache",
    "CacheEntry",
    "CacheInterface",
    "CacheStatus",
    "create_cache",
    "get_cache",
    "CacheBackend",
    "CacheConfig",
    "CacheAllError",
    "CacheError",
    "CacheIOError",
    "ConfigurationError",
    "DeserializationError",
    "NotInitializedError",
    "SerializationError",
    "ValidationError",
]
