"""
cache-all — Cache Module

Provides caching functionality with pluggable backends.

- facade.py: Cache object applications use (gate, default TTL, middleware)
- factory.py: backend selection and named cache registry
- interface.py: abstract contract all backends implement
- backends/: memory, file and redis implementations

Usage:
    from cache_all.cache import Cache

    cache = Cache({"backend": "file", "ttl": 60})
    await cache.init()
    await cache.set("key", "value")
    value = await cache.get("key")
"""

from .facade import DISABLED, EXECUTED, Cache, CacheStatus
from .factory import (
    close_all_caches,
    create_backend,
    create_cache,
    get_cache,
    list_cache_instances,
    reset_cache_factory,
)
from .interface import CacheEntry, CacheInterface

__all__ = [
    # Facade
    "Cache",
    "CacheStatus",
    "DISABLED",
    "EXECUTED",
    # Factory functions
    "create_backend",
    "create_cache",
    "get_cache",
    "close_all_caches",
    "list_cache_instances",
    "reset_cache_factory",
    # Interface
    "CacheInterface",
    "CacheEntry",
]
