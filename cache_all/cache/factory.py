"""
cache-all — Cache Factory

Canonical factory for creating backends and named cache facades.

Key points:
- create_backend() maps CacheConfig.backend to a backend class
- Redis is imported lazily so the memory and file backends work without it
- create_cache() keeps a registry of named facades, one per cache namespace

Examples:
    from cache_all.cache.factory import create_cache

    # Uses env-configured settings (file backend by default)
    cache = create_cache()
    await cache.init()

    # Or explicitly supply a CacheConfig (e.g., for tests)
    from cache_all.config import CacheBackend, CacheConfig
    cfg = CacheConfig(backend=CacheBackend.MEMORY, ttl=600)
    mem_cache = create_cache(cfg, name="test")
    await mem_cache.init()
"""

from __future__ import annotations

import logging

from ..config import CacheBackend, CacheConfig, get_config
from ..errors import ConfigurationError
from .backends.file import FileCacheBackend
from .backends.memory import MemoryCacheBackend
from .facade import Cache
from .interface import CacheInterface

logger = logging.getLogger(__name__)

# Global facade registry
_cache_instances: dict[str, Cache] = {}


def _create_redis_backend() -> CacheInterface:
    """Internal helper to construct a redis backend with lazy import."""
    try:
        from .backends.redis import RedisCacheBackend
    except ImportError as e:
        logger.error(
            "Redis backend selected but redis client is not installed",
            extra={"package": "redis>=5.0.1", "error": str(e)},
        )
        raise ConfigurationError(
            "Redis backend selected but redis client is unavailable. "
            "Install with: pip install 'redis>=5.0.1' or add to dependencies.",
            details={"package": "redis>=5.0.1", "error": str(e), "backend": "redis"},
        ) from e

    return RedisCacheBackend()


def create_backend(config: CacheConfig) -> CacheInterface:
    """
    Build an uninitialized backend for ``config.backend``.

    Raises:
        ConfigurationError: If the backend is unknown or unavailable
    """
    if config.backend == CacheBackend.MEMORY:
        return MemoryCacheBackend()
    if config.backend == CacheBackend.FILE:
        return FileCacheBackend()
    if config.backend == CacheBackend.REDIS:
        return _create_redis_backend()

    raise ConfigurationError(
        f"Unknown cache backend: {config.backend}",
        details={
            "backend": str(config.backend),
            "supported": [b.value for b in CacheBackend],
        },
    )


def create_cache(
    config: CacheConfig | None = None,
    name: str = "default",
) -> Cache:
    """
    Create (or return the registered) cache facade named ``name``.

    The facade must still be initialized with ``await cache.init()``; until
    then every call is a no-op.

    Args:
        config: Cache configuration; the global config when None
        name: Registry key, one facade per name
    """
    if name in _cache_instances:
        logger.debug("Reusing registered cache facade '%s'", name)
        return _cache_instances[name]

    if config is None:
        config = get_config().cache

    logger.info(
        "Registering cache facade '%s' (backend: %s)",
        name,
        config.backend.value,
        extra={"cache_name": name, "backend": config.backend.value},
    )

    cache = Cache(config)
    _cache_instances[name] = cache
    return cache


def get_cache(name: str = "default") -> Cache:
    """Return the facade registered as ``name``, creating it from the global config if missing."""
    cache = _cache_instances.get(name)
    return cache if cache is not None else create_cache(name=name)


async def close_all_caches() -> None:
    """Close every registered facade and empty the registry. Call once at shutdown."""
    names = list(_cache_instances)
    for name in names:
        cache = _cache_instances[name]
        try:
            await cache.close()
        except Exception as e:
            logger.error(
                "Failed to close cache facade '%s': %s",
                name,
                e,
                extra={"cache_name": name, "error": str(e)},
                exc_info=True,
            )

    _cache_instances.clear()
    if names:
        logger.info("Closed %d cache facade(s): %s", len(names), ", ".join(names))


def reset_cache_factory() -> None:
    """Forget registered facades without closing them (tests only)."""
    logger.debug("Dropping %d registered cache facade(s)", len(_cache_instances))
    _cache_instances.clear()


def list_cache_instances() -> list[str]:
    return list(_cache_instances.keys())
