"""
cache-all — Configuration Module

Provides typed configuration loading and validation.
"""

from .loader import get_config, load_config, reload_config, reset_config
from .schemas import (
    DEFAULT_FILE_PATH,
    AppConfig,
    CacheBackend,
    CacheConfig,
    Environment,
    FileStoreConfig,
    LogLevel,
    RedisStoreConfig,
)

__all__ = [
    # Loader functions
    "load_config",
    "get_config",
    "reload_config",
    "reset_config",
    # Main config
    "AppConfig",
    # Enums
    "Environment",
    "CacheBackend",
    "LogLevel",
    # Config sections
    "CacheConfig",
    "FileStoreConfig",
    "RedisStoreConfig",
    "DEFAULT_FILE_PATH",
]
