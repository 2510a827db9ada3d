"""
cache-all — Configuration Schemas

Defines typed configuration models using Pydantic for validation and type safety.
Field names accept both snake_case and the camelCase spelling used by
existing cache configs (e.g. ``isEnable``).
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..errors import ConfigurationError

logger = logging.getLogger(__name__)

# Package-local storage directory used when no file path is configured
DEFAULT_FILE_PATH = str(Path(__file__).resolve().parent.parent / "storage" / "cache")


class Environment(str, Enum):
    """Runtime environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TEST = "test"


class CacheBackend(str, Enum):
    """Supported cache backends."""

    MEMORY = "memory"
    FILE = "file"
    REDIS = "redis"


class LogLevel(str, Enum):
    """Log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class FileStoreConfig(BaseModel):
    """File backend settings."""

    path: str = Field(default=DEFAULT_FILE_PATH, description="Directory holding one JSON record per key")

    @field_validator("path")
    @classmethod
    def validate_path(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("file.path must not be empty")
        return v


class RedisStoreConfig(BaseModel):
    """Redis backend settings (only used when backend=redis)."""

    model_config = ConfigDict(populate_by_name=True)

    url: str | None = Field(default=None, description="Redis connection URL (overrides host/port)")
    host: str = Field(default="127.0.0.1", description="Redis host")
    port: int = Field(default=6379, ge=1, le=65535, description="Redis port")
    password: str | None = Field(default=None, description="Redis password")
    database: int = Field(default=0, ge=0, alias="db", description="Redis logical database")
    max_connections: int = Field(default=10, ge=1, alias="maxConnections", description="Connection pool size")
    socket_timeout: int = Field(default=5, ge=1, alias="socketTimeout", description="Socket timeout in seconds")


class CacheConfig(BaseModel):
    """Cache configuration."""

    model_config = ConfigDict(populate_by_name=True)

    backend: CacheBackend = Field(default=CacheBackend.FILE, description="Cache backend to use")
    is_enable: bool = Field(default=True, alias="isEnable", description="Master switch; False turns every call into a no-op")
    ttl: int = Field(default=60, gt=0, description="Default TTL in seconds")
    namespace: str = Field(default="cache", alias="prefix", description="Key prefix (redis backend)")
    file: FileStoreConfig = Field(default_factory=FileStoreConfig)
    redis: RedisStoreConfig = Field(default_factory=RedisStoreConfig)

    @field_validator("namespace")
    @classmethod
    def validate_namespace(cls, v: str) -> str:
        """Fall back to the default namespace when blank."""
        return v.strip() or "cache"

    @classmethod
    def from_any(cls, value: "CacheConfig | dict[str, Any] | None") -> "CacheConfig":
        """
        Coerce a dict, model or None into a validated CacheConfig.

        Raises:
            ConfigurationError: If the dict does not validate
        """
        if value is None:
            return cls()
        if isinstance(value, cls):
            return value
        try:
            return cls.model_validate(value)
        except ValidationError as e:
            logger.error(
                f"Cache configuration validation failed: {e}",
                extra={"validation_errors": e.errors()},
            )
            raise ConfigurationError(
                "Cache configuration validation failed. Check the values passed to init().",
                details={"validation_errors": e.errors()},
            ) from e


class AppConfig(BaseModel):
    """Root configuration for cache-all."""

    environment: Environment = Field(default=Environment.DEVELOPMENT, description="Runtime environment")
    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")

    cache: CacheConfig = Field(default_factory=CacheConfig)

    model_config = ConfigDict(validate_assignment=True)
