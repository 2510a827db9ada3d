"""
cache-all — Configuration Loader

Loads and validates configuration from environment variables and .env files.
Provides a singleton configuration instance for the runtime.
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError

from ..errors import ConfigurationError
from .schemas import DEFAULT_FILE_PATH, AppConfig

logger = logging.getLogger(__name__)

_config_instance: AppConfig | None = None


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def load_config(
    env_file: str | None = None,
    reload: bool = False,
) -> AppConfig:
    """
    Load configuration from environment variables and .env file.

    Args:
        env_file: Path to .env file (default: .env in current directory)
        reload: Force reload even if config already loaded

    Returns:
        Validated AppConfig instance

    Raises:
        ConfigurationError: If configuration is invalid
    """
    global _config_instance

    if _config_instance is not None and not reload:
        return _config_instance

    if env_file:
        env_path = Path(env_file)
    else:
        env_path = Path.cwd() / ".env"

    if env_path.exists():
        logger.info(f"Loading environment from {env_path}")
        try:
            load_dotenv(env_path, override=True)
        except Exception as e:
            logger.error(
                f"Failed to load .env file from {env_path}: {e}",
                extra={"path": str(env_path), "error": str(e)},
                exc_info=True,
            )
            raise ConfigurationError(
                f"Failed to load environment file: {e}",
                details={"path": str(env_path), "error": str(e)},
            ) from e
    else:
        logger.debug("No .env file found, using environment variables only")

    # Redis is selected automatically when a URL is present
    redis_url = os.getenv("REDIS_URL")
    default_backend = "redis" if redis_url else "file"

    try:
        config_dict = {
            "environment": os.getenv("ENVIRONMENT", "development"),
            "log_level": os.getenv("LOG_LEVEL", "INFO"),
            "cache": {
                "backend": os.getenv("CACHE_BACKEND", default_backend),
                "is_enable": _env_flag("CACHE_ENABLED", "true"),
                "ttl": int(os.getenv("CACHE_TTL_SECONDS", "60")),
                "namespace": os.getenv("CACHE_NAMESPACE", "cache"),
                "file": {
                    "path": os.getenv("CACHE_FILE_PATH", DEFAULT_FILE_PATH),
                },
                "redis": {
                    "url": redis_url,
                    "host": os.getenv("REDIS_HOST", "127.0.0.1"),
                    "port": int(os.getenv("REDIS_PORT", "6379")),
                    "password": os.getenv("REDIS_PASSWORD"),
                    "database": int(os.getenv("REDIS_DB", "0")),
                    "max_connections": int(os.getenv("REDIS_MAX_CONNECTIONS", "10")),
                    "socket_timeout": int(os.getenv("REDIS_SOCKET_TIMEOUT", "5")),
                },
            },
        }
    except ValueError as e:
        logger.error(f"Invalid numeric environment value: {e}", extra={"error": str(e)})
        raise ConfigurationError(
            f"Invalid numeric environment value: {e}",
            details={"error": str(e)},
        ) from e

    try:
        _config_instance = AppConfig.model_validate(config_dict)
        logger.info(
            f"Configuration loaded successfully (environment: {_config_instance.environment.value})",
            extra={
                "environment": _config_instance.environment.value,
                "cache_backend": _config_instance.cache.backend.value,
            },
        )
        return _config_instance
    except ValidationError as e:
        logger.error(
            f"Configuration validation failed: {e}",
            extra={"validation_errors": e.errors(), "config_dict_keys": list(config_dict.keys())},
            exc_info=True,
        )
        raise ConfigurationError(
            "Configuration validation failed. Check your environment variables and configuration.",
            details={"validation_errors": e.errors()},
        ) from e


def get_config() -> AppConfig:
    """
    Get the current configuration instance, loading it on first access.

    Returns:
        Current AppConfig instance
    """
    if _config_instance is None:
        return load_config()

    return _config_instance


def reload_config(env_file: str | None = None) -> AppConfig:
    """
    Force reload configuration.

    Args:
        env_file: Optional path to .env file

    Returns:
        Reloaded AppConfig instance
    """
    return load_config(env_file=env_file, reload=True)


def reset_config() -> None:
    """Drop the cached configuration instance. Intended for tests."""
    global _config_instance
    _config_instance = None
