"""
cache-all - Core Error Types

Defines the exception hierarchy for the cache engine.
All exceptions inherit from CacheAllError for consistent error handling.

Taxonomy:
- ValidationError: bad input (missing value, empty key, invalid TTL)
- SerializationError / DeserializationError: value cannot round-trip through JSON
- CacheIOError: storage medium failures (directory, read, write, delete)
- CacheConnectionError: remote store unreachable at init
- NotInitializedError: backend used before init()
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """
    Standard error codes for callers exposing the cache over an API.
    """

    # Input validation errors
    INVALID_INPUT = "INVALID_INPUT"
    MISSING_PARAMETER = "MISSING_PARAMETER"

    # Configuration errors
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    CACHE_DISABLED = "CACHE_DISABLED"

    # Cache errors
    CACHE_FAILURE = "CACHE_FAILURE"
    CACHE_SERIALIZATION = "CACHE_SERIALIZATION"
    CACHE_IO = "CACHE_IO"
    CACHE_UNAVAILABLE = "CACHE_UNAVAILABLE"
    CACHE_NOT_INITIALIZED = "CACHE_NOT_INITIALIZED"

    # Internal errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


class CacheAllError(Exception):
    """Base exception for all cache-all errors."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        status_code: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.status_code = status_code

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(CacheAllError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, details, status_code=500)


class ValidationError(CacheAllError):
    """Raised when input validation fails."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, details, status_code=400)


class CacheError(CacheAllError):
    """Base exception for cache-related errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, details, status_code=500)


class SerializationError(CacheError):
    """Raised when a value cannot be serialized for storage."""

    pass


class DeserializationError(CacheError):
    """Raised when a stored record or value cannot be decoded."""

    pass


class CacheIOError(CacheError):
    """Raised when the storage medium fails (create, read, write, delete)."""

    pass


class CacheConnectionError(CacheError):
    """Raised when cache backend connection fails."""

    def __init__(self, backend: str, details: dict[str, Any] | None = None):
        message = f"Failed to connect to cache backend: {backend}"
        super().__init__(message, details)


class NotInitializedError(CacheError):
    """Raised when a backend operation runs before init()."""

    def __init__(self, backend: str):
        message = f"Cache backend '{backend}' used before init()"
        super().__init__(message, {"backend": backend})


def make_error_response(
    error_code: ErrorCode,
    message: str,
    context: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Create a standardized error response.

    Args:
        error_code: Standard error code
        message: Human-readable error message
        context: Additional context/details

    Returns:
        Standardized error response dictionary

    Example:
        >>> make_error_response(
        ...     ErrorCode.INVALID_INPUT,
        ...     "Value is required",
        ...     {"key": "user:1"}
        ... )
        {
            "success": False,
            "error_code": "INVALID_INPUT",
            "message": "Value is required",
            "details": {"key": "user:1"}
        }
    """
    return {
        "success": False,
        "error_code": error_code.value,
        "message": message,
        "details": context or {},
    }


def extract_error_code(error: Exception) -> ErrorCode:
    """
    Extract appropriate ErrorCode from an exception.

    Args:
        error: Exception to categorize

    Returns:
        Appropriate ErrorCode for the exception
    """
    if isinstance(error, ValidationError):
        return ErrorCode.INVALID_INPUT

    if isinstance(error, ConfigurationError):
        return ErrorCode.CONFIGURATION_ERROR

    if isinstance(error, NotInitializedError):
        return ErrorCode.CACHE_NOT_INITIALIZED

    if isinstance(error, (SerializationError, DeserializationError)):
        return ErrorCode.CACHE_SERIALIZATION

    if isinstance(error, CacheConnectionError):
        return ErrorCode.CACHE_UNAVAILABLE

    if isinstance(error, CacheIOError):
        return ErrorCode.CACHE_IO

    if isinstance(error, CacheError):
        return ErrorCode.CACHE_FAILURE

    return ErrorCode.INTERNAL_ERROR
