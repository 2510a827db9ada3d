"""
cache-all — Record Codec

Serializes a value plus its expiration timestamp into a persistable record
and decodes/validates it back.

Persisted document (file backend):
    {
        "value": "<value as a JSON string>",
        "expire": "<absolute expiry in epoch milliseconds>"
    }
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from typing import Any

from ..errors import DeserializationError, SerializationError


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def serialize_value(value: Any) -> str:
    """Serialize a value to a compact JSON string."""
    try:
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError) as e:
        # TypeError: unsupported type, ValueError: circular reference / NaN policy
        raise SerializationError(
            f"Value of type {type(value).__name__} is not JSON serializable: {e}",
            details={"value_type": type(value).__name__, "error": str(e)},
        ) from e


def deserialize_value(payload: str | bytes) -> Any:
    """Decode a JSON payload produced by serialize_value()."""
    try:
        return json.loads(payload)
    except (ValueError, UnicodeDecodeError) as e:
        raise DeserializationError(
            f"Stored value is not valid JSON: {e}",
            details={"error": str(e)},
        ) from e


@dataclass(frozen=True)
class CacheRecord:
    """A serialized value and the epoch millisecond at which it expires."""

    value: str
    expire_at: int

    def is_expired(self, now: int | None = None) -> bool:
        if now is None:
            now = now_ms()
        return self.expire_at < now

    def decode(self) -> Any:
        return deserialize_value(self.value)


def build_record(value: Any, ttl: int, now: int | None = None) -> CacheRecord:
    """Serialize ``value`` and stamp it with ``now + ttl`` seconds."""
    if now is None:
        now = now_ms()
    return CacheRecord(value=serialize_value(value), expire_at=now + ttl * 1000)


def dump_record(record: CacheRecord) -> str:
    """Render a record as the on-disk JSON document."""
    return json.dumps({"value": record.value, "expire": str(record.expire_at)}, indent=4)


def load_record(raw: str | bytes) -> CacheRecord:
    """
    Parse an on-disk JSON document back into a CacheRecord.

    Raises:
        DeserializationError: If the document is not JSON or lacks value/expire
    """
    try:
        data = json.loads(raw)
    except (ValueError, UnicodeDecodeError) as e:
        raise DeserializationError(
            f"Cache record is not valid JSON: {e}",
            details={"error": str(e)},
        ) from e

    if not isinstance(data, dict) or "value" not in data or "expire" not in data:
        raise DeserializationError(
            "Cache record is missing 'value' or 'expire'",
            details={"record_type": type(data).__name__},
        )

    value = data["value"]
    if not isinstance(value, str):
        raise DeserializationError(
            "Cache record 'value' must be a JSON string",
            details={"value_type": type(value).__name__},
        )

    try:
        expire_at = int(data["expire"])
    except (TypeError, ValueError) as e:
        raise DeserializationError(
            f"Cache record has an invalid 'expire' timestamp: {data['expire']!r}",
            details={"error": str(e)},
        ) from e

    return CacheRecord(value=value, expire_at=expire_at)
