"""
cache-all — File Cache Backend

Filesystem cache with one JSON record per key and lazy TTL expiration.

Layout:
    <path>/<sanitized key>.json  ->  {"value": "<JSON>", "expire": "<epoch ms>"}

Notes:
- An in-memory EntryIndex mirrors which keys have a record; it is rebuilt
  from the directory listing on init() without reading any file.
- Writes land in a hidden temporary file first and are moved into place
  with an atomic replace, so readers never see a partial record.
- Expired records are removed when they are next read; there is no sweeper.
- When the index and the directory disagree, the key is treated as absent.

Example:
    backend = FileCacheBackend()
    await backend.init(CacheConfig(backend="file", file={"path": "/tmp/cache"}))
    await backend.set("greeting", {"msg": "hello"}, ttl=60)
    val = await backend.get("greeting")
"""

from __future__ import annotations

import asyncio
import logging
import shutil
import uuid
from pathlib import Path
from typing import TYPE_CHECKING, Any

import aiofiles
import aiofiles.os

from ...errors import CacheIOError, ValidationError
from ..codec import CacheRecord, build_record, dump_record, load_record
from ..index import EntryIndex
from ..interface import CacheEntry, CacheInterface, Pattern, compile_pattern
from ..keys import key_from_filename, record_filename, sanitize_key

if TYPE_CHECKING:
    from ...config import CacheConfig

logger = logging.getLogger(__name__)


class FileCacheBackend(CacheInterface):
    """
    File cache backend with an in-memory entry index.

    Features:
    - Survives restarts: init() re-seeds the index from file names
    - Per-key TTL stored inside the record
    - Pattern removal against on-disk file names
    """

    backend_name = "file"

    def __init__(self) -> None:
        super().__init__()
        self.path: Path | None = None
        self._index = EntryIndex()

    # ------------ Helpers ------------

    def _token(self, key: str) -> str:
        token = sanitize_key(key)
        if not token:
            raise ValidationError("Cache key is empty after sanitization", {"key": key})
        return token

    def _record_path(self, token: str) -> Path:
        assert self.path is not None
        return self.path / record_filename(token)

    async def _scan(self) -> list[str]:
        """List record tokens currently in the storage directory."""
        assert self.path is not None
        try:
            names = await aiofiles.os.listdir(self.path)
        except OSError as e:
            logger.error(
                f"Failed to list cache directory '{self.path}': {e}",
                extra={"path": str(self.path), "error": str(e)},
                exc_info=True,
            )
            raise CacheIOError(
                f"Failed to list cache directory: {e}",
                details={"path": str(self.path), "error": str(e)},
            ) from e
        return [token for token in map(key_from_filename, names) if token]

    async def _ensure_dir(self) -> None:
        assert self.path is not None
        try:
            await aiofiles.os.makedirs(self.path, exist_ok=True)
        except OSError as e:
            logger.error(
                f"Failed to create cache directory '{self.path}': {e}",
                extra={"path": str(self.path), "error": str(e)},
                exc_info=True,
            )
            raise CacheIOError(
                f"Failed to create cache directory: {e}",
                details={"path": str(self.path), "error": str(e)},
            ) from e

    async def _read_record(self, token: str) -> CacheRecord | None:
        """
        Load the record for ``token``.

        Returns None (and repairs the index) when the file has vanished.
        """
        path = self._record_path(token)
        try:
            async with aiofiles.open(path, encoding="utf-8") as f:
                raw = await f.read()
        except FileNotFoundError:
            logger.warning(
                f"Cache index drift: record for '{token}' is missing, dropping index entry",
                extra={"key": token, "path": str(path)},
            )
            self._index.discard(token)
            return None
        except OSError as e:
            logger.error(
                f"Failed to read cache record '{path}': {e}",
                extra={"key": token, "path": str(path), "error": str(e)},
                exc_info=True,
            )
            raise CacheIOError(
                f"Failed to read cache record: {e}",
                details={"key": token, "path": str(path), "error": str(e)},
            ) from e

        return load_record(raw)

    async def _write_record(self, token: str, record: CacheRecord) -> None:
        path = self._record_path(token)
        tmp_path = path.with_name(f".{uuid.uuid4().hex}.tmp")
        payload = dump_record(record)
        try:
            async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
                await f.write(payload)
            await aiofiles.os.replace(tmp_path, path)
        except OSError as e:
            logger.error(
                f"Failed to write cache record '{path}': {e}",
                extra={"key": token, "path": str(path), "error": str(e)},
                exc_info=True,
            )
            try:
                await aiofiles.os.remove(tmp_path)
            except FileNotFoundError:
                pass
            except OSError as cleanup_error:
                logger.warning(
                    f"Failed to remove temporary record '{tmp_path}': {cleanup_error}",
                    extra={"path": str(tmp_path), "error": str(cleanup_error)},
                )
            raise CacheIOError(
                f"Failed to write cache record: {e}",
                details={"key": token, "path": str(path), "error": str(e)},
            ) from e

    async def _unlink(self, token: str, filename: str | None = None) -> None:
        """Delete one record file (missing files are fine) and drop it from the index."""
        assert self.path is not None
        path = self.path / (filename or record_filename(token))
        try:
            await aiofiles.os.remove(path)
            self._deletes += 1
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.error(
                f"Failed to delete cache record '{path}': {e}",
                extra={"key": token, "path": str(path), "error": str(e)},
                exc_info=True,
            )
            raise CacheIOError(
                f"Failed to delete cache record: {e}",
                details={"key": token, "path": str(path), "error": str(e)},
            ) from e
        finally:
            # Deleted or not, a record we could not read back is treated as absent
            self._index.discard(token)

    # ------------ Core Interface ------------

    async def init(self, config: CacheConfig) -> None:
        """Create the storage directory if needed and seed the index from file names."""
        self._initialized = False
        self.path = Path(config.file.path)
        self._index = EntryIndex()

        await self._ensure_dir()
        self._index.reset(await self._scan())
        self._initialized = True

        logger.info(
            f"File cache initialized at '{self.path}' with {len(self._index)} existing record(s)",
            extra={"path": str(self.path), "records": len(self._index)},
        )

    async def set(self, key: str, value: Any, ttl: int) -> Any:
        """Serialize and persist a value."""
        self._ensure_initialized()
        self._validate_set(key, value, ttl)
        token = self._token(key)

        record = build_record(value, ttl)
        await self._write_record(token, record)

        self._index.add(token)
        self._sets += 1
        logger.debug(f"Stored cache record '{token}'", extra={"key": token, "ttl": ttl})
        return value

    async def get(self, key: str) -> Any | None:
        """Retrieve a value, expiring it lazily."""
        self._ensure_initialized()
        token = self._token(key)

        if token not in self._index:
            self._misses += 1
            return None

        record = await self._read_record(token)
        if record is None:
            self._misses += 1
            return None

        if record.is_expired():
            logger.debug(f"Cache record '{token}' expired, removing", extra={"key": token})
            await self._unlink(token)
            self._misses += 1
            return None

        value = record.decode()
        self._hits += 1
        return value

    async def has(self, key: str) -> bool:
        """Check presence and expiry without decoding the stored value."""
        self._ensure_initialized()
        token = self._token(key)

        if token not in self._index:
            return False

        record = await self._read_record(token)
        if record is None:
            return False

        if record.is_expired():
            await self._unlink(token)
            return False

        return True

    async def remove(self, key: str) -> bool:
        """Delete a single record; absent keys are fine."""
        self._ensure_initialized()
        await self._unlink(self._token(key))
        return True

    async def remove_by_pattern(self, pattern: Pattern) -> int:
        """
        Delete every record whose file name matches ``pattern``.

        The pattern is searched in the on-disk name, ``.json`` suffix included.
        Deletes run concurrently; the call returns once all of them settled.
        """
        self._ensure_initialized()
        regex = compile_pattern(pattern)
        assert self.path is not None

        try:
            names = await aiofiles.os.listdir(self.path)
        except OSError as e:
            logger.error(
                f"Failed to list cache directory '{self.path}': {e}",
                extra={"path": str(self.path), "error": str(e)},
                exc_info=True,
            )
            raise CacheIOError(
                f"Failed to list cache directory: {e}",
                details={"path": str(self.path), "error": str(e)},
            ) from e

        matches: list[tuple[str, str]] = []
        for name in names:
            token = key_from_filename(name)
            if token and regex.search(name):
                matches.append((token, name))

        if not matches:
            return 0

        results = await asyncio.gather(
            *(self._unlink(token, name) for token, name in matches),
            return_exceptions=True,
        )
        failures = [r for r in results if isinstance(r, BaseException)]
        removed = len(matches) - len(failures)

        logger.info(
            f"Removed {removed} cache record(s) matching {regex.pattern!r}",
            extra={"pattern": regex.pattern, "removed": removed, "failed": len(failures)},
        )

        if failures:
            raise CacheIOError(
                f"Failed to remove {len(failures)} of {len(matches)} record(s) matching {regex.pattern!r}",
                details={"pattern": regex.pattern, "errors": [str(f) for f in failures]},
            ) from failures[0]

        return removed

    async def clear(self) -> bool:
        """Delete the storage directory and recreate it empty."""
        self._ensure_initialized()
        assert self.path is not None

        size = len(self._index)
        try:
            await asyncio.to_thread(shutil.rmtree, self.path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.error(
                f"Failed to clear cache directory '{self.path}': {e}",
                extra={"path": str(self.path), "error": str(e)},
                exc_info=True,
            )
            raise CacheIOError(
                f"Failed to clear cache directory: {e}",
                details={"path": str(self.path), "error": str(e)},
            ) from e

        self._index.clear()
        await self._ensure_dir()
        self._deletes += size

        logger.info(f"Cleared {size} entries from file cache '{self.path}'")
        return True

    async def get_all(self) -> list[CacheEntry]:
        """Read every indexed record through get()."""
        self._ensure_initialized()
        tokens = self._index.keys()
        if not tokens:
            return []

        # Let every read settle before surfacing a failure
        values = await asyncio.gather(*(self.get(token) for token in tokens), return_exceptions=True)
        failures = [v for v in values if isinstance(v, BaseException)]
        if failures:
            raise failures[0]
        return [CacheEntry(key=token, value=value) for token, value in zip(tokens, values, strict=True)]

    async def get_stats(self) -> dict[str, Any]:
        stats = await super().get_stats()
        stats["size"] = len(self._index)
        stats["path"] = str(self.path) if self.path else None
        return stats

    async def close(self) -> None:
        """Forget in-memory state; records stay on disk for the next init()."""
        await super().close()
        self._index.clear()
        logger.debug(f"File cache backend closed for '{self.path}'")
