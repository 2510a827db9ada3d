"""
cache-all — Entry Index

In-memory presence map of keys that currently have a persisted record.
Lets reads skip storage probes for keys that were never written.
"""

from collections.abc import Iterable, Iterator


class EntryIndex:
    """Set-like mapping of key -> present."""

    def __init__(self, keys: Iterable[str] = ()) -> None:
        self._present: dict[str, bool] = {}
        self.reset(keys)

    def reset(self, keys: Iterable[str] = ()) -> None:
        """Replace the whole index with ``keys``."""
        self._present = {key: True for key in keys}

    def add(self, key: str) -> None:
        self._present[key] = True

    def discard(self, key: str) -> None:
        self._present.pop(key, None)

    def clear(self) -> None:
        self._present.clear()

    def keys(self) -> list[str]:
        """Snapshot of indexed keys (safe to iterate while the index changes)."""
        return list(self._present)

    def __contains__(self, key: object) -> bool:
        return self._present.get(key, False)  # type: ignore[arg-type]

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def __len__(self) -> int:
        return len(self._present)
