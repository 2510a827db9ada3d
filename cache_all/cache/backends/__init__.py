"""
cache-all — Cache Backends

Exports available cache backend implementations.

Redis backend is lazy-loaded via factory.py to avoid a hard dependency.
"""

from .file import FileCacheBackend
from .memory import MemoryCacheBackend

__all__ = [
    "FileCacheBackend",
    "MemoryCacheBackend",
]
