"""
cache-all — Test Configuration and Shared Fixtures

Provides pytest configuration and shared fixtures for unit and integration tests.
"""

import os
from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "DEBUG"


@pytest.fixture
def test_redis_url() -> str:
    """Get Redis URL for testing (database 15 for isolation)."""
    return os.environ.get("TEST_REDIS_URL", "redis://localhost:6379/15")


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    """Directory for file backend records (not created, init() must create it)."""
    return tmp_path / "storage" / "cache"


@pytest.fixture
def file_config(cache_dir: Path) -> dict[str, Any]:
    """Enabled file backend config pointing at a temporary directory."""
    return {"backend": "file", "isEnable": True, "ttl": 60, "file": {"path": str(cache_dir)}}


@pytest.fixture
def mock_env_file(monkeypatch: pytest.MonkeyPatch, cache_dir: Path) -> None:
    """Set environment variables for the file cache backend."""
    monkeypatch.delenv("REDIS_URL", raising=False)
    monkeypatch.setenv("CACHE_BACKEND", "file")
    monkeypatch.setenv("CACHE_TTL_SECONDS", "120")
    monkeypatch.setenv("CACHE_NAMESPACE", "test")
    monkeypatch.setenv("CACHE_FILE_PATH", str(cache_dir))


@pytest.fixture
def sample_cache_data() -> dict[str, Any]:
    """Sample data for cache testing."""
    return {
        "simple_string": "hello",
        "simple_int": 42,
        "simple_float": 3.14,
        "simple_bool": True,
        "complex_dict": {
            "nested": {
                "key": "value",
                "number": 123,
                "list": [1, 2, 3],
            }
        },
        "complex_list": [
            {"id": 1, "name": "Alice"},
            {"id": 2, "name": "Bob"},
        ],
        "unicode": "héllo wörld ✓",
    }


@pytest.fixture(autouse=True)
def reset_global_state() -> Generator[None, None, None]:
    """Reset cache factory and config singletons after each test to prevent state leakage."""
    yield
    from cache_all.cache.factory import reset_cache_factory
    from cache_all.config import reset_config

    reset_cache_factory()
    reset_config()
