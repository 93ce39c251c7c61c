"""Pytest configuration and shared fixtures.

Organization:
    - Settings Fixtures: StorageSettings factories isolated from the environment
    - Storage Fixtures: in-memory S3 client and backends wired to it
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
import logging
import os
from typing import Any

import pytest

from artifact_cache.core.settings import get_logging_settings, get_storage_settings
from artifact_cache.core.settings.storage import StorageSettings
from artifact_cache.infra.logging.config import TRANSPORT_LOGGERS
from artifact_cache.infra.storage.backends.s3.backend import S3Backend
from tests.fixtures.s3_fixtures import FakeS3Client

# Keep developer/CI storage configuration out of the tests
for _name in list(os.environ):
    if _name.startswith(("STORAGE_", "LOG_")):
        del os.environ[_name]


# ============================================================================
# Settings Fixtures
# ============================================================================


@pytest.fixture
def make_settings() -> Callable[..., StorageSettings]:
    """Factory for StorageSettings that ignores any .env file.

    Example:
        def test_ttl(make_settings):
            settings = make_settings(ttl="1h")
    """

    def _make(**overrides: Any) -> StorageSettings:
        values: dict[str, Any] = {
            "bucket": "test-bucket",
            "access_key": "test-key",
            "secret_key": "test-secret",
        }
        values.update(overrides)
        return StorageSettings(_env_file=None, **values)

    return _make


@pytest.fixture(autouse=True)
def _reset_cached_settings() -> Iterator[None]:
    """Clear lru_cache'd settings loaders between tests."""
    get_storage_settings.cache_clear()
    get_logging_settings.cache_clear()
    yield
    get_storage_settings.cache_clear()
    get_logging_settings.cache_clear()


@pytest.fixture
def restore_transport_loggers() -> Iterator[None]:
    """Restore transport logger levels changed by debug mode."""
    levels = {name: logging.getLogger(name).level for name in TRANSPORT_LOGGERS}
    yield
    for name, level in levels.items():
        logging.getLogger(name).setLevel(level)


# ============================================================================
# Storage Fixtures
# ============================================================================


@pytest.fixture
def fake_s3() -> FakeS3Client:
    """In-memory S3 client."""
    return FakeS3Client()


@pytest.fixture
def make_backend(
    make_settings: Callable[..., StorageSettings],
    fake_s3: FakeS3Client,
) -> Callable[..., S3Backend]:
    """Factory for S3Backend instances wired to the in-memory client.

    Example:
        async def test_put(make_backend, fake_s3):
            backend = make_backend(ttl="1h")
            await backend.put("key", io.BytesIO(b"data"))
    """

    def _make(**overrides: Any) -> S3Backend:
        backend = S3Backend(make_settings(**overrides))
        backend._client = fake_s3
        return backend

    return _make


@pytest.fixture
def backend(make_backend: Callable[..., S3Backend]) -> S3Backend:
    """Backend without expiration policy."""
    return make_backend()
