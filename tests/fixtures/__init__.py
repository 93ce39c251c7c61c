"""Test fixtures for pytest.

This module re-exports commonly used test helpers for easier importing.
"""

from .s3_fixtures import FakeBody, FakeS3Client, StoredObject, client_error

__all__ = [
    "FakeBody",
    "FakeS3Client",
    "StoredObject",
    "client_error",
]
