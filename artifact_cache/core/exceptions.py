"""Custom exception classes for the cache."""

from __future__ import annotations

from typing import Any


class CacheError(Exception):
    """Base cache exception.

    All custom exceptions should inherit from this class.

    Attributes:
        detail: Human-readable error message.
        type: Error type identifier, stable across releases.
        extra: Additional context-specific information about the error.

    Example:
            raise CacheError(
            detail="Cache key rejected",
            type="invalid-key",
            extra={"key": "artifact/1.tar"}
        )
    """

    def __init__(
        self,
        detail: str,
        type: str = "about:blank",
        extra: dict[str, Any] | None = None,
    ) -> None:
        """Initialize cache exception.

        Args:
            detail: Human-readable error message.
            type: Error type identifier.
            extra: Additional context about the error.
        """
        self.detail = detail
        self.type = type
        self.extra = extra or {}
        super().__init__(detail)

    def to_dict(self) -> dict[str, Any]:
        """Serialize the error for structured log records."""
        return {"type": self.type, "detail": self.detail, **self.extra}
