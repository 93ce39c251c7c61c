"""CLI command groups."""

from . import storage

__all__ = ["storage"]
