"""Collection index errors."""

from __future__ import annotations

from pathlib import Path


class CollectionError(Exception):
    """Base exception for collection index operations."""


class NotFoundError(CollectionError):
    """Raised when a tag or movie identifier is not present in the index."""


class CollectionIOError(CollectionError):
    """Raised when an underlying filesystem call fails.

    Attributes:
        path: Filesystem path involved in the failed call.
    """

    def __init__(self, message: str, path: Path | None = None) -> None:
        super().__init__(message)
        self.path = path


class InvalidInputError(CollectionError, ValueError):
    """Raised when a path or hex string cannot be turned into an identifier."""
