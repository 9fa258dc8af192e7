"""Content identifiers derived from movie directory names."""

from __future__ import annotations

import hashlib
import os
import re
from dataclasses import dataclass
from pathlib import Path

from .errors import InvalidInputError

DIGEST_SIZE = 20
_HEX_PATTERN = re.compile(r"[0-9a-fA-F]{%d}" % (DIGEST_SIZE * 2))


@dataclass(frozen=True, order=True, slots=True)
class MovieId:
    """SHA-1 digest of a movie directory's base name.

    Only the final path component is hashed, so the same directory name yields
    the same identifier under any parent. Two movies sharing a base name under
    different parents therefore collide; with a single movie root this does not
    occur.

    Attributes:
        digest: Raw 20-byte digest.
    """

    digest: bytes

    def __post_init__(self) -> None:
        if not isinstance(self.digest, bytes) or len(self.digest) != DIGEST_SIZE:
            raise InvalidInputError(f"Identifier must be exactly {DIGEST_SIZE} bytes.")

    @classmethod
    def from_path(cls, path: str | os.PathLike[str]) -> "MovieId":
        """Derive the identifier for the final component of ``path``.

        Args:
            path: Filesystem path whose base name identifies the movie.

        Returns:
            MovieId: Digest of the raw base-name bytes.

        Raises:
            InvalidInputError: If the path has no final name component.
        """

        name = Path(path).name
        if name in ("", ".", ".."):
            raise InvalidInputError(f"Invalid file name: {os.fspath(path)!r}")
        return cls(hashlib.sha1(os.fsencode(name)).digest())

    @classmethod
    def from_hex(cls, text: str) -> "MovieId":
        """Parse a 40-character hex string (any case).

        Raises:
            InvalidInputError: If the string has the wrong length or non-hex characters.
        """

        if not isinstance(text, str) or not _HEX_PATTERN.fullmatch(text):
            raise InvalidInputError(f"Invalid identifier: {text!r}")
        return cls(bytes.fromhex(text))

    @classmethod
    def from_bytes(cls, raw: bytes) -> "MovieId":
        """Wrap an existing 20-byte digest."""

        if len(raw) != DIGEST_SIZE:
            raise InvalidInputError("invalid hash length")
        return cls(bytes(raw))

    def hex(self) -> str:
        """Return the lowercase hex rendering."""
        return self.digest.hex()

    def __str__(self) -> str:
        return self.hex()

    def __repr__(self) -> str:
        return f"MovieId({self.hex()})"


__all__ = ["DIGEST_SIZE", "MovieId"]
