"""Collection index data models."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from pydantic import BaseModel

from .identifiers import MovieId

POSTER_FILENAME = "poster.jpg"


@dataclass(frozen=True, slots=True)
class Movie:
    """One subdirectory of the movie root.

    Attributes:
        name: Display name, the directory's base name.
        path: Absolute path of the movie directory.
        id: Identifier derived from the base name.
        poster_path: Path to ``poster.jpg`` when it existed at scan time.
    """

    name: str
    path: Path
    id: MovieId
    poster_path: Optional[Path] = None

    @property
    def id_hex(self) -> str:
        """Return the identifier as lowercase hex."""
        return self.id.hex()


class CollectionSummary(BaseModel):
    """Counts describing a loaded collection."""

    movie_dir: str
    tag_dir: str
    movie_count: int
    tag_count: int

    def __str__(self) -> str:
        return (
            f"Collection {{ movie_dir: {self.movie_dir}, tag_dir: {self.tag_dir}, "
            f"tag_count: {self.tag_count}, movie_count: {self.movie_count} }}"
        )


__all__ = ["POSTER_FILENAME", "Movie", "CollectionSummary"]
