"""Shared fixtures building movie and tag directory trees."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import pytest


@dataclass
class Library:
    """Paths of a movie root and tag root created under ``tmp_path``."""

    movie_root: Path
    tag_root: Path

    def add_movie(self, name: str, *, poster: bool = False) -> Path:
        path = self.movie_root / name
        path.mkdir()
        if poster:
            (path / "poster.jpg").write_bytes(b"\xff\xd8\xff")
        return path

    def add_tag(self, name: str) -> Path:
        path = self.tag_root / name
        path.mkdir()
        return path

    def link(self, tag: str, movie: str) -> Path:
        link = self.tag_root / tag / movie
        link.symlink_to(self.movie_root / movie)
        return link


@pytest.fixture
def library(tmp_path: Path) -> Library:
    """Return an empty library with separate movie and tag roots.

    Args:
        tmp_path: Temporary directory provided by pytest.
    """
    movie_root = tmp_path / "movies"
    tag_root = tmp_path / "tags"
    movie_root.mkdir()
    tag_root.mkdir()
    return Library(movie_root=movie_root.resolve(), tag_root=tag_root.resolve())


@pytest.fixture
def alien_library(library: Library) -> Library:
    """Library with ``Alien (1979)`` tagged ``SciFi`` and an empty ``Horror`` tag."""
    library.add_movie("Alien (1979)", poster=True)
    library.add_tag("Horror")
    library.add_tag("SciFi")
    library.link("SciFi", "Alien (1979)")
    return library
