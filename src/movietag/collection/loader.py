"""Directory scans that build the movie and tag tables."""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import AbstractSet, Dict, Optional, Set

from .errors import CollectionIOError
from .identifiers import MovieId
from .models import POSTER_FILENAME, Movie

Movies = Dict[MovieId, Movie]
Tags = Dict[str, Set[MovieId]]


async def canonicalize(path: str | os.PathLike[str]) -> Path:
    """Return the absolute, symlink-resolved form of an existing directory.

    Raises:
        CollectionIOError: If the path does not exist or cannot be resolved.
    """

    candidate = Path(path).expanduser()
    try:
        return await asyncio.to_thread(candidate.resolve, strict=True)
    except (OSError, RuntimeError) as exc:
        # RuntimeError: symlink loop on Python < 3.13
        raise CollectionIOError(f"Unable to resolve {candidate}: {exc}", candidate) from exc


async def scan_movies(movie_root: Path, ignore: AbstractSet[Path] = frozenset()) -> Movies:
    """Build the movie table from the direct subdirectories of ``movie_root``.

    Args:
        movie_root: Canonical movie root.
        ignore: Canonical directory paths that must not be read as movies.

    Returns:
        Movies: Mapping of identifier to movie record.

    Raises:
        CollectionIOError: If the root or an entry cannot be read.
        InvalidInputError: If a directory name does not yield an identifier.
    """

    return await asyncio.to_thread(_scan_movies, movie_root, ignore)


async def scan_tags(tag_root: Path, ignore: AbstractSet[Path] = frozenset()) -> Tags:
    """Build the tag table from the direct subdirectories of ``tag_root``.

    Every subdirectory is a tag, including empty ones. Inside each tag directory
    only symbolic links count as members; other entries are skipped.

    Args:
        tag_root: Canonical tag root.
        ignore: Canonical directory paths that must not be read as tags.

    Returns:
        Tags: Mapping of tag name to the identifiers of its members.

    Raises:
        CollectionIOError: If a directory or an entry cannot be read.
        InvalidInputError: If a link name does not yield an identifier.
    """

    return await asyncio.to_thread(_scan_tags, tag_root, ignore)


def _scan_movies(movie_root: Path, ignore: AbstractSet[Path]) -> Movies:
    movies: Movies = {}
    for path in _list_directories(movie_root, ignore):
        movie_id = MovieId.from_path(path)
        movies[movie_id] = Movie(
            name=path.name,
            path=path,
            id=movie_id,
            poster_path=_find_poster(path),
        )
    return movies


def _find_poster(movie_dir: Path) -> Optional[Path]:
    poster = movie_dir / POSTER_FILENAME
    try:
        os.stat(poster)
    except FileNotFoundError:
        return None
    except OSError as exc:
        raise CollectionIOError(f"Unable to check poster {poster}: {exc}", poster) from exc
    return poster


def _scan_tags(tag_root: Path, ignore: AbstractSet[Path]) -> Tags:
    tags: Tags = {path.name: set() for path in _list_directories(tag_root, ignore)}

    for name, members in tags.items():
        tag_dir = tag_root / name
        try:
            with os.scandir(tag_dir) as entries:
                for entry in entries:
                    if entry.is_symlink():
                        members.add(MovieId.from_path(entry.path))
        except OSError as exc:
            raise CollectionIOError(f"Unable to read tag directory {tag_dir}: {exc}", tag_dir) from exc

    return tags


def _list_directories(root: Path, ignore: AbstractSet[Path]) -> list[Path]:
    """Return the direct, non-symlinked subdirectories of ``root`` by name."""

    directories: list[Path] = []
    try:
        with os.scandir(root) as entries:
            for entry in entries:
                if not entry.is_dir(follow_symlinks=False):
                    continue
                path = root / entry.name
                if path in ignore:
                    continue
                directories.append(path)
    except OSError as exc:
        raise CollectionIOError(f"Unable to list {root}: {exc}", root) from exc
    return sorted(directories, key=lambda item: item.name)


__all__ = ["Movies", "Tags", "canonicalize", "scan_movies", "scan_tags"]
