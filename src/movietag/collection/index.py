"""In-memory tagged-collection index kept in sync with a symlink tree."""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional

from .errors import CollectionIOError, NotFoundError
from .identifiers import MovieId
from .loader import Movies, Tags, canonicalize, scan_movies, scan_tags
from .models import CollectionSummary, Movie

LOGGER = logging.getLogger(__name__)


class Collection:
    """Movies, tag memberships, and the two roots they were scanned from.

    For every tag ``t`` and member ``h`` a symlink named after ``h``'s movie
    directory exists in ``tag_dir / t``, and every symlink there is a member.
    ``toggle_tag`` and ``reload`` preserve this; instances are not locked, see
    ``SharedCollection`` for concurrent use.
    """

    def __init__(self, movie_dir: Path, tag_dir: Path, movies: Movies, tags: Tags) -> None:
        self._movie_dir = movie_dir
        self._tag_dir = tag_dir
        self._movies = movies
        self._tags = tags

    @classmethod
    async def create(
        cls,
        movie_dir: str | os.PathLike[str],
        tag_dir: str | os.PathLike[str],
    ) -> "Collection":
        """Canonicalize both roots and scan them.

        Args:
            movie_dir: Directory holding one subdirectory per movie.
            tag_dir: Directory holding one subdirectory of symlinks per tag.

        Returns:
            Collection: Fully loaded index.

        Raises:
            CollectionIOError: If either root cannot be resolved or read.
            InvalidInputError: If a scanned name does not yield an identifier.
        """

        abs_movie_dir = await canonicalize(movie_dir)
        abs_tag_dir = await canonicalize(tag_dir)
        movies, tags = await cls._load(abs_movie_dir, abs_tag_dir)
        collection = cls(abs_movie_dir, abs_tag_dir, movies, tags)
        LOGGER.debug("Loaded %s", collection)
        return collection

    @staticmethod
    async def _load(movie_dir: Path, tag_dir: Path) -> tuple[Movies, Tags]:
        movies = await scan_movies(movie_dir, ignore={tag_dir})
        tags = await scan_tags(tag_dir, ignore={movie_dir})
        return movies, tags

    @property
    def movie_dir(self) -> Path:
        """Return the canonical movie root."""
        return self._movie_dir

    @property
    def tag_dir(self) -> Path:
        """Return the canonical tag root."""
        return self._tag_dir

    @property
    def movies(self) -> Mapping[MovieId, Movie]:
        """Return a read-only view of the movie table."""
        return MappingProxyType(self._movies)

    @property
    def tags(self) -> Mapping[str, frozenset[MovieId]]:
        """Return a snapshot of the tag table with frozen member sets."""
        return MappingProxyType({name: frozenset(members) for name, members in self._tags.items()})

    def get_movie(self, movie_id: MovieId) -> Optional[Movie]:
        return self._movies.get(movie_id)

    def movie(self, movie_id: MovieId) -> Movie:
        """Return the movie for ``movie_id``.

        Raises:
            NotFoundError: If no movie has that identifier.
        """

        movie = self._movies.get(movie_id)
        if movie is None:
            raise NotFoundError(f"No movie with id {movie_id}")
        return movie

    def sorted_movies(self) -> list[Movie]:
        """Return all movies ordered by display name."""
        return sorted(self._movies.values(), key=lambda movie: (movie.name.casefold(), movie.name))

    def tags_for(self, movie: Movie) -> list[tuple[str, bool]]:
        """Return every tag name, sorted, paired with whether ``movie`` carries it."""
        return [(name, movie.id in self._tags[name]) for name in sorted(self._tags)]

    def summary(self) -> CollectionSummary:
        return CollectionSummary(
            movie_dir=str(self._movie_dir),
            tag_dir=str(self._tag_dir),
            movie_count=len(self._movies),
            tag_count=len(self._tags),
        )

    def __str__(self) -> str:
        return str(self.summary())

    async def toggle_tag(self, tag_name: str, movie: Movie) -> bool:
        """Link ``movie`` into ``tag_name`` if it is unlinked, otherwise unlink it.

        The symlink is created or removed first; the member set only changes
        once that call succeeded.

        Args:
            tag_name: Existing tag to flip.
            movie: Movie whose membership changes.

        Returns:
            bool: True when the movie is now tagged, False when it was untagged.

        Raises:
            NotFoundError: If the tag does not exist.
            CollectionIOError: If the symlink cannot be created or removed.
        """

        members = self._tags.get(tag_name)
        if members is None:
            raise NotFoundError(f"No tag named {tag_name!r}")

        link_path = self._tag_dir / tag_name / movie.path.name
        movie_path = self._movie_dir / movie.path.name

        if movie.id in members:
            LOGGER.debug("unlinking %s from %s", link_path, movie.path)
            try:
                await asyncio.to_thread(os.unlink, link_path)
            except OSError as exc:
                raise CollectionIOError(f"Unable to remove {link_path}: {exc}", link_path) from exc
            members.discard(movie.id)
            return False

        LOGGER.debug("linking %s to %s", movie.path, link_path)
        try:
            await asyncio.to_thread(os.symlink, movie_path, link_path)
        except OSError as exc:
            raise CollectionIOError(f"Unable to create {link_path}: {exc}", link_path) from exc
        members.add(movie.id)
        return True

    async def reload(self) -> None:
        """Rescan both roots and replace the movie and tag tables.

        Both tables are rebuilt before either is swapped in, so a failed scan
        leaves the collection unchanged.

        Raises:
            CollectionIOError: If either root cannot be read.
            InvalidInputError: If a scanned name does not yield an identifier.
        """

        movies, tags = await self._load(self._movie_dir, self._tag_dir)
        self._movies = movies
        self._tags = tags
        LOGGER.debug("Reloaded collections: %s", self)


__all__ = ["Collection"]
