"""Readers-writer guard around a shared collection."""

from __future__ import annotations

import asyncio
import os
from contextlib import asynccontextmanager
from typing import AsyncIterator

from .identifiers import MovieId
from .index import Collection


class ReadWriteLock:
    """asyncio lock admitting many readers or a single writer.

    A waiting writer blocks readers that arrive after it and waits for readers
    already inside to leave.
    """

    def __init__(self) -> None:
        self._condition = asyncio.Condition()
        self._readers = 0
        self._writer = False
        self._waiting_writers = 0

    @property
    def readers(self) -> int:
        return self._readers

    @property
    def writer_active(self) -> bool:
        return self._writer

    @asynccontextmanager
    async def read(self) -> AsyncIterator[None]:
        async with self._condition:
            await self._condition.wait_for(lambda: not self._writer and not self._waiting_writers)
            self._readers += 1
        try:
            yield
        finally:
            async with self._condition:
                self._readers -= 1
                if not self._readers:
                    self._condition.notify_all()

    @asynccontextmanager
    async def write(self) -> AsyncIterator[None]:
        async with self._condition:
            self._waiting_writers += 1
            try:
                await self._condition.wait_for(lambda: not self._writer and not self._readers)
            except BaseException:
                self._waiting_writers -= 1
                self._condition.notify_all()
                raise
            self._waiting_writers -= 1
            self._writer = True
        try:
            yield
        finally:
            async with self._condition:
                self._writer = False
                self._condition.notify_all()


class SharedCollection:
    """A ``Collection`` shared between concurrent tasks behind one ``ReadWriteLock``."""

    def __init__(self, collection: Collection) -> None:
        self._collection = collection
        self._lock = ReadWriteLock()

    @classmethod
    async def open(
        cls,
        movie_dir: str | os.PathLike[str],
        tag_dir: str | os.PathLike[str],
    ) -> "SharedCollection":
        """Load a collection from ``movie_dir`` and ``tag_dir`` and wrap it."""
        return cls(await Collection.create(movie_dir, tag_dir))

    @property
    def lock(self) -> ReadWriteLock:
        return self._lock

    @asynccontextmanager
    async def read(self) -> AsyncIterator[Collection]:
        """Hold shared access for lookups and listing."""
        async with self._lock.read():
            yield self._collection

    @asynccontextmanager
    async def write(self) -> AsyncIterator[Collection]:
        """Hold exclusive access for mutation."""
        async with self._lock.write():
            yield self._collection

    async def toggle_tag(self, tag_name: str, movie_id: MovieId) -> bool:
        """Resolve ``movie_id`` and flip its membership in ``tag_name``.

        Raises:
            NotFoundError: If the movie or tag does not exist.
            CollectionIOError: If the symlink cannot be changed.
        """

        async with self.write() as collection:
            movie = collection.movie(movie_id)
            return await collection.toggle_tag(tag_name, movie)

    async def reload(self) -> None:
        async with self.write() as collection:
            await collection.reload()


__all__ = ["ReadWriteLock", "SharedCollection"]
