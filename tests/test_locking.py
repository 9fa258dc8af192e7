"""Readers-writer lock and shared collection tests."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest

from movietag.collection import MovieId, NotFoundError, ReadWriteLock, SharedCollection

if TYPE_CHECKING:
    from conftest import Library


@pytest.mark.asyncio
async def test_readers_share_the_lock() -> None:
    lock = ReadWriteLock()
    inside = asyncio.Event()
    both_inside = asyncio.Event()

    async def reader() -> None:
        async with lock.read():
            if inside.is_set():
                both_inside.set()
            inside.set()
            await asyncio.wait_for(both_inside.wait(), timeout=1)

    await asyncio.gather(reader(), reader())

    assert lock.readers == 0


@pytest.mark.asyncio
async def test_writer_waits_for_active_reader() -> None:
    lock = ReadWriteLock()
    order: list[str] = []
    release_reader = asyncio.Event()

    async def reader() -> None:
        async with lock.read():
            order.append("read-start")
            await release_reader.wait()
            order.append("read-end")

    async def writer() -> None:
        async with lock.write():
            order.append("write")

    reader_task = asyncio.create_task(reader())
    await asyncio.sleep(0)
    writer_task = asyncio.create_task(writer())
    await asyncio.sleep(0.01)

    assert order == ["read-start"]
    release_reader.set()
    await asyncio.gather(reader_task, writer_task)

    assert order == ["read-start", "read-end", "write"]


@pytest.mark.asyncio
async def test_waiting_writer_blocks_new_readers() -> None:
    lock = ReadWriteLock()
    order: list[str] = []
    release_first = asyncio.Event()

    async def first_reader() -> None:
        async with lock.read():
            await release_first.wait()
            order.append("first-read")

    async def writer() -> None:
        async with lock.write():
            order.append("write")

    async def late_reader() -> None:
        async with lock.read():
            order.append("late-read")

    tasks = [asyncio.create_task(first_reader())]
    await asyncio.sleep(0)
    tasks.append(asyncio.create_task(writer()))
    await asyncio.sleep(0)
    tasks.append(asyncio.create_task(late_reader()))
    await asyncio.sleep(0.01)

    assert order == []
    release_first.set()
    await asyncio.gather(*tasks)

    assert order == ["first-read", "write", "late-read"]


@pytest.mark.asyncio
async def test_writers_are_exclusive() -> None:
    lock = ReadWriteLock()
    active = 0
    peak = 0

    async def writer() -> None:
        nonlocal active, peak
        async with lock.write():
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.001)
            active -= 1

    await asyncio.gather(*(writer() for _ in range(5)))

    assert peak == 1
    assert not lock.writer_active


@pytest.mark.asyncio
async def test_cancelled_writer_releases_waiting_readers() -> None:
    lock = ReadWriteLock()
    release_first = asyncio.Event()
    late_done = asyncio.Event()

    async def first_reader() -> None:
        async with lock.read():
            await release_first.wait()

    async def writer() -> None:
        async with lock.write():
            pass

    async def late_reader() -> None:
        async with lock.read():
            late_done.set()

    first = asyncio.create_task(first_reader())
    await asyncio.sleep(0)
    pending_writer = asyncio.create_task(writer())
    await asyncio.sleep(0)
    late = asyncio.create_task(late_reader())
    await asyncio.sleep(0.01)

    pending_writer.cancel()
    await asyncio.wait_for(late_done.wait(), timeout=1)

    release_first.set()
    await asyncio.gather(first, late)
    with pytest.raises(asyncio.CancelledError):
        await pending_writer


@pytest.mark.asyncio
async def test_shared_collection_toggle_and_reload(alien_library: Library) -> None:
    shared = await SharedCollection.open(alien_library.movie_root, alien_library.tag_root)
    alien_id = MovieId.from_path("Alien (1979)")

    assert await shared.toggle_tag("Horror", alien_id) is True
    async with shared.read() as collection:
        assert alien_id in collection.tags["Horror"]

    alien_library.add_tag("Drama")
    await shared.reload()
    async with shared.read() as collection:
        assert collection.tags["Horror"] == frozenset({alien_id})
        assert collection.tags["Drama"] == frozenset()


@pytest.mark.asyncio
async def test_shared_collection_unknown_movie_raises(alien_library: Library) -> None:
    shared = await SharedCollection.open(alien_library.movie_root, alien_library.tag_root)

    with pytest.raises(NotFoundError):
        await shared.toggle_tag("Horror", MovieId.from_path("Missing (2000)"))

    assert not shared.lock.writer_active


@pytest.mark.asyncio
async def test_concurrent_toggles_keep_index_and_links_consistent(alien_library: Library) -> None:
    for index in range(5):
        alien_library.add_movie(f"Movie {index}")
    shared = await SharedCollection.open(alien_library.movie_root, alien_library.tag_root)
    ids = [MovieId.from_path(f"Movie {index}") for index in range(5)]

    await asyncio.gather(*(shared.toggle_tag("Horror", movie_id) for movie_id in ids))

    async with shared.read() as collection:
        assert collection.tags["Horror"] == frozenset(ids)
    links = {entry.name for entry in (alien_library.tag_root / "Horror").iterdir()}
    assert links == {f"Movie {index}" for index in range(5)}
