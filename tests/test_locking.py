"""Shared/exclusive access for one store."""

from __future__ import annotations

import asyncio

import pytest

from docstore.persistence.locking import ReadWriteLock


@pytest.mark.asyncio
async def test_readers_share_the_lock():
    lock = ReadWriteLock()
    async with lock.read():
        async with lock.read():
            assert lock.readers == 2
    assert lock.readers == 0


@pytest.mark.asyncio
async def test_writer_waits_for_readers_and_blocks_new_ones():
    lock = ReadWriteLock()
    order = []

    async def writer():
        async with lock.write():
            order.append("write")

    async def late_reader():
        async with lock.read():
            order.append("late read")

    async with lock.read():
        w = asyncio.create_task(writer())
        await asyncio.sleep(0)
        r = asyncio.create_task(late_reader())
        await asyncio.sleep(0)
        assert order == []
    await asyncio.gather(w, r)

    assert order == ["write", "late read"]
    assert not lock.writing and lock.readers == 0


@pytest.mark.asyncio
async def test_lock_is_released_on_error():
    lock = ReadWriteLock()
    with pytest.raises(RuntimeError):
        async with lock.write():
            raise RuntimeError("boom")
    assert not lock.writing
    async with lock.read():
        assert lock.readers == 1


@pytest.mark.asyncio
async def test_cancelled_writer_does_not_block_readers():
    lock = ReadWriteLock()
    async with lock.read():
        w = asyncio.create_task(lock.write().__aenter__())
        await asyncio.sleep(0)
        w.cancel()
        with pytest.raises(asyncio.CancelledError):
            await w
    async with lock.read():
        assert lock.readers == 1
