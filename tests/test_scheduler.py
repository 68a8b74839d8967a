import asyncio

import pytest

from giveaway_engine import AsyncioScheduler


@pytest.mark.asyncio
async def test_callback_runs_after_delay():
    scheduler = AsyncioScheduler()
    fired = asyncio.Event()

    async def callback():
        fired.set()

    scheduler.schedule_once(0.01, callback)
    assert scheduler.pending == 1

    await asyncio.wait_for(fired.wait(), timeout=1)
    await asyncio.sleep(0)
    assert scheduler.pending == 0


@pytest.mark.asyncio
async def test_negative_delay_runs_immediately():
    scheduler = AsyncioScheduler()
    calls = []

    async def callback():
        calls.append(1)

    task = scheduler.schedule_once(-5, callback)
    await asyncio.wait_for(task, timeout=1)

    assert calls == [1]


@pytest.mark.asyncio
async def test_cancel_prevents_callback():
    scheduler = AsyncioScheduler()
    calls = []

    async def callback():
        calls.append(1)

    handle = scheduler.schedule_once(0.05, callback)
    handle.cancel()
    await asyncio.sleep(0.1)

    assert calls == []
    assert scheduler.pending == 0


@pytest.mark.asyncio
async def test_callback_errors_are_logged_not_raised(caplog):
    scheduler = AsyncioScheduler()

    async def callback():
        raise RuntimeError("boom")

    task = scheduler.schedule_once(0, callback)
    await asyncio.wait_for(task, timeout=1)

    assert not task.cancelled()
    assert task.exception() is None
    assert "Scheduled callback failed" in caplog.text


@pytest.mark.asyncio
async def test_cancel_all():
    scheduler = AsyncioScheduler()
    calls = []

    async def callback():
        calls.append(1)

    scheduler.schedule_once(0.05, callback)
    scheduler.schedule_once(0.05, callback)
    scheduler.cancel_all()
    await asyncio.sleep(0.1)

    assert calls == []
