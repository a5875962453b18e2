"""Catdex — Blocking worker pool tests."""

import asyncio
import threading
import time

import pytest

from catdex.exceptions import PoolExhaustedError, UnexpectedError
from catdex.workers import BlockingExecutor


@pytest.mark.asyncio
async def test_runs_off_the_event_loop_thread(executor):
    loop_thread = threading.current_thread()
    worker_thread = await executor.run(threading.current_thread)
    assert worker_thread is not loop_thread
    assert worker_thread.name.startswith("catdex-blocking")


@pytest.mark.asyncio
async def test_passes_arguments_and_returns_result(executor):
    assert await executor.run(pow, 2, 10) == 1024


@pytest.mark.asyncio
async def test_exceptions_propagate_unchanged(executor):
    def fail():
        raise KeyError("boom")

    with pytest.raises(KeyError):
        await executor.run(fail)


@pytest.mark.asyncio
async def test_dispatch_after_shutdown_is_unexpected_error():
    executor = BlockingExecutor(max_workers=1)
    executor.shutdown()
    with pytest.raises(UnexpectedError) as info:
        await executor.run(pow, 2, 2)
    assert info.value.operation == "dispatch"


@pytest.mark.asyncio
async def test_queued_call_past_deadline_is_cancelled():
    executor = BlockingExecutor(max_workers=1)
    release = threading.Event()
    ran = []
    try:
        busy = asyncio.ensure_future(executor.run(release.wait, 5))
        await asyncio.sleep(0.05)

        started = time.monotonic()
        with pytest.raises(PoolExhaustedError) as info:
            await executor.run(ran.append, "late", queue_timeout=0.2)
        assert time.monotonic() - started < 1.0
        assert info.value.context["timeout_seconds"] == 0.2

        release.set()
        assert await busy is True
        assert ran == []
    finally:
        release.set()
        executor.shutdown()


@pytest.mark.asyncio
async def test_started_call_is_not_cut_off_by_deadline(executor):
    assert await executor.run(time.sleep, 0.3, queue_timeout=0.1) is None
