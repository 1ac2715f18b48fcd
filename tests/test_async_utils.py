"""
Tests for async_utils module.

Covers run_sync.
"""

import asyncio
import threading

import pytest

from confluence_book_sync.core.async_utils import run_sync


def _sync_add(a: int, b: int) -> int:
    """Simple sync function for testing."""
    return a + b


async def test_run_sync_calls_function():
    """run_sync delegates to asyncio.to_thread with correct args."""
    result = await run_sync(_sync_add, 3, 4)
    assert result == 7


async def test_run_sync_passes_kwargs():
    """run_sync forwards keyword arguments."""

    def _kw_func(*, name: str) -> str:
        return f"hello {name}"

    result = await run_sync(_kw_func, name="world")
    assert result == "hello world"


async def test_run_sync_runs_off_the_event_loop_thread():
    """The function executes in a worker thread."""
    loop_thread = threading.get_ident()
    worker_thread = await run_sync(threading.get_ident)
    assert worker_thread != loop_thread


async def test_run_sync_propagates_exceptions():
    """Exceptions raised in the worker surface in the awaiting coroutine."""

    def _boom():
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError, match="boom"):
        await run_sync(_boom)


async def test_run_sync_calls_overlap():
    """Blocking calls gathered together run concurrently."""
    barrier = threading.Barrier(2, timeout=5)

    def _wait():
        barrier.wait()
        return True

    results = await asyncio.gather(run_sync(_wait), run_sync(_wait))
    assert results == [True, True]
