"""Async utilities for bridging blocking XML-RPC calls into the sync engine."""

import asyncio
from typing import Any, Callable, TypeVar

T = TypeVar("T")


async def run_sync(
    func: Callable[..., T], *args: Any, **kwargs: Any
) -> T:
    """Run a synchronous function in a thread pool without blocking the event loop.

    Every Confluence call and every local file read in the engine goes
    through here, so sibling pages make progress while one of them waits
    on the network.

    Args:
        func: Synchronous function to call
        *args: Positional arguments for func
        **kwargs: Keyword arguments for func

    Returns:
        Result of func(*args, **kwargs)

    Example:
        client = ConfluenceClient(config)
        page = await run_sync(client.get_page, 42)
    """
    return await asyncio.to_thread(func, *args, **kwargs)
