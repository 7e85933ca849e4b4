"""Async utilities for running coroutines in sync contexts."""

import asyncio
from collections.abc import Coroutine
from typing import Any, TypeVar

T = TypeVar("T")

_loop: asyncio.AbstractEventLoop | None = None


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """Run an async coroutine from synchronous code (CLI commands).

    All calls share one event loop, which is left open: an adapter's httpx
    client is bound to the loop it was created on and must be closed by a
    later ``run_async`` call on that same loop.

    Args:
        coro: The coroutine to execute.

    Returns:
        The result of the coroutine.
    """
    global _loop
    if _loop is None or _loop.is_closed():
        _loop = asyncio.new_event_loop()
    return _loop.run_until_complete(coro)
