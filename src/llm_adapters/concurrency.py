"""
Async concurrency helpers.

The adapters are async-first, but user-supplied function callbacks and
embedding tokenizers are often synchronous and must not block the event loop.
"""

from __future__ import annotations

import asyncio
import inspect
import os
from collections.abc import Awaitable, Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Any, TypeVar

T = TypeVar("T")


def _default_max_workers() -> int:
    return min(32, (os.cpu_count() or 1) + 4)


_EXECUTOR = ThreadPoolExecutor(max_workers=_default_max_workers(), thread_name_prefix="llm-adapters")


async def run_sync(func: Callable[..., T], /, *args: Any, **kwargs: Any) -> T:
    """
    Run a synchronous callable in the shared thread pool.

    The concurrent future is polled rather than awaited through
    ``run_in_executor`` so cross-thread wakeups never stall the loop.
    """
    future = _EXECUTOR.submit(partial(func, *args, **kwargs))
    try:
        while True:
            if future.done():
                return future.result()
            await asyncio.sleep(0.001)
    except asyncio.CancelledError:
        future.cancel()
        raise


async def call_maybe_async(func: Callable[..., Any], /, *args: Any, **kwargs: Any) -> Any:
    """Invoke ``func`` directly if it is a coroutine function, otherwise in the pool."""
    if inspect.iscoroutinefunction(func):
        return await func(*args, **kwargs)
    result = await run_sync(func, *args, **kwargs)
    if inspect.isawaitable(result):
        return await result
    return result


async def gather_limited(
    coros: Iterable[Awaitable[T]],
    *,
    limit: int | None = None,
) -> list[T]:
    """
    Await coroutines concurrently, preserving input order in the result.

    Args:
        coros: Awaitables to run
        limit: Maximum number in flight at once (unbounded if None)
    """
    if limit is None:
        return list(await asyncio.gather(*coros))

    semaphore = asyncio.Semaphore(limit)

    async def _bounded(aw: Awaitable[T]) -> T:
        async with semaphore:
            return await aw

    return list(await asyncio.gather(*(_bounded(c) for c in coros)))


__all__ = ["run_sync", "call_maybe_async", "gather_limited"]
