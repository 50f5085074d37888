"""
Async utilities for wrapping blocking calls in FastAPI handlers.

Blocking operations (Bot API calls via httpx, subprocess, file I/O) should be
wrapped with run_sync() so they do not stall the asyncio event loop.
"""
from __future__ import annotations

import asyncio
import functools
from concurrent.futures import ThreadPoolExecutor
from typing import TypeVar, Callable

T = TypeVar("T")

# Only startup/shutdown calls go through here; update processing runs as
# Starlette background tasks.
_executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="api-sync")


async def run_sync(fn: Callable[..., T], *args, **kwargs) -> T:
    """Run a synchronous blocking function in the thread pool executor.

    Usage:
        result = await run_sync(blocking_function, arg1, arg2)
        result = await run_sync(obj.method, arg1, kwarg=value)
    """
    loop = asyncio.get_running_loop()
    if kwargs:
        call = functools.partial(fn, *args, **kwargs)
        return await loop.run_in_executor(_executor, call)
    return await loop.run_in_executor(_executor, fn, *args)
