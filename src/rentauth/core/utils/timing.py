"""Timing helpers for responses that must not leak account existence."""

import asyncio
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager


@asynccontextmanager
async def response_floor(
    seconds: float,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> AsyncIterator[None]:
    """Make the wrapped block last at least ``seconds``.

    Lookups that find nothing return much faster than lookups followed by a
    store write and a delivery call. Padding both paths to the same floor
    removes the fast path, including when the block raises.

    Example:
        async with response_floor(0.3):
            await request_otp(...)
    """
    started = time.perf_counter()
    try:
        yield
    finally:
        remaining = seconds - (time.perf_counter() - started)
        if remaining > 0:
            await sleep(remaining)
