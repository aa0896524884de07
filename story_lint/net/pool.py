# File: story_lint/net/pool.py
"""
Bounded fetch pool: caps the number of outbound requests in flight across all checks.
"""
from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, TypeVar

T = TypeVar("T")

__all__ = ["FetchPool", "DEFAULT_POOL_SIZE"]

DEFAULT_POOL_SIZE = 8


class FetchPool:
    """Admits at most ``size`` concurrent operations; waiters are admitted in FIFO order.

    No retries and no per-call timeout happen here: a failing operation
    propagates its exception unchanged, after the slot has been released.
    """

    def __init__(self, size: int = DEFAULT_POOL_SIZE) -> None:
        if size < 1:
            raise ValueError("pool size must be >= 1")
        self.size = size
        self._semaphore = asyncio.Semaphore(size)
        self.in_flight = 0
        self.peak = 0
        self.completed = 0

    @asynccontextmanager
    async def slot(self) -> AsyncIterator[None]:
        """Hold one slot for the duration of the ``async with`` body."""
        async with self._semaphore:
            self.in_flight += 1
            self.peak = max(self.peak, self.in_flight)
            try:
                yield
            finally:
                self.in_flight -= 1
                self.completed += 1

    async def run(self, fn: Callable[..., Awaitable[T]], *args, **kwargs) -> T:
        """Run ``fn(*args, **kwargs)`` inside a slot and return its result."""
        async with self.slot():
            return await fn(*args, **kwargs)

    def __repr__(self) -> str:
        return f"<FetchPool size={self.size} in_flight={self.in_flight} peak={self.peak}>"
