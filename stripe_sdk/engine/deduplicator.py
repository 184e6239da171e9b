"""
RequestDeduplicator - optional single-flight for cacheable calls.

When several invocations share a fingerprint while one is in flight, they
await the same task instead of each hitting the network. Disabled unless the
SDK is built with coalesce_inflight=True.
"""

import asyncio
from typing import Any, Awaitable, Callable, TypeVar

from loguru import logger

T = TypeVar("T")


class RequestDeduplicator:
    """
    Deduplicates concurrent async requests by key.

    Usage:
        dedup = RequestDeduplicator()
        result = await dedup.dedupe(key, lambda: dispatch(context))
    """

    def __init__(self):
        self._in_flight: dict[str, asyncio.Task[Any]] = {}
        self._waiters: dict[asyncio.Task[Any], int] = {}
        self._lock = asyncio.Lock()

    async def dedupe(
        self,
        key: str,
        request_fn: Callable[[], Awaitable[T]],
    ) -> T:
        """
        Execute request_fn, or join the in-flight task with the same key.

        Waiters are shielded, so one cancelled waiter does not cancel the
        shared request for the others. When the last waiter is cancelled the
        shared request is cancelled too.
        """
        async with self._lock:
            task = self._in_flight.get(key)
            if task is not None:
                logger.debug(f"[Deduplicator] joining in-flight request {key[:16]}...")
            else:
                task = asyncio.create_task(self._execute_and_cleanup(key, request_fn))
                self._in_flight[key] = task
            self._waiters[task] = self._waiters.get(task, 0) + 1

        try:
            return await asyncio.shield(task)
        finally:
            if self._release(task) == 0 and not task.done():
                if self._in_flight.get(key) is task:
                    del self._in_flight[key]
                task.cancel()
                logger.debug(f"[Deduplicator] abandoned {key[:16]}...: no waiters left")

    def _release(self, task: asyncio.Task[Any]) -> int:
        remaining = self._waiters.pop(task, 1) - 1
        if remaining:
            self._waiters[task] = remaining
        return remaining

    async def _execute_and_cleanup(
        self,
        key: str,
        request_fn: Callable[[], Awaitable[T]],
    ) -> T:
        try:
            return await request_fn()
        finally:
            async with self._lock:
                if self._in_flight.get(key) is asyncio.current_task():
                    del self._in_flight[key]

    async def cancel_all(self) -> int:
        """Cancel all in-flight requests."""
        async with self._lock:
            count = len(self._in_flight)
            for task in self._in_flight.values():
                task.cancel()
            self._in_flight.clear()
            if count:
                logger.debug(f"[Deduplicator] cancelled {count} in-flight requests")
            return count
