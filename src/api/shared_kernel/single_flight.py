"""Request coalescing for concurrent cache misses.

Concurrent callers asking for the same key while a computation for that
key is in flight await the same task instead of starting their own.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Hashable
from typing import Generic, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class SingleFlight(Generic[K, V]):
    """Collapses concurrent calls for the same key into one execution.

    The first caller for a key starts the work as its own task; later
    callers await that task. The key is forgotten as soon as the task
    finishes (successfully or not), so failures are never cached and the
    next call starts fresh.

    Each caller awaits through ``asyncio.shield``: cancelling one waiter
    does not cancel the shared work the other waiters depend on.

    Example:
        flight: SingleFlight[str, Client] = SingleFlight()
        client = await flight.do("tenant-1", lambda: build_client("tenant-1"))
    """

    def __init__(self) -> None:
        self._calls: dict[K, asyncio.Task[V]] = {}

    def __len__(self) -> int:
        return len(self._calls)

    def in_flight(self, key: K) -> bool:
        """Return True when a computation for ``key`` is running."""
        return key in self._calls

    async def do(self, key: K, fn: Callable[[], Awaitable[V]]) -> V:
        """Run ``fn`` for ``key`` unless a run for ``key`` is already in flight.

        Args:
            key: Coalescing key.
            fn: Zero-argument coroutine factory producing the value.

        Returns:
            The value produced by the single shared execution.

        Raises:
            Whatever ``fn`` raised, to every waiter.
        """
        task = self._calls.get(key)
        if task is None:
            task = asyncio.ensure_future(fn())
            self._calls[key] = task
            task.add_done_callback(lambda done, k=key: self._forget(k, done))
        return await asyncio.shield(task)

    def _forget(self, key: K, task: asyncio.Task[V]) -> None:
        if self._calls.get(key) is task:
            del self._calls[key]
        # Mark the exception retrieved; waiters already received it.
        if not task.cancelled():
            task.exception()
