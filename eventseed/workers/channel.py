"""Bounded pipeline between synthesis (CPU) and bulk insert (I/O).

The only coupling between the two halves of a phase. Producers suspend in
``put`` while the buffer is full; consumers suspend in ``get`` while it is
empty and at least one producer is still open. Once every producer handle
is closed and the buffer drains, ``get`` returns ``None`` and ``async for``
stops.

``cancel()`` is the abort path: it wakes every waiter, discards buffered
batches, makes further ``put`` calls raise ``PipelineCancelled`` and ends
iteration for consumers (a consumer finishes the batch it already holds).

All state is touched from the event loop thread only.
"""

from __future__ import annotations

import asyncio
from collections import deque
from typing import Generic, TypeVar

T = TypeVar("T")


class PipelineCancelled(Exception):
    """Raised by ``put`` after the pipeline has been cancelled."""


class ProducerHandle(Generic[T]):
    """A producer's registration with the pipeline. Close it exactly once."""

    def __init__(self, pipeline: BoundedPipeline[T]):
        self._pipeline = pipeline
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def put(self, item: T) -> None:
        if self._closed:
            raise RuntimeError("put() on a closed producer handle")
        await self._pipeline._put(item)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._pipeline._release_producer()

    async def __aenter__(self) -> ProducerHandle[T]:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()


class BoundedPipeline(Generic[T]):
    """Capacity-limited FIFO of batches with producer accounting."""

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError("pipeline capacity must be at least 1")
        self._capacity = capacity
        self._items: deque[T] = deque()
        self._producers = 0
        self._cancelled = False
        self._cond = asyncio.Condition()

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def depth(self) -> int:
        return len(self._items)

    @property
    def active_producers(self) -> int:
        return self._producers

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def closed(self) -> bool:
        """No open producers and nothing left to drain."""
        return self._cancelled or (self._producers == 0 and not self._items)

    def open_producer(self) -> ProducerHandle[T]:
        """Register a producer. Register all producers before consumers start."""
        if self._cancelled:
            raise PipelineCancelled("pipeline was cancelled")
        self._producers += 1
        return ProducerHandle(self)

    async def _put(self, item: T) -> None:
        async with self._cond:
            await self._cond.wait_for(
                lambda: self._cancelled or len(self._items) < self._capacity
            )
            if self._cancelled:
                raise PipelineCancelled("pipeline was cancelled")
            self._items.append(item)
            self._cond.notify_all()

    async def _release_producer(self) -> None:
        async with self._cond:
            self._producers -= 1
            self._cond.notify_all()

    async def get(self) -> T | None:
        """Next batch, or ``None`` once closed and drained (or cancelled)."""
        async with self._cond:
            await self._cond.wait_for(
                lambda: self._cancelled or self._items or self._producers == 0
            )
            if self._cancelled or not self._items:
                return None
            item = self._items.popleft()
            self._cond.notify_all()
            return item

    async def cancel(self) -> None:
        async with self._cond:
            self._cancelled = True
            self._items.clear()
            self._cond.notify_all()

    def __aiter__(self) -> BoundedPipeline[T]:
        return self

    async def __anext__(self) -> T:
        item = await self.get()
        if item is None:
            raise StopAsyncIteration
        return item
