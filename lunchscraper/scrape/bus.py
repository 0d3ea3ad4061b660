"""
Lunch Scraper — Command / Result Bus

Two channels connect the supervisor with its scraper tasks:

- BroadcastChannel: every subscriber sees every command (fan-out). Each
  subscription buffers up to `capacity` items; a subscriber that falls
  further behind loses its oldest items and is told so with Lagged on its
  next recv().
- ResultChannel: bounded many-producer / single-consumer queue (fan-in).
  Producers block while it is full; nothing is dropped.

Both raise ChannelClosed once closed, which callers treat as "stop", not as
a failure.
"""

from __future__ import annotations

import asyncio
from collections import deque
from enum import Enum
from typing import Generic, TypeVar

import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class Command(str, Enum):
    """Commands broadcast to every scraper task."""
    RUN = "run"
    SHUTDOWN = "shutdown"


class ChannelClosed(Exception):
    """The channel was closed; no more items will arrive or be accepted."""


class Lagged(Exception):
    """The subscriber fell behind and `missed` items were dropped."""

    def __init__(self, missed: int) -> None:
        super().__init__(f"subscriber lagged behind by {missed} item(s)")
        self.missed = missed


# ---------------------------------------------------------------------------
# Broadcast (fan-out)
# ---------------------------------------------------------------------------


class Subscription(Generic[T]):
    """One receiver on a BroadcastChannel."""

    def __init__(self, channel: BroadcastChannel[T], capacity: int) -> None:
        self._channel = channel
        self._buffer: deque[T] = deque()
        self._capacity = capacity
        self._missed = 0
        self._ready = asyncio.Event()

    def _push(self, item: T) -> None:
        if len(self._buffer) >= self._capacity:
            self._buffer.popleft()
            self._missed += 1
        self._buffer.append(item)
        self._ready.set()

    def _wake(self) -> None:
        self._ready.set()

    async def recv(self) -> T:
        """
        Wait for the next item.

        Raises:
            Lagged: items were dropped since the last recv(); the next call
                resumes with the oldest item still buffered.
            ChannelClosed: the channel is closed and the buffer is drained.
        """
        while True:
            if self._missed:
                missed, self._missed = self._missed, 0
                raise Lagged(missed)
            if self._buffer:
                return self._buffer.popleft()
            if self._channel.closed:
                raise ChannelClosed()
            self._ready.clear()
            await self._ready.wait()

    def close(self) -> None:
        """Unsubscribe. Further sends no longer reach this receiver."""
        self._channel._unsubscribe(self)


class BroadcastChannel(Generic[T]):
    """
    Multi-subscriber channel: each subscription receives every item sent
    after it subscribed.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be at least 1, got {capacity}")
        self._capacity = capacity
        self._subscribers: list[Subscription[T]] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def receiver_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self) -> Subscription[T]:
        sub: Subscription[T] = Subscription(self, self._capacity)
        self._subscribers.append(sub)
        return sub

    def _unsubscribe(self, sub: Subscription[T]) -> None:
        if sub in self._subscribers:
            self._subscribers.remove(sub)

    def send(self, item: T) -> int:
        """
        Deliver `item` to every current subscriber without waiting.

        Returns:
            Number of subscribers reached.
        """
        if self._closed:
            raise ChannelClosed()
        for sub in self._subscribers:
            sub._push(item)
        return len(self._subscribers)

    def close(self) -> None:
        """Close the channel; subscribers drain their buffers, then stop."""
        self._closed = True
        for sub in self._subscribers:
            sub._wake()


# ---------------------------------------------------------------------------
# Result queue (fan-in)
# ---------------------------------------------------------------------------


class ResultChannel(Generic[T]):
    """Bounded MPSC queue with blocking sends."""

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be at least 1, got {capacity}")
        self._capacity = capacity
        self._items: deque[T] = deque()
        self._closed = False
        self._cond = asyncio.Condition()

    @property
    def closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        return len(self._items)

    async def send(self, item: T) -> None:
        """Enqueue `item`, waiting while the channel is full."""
        async with self._cond:
            await self._cond.wait_for(
                lambda: self._closed or len(self._items) < self._capacity
            )
            if self._closed:
                raise ChannelClosed()
            self._items.append(item)
            self._cond.notify_all()

    async def recv(self) -> T:
        """Dequeue the oldest item, waiting while the channel is empty."""
        async with self._cond:
            await self._cond.wait_for(lambda: self._closed or bool(self._items))
            if not self._items:
                raise ChannelClosed()
            item = self._items.popleft()
            self._cond.notify_all()
            return item

    async def close(self) -> None:
        """Close the channel and wake every waiting sender and receiver."""
        async with self._cond:
            self._closed = True
            self._cond.notify_all()
