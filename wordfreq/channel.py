"""Bounded, closable channel connecting pipeline stages."""

import asyncio
from collections import deque
from collections.abc import AsyncIterator
from typing import Generic, TypeVar

T = TypeVar("T")


class ChannelClosed(Exception):
    """Raised by put() on a closed channel, and by get() once it is drained."""


class Channel(Generic[T]):
    """
    Bounded FIFO channel with an end-of-stream signal.

    put() suspends while the channel is full and get() while it is empty.
    After close(), items already buffered are still delivered; consumers
    then see ChannelClosed. Any number of producers and consumers may share
    a channel.

    An item is only taken from or added to the buffer after the last
    suspension point of get() or put(), so a cancelled caller never loses
    or duplicates an item.
    """

    def __init__(self, maxsize: int):
        """
        Initialize the channel.

        Args:
            maxsize: Maximum number of buffered items. Must be positive.
        """
        if maxsize <= 0:
            raise ValueError("channel capacity must be positive")
        self._items: deque[T] = deque()
        self._maxsize = maxsize
        self._closed = False
        self._lock = asyncio.Lock()
        self._not_full = asyncio.Condition(self._lock)
        self._not_empty = asyncio.Condition(self._lock)

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def maxsize(self) -> int:
        return self._maxsize

    def qsize(self) -> int:
        """Number of buffered items."""
        return len(self._items)

    async def put(self, item: T) -> None:
        """
        Put an item, waiting for space if the channel is full.

        Raises:
            ChannelClosed: If the channel is, or becomes, closed.
        """
        async with self._not_full:
            await self._not_full.wait_for(
                lambda: self._closed or len(self._items) < self._maxsize
            )
            if self._closed:
                raise ChannelClosed("put on closed channel")
            self._items.append(item)
            self._not_empty.notify()

    async def get(self) -> T:
        """
        Get the next item, waiting if the channel is empty.

        Raises:
            ChannelClosed: If the channel is closed and fully drained.
        """
        async with self._not_empty:
            await self._not_empty.wait_for(lambda: self._closed or self._items)
            if not self._items:
                raise ChannelClosed("channel closed")
            item = self._items.popleft()
            self._not_full.notify()
            return item

    async def close(self) -> None:
        """Close the channel. Closing twice is a no-op."""
        async with self._lock:
            if self._closed:
                return
            self._closed = True
            self._not_full.notify_all()
            self._not_empty.notify_all()

    def __aiter__(self) -> AsyncIterator[T]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[T]:
        while True:
            try:
                yield await self.get()
            except ChannelClosed:
                return
