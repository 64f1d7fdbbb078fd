"""Bounded, closable hand-off channel between two threads.

The watchdog observer thread sends into the channel; the copy loop
receives from it.  With the default capacity of one, a sender blocks
until the previous item has been taken, so at most one event is ever
buffered ahead of the consumer.
"""

from __future__ import annotations

import collections
import threading
from typing import Generic, TypeVar

T = TypeVar("T")


class ChannelClosed(Exception):
    """Raised when sending into a closed channel."""


class BoundedChannel(Generic[T]):
    """FIFO channel with blocking send/receive and explicit close."""

    def __init__(self, capacity: int = 1):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._capacity = capacity
        self._items: collections.deque[T] = collections.deque()
        self._closed = False
        self._cond = threading.Condition(threading.Lock())

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    def __len__(self) -> int:
        with self._cond:
            return len(self._items)

    def send(self, item: T) -> None:
        """Append *item*, blocking while the channel is full."""
        with self._cond:
            while len(self._items) >= self._capacity and not self._closed:
                self._cond.wait()
            if self._closed:
                raise ChannelClosed("channel is closed")
            self._items.append(item)
            self._cond.notify_all()

    def receive(self) -> T | None:
        """Take the next item, blocking until one is available.

        Returns None once the channel is closed and fully drained.
        """
        with self._cond:
            while not self._items and not self._closed:
                self._cond.wait()
            if not self._items:
                return None
            item = self._items.popleft()
            self._cond.notify_all()
            return item

    def close(self) -> None:
        """Close the channel and wake every blocked sender and receiver."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()
