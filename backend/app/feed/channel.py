"""Latest-value broadcast cell with change notification."""

from __future__ import annotations

import asyncio
from threading import Lock
from typing import Generic, TypeVar

T = TypeVar("T")


class ChannelClosed(Exception):
    """Raised when sending on, or waiting on, a closed Broadcast."""


class Broadcast(Generic[T]):
    """Single-writer, multi-reader cell holding the latest value of type T.

    This is not a queue: ``send()`` replaces the value and bumps a version
    counter. Readers hold a Subscription that remembers the version it last
    saw, so a slow or absent reader simply observes the newest value next time
    it looks and never blocks the writer.

    ``send()`` may be called from any thread; async waiters are woken on their
    own event loop.
    """

    def __init__(self, initial: T) -> None:
        self._value = initial
        self._version = 0
        self._closed = False
        self._lock = Lock()
        self._waiters: list[asyncio.Future[None]] = []

    def send(self, value: T) -> int:
        """Replace the current value. Returns the new version.

        Raises ChannelClosed if the cell has been closed.
        """
        with self._lock:
            if self._closed:
                raise ChannelClosed("Broadcast is closed")
            self._value = value
            self._version += 1
            version = self._version
            waiters, self._waiters = self._waiters, []
        _wake(waiters)
        return version

    def get(self) -> T:
        with self._lock:
            return self._value

    @property
    def version(self) -> int:
        return self._version

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Refuse further sends and wake every waiter. Safe to call twice."""
        with self._lock:
            self._closed = True
            waiters, self._waiters = self._waiters, []
        _wake(waiters)

    def subscribe(self) -> Subscription[T]:
        """New read handle that considers the current value already seen."""
        return Subscription(self, self._version)

    # --- Internal ---

    def _snapshot(self) -> tuple[T, int]:
        with self._lock:
            return self._value, self._version

    async def _wait_past(self, version: int) -> None:
        loop = asyncio.get_running_loop()
        while True:
            with self._lock:
                if self._version != version:
                    return
                if self._closed:
                    raise ChannelClosed("Broadcast is closed")
                waiter: asyncio.Future[None] = loop.create_future()
                self._waiters.append(waiter)
            try:
                await waiter
            finally:
                with self._lock:
                    if waiter in self._waiters:
                        self._waiters.remove(waiter)


class Subscription(Generic[T]):
    """Read-only handle on a Broadcast with its own "last seen" version."""

    def __init__(self, channel: Broadcast[T], seen: int) -> None:
        self._channel = channel
        self._seen = seen

    def has_changed(self) -> bool:
        """True if a value was sent since this handle last marked one seen."""
        return self._channel.version != self._seen

    def borrow(self) -> T:
        """Current value, without marking it seen."""
        return self._channel.get()

    def borrow_and_update(self) -> T:
        """Current value, marking it seen."""
        value, version = self._channel._snapshot()
        self._seen = version
        return value

    async def changed(self) -> None:
        """Wait until an unseen value is available. Does not mark it seen.

        Raises ChannelClosed if the channel is closed and nothing unseen
        remains.
        """
        await self._channel._wait_past(self._seen)

    @property
    def closed(self) -> bool:
        return self._channel.closed


def _wake(waiters: list[asyncio.Future[None]]) -> None:
    for waiter in waiters:
        loop = waiter.get_loop()
        if not loop.is_closed():
            loop.call_soon_threadsafe(_resolve, waiter)


def _resolve(waiter: asyncio.Future[None]) -> None:
    if not waiter.done():
        waiter.set_result(None)
