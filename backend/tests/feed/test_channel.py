"""Tests for the Broadcast latest-value cell."""

import asyncio
import threading

import pytest

from app.feed.channel import Broadcast, ChannelClosed


class TestBroadcast:
    """Synchronous behaviour of Broadcast and Subscription."""

    def test_initial_value(self):
        """A new cell holds its initial value at version 0."""
        cell = Broadcast("a")
        assert cell.get() == "a"
        assert cell.version == 0

    def test_send_replaces_value(self):
        """send() overwrites the value and bumps the version."""
        cell = Broadcast("a")
        assert cell.send("b") == 1
        assert cell.get() == "b"
        assert cell.version == 1

    def test_new_subscription_has_not_changed(self):
        """A subscription treats the value at subscribe time as seen."""
        cell = Broadcast("a")
        sub = cell.subscribe()
        assert not sub.has_changed()
        assert sub.borrow() == "a"

    def test_has_changed_after_send(self):
        """has_changed() flips after a send and resets on borrow_and_update()."""
        cell = Broadcast("a")
        sub = cell.subscribe()
        cell.send("b")
        assert sub.has_changed()
        assert sub.borrow() == "b"
        assert sub.has_changed()  # borrow() does not mark seen
        assert sub.borrow_and_update() == "b"
        assert not sub.has_changed()

    def test_slow_reader_sees_latest_only(self):
        """Values sent while nobody looks are collapsed into the newest."""
        cell = Broadcast(0)
        sub = cell.subscribe()
        for i in range(1, 6):
            cell.send(i)
        assert sub.borrow_and_update() == 5
        assert not sub.has_changed()

    def test_subscribers_are_independent(self):
        """Marking a value seen on one subscription leaves others untouched."""
        cell = Broadcast("a")
        first = cell.subscribe()
        second = cell.subscribe()
        cell.send("b")
        first.borrow_and_update()
        assert not first.has_changed()
        assert second.has_changed()

    def test_send_after_close_raises(self):
        """A closed cell refuses new values."""
        cell = Broadcast("a")
        cell.close()
        assert cell.closed
        with pytest.raises(ChannelClosed):
            cell.send("b")
        assert cell.get() == "a"

    def test_close_is_idempotent(self):
        """close() can be called more than once."""
        cell = Broadcast("a")
        cell.close()
        cell.close()
        assert cell.subscribe().closed


@pytest.mark.asyncio
class TestBroadcastAsync:
    """Change notification."""

    async def test_changed_wakes_on_send(self):
        """changed() returns once a new value is sent."""
        cell = Broadcast("a")
        sub = cell.subscribe()
        waiter = asyncio.create_task(sub.changed())
        await asyncio.sleep(0)
        assert not waiter.done()

        cell.send("b")
        await asyncio.wait_for(waiter, timeout=1.0)
        assert sub.borrow_and_update() == "b"

    async def test_changed_returns_immediately_when_unseen(self):
        """An unseen value satisfies changed() without waiting."""
        cell = Broadcast("a")
        sub = cell.subscribe()
        cell.send("b")
        await asyncio.wait_for(sub.changed(), timeout=0.1)

    async def test_changed_wakes_every_subscriber(self):
        """All waiting readers are notified by a single send."""
        cell = Broadcast(0)
        subs = [cell.subscribe() for _ in range(3)]
        waiters = [asyncio.create_task(sub.changed()) for sub in subs]
        await asyncio.sleep(0)

        cell.send(1)
        await asyncio.wait_for(asyncio.gather(*waiters), timeout=1.0)
        assert [sub.borrow_and_update() for sub in subs] == [1, 1, 1]

    async def test_changed_raises_when_closed(self):
        """A waiter is released with ChannelClosed when the cell closes."""
        cell = Broadcast("a")
        sub = cell.subscribe()
        waiter = asyncio.create_task(sub.changed())
        await asyncio.sleep(0)

        cell.close()
        with pytest.raises(ChannelClosed):
            await asyncio.wait_for(waiter, timeout=1.0)

    async def test_unseen_value_delivered_before_closed(self):
        """A value sent before close() is still observable as a change."""
        cell = Broadcast("a")
        sub = cell.subscribe()
        cell.send("b")
        cell.close()
        await sub.changed()
        assert sub.borrow_and_update() == "b"
        with pytest.raises(ChannelClosed):
            await sub.changed()

    async def test_cancelled_waiter_is_discarded(self):
        """Cancelling a waiter does not break later sends."""
        cell = Broadcast("a")
        sub = cell.subscribe()
        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(sub.changed(), timeout=0.01)
        assert cell.send("b") == 1
        await asyncio.wait_for(sub.changed(), timeout=0.1)

    async def test_send_from_another_thread(self):
        """A send from a worker thread wakes an async reader."""
        cell = Broadcast("a")
        sub = cell.subscribe()
        waiter = asyncio.create_task(sub.changed())
        await asyncio.sleep(0)

        thread = threading.Thread(target=cell.send, args=("b",))
        thread.start()
        await asyncio.wait_for(waiter, timeout=1.0)
        thread.join()
        assert sub.borrow_and_update() == "b"
