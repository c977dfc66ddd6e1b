"""Tests for PriceCache (the publication channel)."""

import asyncio

import pytest

from app.feed.cache import PriceCache
from app.feed.channel import ChannelClosed
from app.feed.models import PriceResult


class TestPriceCache:
    """Unit tests for the PriceCache."""

    def test_record_price_and_get(self):
        """Test recording and reading a successful price."""
        cache = PriceCache()
        result = cache.record_price("SOL", 150.25)
        assert result.key == "SOL"
        assert result.value == 150.25
        assert result.consecutive_failures == 0
        assert cache.get("SOL") == result

    def test_never_fetched_is_absent(self):
        """A key with no publication returns None, distinct from a failure."""
        cache = PriceCache()
        assert cache.get("SOL") is None
        assert "SOL" not in cache

    def test_record_failure(self):
        """A failure is published with no value and its failure count."""
        cache = PriceCache()
        result = cache.record_failure("SOL", 2, error="timeout")
        assert result.value is None
        assert result.consecutive_failures == 2
        assert result.error == "timeout"
        assert cache.get("SOL") == result
        assert cache.get_price("SOL") is None

    def test_previous_value_carried_forward(self):
        """previous_value is the last good value, surviving failures."""
        cache = PriceCache()
        cache.record_price("SOL", 150.0)
        failed = cache.record_failure("SOL", 1)
        assert failed.previous_value == 150.0
        recovered = cache.record_price("SOL", 155.0)
        assert recovered.previous_value == 150.0
        assert recovered.direction == "up"

    def test_first_price_is_flat(self):
        """The first result for a key has no previous value."""
        cache = PriceCache()
        result = cache.record_price("SOL", 150.0)
        assert result.previous_value is None
        assert result.direction == "flat"

    def test_raw_value_not_rounded(self):
        """Tiny prices keep full precision."""
        cache = PriceCache()
        assert cache.record_price("BONK", 0.0000234567).value == 0.0000234567

    def test_publish_prebuilt_result(self):
        """publish() stores a result under its own key."""
        cache = PriceCache()
        result = PriceResult(key="A_B", value=0.021)
        cache.publish(result)
        assert cache.get("A_B") is result

    def test_get_all_snapshot_is_stable(self):
        """A snapshot does not change after later publications."""
        cache = PriceCache()
        cache.record_price("SOL", 150.0)
        snapshot = cache.get_all()
        cache.record_price("JUP", 0.9)
        assert set(snapshot) == {"SOL"}
        assert set(cache.get_all()) == {"SOL", "JUP"}

    def test_snapshot_is_read_only(self):
        """Readers cannot mutate the published map."""
        cache = PriceCache()
        cache.record_price("SOL", 150.0)
        with pytest.raises(TypeError):
            cache.get_all()["SOL"] = None

    def test_version_increments(self):
        """Every publication, success or failure, bumps the version."""
        cache = PriceCache()
        v0 = cache.version
        cache.record_price("SOL", 150.0)
        cache.record_failure("SOL", 1)
        assert cache.version == v0 + 2

    def test_len(self):
        """Length counts distinct keys, not publications."""
        cache = PriceCache()
        assert len(cache) == 0
        cache.record_price("SOL", 150.0)
        cache.record_price("SOL", 151.0)
        cache.record_price("JUP", 0.9)
        assert len(cache) == 2

    def test_closed_cache_rejects_publications(self):
        """Publishing after close() raises ChannelClosed."""
        cache = PriceCache()
        cache.close()
        assert cache.closed
        with pytest.raises(ChannelClosed):
            cache.record_price("SOL", 150.0)
        with pytest.raises(ChannelClosed):
            cache.record_failure("SOL", 1)

    def test_custom_timestamp(self):
        """Test recording with a custom timestamp."""
        cache = PriceCache()
        result = cache.record_price("SOL", 150.0, timestamp=1234567890.0)
        assert result.timestamp == 1234567890.0

    def test_zero_timestamp_is_kept(self):
        """An explicit epoch timestamp is not replaced by the current time."""
        cache = PriceCache()
        assert cache.record_price("SOL", 150.0, timestamp=0.0).timestamp == 0.0


@pytest.mark.asyncio
class TestPriceCacheSubscription:
    """Observers are notified of publications without polling."""

    async def test_subscriber_notified(self):
        """A subscriber wakes on publication and sees the new map."""
        cache = PriceCache()
        sub = cache.subscribe()
        waiter = asyncio.create_task(sub.changed())
        await asyncio.sleep(0)

        cache.record_price("SOL", 150.0)
        await asyncio.wait_for(waiter, timeout=1.0)
        assert sub.borrow_and_update()["SOL"].value == 150.0

    async def test_independent_observers(self):
        """Each observer tracks what it has seen on its own."""
        cache = PriceCache()
        a = cache.subscribe()
        b = cache.subscribe()
        cache.record_price("SOL", 150.0)
        a.borrow_and_update()
        assert not a.has_changed()
        assert b.has_changed()
