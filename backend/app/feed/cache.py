"""Price publication channel: the latest PriceResult for each selection key."""

from __future__ import annotations

import time
from collections.abc import Mapping
from threading import Lock
from types import MappingProxyType

from .channel import Broadcast, Subscription
from .models import PriceResult


class PriceCache:
    """Broadcast map of selection key -> latest PriceResult.

    Writers: PricePoller instances (the active selection plus any watch-list
    pollers), serialized by an internal lock.
    Readers: SSE stream, HTTP snapshot endpoints, any UI collaborator. Each
    reader subscribes and is told when a newer map is available.

    Every publication swaps in a new read-only map, so a snapshot handed to a
    reader never changes underneath it. Entries are overwritten, never removed.
    """

    def __init__(self) -> None:
        self._channel: Broadcast[Mapping[str, PriceResult]] = Broadcast(MappingProxyType({}))
        self._lock = Lock()

    def publish(self, result: PriceResult) -> PriceResult:
        """Make ``result`` the current entry for its key.

        Raises ChannelClosed once the cache has been closed.
        """
        with self._lock:
            return self._publish_locked(result)

    def record_price(self, key: str, value: float, timestamp: float | None = None) -> PriceResult:
        """Publish a successful fetch. Carries the last good value forward."""
        with self._lock:
            return self._publish_locked(
                PriceResult(
                    key=key,
                    value=value,
                    consecutive_failures=0,
                    timestamp=timestamp if timestamp is not None else time.time(),
                    previous_value=self._last_good_value(key),
                )
            )

    def record_failure(self, key: str, failures: int, error: str | None = None) -> PriceResult:
        """Publish a failed fetch with its consecutive failure count."""
        with self._lock:
            return self._publish_locked(
                PriceResult(
                    key=key,
                    value=None,
                    consecutive_failures=failures,
                    timestamp=time.time(),
                    previous_value=self._last_good_value(key),
                    error=error,
                )
            )

    def get(self, key: str) -> PriceResult | None:
        """Latest result for a key, or None if it was never fetched."""
        return self._channel.get().get(key)

    def get_all(self) -> Mapping[str, PriceResult]:
        """Read-only snapshot of every published result."""
        return self._channel.get()

    def get_price(self, key: str) -> float | None:
        """Convenience: the latest value, or None if unknown or failing."""
        result = self.get(key)
        return result.value if result else None

    def subscribe(self) -> Subscription[Mapping[str, PriceResult]]:
        return self._channel.subscribe()

    def close(self) -> None:
        """Stop accepting publications. Pollers writing afterwards fail."""
        self._channel.close()

    @property
    def closed(self) -> bool:
        return self._channel.closed

    @property
    def version(self) -> int:
        """Bumped on every publication. Useful for change detection."""
        return self._channel.version

    def __len__(self) -> int:
        return len(self._channel.get())

    def __contains__(self, key: str) -> bool:
        return key in self._channel.get()

    # --- Internal ---

    def _last_good_value(self, key: str) -> float | None:
        prev = self._channel.get().get(key)
        if prev is None:
            return None
        return prev.value if prev.value is not None else prev.previous_value

    def _publish_locked(self, result: PriceResult) -> PriceResult:
        prices = dict(self._channel.get())
        prices[result.key] = result
        self._channel.send(MappingProxyType(prices))
        return result
