"""PriceFeed: owns the selection channel and the pollers that serve it."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from .cache import PriceCache
from .channel import Broadcast
from .models import Selection
from .poller import DEFAULT_POLL_INTERVAL, BackoffPolicy, PricePoller, QuoteProviders

logger = logging.getLogger(__name__)


class PriceFeed:
    """Live price feed for one active selection plus an optional watch-list.

    The active selection lives in a Broadcast cell that UI collaborators
    change through ``select()``. Each watched selection gets its own poller
    with its own retry state; all pollers publish into the same PriceCache.
    A watched key equal to the active selection's key is polled only by the
    active poller.

    Lifecycle:
        feed = PriceFeed(initial, providers, watches=[...])
        await feed.start()
        await feed.select(other)
        await feed.stop()
    """

    def __init__(
        self,
        initial: Selection,
        providers: QuoteProviders,
        price_cache: PriceCache | None = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        backoff: BackoffPolicy | None = None,
        watches: Sequence[Selection] = (),
    ) -> None:
        self._providers = providers
        self._interval = poll_interval
        self._backoff = backoff or BackoffPolicy()
        self._watches: dict[str, Selection] = {w.key: w for w in watches}
        self._watch_pollers: dict[str, PricePoller] = {}
        self._started = False
        # Serializes watch-poller changes against each other and stop()
        self._watch_lock = asyncio.Lock()

        self.price_cache = price_cache if price_cache is not None else PriceCache()
        self.selection_channel: Broadcast[Selection] = Broadcast(initial)
        self._poller = self._make_poller(self.selection_channel, "price-poller")

    @property
    def selection(self) -> Selection:
        return self.selection_channel.get()

    @property
    def watches(self) -> list[Selection]:
        return list(self._watches.values())

    @property
    def running(self) -> bool:
        return self._poller.running

    def watched_keys(self) -> list[str]:
        """Keys currently polled by watch-list pollers."""
        return list(self._watch_pollers)

    async def start(self) -> None:
        """Start the active poller and the watch-list pollers."""
        if self._started:
            return
        self._started = True
        await self._poller.start()
        await self._sync_watches()
        logger.info(
            "Price feed started: %s, %d watches",
            self.selection.symbol,
            len(self._watch_pollers),
        )

    async def select(self, selection: Selection) -> None:
        """Replace the active selection. The poller picks it up immediately."""
        self.selection_channel.send(selection)
        logger.info("Selection changed to %s", selection.symbol)
        if self._started:
            await self._sync_watches()

    async def stop(self) -> None:
        """Stop every poller. Safe to call multiple times."""
        self._started = False
        await self._poller.stop()
        async with self._watch_lock:
            for key in list(self._watch_pollers):
                await self._watch_pollers.pop(key).stop()
        logger.info("Price feed stopped")

    # --- Internal ---

    def _make_poller(self, channel: Broadcast[Selection], name: str) -> PricePoller:
        return PricePoller(
            channel.subscribe(),
            self.price_cache,
            self._providers,
            poll_interval=self._interval,
            backoff=self._backoff,
            name=name,
        )

    async def _sync_watches(self) -> None:
        async with self._watch_lock:
            # The selection may change during any await below; repeat until it holds still
            while self._started:
                active_key = self.selection.key
                paused = [key for key in self._watch_pollers if key == active_key]
                for key in paused:
                    await self._watch_pollers.pop(key).stop()
                    logger.debug("Watch poller for %s paused (now the active selection)", key)
                if not self._started:
                    return

                for key, sel in self._watches.items():
                    if key != active_key and key not in self._watch_pollers:
                        poller = self._make_poller(Broadcast(sel), f"watch-{sel.symbol}")
                        self._watch_pollers[key] = poller
                        await poller.start()

                if self.selection.key == active_key:
                    return
