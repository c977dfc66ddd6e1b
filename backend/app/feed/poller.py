"""Polling engine: fetch the selected price, back off on failure, publish."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from .cache import PriceCache
from .channel import ChannelClosed, Subscription
from .interface import PairQuoteProvider, QuoteError, TokenQuoteProvider, parse_price
from .models import Pair, Selection

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 30.0


@dataclass(frozen=True)
class BackoffPolicy:
    """Capped exponential backoff: ``min(base * factor**(n - 1), ceiling)``.

    ``n`` is the number of consecutive failures so far (n >= 1). There is no
    retry limit, only a ceiling on the delay.
    """

    base: float = 30.0
    factor: float = 2.0
    ceiling: float = 300.0

    def delay(self, failures: int) -> float:
        if failures < 1:
            return 0.0
        # Clamp the exponent so long outages don't overflow before the min()
        exponent = min(failures - 1, 64)
        return min(self.base * self.factor**exponent, self.ceiling)


@dataclass(frozen=True)
class QuoteProviders:
    """Adapters picked by selection arity: one token, or a (base, quote) pair."""

    token: TokenQuoteProvider
    pair: PairQuoteProvider

    async def aclose(self) -> None:
        """Close each distinct adapter once."""
        await self.token.aclose()
        if self.pair is not self.token:
            await self.pair.aclose()


class PricePoller:
    """Background loop that keeps one selection's PriceResult fresh.

    Cycle: adopt a changed selection (resetting the failure count), fetch via
    the adapter matching the selection, publish the result, then wait either
    the poll interval (success) or the backoff delay (failure). Every cycle
    publishes exactly one PriceResult.

    The wait ends early when the selection changes. The loop ends when the
    selection channel is closed; a closed PriceCache raises ChannelClosed
    out of the loop, since the poller can no longer publish.

    Lifecycle:
        poller = PricePoller(channel.subscribe(), cache, providers)
        await poller.start()
        # ... app runs ...
        await poller.stop()
    """

    def __init__(
        self,
        selection: Subscription[Selection],
        price_cache: PriceCache,
        providers: QuoteProviders,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        backoff: BackoffPolicy | None = None,
        name: str = "price-poller",
    ) -> None:
        self._selection_rx = selection
        self._cache = price_cache
        self._providers = providers
        self._interval = poll_interval
        self._backoff = backoff or BackoffPolicy()
        self._name = name
        self._selection: Selection = selection.borrow_and_update()
        self._failures = 0
        self._task: asyncio.Task | None = None

    @property
    def selection(self) -> Selection:
        """The selection the poller is currently pricing."""
        return self._selection

    @property
    def consecutive_failures(self) -> int:
        return self._failures

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Spawn the polling loop as a background task. No-op if running."""
        if self.running:
            return
        self._task = asyncio.create_task(self.run(), name=self._name)
        self._task.add_done_callback(self._on_done)
        logger.info(
            "%s started: %s, %.1fs interval",
            self._name,
            self._selection.symbol,
            self._interval,
        )

    async def stop(self) -> None:
        """Cancel the loop, interrupting any fetch or wait. Safe to call twice."""
        task, self._task = self._task, None
        if task and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            logger.info("%s stopped", self._name)

    async def run(self) -> None:
        """Poll until the selection channel closes."""
        while True:
            if self._selection_rx.closed and not self._selection_rx.has_changed():
                logger.info("%s: selection channel closed, exiting", self._name)
                return
            delay = await self.poll_once()
            await self._wait(delay)

    async def poll_once(self) -> float:
        """Run one fetch-and-publish cycle. Returns the delay before the next one.

        Raises ChannelClosed if the PriceCache no longer accepts results.
        """
        self._adopt_selection()
        selection = self._selection
        key = selection.key

        try:
            price = parse_price(await self._fetch(selection), source=self._provider_name(selection))
        except QuoteError as e:
            return self._record_failure(selection, str(e))
        except Exception as e:
            logger.exception("%s: unexpected error fetching %s", self._name, selection.symbol)
            return self._record_failure(selection, f"{type(e).__name__}: {e}")

        self._failures = 0
        self._cache.record_price(key, price)
        logger.debug("%s: %s = %s", self._name, selection.symbol, price)
        return self._interval

    # --- Internal ---

    def _adopt_selection(self) -> None:
        if not self._selection_rx.has_changed():
            return
        previous = self._selection
        self._selection = self._selection_rx.borrow_and_update()
        # A new selection always starts with a clean failure count
        self._failures = 0
        if self._selection.key != previous.key:
            logger.info("%s: selection %s -> %s", self._name, previous.symbol, self._selection.symbol)

    async def _fetch(self, selection: Selection) -> float:
        if isinstance(selection, Pair):
            return await self._providers.pair.fetch_pair_price(selection.base.address, selection.quote.address)
        return await self._providers.token.fetch_price(selection.instrument.address)

    def _record_failure(self, selection: Selection, error: str) -> float:
        self._failures += 1
        delay = self._backoff.delay(self._failures)
        logger.warning(
            "%s: price fetch for %s failed (attempt %d): %s; retrying in %.0fs",
            self._name,
            selection.symbol,
            self._failures,
            error,
            delay,
        )
        self._cache.record_failure(selection.key, self._failures, error=error)
        return delay

    def _provider_name(self, selection: Selection) -> str:
        provider = self._providers.pair if isinstance(selection, Pair) else self._providers.token
        return provider.name

    async def _wait(self, delay: float) -> None:
        """Sleep ``delay`` seconds, waking early if the selection changes."""
        try:
            await asyncio.wait_for(self._selection_rx.changed(), timeout=delay)
        except asyncio.TimeoutError:
            return
        except ChannelClosed:
            # run() notices the closed channel and exits
            return

    def _on_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("%s stopped: %r", self._name, exc, exc_info=exc)

