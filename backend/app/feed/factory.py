"""Factory for creating quote providers and the price feed."""

from __future__ import annotations

import logging

from .config import FeedConfig
from .interface import PairQuoteProvider, TokenQuoteProvider
from .poller import BackoffPolicy, QuoteProviders
from .registry import TokenRegistry
from .service import PriceFeed

logger = logging.getLogger(__name__)


def create_quote_providers(config: FeedConfig) -> QuoteProviders:
    """Create the token and pair adapters named by the configuration.

    - token: "jupiter" (live) or "simulator"
    - pair:  "raydium" (pool price), "jupiter" (vsToken quote) or "simulator"

    One instance is shared when both modes use the same provider kind.
    """
    simulator = None
    jupiter = None

    if config.token_provider == "simulator" or config.pair_provider == "simulator":
        from .simulator import SimulatorQuoteProvider

        simulator = SimulatorQuoteProvider(failure_rate=config.simulated_failure_rate)

    if config.token_provider == "jupiter" or config.pair_provider == "jupiter":
        from .jupiter_client import JupiterQuoteProvider

        jupiter = JupiterQuoteProvider(base_url=config.jupiter_url, timeout=config.request_timeout)

    token: TokenQuoteProvider = simulator if config.token_provider == "simulator" else jupiter
    if config.pair_provider == "simulator":
        pair: PairQuoteProvider = simulator
    elif config.pair_provider == "jupiter":
        pair = jupiter
    else:
        from .raydium_client import RaydiumPoolQuoteProvider

        pair = RaydiumPoolQuoteProvider(base_url=config.raydium_url, timeout=config.request_timeout)

    logger.info("Quote providers: token=%s, pair=%s", token.name, pair.name)
    return QuoteProviders(token=token, pair=pair)


def create_price_feed(
    config: FeedConfig,
    registry: TokenRegistry,
    providers: QuoteProviders,
) -> PriceFeed:
    """Build an unstarted PriceFeed from configuration.

    The initial selection and the watch-list are resolved against the
    registry. Caller must await feed.start().
    """
    return PriceFeed(
        registry.resolve(config.selection),
        providers,
        poll_interval=config.poll_interval,
        backoff=BackoffPolicy(base=config.base_backoff, ceiling=config.max_backoff),
        watches=[registry.resolve(name) for name in config.watches],
    )
