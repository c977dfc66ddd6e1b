"""Live price feed for Solana tokens and pairs.

Public API:
    Instrument, SingleInstrument, Pair - What to price (a Selection)
    PriceResult          - One cycle's outcome: a price, or none plus a failure count
    Broadcast            - Single-writer, multi-reader "latest value" cell
    PriceCache           - Broadcast map of selection key -> PriceResult
    PricePoller          - Fetch / backoff / publish loop for one selection
    PriceFeed            - Active selection + watch-list pollers
    TokenRegistry        - Static symbol / address lookup
    create_quote_providers, create_price_feed - Build from FeedConfig
    create_stream_router, create_feed_router  - FastAPI routers for observers
"""

from .cache import PriceCache
from .channel import Broadcast, ChannelClosed, Subscription
from .config import FeedConfig, load_config
from .factory import create_price_feed, create_quote_providers
from .interface import PairQuoteProvider, QuoteError, TokenQuoteProvider
from .models import (
    Instrument,
    InvalidSelectionError,
    Pair,
    PriceResult,
    Selection,
    SingleInstrument,
    pair_key,
    selection_from_tokens,
)
from .poller import BackoffPolicy, PricePoller, QuoteProviders
from .registry import TokenRegistry, UnknownInstrumentError
from .routes import create_feed_router
from .service import PriceFeed
from .stream import create_stream_router

__all__ = [
    "BackoffPolicy",
    "Broadcast",
    "ChannelClosed",
    "FeedConfig",
    "Instrument",
    "InvalidSelectionError",
    "Pair",
    "PairQuoteProvider",
    "PriceCache",
    "PriceFeed",
    "PricePoller",
    "PriceResult",
    "QuoteError",
    "QuoteProviders",
    "Selection",
    "SingleInstrument",
    "Subscription",
    "TokenQuoteProvider",
    "TokenRegistry",
    "UnknownInstrumentError",
    "create_feed_router",
    "create_price_feed",
    "create_quote_providers",
    "create_stream_router",
    "load_config",
    "pair_key",
    "selection_from_tokens",
]
