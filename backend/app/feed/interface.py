"""Abstract interfaces for quote providers."""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import Any


class QuoteError(Exception):
    """One fetch attempt failed: network error, timeout, bad status or body.

    Always transient from the poller's point of view; it retries with backoff.
    """


class TokenQuoteProvider(ABC):
    """Contract for single-token price sources.

    Implementations perform exactly one request cycle per call, bound it with
    their own timeout, and never retry. Retry and backoff belong to the
    PricePoller.
    """

    name: str = "token"

    @abstractmethod
    async def fetch_price(self, address: str) -> float:
        """Price of the token at ``address`` in the provider's reference currency.

        Returns a positive finite float. Raises QuoteError on any failure.
        """

    async def aclose(self) -> None:
        """Release network resources. Safe to call multiple times."""


class PairQuoteProvider(ABC):
    """Contract for pair / pool price sources."""

    name: str = "pair"

    @abstractmethod
    async def fetch_pair_price(self, base: str, quote: str) -> float:
        """Price of ``base`` expressed in units of ``quote``.

        Returns a positive finite float. Raises QuoteError on any failure.
        """

    async def aclose(self) -> None:
        """Release network resources. Safe to call multiple times."""


def parse_price(raw: Any, source: str) -> float:
    """Coerce an upstream price field to a positive finite float.

    Providers return prices as JSON numbers or decimal strings; anything else,
    and any zero, negative, NaN or infinite value, is a QuoteError.
    """
    if isinstance(raw, bool):
        raise QuoteError(f"{source}: price is not a number: {raw!r}")
    try:
        price = float(raw)
    except (TypeError, ValueError) as exc:
        raise QuoteError(f"{source}: price is not a number: {raw!r}") from exc
    if not math.isfinite(price) or price <= 0:
        raise QuoteError(f"{source}: price must be positive and finite, got {price!r}")
    return price
