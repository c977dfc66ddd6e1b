"""Fixtures for price feed tests."""

from __future__ import annotations

import pytest

from app.feed.interface import PairQuoteProvider, QuoteError, TokenQuoteProvider
from app.feed.models import Pair, SingleInstrument
from app.feed.registry import JLP, SOL, USDC


class ScriptedProvider(TokenQuoteProvider, PairQuoteProvider):
    """Quote provider that replays a script of prices and exceptions.

    Each call pops the next outcome; floats are returned, exceptions raised.
    When the script runs out, ``default`` is returned. Calls are recorded as
    tuples of the addresses passed in.
    """

    name = "scripted"

    def __init__(self, outcomes=(), default: float | None = 1.0) -> None:
        self.outcomes = list(outcomes)
        self.default = default
        self.calls: list[tuple[str, ...]] = []
        self.closed = 0

    async def fetch_price(self, address: str) -> float:
        self.calls.append((address,))
        return self._next()

    async def fetch_pair_price(self, base: str, quote: str) -> float:
        self.calls.append((base, quote))
        return self._next()

    async def aclose(self) -> None:
        self.closed += 1

    def _next(self) -> float:
        outcome = self.outcomes.pop(0) if self.outcomes else self.default
        if outcome is None:
            raise QuoteError("no scripted outcome")
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


@pytest.fixture
def sol() -> SingleInstrument:
    return SingleInstrument(SOL)


@pytest.fixture
def usdc() -> SingleInstrument:
    return SingleInstrument(USDC)


@pytest.fixture
def jlp_sol() -> Pair:
    return Pair(JLP, SOL)


@pytest.fixture
def scripted() -> type[ScriptedProvider]:
    """The ScriptedProvider class, for building providers inside tests."""
    return ScriptedProvider
