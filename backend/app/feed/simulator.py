"""GBM-based quote simulator for running the feed without network access."""

from __future__ import annotations

import logging
import math
import random

import numpy as np

from .interface import PairQuoteProvider, QuoteError, TokenQuoteProvider
from .seed_prices import (
    CORRELATION_GROUPS,
    DEFAULT_CORR,
    DEFAULT_PARAMS,
    INTRA_SOLANA_CORR,
    SEED_PRICES,
    STABLE_CORR,
    TOKEN_PARAMS,
)

logger = logging.getLogger(__name__)


class GBMSimulator:
    """Geometric Brownian Motion simulator for correlated token prices.

    Math:
        S(t+dt) = S(t) * exp((mu - sigma^2/2) * dt + sigma * sqrt(dt) * Z)

    Where:
        S(t)   = current price
        mu     = annualized drift
        sigma  = annualized volatility
        dt     = time step as a fraction of a year (crypto trades 24/7)
        Z      = correlated standard normal random variable
    """

    SECONDS_PER_YEAR = 365 * 24 * 3600
    DEFAULT_DT = 30.0 / SECONDS_PER_YEAR  # One 30s poll

    def __init__(
        self,
        addresses: list[str],
        dt: float = DEFAULT_DT,
        event_probability: float = 0.001,
    ) -> None:
        self._dt = dt
        self._event_prob = event_probability

        self._addresses: list[str] = []
        self._prices: dict[str, float] = {}
        self._params: dict[str, dict[str, float]] = {}
        self._cholesky: np.ndarray | None = None

        for address in addresses:
            self._add_internal(address)
        self._rebuild_cholesky()

    # --- Public API ---

    def step(self) -> dict[str, float]:
        """Advance all tokens by one time step. Returns {address: new_price}."""
        n = len(self._addresses)
        if n == 0:
            return {}

        z_independent = np.random.standard_normal(n)
        if self._cholesky is not None:
            z_correlated = self._cholesky @ z_independent
        else:
            z_correlated = z_independent

        result: dict[str, float] = {}
        for i, address in enumerate(self._addresses):
            params = self._params[address]
            mu = params["mu"]
            sigma = params["sigma"]

            drift = (mu - 0.5 * sigma**2) * self._dt
            diffusion = sigma * math.sqrt(self._dt) * z_correlated[i]
            self._prices[address] *= math.exp(drift + diffusion)

            # Occasional 2-8% jump
            if random.random() < self._event_prob:
                shock = random.uniform(0.02, 0.08) * random.choice([-1, 1])
                self._prices[address] *= 1 + shock
                logger.debug("Random event on %s: %+.1f%%", address, shock * 100)

            result[address] = self._prices[address]

        return result

    def add_token(self, address: str) -> None:
        """Add a token to the simulation. Rebuilds the correlation matrix."""
        if address in self._prices:
            return
        self._add_internal(address)
        self._rebuild_cholesky()

    def get_price(self, address: str) -> float | None:
        return self._prices.get(address)

    # --- Internals ---

    def _add_internal(self, address: str) -> None:
        if address in self._prices:
            return
        self._addresses.append(address)
        self._prices[address] = SEED_PRICES.get(address, random.uniform(0.5, 50.0))
        self._params[address] = TOKEN_PARAMS.get(address, dict(DEFAULT_PARAMS))

    def _rebuild_cholesky(self) -> None:
        n = len(self._addresses)
        if n <= 1:
            self._cholesky = None
            return

        corr = np.eye(n)
        for i in range(n):
            for j in range(i + 1, n):
                rho = self._pairwise_correlation(self._addresses[i], self._addresses[j])
                corr[i, j] = rho
                corr[j, i] = rho

        self._cholesky = np.linalg.cholesky(corr)

    @staticmethod
    def _pairwise_correlation(a1: str, a2: str) -> float:
        """Correlation between two mints.

          - Both Solana ecosystem tokens: 0.6
          - Either one a stablecoin:      0.0
          - Anything else:                0.3
        """
        stable = CORRELATION_GROUPS["stable"]
        solana = CORRELATION_GROUPS["solana"]

        if a1 in stable or a2 in stable:
            return STABLE_CORR
        if a1 in solana and a2 in solana:
            return INTRA_SOLANA_CORR
        return DEFAULT_CORR


class SimulatorQuoteProvider(TokenQuoteProvider, PairQuoteProvider):
    """Quote provider backed by GBMSimulator.

    Every fetch advances the simulation one step. ``failure_rate`` makes a
    fraction of fetches raise QuoteError so backoff can be exercised offline.
    """

    name = "simulator"

    def __init__(
        self,
        failure_rate: float = 0.0,
        dt: float = GBMSimulator.DEFAULT_DT,
        event_probability: float = 0.001,
    ) -> None:
        self._failure_rate = failure_rate
        self._sim = GBMSimulator(addresses=[], dt=dt, event_probability=event_probability)

    async def fetch_price(self, address: str) -> float:
        self._maybe_fail(address)
        self._sim.add_token(address)
        return self._sim.step()[address]

    async def fetch_pair_price(self, base: str, quote: str) -> float:
        self._maybe_fail(f"{base}/{quote}")
        self._sim.add_token(base)
        self._sim.add_token(quote)
        prices = self._sim.step()
        return prices[base] / prices[quote]

    @property
    def simulator(self) -> GBMSimulator:
        return self._sim

    def _maybe_fail(self, what: str) -> None:
        if self._failure_rate and random.random() < self._failure_rate:
            raise QuoteError(f"Simulated outage fetching {what}")
