"""Price feed configuration.

Loads environment variables into a typed config object.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from .jupiter_client import JUPITER_PRICE_API
from .raydium_client import RAYDIUM_BASE_API

TOKEN_PROVIDERS = ("jupiter", "simulator")
PAIR_PROVIDERS = ("raydium", "jupiter", "simulator")


@dataclass(frozen=True)
class FeedConfig:
    """Typed configuration for the price feed."""

    token_provider: str = "jupiter"
    pair_provider: str = "raydium"
    poll_interval: float = 30.0  # seconds between successful polls
    base_backoff: float = 30.0  # first retry delay after a failure
    max_backoff: float = 300.0  # backoff ceiling
    request_timeout: float = 10.0  # per-request HTTP timeout
    selection: str = "SOL"  # symbol, "BASE_QUOTE", or mint key
    watches: tuple[str, ...] = ("SOL", "JLP_SOL")
    jupiter_url: str = JUPITER_PRICE_API
    raydium_url: str = RAYDIUM_BASE_API
    simulated_failure_rate: float = 0.0
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.token_provider not in TOKEN_PROVIDERS:
            raise ValueError(f"Unknown token provider {self.token_provider!r}; expected one of {TOKEN_PROVIDERS}")
        if self.pair_provider not in PAIR_PROVIDERS:
            raise ValueError(f"Unknown pair provider {self.pair_provider!r}; expected one of {PAIR_PROVIDERS}")
        for name in ("poll_interval", "base_backoff", "max_backoff", "request_timeout"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        if self.max_backoff < self.base_backoff:
            raise ValueError("max_backoff must be >= base_backoff")
        if not 0.0 <= self.simulated_failure_rate <= 1.0:
            raise ValueError("simulated_failure_rate must be between 0 and 1")


def _float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def _list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return tuple(part.strip() for part in raw.split(",") if part.strip())


def load_config() -> FeedConfig:
    """Load configuration from ``PRICEFEED_*`` environment variables.

    Unset or empty variables fall back to the defaults. Raises ``ValueError``
    naming the variable when a value cannot be parsed or is out of range.
    """
    defaults = FeedConfig()
    return FeedConfig(
        token_provider=os.environ.get("PRICEFEED_TOKEN_PROVIDER", "").strip().lower() or defaults.token_provider,
        pair_provider=os.environ.get("PRICEFEED_PAIR_PROVIDER", "").strip().lower() or defaults.pair_provider,
        poll_interval=_float("PRICEFEED_POLL_INTERVAL", defaults.poll_interval),
        base_backoff=_float("PRICEFEED_BASE_BACKOFF", defaults.base_backoff),
        max_backoff=_float("PRICEFEED_MAX_BACKOFF", defaults.max_backoff),
        request_timeout=_float("PRICEFEED_REQUEST_TIMEOUT", defaults.request_timeout),
        selection=os.environ.get("PRICEFEED_SELECTION", "").strip() or defaults.selection,
        watches=_list("PRICEFEED_WATCHES", defaults.watches),
        jupiter_url=os.environ.get("PRICEFEED_JUPITER_URL", "").strip() or defaults.jupiter_url,
        raydium_url=os.environ.get("PRICEFEED_RAYDIUM_URL", "").strip() or defaults.raydium_url,
        simulated_failure_rate=_float("PRICEFEED_SIMULATED_FAILURE_RATE", defaults.simulated_failure_rate),
        log_level=os.environ.get("LOG_LEVEL", "").strip().upper() or defaults.log_level,
    )
