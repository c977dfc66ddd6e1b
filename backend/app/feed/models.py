"""Data models for the price feed."""

from __future__ import annotations

import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Union

from .formatting import format_price

PAIR_SEPARATOR = "_"


class InvalidSelectionError(ValueError):
    """A selection must hold exactly one token or one (base, quote) pair."""


@dataclass(frozen=True, slots=True)
class Instrument:
    """A tradable token. ``address`` (the mint) is the primary key."""

    symbol: str
    address: str
    name: str = ""
    logo_uri: str | None = None
    decimals: int | None = None


@dataclass(frozen=True, slots=True)
class SingleInstrument:
    """Track one token priced against the provider's reference currency."""

    instrument: Instrument

    @property
    def key(self) -> str:
        return self.instrument.address

    @property
    def symbol(self) -> str:
        return self.instrument.symbol

    @property
    def addresses(self) -> tuple[str, ...]:
        return (self.instrument.address,)

    @property
    def instruments(self) -> tuple[Instrument, ...]:
        return (self.instrument,)


@dataclass(frozen=True, slots=True)
class Pair:
    """Track the price of ``base`` expressed in units of ``quote``.

    Order matters: the key is ``base.address + "_" + quote.address`` and is
    never sorted, so JLP/SOL and SOL/JLP are distinct selections.
    """

    base: Instrument
    quote: Instrument

    def __post_init__(self) -> None:
        if self.base.address == self.quote.address:
            raise InvalidSelectionError(f"Pair needs two distinct tokens, got {self.base.symbol} twice")

    @property
    def key(self) -> str:
        return pair_key(self.base.address, self.quote.address)

    @property
    def symbol(self) -> str:
        return f"{self.base.symbol}{PAIR_SEPARATOR}{self.quote.symbol}"

    @property
    def addresses(self) -> tuple[str, ...]:
        return (self.base.address, self.quote.address)

    @property
    def instruments(self) -> tuple[Instrument, ...]:
        return (self.base, self.quote)


Selection = Union[SingleInstrument, Pair]


def pair_key(base_address: str, quote_address: str) -> str:
    """Publication key for a (base, quote) pair."""
    return f"{base_address}{PAIR_SEPARATOR}{quote_address}"


def selection_from_tokens(tokens: Sequence[Instrument]) -> Selection:
    """Build a Selection from one token or a (base, quote) sequence."""
    if len(tokens) == 1:
        return SingleInstrument(tokens[0])
    if len(tokens) == 2:
        return Pair(tokens[0], tokens[1])
    raise InvalidSelectionError(f"Selection must contain 1 or 2 tokens, got {len(tokens)}")


@dataclass(frozen=True, slots=True)
class PriceResult:
    """Outcome of one fetch cycle for one selection key.

    ``value`` is None when the fetch failed; ``consecutive_failures`` then says
    how many attempts in a row have failed. A key that has never been fetched
    has no PriceResult at all.
    """

    key: str
    value: float | None
    consecutive_failures: int = 0
    timestamp: float = field(default_factory=time.time)  # Unix seconds
    previous_value: float | None = None  # Last good value before this one
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.value is not None

    @property
    def change(self) -> float | None:
        """Absolute change from the previous good value, if both exist."""
        if self.value is None or self.previous_value is None:
            return None
        return self.value - self.previous_value

    @property
    def change_percent(self) -> float | None:
        change = self.change
        if change is None or self.previous_value == 0:
            return None
        return round(change / self.previous_value * 100, 4)

    @property
    def direction(self) -> str:
        """'up', 'down', or 'flat'."""
        change = self.change
        if not change:
            return "flat"
        return "up" if change > 0 else "down"

    def to_dict(self) -> dict:
        """Serialize for JSON / SSE transmission."""
        return {
            "key": self.key,
            "value": self.value,
            "display": format_price(self.value),
            "consecutive_failures": self.consecutive_failures,
            "timestamp": self.timestamp,
            "previous_value": self.previous_value,
            "change": self.change,
            "change_percent": self.change_percent,
            "direction": self.direction,
            "error": self.error,
        }
