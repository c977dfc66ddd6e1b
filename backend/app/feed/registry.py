"""Static token registry: symbol / mint address -> Instrument."""

from __future__ import annotations

from collections.abc import Iterable

from .models import PAIR_SEPARATOR, Instrument, Pair, Selection, selection_from_tokens
from .raydium_client import token_logo_url


class UnknownInstrumentError(LookupError):
    """No token in the registry matches the requested symbol or address."""


def _token(symbol: str, address: str, name: str, decimals: int) -> Instrument:
    return Instrument(
        symbol=symbol,
        address=address,
        name=name,
        logo_uri=token_logo_url(address),
        decimals=decimals,
    )


SOL = _token("SOL", "So11111111111111111111111111111111111111112", "Wrapped SOL", 9)
USDC = _token("USDC", "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v", "USD Coin", 6)
JUP = _token("JUP", "JUPyiwrYJFskUPiHa7hkeR8VUtAeFoSYbKedZNsDvCN", "Jupiter", 6)
JLP = _token("JLP", "27G8MtK7VtTcCHkpASjSDdkWWYfoqT6ggEuKidVJidD4", "Jupiter Perps LP", 6)
BONK = _token("BONK", "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263", "Bonk", 5)

DEFAULT_TOKENS: tuple[Instrument, ...] = (SOL, USDC, JUP, JLP, BONK)
DEFAULT_PAIRS: tuple[tuple[Instrument, Instrument], ...] = ((JLP, SOL),)


class TokenRegistry:
    """Read-only lookup over a fixed token table.

    Symbols are matched case-insensitively but are not guaranteed unique; the
    first token registered under a symbol wins. Addresses are unique.
    """

    def __init__(
        self,
        tokens: Iterable[Instrument] = DEFAULT_TOKENS,
        pairs: Iterable[tuple[Instrument, Instrument]] = DEFAULT_PAIRS,
    ) -> None:
        self._by_address: dict[str, Instrument] = {}
        self._by_symbol: dict[str, Instrument] = {}
        for token in tokens:
            self._by_address.setdefault(token.address, token)
            self._by_symbol.setdefault(token.symbol.upper(), token)
        self._pairs = [Pair(base, quote) for base, quote in pairs]

    def get_by_address(self, address: str) -> Instrument | None:
        return self._by_address.get(address)

    def get_by_symbol(self, symbol: str) -> Instrument | None:
        return self._by_symbol.get(symbol.strip().upper())

    def get_tokens_from_pair_address(self, key: str) -> tuple[Instrument, ...] | None:
        """Split a publication key (``addr`` or ``base_quote``) into its tokens."""
        tokens = tuple(self.get_by_address(part) for part in key.split(PAIR_SEPARATOR))
        if not 1 <= len(tokens) <= 2 or any(token is None for token in tokens):
            return None
        return tokens  # type: ignore[return-value]

    def resolve(self, name: str) -> Selection:
        """Turn ``"SOL"``, ``"JLP_SOL"``, a mint, or a mint pair key into a Selection.

        Raises UnknownInstrumentError if any part is not registered and
        InvalidSelectionError for more than two parts.
        """
        return self.resolve_symbols(name.strip().split(PAIR_SEPARATOR))

    def resolve_symbols(self, symbols: Iterable[str]) -> Selection:
        """Selection from a list of symbols or addresses, in (base, quote) order."""
        tokens = []
        for symbol in symbols:
            token = self.get_by_address(symbol.strip()) or self.get_by_symbol(symbol)
            if token is None:
                raise UnknownInstrumentError(f"Unknown token: {symbol!r}")
            tokens.append(token)
        return selection_from_tokens(tokens)

    def tokens(self) -> list[Instrument]:
        return list(self._by_address.values())

    def pairs(self) -> list[Pair]:
        return list(self._pairs)
