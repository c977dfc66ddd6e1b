"""Jupiter price API client for Solana token quotes."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from .interface import PairQuoteProvider, QuoteError, TokenQuoteProvider, parse_price

logger = logging.getLogger(__name__)

JUPITER_PRICE_API = "https://lite-api.jup.ag/price/v2"


class JupiterQuoteProvider(TokenQuoteProvider, PairQuoteProvider):
    """Quotes from the Jupiter aggregator price endpoint.

    GET {base_url}?ids=<mint>                 -> USD price of one token
    GET {base_url}?ids=<base>&vsToken=<quote> -> base priced in units of quote

    Response body:
        {"data": {"<mint>": {"id": "<mint>", "type": "derivedPrice", "price": "151.23"}},
         "timeTaken": 0.003}

    Unknown mints come back as ``"data": {"<mint>": null}``.
    """

    name = "jupiter"

    def __init__(
        self,
        base_url: str = JUPITER_PRICE_API,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def fetch_price(self, address: str) -> float:
        return await self._quote(address)

    async def fetch_pair_price(self, base: str, quote: str) -> float:
        return await self._quote(base, vs_token=quote)

    async def aclose(self) -> None:
        await self._client.aclose()

    # --- Internal ---

    async def _quote(self, address: str, vs_token: str | None = None) -> float:
        params = {"ids": address}
        if vs_token:
            params["vsToken"] = vs_token

        payload = await self._get(params)
        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, dict):
            raise QuoteError(f"Jupiter: malformed response for {address}")

        entry = data.get(address)
        if not isinstance(entry, dict):
            raise QuoteError(f"Jupiter: no price for {address}")

        price = parse_price(entry.get("price"), source="Jupiter")
        logger.debug("Jupiter quote %s%s = %s", address, f"/{vs_token}" if vs_token else "", price)
        return price

    async def _get(self, params: dict[str, str]) -> Any:
        try:
            resp = await self._client.get(self._base_url, params=params)
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPError as e:
            raise QuoteError(f"Jupiter request failed: {e!r}") from e
        except ValueError as e:
            # Body was not JSON
            raise QuoteError(f"Jupiter returned an unparseable body: {e}") from e
