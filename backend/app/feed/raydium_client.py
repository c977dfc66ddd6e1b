"""Raydium v3 API client for pool (pair) quotes."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from .interface import PairQuoteProvider, QuoteError, parse_price

logger = logging.getLogger(__name__)

RAYDIUM_BASE_API = "https://api-v3.raydium.io"
RAYDIUM_ICON_URL = "https://img.raydium.io/icon/{mint}.png"


def token_logo_url(mint_address: str) -> str:
    """Raydium-hosted icon for a token mint."""
    return RAYDIUM_ICON_URL.format(mint=mint_address)


class RaydiumPoolQuoteProvider(PairQuoteProvider):
    """Pair prices read from the deepest Raydium pool holding both mints.

    GET /pools/info/mint?mint1=<base>&mint2=<quote>&poolType=all
        &poolSortField=liquidity&sortType=desc&pageSize=1&page=1

    A pool's ``price`` is the amount of mintB per one mintA. Raydium orders
    mintA/mintB itself, so the price is inverted when the pool lists the quote
    token first.
    """

    name = "raydium"

    def __init__(
        self,
        base_url: str = RAYDIUM_BASE_API,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def fetch_pair_price(self, base: str, quote: str) -> float:
        payload = await self._get(
            "/pools/info/mint",
            {
                "mint1": base,
                "mint2": quote,
                "poolType": "all",
                "poolSortField": "liquidity",
                "sortType": "desc",
                "pageSize": "1",
                "page": "1",
            },
        )
        pool = _first_pool(payload, base, quote)

        try:
            mint_a = pool["mintA"]["address"]
            mint_b = pool["mintB"]["address"]
        except (KeyError, TypeError) as e:
            raise QuoteError(f"Raydium: pool is missing mint info: {e!r}") from e

        price = parse_price(pool.get("price"), source="Raydium")
        if (mint_a, mint_b) == (base, quote):
            result = price
        elif (mint_a, mint_b) == (quote, base):
            result = 1.0 / price
        else:
            raise QuoteError(f"Raydium: pool {pool.get('id')} does not trade {base}/{quote}")

        logger.debug("Raydium pool %s quote %s/%s = %s", pool.get("id"), base, quote, result)
        return result

    async def aclose(self) -> None:
        await self._client.aclose()

    # --- Internal ---

    async def _get(self, path: str, params: dict[str, str]) -> Any:
        try:
            resp = await self._client.get(f"{self._base_url}{path}", params=params)
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPError as e:
            raise QuoteError(f"Raydium request failed: {e!r}") from e
        except ValueError as e:
            raise QuoteError(f"Raydium returned an unparseable body: {e}") from e


def _first_pool(payload: Any, base: str, quote: str) -> dict:
    """Unwrap ``{"success": true, "data": {"data": [pool, ...]}}``."""
    if not isinstance(payload, dict) or not payload.get("success"):
        raise QuoteError(f"Raydium: request for {base}/{quote} was not successful")
    try:
        pools = payload["data"]["data"]
    except (KeyError, TypeError) as e:
        raise QuoteError(f"Raydium: malformed response: {e!r}") from e
    if not isinstance(pools, list) or not pools or not isinstance(pools[0], dict):
        raise QuoteError(f"Raydium: no pool found for {base}/{quote}")
    return pools[0]
