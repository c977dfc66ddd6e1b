"""HTTP endpoints for reading prices and changing the active selection."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from .models import InvalidSelectionError, Pair, Selection
from .registry import TokenRegistry, UnknownInstrumentError
from .service import PriceFeed


class SelectionRequest(BaseModel):
    """Either ``symbols`` (1 or 2, base first) or a publication ``key``."""

    symbols: list[str] | None = None
    key: str | None = None


def _selection_to_dict(selection: Selection) -> dict:
    return {
        "key": selection.key,
        "symbol": selection.symbol,
        "mode": "pair" if isinstance(selection, Pair) else "single",
        "tokens": [
            {"symbol": token.symbol, "address": token.address, "name": token.name}
            for token in selection.instruments
        ],
    }


def create_feed_router(feed: PriceFeed, registry: TokenRegistry) -> APIRouter:
    """Router over a PriceFeed: price snapshots, selection, token table."""
    router = APIRouter(prefix="/api", tags=["prices"])

    @router.get("/prices")
    async def get_prices() -> dict:
        """Latest PriceResult for every key polled so far."""
        return {key: result.to_dict() for key, result in feed.price_cache.get_all().items()}

    @router.get("/prices/{key}")
    async def get_price(key: str) -> dict:
        result = feed.price_cache.get(key)
        if result is None:
            raise HTTPException(status_code=404, detail=f"No price for {key} yet")
        return result.to_dict()

    @router.get("/selection")
    async def get_selection() -> dict:
        """The active selection plus the watch-list.

        A watched selection reports ``polling: false`` while it is also the
        active one, since only the active poller fetches it then.
        """
        polled = set(feed.watched_keys())
        data = _selection_to_dict(feed.selection)
        data["watches"] = [
            {**_selection_to_dict(watch), "polling": watch.key in polled} for watch in feed.watches
        ]
        return data

    @router.put("/selection")
    async def put_selection(body: SelectionRequest) -> dict:
        """Switch the tracked token or pair."""
        if (body.symbols is None) == (body.key is None):
            raise HTTPException(status_code=422, detail="Provide exactly one of 'symbols' or 'key'")
        try:
            if body.symbols is not None:
                selection = registry.resolve_symbols(body.symbols)
            else:
                selection = registry.resolve(body.key)
        except UnknownInstrumentError as e:
            raise HTTPException(status_code=404, detail=str(e)) from e
        except InvalidSelectionError as e:
            raise HTTPException(status_code=422, detail=str(e)) from e

        await feed.select(selection)
        return _selection_to_dict(selection)

    @router.get("/tokens")
    async def get_tokens() -> dict:
        """The static token table and the registered pairs."""
        return {
            "tokens": [
                {
                    "symbol": token.symbol,
                    "address": token.address,
                    "name": token.name,
                    "logo_uri": token.logo_uri,
                    "decimals": token.decimals,
                }
                for token in registry.tokens()
            ],
            "pairs": [_selection_to_dict(pair) for pair in registry.pairs()],
        }

    return router
