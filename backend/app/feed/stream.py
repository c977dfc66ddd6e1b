"""SSE streaming endpoint for live price updates."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncGenerator

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse

from .cache import PriceCache
from .channel import ChannelClosed

logger = logging.getLogger(__name__)


def create_stream_router(price_cache: PriceCache) -> APIRouter:
    """Create the SSE streaming router with a reference to the price cache.

    This factory pattern lets us inject the PriceCache without globals.
    """
    router = APIRouter(prefix="/api/stream", tags=["streaming"])

    @router.get("/prices")
    async def stream_prices(request: Request) -> StreamingResponse:
        """SSE endpoint for live price updates.

        Sends the full result map once on connect and again after every
        publication, in the format:

            data: {"<key>": {"key": "<key>", "value": 150.12, "consecutive_failures": 0, ...}, ...}
        """
        return StreamingResponse(
            _generate_events(price_cache, request),
            media_type="text/event-stream",
            headers={
                "Cache-Control": "no-cache",
                "Connection": "keep-alive",
                "X-Accel-Buffering": "no",  # Disable nginx buffering if proxied
            },
        )

    return router


def _format_event(prices) -> str:
    data = {key: result.to_dict() for key, result in prices.items()}
    return f"data: {json.dumps(data)}\n\n"


async def _generate_events(
    price_cache: PriceCache,
    request: Request,
    disconnect_check_interval: float = 1.0,
) -> AsyncGenerator[str, None]:
    """Async generator that yields SSE-formatted price events.

    Waits on the cache's change notification rather than re-sending on a
    timer; the timeout only bounds how long a client disconnect goes
    unnoticed. Stops when the client disconnects or the cache is closed.
    """
    # Tell the client to retry after 1 second if the connection drops
    yield "retry: 1000\n\n"

    subscription = price_cache.subscribe()
    client_ip = request.client.host if request.client else "unknown"
    logger.info("SSE client connected: %s", client_ip)

    prices = subscription.borrow_and_update()
    if prices:
        yield _format_event(prices)

    try:
        while True:
            if await request.is_disconnected():
                logger.info("SSE client disconnected: %s", client_ip)
                break

            try:
                await asyncio.wait_for(subscription.changed(), timeout=disconnect_check_interval)
            except asyncio.TimeoutError:
                continue
            except ChannelClosed:
                logger.info("Price cache closed, ending SSE stream for: %s", client_ip)
                break

            yield _format_event(subscription.borrow_and_update())
    except asyncio.CancelledError:
        logger.info("SSE stream cancelled for: %s", client_ip)
