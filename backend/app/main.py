"""Application entry point: wires the price feed into a FastAPI app."""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.feed import (
    FeedConfig,
    TokenRegistry,
    create_feed_router,
    create_price_feed,
    create_quote_providers,
    create_stream_router,
    load_config,
)

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(levelname)s %(asctime)s.%(msecs)03d: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: str = "INFO") -> None:
    """Install the root handler: ``INFO 2025-01-10 12:00:00.123: message``."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT, datefmt=LOG_DATE_FORMAT, force=True)
    # httpx logs every request at INFO; one line per poll is noise
    logging.getLogger("httpx").setLevel(logging.WARNING)


def create_app(config: FeedConfig | None = None) -> FastAPI:
    """Build the app. The feed starts with the lifespan and stops on shutdown."""
    config = config or load_config()
    registry = TokenRegistry()
    providers = create_quote_providers(config)
    feed = create_price_feed(config, registry, providers)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await feed.start()
        try:
            yield
        finally:
            await feed.stop()
            await providers.aclose()

    app = FastAPI(title="Price Feed", version="0.1.0", lifespan=lifespan)
    app.state.feed = feed
    app.state.registry = registry
    app.include_router(create_feed_router(feed, registry))
    app.include_router(create_stream_router(feed.price_cache))

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok" if feed.running else "stopped", "selection": feed.selection.key}

    return app


def run() -> None:
    """Console entry point: serve the feed with uvicorn."""
    import uvicorn

    config = load_config()
    configure_logging(config.log_level)
    uvicorn.run(
        create_app(config),
        host=os.environ.get("HOST", "127.0.0.1"),
        port=int(os.environ.get("PORT", "8000")),
        log_config=None,
    )


if __name__ == "__main__":
    run()
