from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..logging import configure_logging, get_logger, request_id_middleware
from ..services.events import ListingEventBus
from ..services.store import AnalyticsStore
from .routes import assets, events, export, health, rarity, stats, transactions

_log = get_logger("api")


def create_app(
    store: AnalyticsStore | None = None,
    bus: ListingEventBus | None = None,
) -> FastAPI:
    configure_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        s: AnalyticsStore = app.state.store
        b: ListingEventBus = app.state.bus
        await s.load()
        s.attach(b)
        try:
            yield
        finally:
            s.detach(b)
            await s.save()
            _log.info("analytics_shutdown")

    app = FastAPI(title="NFT Marketplace Analytics", version=__version__, lifespan=lifespan)
    app.state.store = store if store is not None else AnalyticsStore()
    app.state.bus = bus if bus is not None else ListingEventBus()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(request_id_middleware)

    app.include_router(health.router)
    app.include_router(events.router)
    app.include_router(transactions.router)
    app.include_router(assets.router)
    app.include_router(stats.router)
    app.include_router(rarity.router)
    app.include_router(export.router)

    return app


app = create_app()
