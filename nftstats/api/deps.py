from __future__ import annotations

from fastapi import Request

from ..services.events import ListingEventBus
from ..services.store import AnalyticsStore


def get_store(request: Request) -> AnalyticsStore:
    return request.app.state.store


def get_bus(request: Request) -> ListingEventBus:
    return request.app.state.bus
