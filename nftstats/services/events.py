from __future__ import annotations

from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any

from ..logging import get_logger
from ..models.market import Listing

_log = get_logger("events")

ListingHandler = Callable[[Listing], Awaitable[Any]]


class Signal:
    """Ordered observer list with per-subscriber failure isolation."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._handlers: list[Callable[..., Any]] = []

    def connect(self, handler: Callable[..., Any]) -> None:
        self._handlers.append(handler)

    def disconnect(self, handler: Callable[..., Any]) -> None:
        try:
            self._handlers.remove(handler)
        except ValueError:
            pass

    def __len__(self) -> int:
        return len(self._handlers)

    def emit(self, *args: Any) -> None:
        for handler in list(self._handlers):
            try:
                handler(*args)
            except Exception:
                _log.exception("subscriber_failed", signal=self.name, handler=repr(handler))


class ListingEvent(str, Enum):
    CREATED = "listing_created"
    UPDATED = "listing_updated"
    SOLD = "listing_sold"
    CANCELLED = "listing_cancelled"


class ListingEventBus:
    """Inbound marketplace notifications.

    Handlers run sequentially in subscription order and their errors reach the
    publisher, so a rejected event (e.g. a bad price) is visible to whoever
    produced it.
    """

    def __init__(self) -> None:
        self._handlers: dict[ListingEvent, list[ListingHandler]] = {e: [] for e in ListingEvent}

    def subscribe(self, event: ListingEvent, handler: ListingHandler) -> None:
        self._handlers[event].append(handler)

    def unsubscribe(self, event: ListingEvent, handler: ListingHandler) -> None:
        try:
            self._handlers[event].remove(handler)
        except ValueError:
            pass

    def subscribers(self, event: ListingEvent) -> int:
        return len(self._handlers[event])

    async def publish(self, event: ListingEvent, listing: Listing) -> list[Any]:
        results: list[Any] = []
        for handler in list(self._handlers[event]):
            results.append(await handler(listing))
        return results
