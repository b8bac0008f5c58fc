from __future__ import annotations

import pytest

from nftstats.models.market import Listing
from nftstats.services.events import ListingEvent, ListingEventBus, Signal


def _listing() -> Listing:
    return Listing.model_validate({"assetId": 1, "seller": "0xA", "price": 10})


def test_listing_accepts_wire_keys_and_coerces_numbers() -> None:
    listing = _listing()
    assert listing.asset_id == "1"
    assert listing.price == "10"
    assert listing.buyer is None
    assert listing.asset_stats == {}

    by_name = Listing(asset_id="2", seller="0xB", price="5", asset_level=4)
    assert by_name.asset_level == 4


def test_signal_emits_in_subscription_order() -> None:
    sig = Signal("test")
    out: list[int] = []
    first = lambda v: out.append(v)  # noqa: E731
    sig.connect(first)
    sig.connect(lambda v: out.append(v * 10))
    sig.emit(2)
    assert out == [2, 20]

    sig.disconnect(first)
    sig.disconnect(first)
    sig.emit(3)
    assert out == [2, 20, 30]
    assert len(sig) == 1


def test_signal_isolates_failures() -> None:
    sig = Signal("test")
    out: list[str] = []

    def _boom() -> None:
        raise ValueError("nope")

    sig.connect(_boom)
    sig.connect(lambda: out.append("after"))
    sig.emit()
    assert out == ["after"]


@pytest.mark.asyncio
async def test_bus_awaits_handlers_in_order() -> None:
    bus = ListingEventBus()
    seen: list[str] = []

    async def _one(listing: Listing) -> str:
        seen.append("one")
        return listing.asset_id

    async def _two(listing: Listing) -> str:
        seen.append("two")
        return listing.seller

    bus.subscribe(ListingEvent.SOLD, _one)
    bus.subscribe(ListingEvent.SOLD, _two)
    assert await bus.publish(ListingEvent.SOLD, _listing()) == ["1", "0xA"]
    assert seen == ["one", "two"]
    assert await bus.publish(ListingEvent.CREATED, _listing()) == []

    bus.unsubscribe(ListingEvent.SOLD, _one)
    assert bus.subscribers(ListingEvent.SOLD) == 1


@pytest.mark.asyncio
async def test_bus_propagates_handler_errors() -> None:
    bus = ListingEventBus()

    async def _reject(_listing: Listing) -> None:
        raise RuntimeError("rejected")

    bus.subscribe(ListingEvent.CANCELLED, _reject)
    with pytest.raises(RuntimeError):
        await bus.publish(ListingEvent.CANCELLED, _listing())
