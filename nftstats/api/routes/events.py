from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from ...errors import InvalidAmount
from ...models.market import Listing, TransactionRecord
from ...services.events import ListingEvent, ListingEventBus
from ..deps import get_bus

router = APIRouter(prefix="/events", tags=["events"])


@router.post("/{event}")
async def publish_event(
    event: ListingEvent,
    listing: Listing,
    bus: ListingEventBus = Depends(get_bus),
) -> dict[str, object]:
    """Inbound webhook for the marketplace event source.

    The listing snapshot is published on the bus; every subscriber that
    returns a transaction record contributes it to the response.
    """
    try:
        results = await bus.publish(event, listing)
    except InvalidAmount as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    records = [r for r in results if isinstance(r, TransactionRecord)]
    return {"event": event.value, "count": len(records), "records": records}
