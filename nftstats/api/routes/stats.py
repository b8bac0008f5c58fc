from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from ...models.market import AssetPriceHistory, GlobalMarketStats
from ...services.store import AnalyticsStore
from ..deps import get_store

router = APIRouter(prefix="/stats", tags=["stats"])


def _ranking(pairs: list[tuple[str, AssetPriceHistory]]) -> dict[str, object]:
    items = [
        {
            "asset_id": asset_id,
            "asset_name": h.asset_name,
            "total_sales": h.total_sales,
            "highest_price": str(h.highest_price),
            "lowest_price": str(h.lowest_price),
            "average_price": str(h.average_price),
        }
        for asset_id, h in pairs
    ]
    return {"count": len(items), "items": items}


@router.get("/global")
async def global_stats(store: AnalyticsStore = Depends(get_store)) -> GlobalMarketStats:
    return store.get_global_stats()


@router.get("/top-selling")
async def top_selling(
    count: int | None = Query(None, ge=1, le=100),
    store: AnalyticsStore = Depends(get_store),
) -> dict[str, object]:
    return _ranking(store.get_top_selling_assets(count))


@router.get("/most-valuable")
async def most_valuable(
    count: int | None = Query(None, ge=1, le=100),
    store: AnalyticsStore = Depends(get_store),
) -> dict[str, object]:
    return _ranking(store.get_most_valuable_assets(count))
