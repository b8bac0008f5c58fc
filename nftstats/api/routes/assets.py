from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from ...models.market import AssetPriceHistory
from ...services.store import AnalyticsStore
from ..deps import get_store

router = APIRouter(prefix="/assets", tags=["assets"])


@router.get("/{asset_id}/history")
async def price_history(
    asset_id: str,
    store: AnalyticsStore = Depends(get_store),
) -> AssetPriceHistory:
    history = store.get_price_history(asset_id)
    if history is None:
        raise HTTPException(status_code=404, detail="no price history for asset")
    return history
