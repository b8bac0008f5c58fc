from __future__ import annotations

from fastapi import APIRouter, Depends

from ...models.rarity import DROP_RATES, VALUE_MULTIPLIERS, RarityTier
from ...services.store import AnalyticsStore
from ..deps import get_store

router = APIRouter(prefix="/rarity", tags=["rarity"])


@router.get("/sales")
async def sales_by_rarity(store: AnalyticsStore = Depends(get_store)) -> dict[str, int]:
    return {tier.label: n for tier, n in store.get_sales_by_rarity().items()}


@router.get("/average-price")
async def average_price_by_rarity(store: AnalyticsStore = Depends(get_store)) -> dict[str, str]:
    # Tiers without sales are absent, not zero
    return {tier.label: str(v) for tier, v in store.get_average_price_by_rarity().items()}


@router.get("/tiers")
async def tiers() -> list[dict[str, object]]:
    return [
        {
            "tier": tier.label,
            "ordinal": int(tier),
            "value_multiplier": str(VALUE_MULTIPLIERS[tier]),
            "drop_rate": DROP_RATES[tier],
        }
        for tier in RarityTier
    ]
