from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from ...models.market import TransactionKind
from ...services.store import AnalyticsStore
from ..deps import get_store

router = APIRouter(prefix="/transactions", tags=["transactions"])


@router.get("")
async def list_transactions(
    kind: TransactionKind | None = Query(None),
    asset_id: str | None = Query(None),
    address: str | None = Query(None, description="Seller/buyer account, case-insensitive"),
    as_seller: bool = Query(True),
    as_buyer: bool = Query(True),
    store: AnalyticsStore = Depends(get_store),
) -> dict[str, object]:
    if address:
        items = store.get_transactions_by_user(address, as_seller=as_seller, as_buyer=as_buyer)
    elif asset_id is not None:
        items = store.get_transactions_by_asset(asset_id)
    elif kind is not None:
        items = store.get_transactions_by_kind(kind)
    else:
        items = store.get_all_transactions()

    # Remaining filters narrow the chosen base set
    if asset_id is not None:
        items = [tx for tx in items if tx.asset_id == asset_id]
    if kind is not None:
        items = [tx for tx in items if tx.kind is kind]
    return {"count": len(items), "items": items}
