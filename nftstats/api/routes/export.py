from __future__ import annotations

from io import BytesIO

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from ...exporters.excel import build_workbook
from ...services.store import AnalyticsStore
from ..deps import get_store

router = APIRouter(prefix="/export", tags=["export"])


@router.get("/excel/analytics")
async def export_analytics_excel(store: AnalyticsStore = Depends(get_store)) -> StreamingResponse:
    """Workbook with the transaction log, per-asset summaries and rarity breakdown."""
    wb = build_workbook(
        transactions=store.get_all_transactions(),
        histories=store.get_asset_histories(),
        sales_by_rarity=store.get_sales_by_rarity(),
        avg_price_by_rarity=store.get_average_price_by_rarity(),
    )
    buf = BytesIO()
    wb.save(buf)
    buf.seek(0)
    headers = {"Content-Disposition": "attachment; filename=marketplace_analytics.xlsx"}
    return StreamingResponse(
        buf,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers=headers,
    )
