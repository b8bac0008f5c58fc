from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from typing import Any, cast

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from ..models.market import AssetPriceHistory, TransactionRecord
from ..models.money import MonetaryValue
from ..models.rarity import RarityTier


def _auto_fit(ws: Worksheet) -> None:
    widths: dict[int, int] = {}
    for row in ws.rows:
        for cell in row:
            value = str(cell.value) if cell.value is not None else ""
            col_idx = int(getattr(cell, "col_idx", getattr(cell, "column", 0)))
            widths[col_idx] = max(widths.get(col_idx, 0), len(value) + 2)
    for col, width in widths.items():
        ws.column_dimensions[get_column_letter(col)].width = min(60, width)


def _sheet(ws: Worksheet, headers: list[str], rows: Iterable[list[Any]]) -> None:
    ws.append(headers)
    for h in ws[1]:
        h.font = Font(bold=True)
    for row in rows:
        ws.append(row)
    ws.auto_filter.ref = ws.dimensions
    ws.freeze_panes = "A2"
    _auto_fit(ws)


def _eth(value: MonetaryValue) -> str:
    return format(value.to_ether().normalize(), "f")


def build_workbook(
    transactions: Iterable[TransactionRecord],
    histories: Iterable[tuple[str, AssetPriceHistory]],
    sales_by_rarity: Mapping[RarityTier, int],
    avg_price_by_rarity: Mapping[RarityTier, MonetaryValue],
) -> Workbook:
    wb = Workbook()
    ws_tx = cast(Worksheet, wb.active)
    ws_tx.title = "Transactions"
    ws_assets = cast(Worksheet, wb.create_sheet("Assets"))
    ws_rarity = cast(Worksheet, wb.create_sheet("Rarity"))

    # Wei amounts go in as text: they overflow Excel's numeric precision
    _sheet(
        ws_tx,
        ["id", "kind", "asset_id", "asset_name", "seller", "buyer", "price_wei", "price_eth", "timestamp", "level"],
        (
            [
                tx.id,
                tx.kind.value,
                tx.asset_id,
                tx.asset_name,
                tx.seller,
                tx.buyer,
                str(tx.price),
                _eth(tx.price),
                datetime.fromtimestamp(tx.timestamp, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S"),
                tx.asset_level,
            ]
            for tx in transactions
        ),
    )

    _sheet(
        ws_assets,
        ["asset_id", "asset_name", "total_sales", "price_points", "highest_eth", "lowest_eth", "average_eth"],
        (
            [
                asset_id,
                h.asset_name,
                h.total_sales,
                len(h.price_points),
                _eth(h.highest_price),
                _eth(h.lowest_price),
                _eth(h.average_price),
            ]
            for asset_id, h in histories
        ),
    )

    _sheet(
        ws_rarity,
        ["tier", "sales", "average_wei", "average_eth"],
        (
            [
                tier.label,
                sales_by_rarity.get(tier, 0),
                str(avg_price_by_rarity[tier]) if tier in avg_price_by_rarity else None,
                _eth(avg_price_by_rarity[tier]) if tier in avg_price_by_rarity else None,
            ]
            for tier in RarityTier
        ),
    )

    ts = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")
    for ws in (ws_tx, ws_assets, ws_rarity):
        ws.oddFooter.center.text = f"Exported {ts}"  # type: ignore[union-attr]

    return wb
