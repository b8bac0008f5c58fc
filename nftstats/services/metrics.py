from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone

from ..models.market import AssetPriceHistory, GlobalMarketStats, TransactionKind, TransactionRecord
from ..models.money import MonetaryValue, total
from ..models.rarity import RarityTier


def sale_day(timestamp: int) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%Y-%m-%d")


def sales(transactions: Iterable[TransactionRecord]) -> list[TransactionRecord]:
    return [tx for tx in transactions if tx.kind is TransactionKind.SALE]


def compute_global_stats(transactions: Iterable[TransactionRecord]) -> GlobalMarketStats:
    """Rebuild the market-wide counters from scratch over the given log.

    Only sales feed volume, average and the day/level breakdowns; every record
    counts towards ``total_transactions``.
    """
    log = list(transactions)
    sold = sales(log)
    volume = total(tx.price for tx in sold)
    by_day = Counter(sale_day(tx.timestamp) for tx in sold)
    by_level = Counter(tx.asset_level for tx in sold)
    return GlobalMarketStats(
        total_transactions=len(log),
        total_sales=len(sold),
        total_volume=volume,
        average_sale_price=volume.divide(len(sold)) if sold else MonetaryValue.zero(),
        sales_by_day=dict(by_day),
        sales_by_level=dict(by_level),
    )


def newest(
    transactions: list[TransactionRecord], limit: int
) -> list[TransactionRecord]:
    """Keep the ``limit`` most recent records by timestamp.

    Among equal timestamps the earlier-inserted record is dropped first. The
    survivors stay in insertion order.
    """
    if len(transactions) <= limit:
        return list(transactions)
    ranked = sorted(
        range(len(transactions)),
        key=lambda i: (transactions[i].timestamp, i),
        reverse=True,
    )
    keep = sorted(ranked[: max(0, limit)])
    return [transactions[i] for i in keep]


def top_selling(
    histories: Mapping[str, AssetPriceHistory], count: int
) -> list[tuple[str, AssetPriceHistory]]:
    ranked = sorted(histories.items(), key=lambda kv: kv[1].total_sales, reverse=True)
    return ranked[: max(0, count)]


def most_valuable(
    histories: Mapping[str, AssetPriceHistory], count: int
) -> list[tuple[str, AssetPriceHistory]]:
    ranked = sorted(histories.items(), key=lambda kv: kv[1].highest_price, reverse=True)
    return ranked[: max(0, count)]


def _sale_prices_by_rarity(
    transactions: Iterable[TransactionRecord],
) -> dict[RarityTier, list[MonetaryValue]]:
    # Sales without a recognised tier tag are skipped, not bucketed
    out: dict[RarityTier, list[MonetaryValue]] = {}
    for tx in sales(transactions):
        tier = tx.rarity
        if tier is None:
            continue
        out.setdefault(tier, []).append(tx.price)
    return out


def sales_by_rarity(transactions: Iterable[TransactionRecord]) -> dict[RarityTier, int]:
    return {
        tier: len(prices)
        for tier, prices in sorted(_sale_prices_by_rarity(transactions).items())
    }


def average_price_by_rarity(
    transactions: Iterable[TransactionRecord],
) -> dict[RarityTier, MonetaryValue]:
    return {
        tier: total(prices).divide(len(prices))
        for tier, prices in sorted(_sale_prices_by_rarity(transactions).items())
        if prices
    }
