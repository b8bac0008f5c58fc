from __future__ import annotations

import asyncio
import time
import uuid
from collections.abc import Callable
from typing import Any, TypeVar

from pydantic import TypeAdapter, ValidationError

from ..config import settings
from ..db.cache import ns
from ..db.persistence import BlobStore, RedisBlobStore
from ..errors import MalformedPersistedState
from ..logging import get_logger
from ..models.market import (
    AssetPriceHistory,
    GlobalMarketStats,
    Listing,
    TransactionKind,
    TransactionRecord,
)
from ..models.money import MonetaryValue
from ..models.rarity import RarityTier
from . import metrics
from .events import ListingEvent, ListingEventBus, Signal

_log = get_logger("analytics_store")

T = TypeVar("T")

TRANSACTIONS_BLOB = "transactions"
PRICE_HISTORY_BLOB = "price_history"
GLOBAL_STATS_BLOB = "global_stats"

_transactions_adapter = TypeAdapter(list[TransactionRecord])
_histories_adapter = TypeAdapter(dict[str, AssetPriceHistory])
_stats_adapter = TypeAdapter(GlobalMarketStats)


def _now() -> int:
    return int(time.time())


class AnalyticsStore:
    """Transaction log, per-asset price histories and global market stats.

    All mutations go through the ``apply_*`` coroutines, which serialise on an
    asyncio lock. The mutation itself never awaits, so synchronous queries on
    the same event loop always observe a complete update; they return copies
    the caller may keep or modify.

    Persistence is write-through and best effort: a failed write is logged and
    the in-memory change stands.
    """

    def __init__(
        self,
        blobs: BlobStore | None = None,
        *,
        max_transactions: int | None = None,
        persistence_enabled: bool | None = None,
        namespace: str | None = None,
        clock: Callable[[], int] | None = None,
    ) -> None:
        self.max_transactions = (
            settings.MAX_TRANSACTIONS_TO_STORE if max_transactions is None else max_transactions
        )
        if self.max_transactions < 1:
            raise ValueError("max_transactions must be at least 1")
        self.persistence_enabled = (
            settings.PERSISTENCE_ENABLED if persistence_enabled is None else persistence_enabled
        )
        self._blobs: BlobStore | None = None
        if self.persistence_enabled:
            self._blobs = blobs if blobs is not None else RedisBlobStore()
        prefix = namespace or settings.STORAGE_NAMESPACE
        self._keys = {
            name: ns(prefix, name)
            for name in (TRANSACTIONS_BLOB, PRICE_HISTORY_BLOB, GLOBAL_STATS_BLOB)
        }
        self._clock = clock or _now

        self._transactions: list[TransactionRecord] = []
        self._histories: dict[str, AssetPriceHistory] = {}
        self._global_stats = GlobalMarketStats()

        self._lock = asyncio.Lock()
        self._persist_lock = asyncio.Lock()
        self._version = 0
        self._persisted_version = -1

        self.transactions_updated = Signal("transactions_updated")
        self.global_stats_updated = Signal("global_stats_updated")
        self.price_history_updated = Signal("price_history_updated")

    @property
    def blobs(self) -> BlobStore | None:
        return self._blobs

    # -- event source wiring ----------------------------------------------

    def _handlers(self) -> dict[ListingEvent, Callable[[Listing], Any]]:
        return {
            ListingEvent.CREATED: self.apply_listing_created,
            ListingEvent.UPDATED: self.apply_listing_updated,
            ListingEvent.SOLD: self.apply_listing_sold,
            ListingEvent.CANCELLED: self.apply_listing_cancelled,
        }

    def attach(self, bus: ListingEventBus) -> None:
        for event, handler in self._handlers().items():
            bus.subscribe(event, handler)

    def detach(self, bus: ListingEventBus) -> None:
        for event, handler in self._handlers().items():
            bus.unsubscribe(event, handler)

    # -- event application ------------------------------------------------

    async def apply_listing_created(self, listing: Listing) -> TransactionRecord:
        return await self._apply(TransactionKind.LISTING, listing)

    async def apply_listing_updated(self, listing: Listing) -> TransactionRecord:
        return await self._apply(TransactionKind.PRICE_UPDATE, listing)

    async def apply_listing_sold(self, listing: Listing) -> TransactionRecord:
        return await self._apply(TransactionKind.SALE, listing)

    async def apply_listing_cancelled(self, listing: Listing) -> TransactionRecord:
        return await self._apply(TransactionKind.CANCELLATION, listing)

    async def _apply(self, kind: TransactionKind, listing: Listing) -> TransactionRecord:
        # Parse before touching state so a bad amount records nothing
        price = MonetaryValue.parse(listing.price)

        async with self._lock:
            record = TransactionRecord(
                id=str(uuid.uuid4()),
                asset_id=listing.asset_id,
                asset_name=listing.asset_name,
                seller=listing.seller,
                buyer=(listing.buyer or "") if kind is TransactionKind.SALE else "",
                price=price,
                kind=kind,
                timestamp=self._clock(),
                asset_level=listing.asset_level,
                asset_stats=dict(listing.asset_stats),
            )
            self._append(record)

            history: AssetPriceHistory | None = None
            if kind in (TransactionKind.LISTING, TransactionKind.PRICE_UPDATE):
                history = self._history_for(record)
                history.add_price_point(price, record.timestamp)
            elif kind is TransactionKind.SALE:
                history = self._history_for(record)
                history.add_sale(record)

            self._global_stats = metrics.compute_global_stats(self._transactions)

            self._version += 1
            version = self._version
            blobs = self._dump() if self._blobs is not None else {}
            transactions = list(self._transactions)
            stats = self._global_stats.model_copy(deep=True)
            history_view = history.model_copy(deep=True) if history is not None else None

        _log.info(
            "transaction_recorded",
            kind=kind.value,
            asset_id=record.asset_id,
            price=str(price),
            transactions=len(transactions),
        )
        await self._persist(version, blobs)

        self.transactions_updated.emit(transactions)
        self.global_stats_updated.emit(stats)
        if history_view is not None:
            self.price_history_updated.emit(record.asset_id, history_view)
        return record

    def _append(self, record: TransactionRecord) -> None:
        self._transactions.append(record)
        if len(self._transactions) > self.max_transactions:
            before = len(self._transactions)
            self._transactions = metrics.newest(self._transactions, self.max_transactions)
            _log.debug("transactions_trimmed", dropped=before - len(self._transactions))

    def _history_for(self, record: TransactionRecord) -> AssetPriceHistory:
        history = self._histories.get(record.asset_id)
        if history is None:
            history = AssetPriceHistory(asset_id=record.asset_id, asset_name=record.asset_name)
            self._histories[record.asset_id] = history
        return history

    # -- persistence --------------------------------------------------------

    def _dump(self) -> dict[str, str]:
        return {
            TRANSACTIONS_BLOB: _transactions_adapter.dump_json(self._transactions).decode(),
            PRICE_HISTORY_BLOB: _histories_adapter.dump_json(self._histories).decode(),
            GLOBAL_STATS_BLOB: _stats_adapter.dump_json(self._global_stats).decode(),
        }

    async def _persist(self, version: int, blobs: dict[str, str]) -> None:
        if self._blobs is None:
            return
        async with self._persist_lock:
            # A newer snapshot already reached the store
            if version < self._persisted_version:
                return
            for name, payload in blobs.items():
                key = self._keys[name]
                try:
                    await self._blobs.set(key, payload)
                except Exception:
                    _log.exception("persistence_failed", blob=name, key=key, op="save")
            self._persisted_version = version

    async def save(self) -> None:
        if self._blobs is None:
            _log.debug("persistence_disabled", op="save")
            return
        async with self._lock:
            version = self._version
            blobs = self._dump()
        await self._persist(version, blobs)

    async def load(self) -> None:
        """Restore all three blobs; each one falls back to its default on its own."""
        blobs = self._blobs
        if blobs is None:
            _log.info("persistence_disabled", op="load")
        else:
            transactions = await self._read(blobs, TRANSACTIONS_BLOB, _transactions_adapter, list)
            histories = await self._read(blobs, PRICE_HISTORY_BLOB, _histories_adapter, dict)
            stats = await self._read(blobs, GLOBAL_STATS_BLOB, _stats_adapter, GlobalMarketStats)
            kept = metrics.newest(transactions, self.max_transactions)
            if len(kept) < len(transactions):
                # Saved stats describe records that were just dropped
                _log.info("global_stats_recomputed", dropped=len(transactions) - len(kept))
                stats = metrics.compute_global_stats(kept)
            async with self._lock:
                self._transactions = kept
                self._histories = histories
                self._global_stats = stats
            _log.info(
                "analytics_loaded",
                transactions=len(self._transactions),
                assets=len(self._histories),
            )

        self.transactions_updated.emit(self.get_all_transactions())
        self.global_stats_updated.emit(self.get_global_stats())

    async def _read(
        self, blobs: BlobStore, name: str, adapter: TypeAdapter[T], default: Callable[[], T]
    ) -> T:
        key = self._keys[name]
        try:
            raw = await blobs.get(key)
        except Exception:
            _log.exception("persistence_failed", blob=name, key=key, op="load")
            return default()
        if raw is None:
            return default()
        try:
            return self._decode(key, adapter, raw)
        except MalformedPersistedState as exc:
            _log.warning("persisted_state_malformed", blob=name, key=key, reason=exc.reason)
            return default()

    @staticmethod
    def _decode(key: str, adapter: TypeAdapter[T], raw: str) -> T:
        try:
            return adapter.validate_json(raw)
        except ValidationError as exc:
            raise MalformedPersistedState(key, f"{exc.error_count()} validation error(s)") from exc

    # -- queries ------------------------------------------------------------

    def get_all_transactions(self) -> list[TransactionRecord]:
        return list(self._transactions)

    def get_transactions_by_kind(self, kind: TransactionKind) -> list[TransactionRecord]:
        return [tx for tx in self._transactions if tx.kind is kind]

    def get_transactions_by_asset(self, asset_id: str) -> list[TransactionRecord]:
        return [tx for tx in self._transactions if tx.asset_id == asset_id]

    def get_transactions_by_user(
        self, address: str, as_seller: bool = True, as_buyer: bool = True
    ) -> list[TransactionRecord]:
        needle = address.casefold()
        return [
            tx
            for tx in self._transactions
            if (as_seller and tx.seller.casefold() == needle)
            or (as_buyer and tx.buyer != "" and tx.buyer.casefold() == needle)
        ]

    def get_price_history(self, asset_id: str) -> AssetPriceHistory | None:
        history = self._histories.get(asset_id)
        return history.model_copy(deep=True) if history is not None else None

    def get_global_stats(self) -> GlobalMarketStats:
        return self._global_stats.model_copy(deep=True)

    def get_asset_histories(self) -> list[tuple[str, AssetPriceHistory]]:
        return [(asset_id, h.model_copy(deep=True)) for asset_id, h in self._histories.items()]

    def get_top_selling_assets(
        self, count: int | None = None
    ) -> list[tuple[str, AssetPriceHistory]]:
        if count is None:
            count = settings.RANKING_DEFAULT_COUNT
        ranked = metrics.top_selling(self._histories, count)
        return [(asset_id, h.model_copy(deep=True)) for asset_id, h in ranked]

    def get_most_valuable_assets(
        self, count: int | None = None
    ) -> list[tuple[str, AssetPriceHistory]]:
        if count is None:
            count = settings.RANKING_DEFAULT_COUNT
        ranked = metrics.most_valuable(self._histories, count)
        return [(asset_id, h.model_copy(deep=True)) for asset_id, h in ranked]

    def get_sales_by_rarity(self) -> dict[RarityTier, int]:
        return metrics.sales_by_rarity(self._transactions)

    def get_average_price_by_rarity(self) -> dict[RarityTier, MonetaryValue]:
        return metrics.average_price_by_rarity(self._transactions)
