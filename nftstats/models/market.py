from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from .money import MonetaryValue, total
from .rarity import RarityTier


class TransactionKind(str, Enum):
    LISTING = "Listing"
    PRICE_UPDATE = "PriceUpdate"
    SALE = "Sale"
    CANCELLATION = "Cancellation"


class Listing(BaseModel):
    """Listing snapshot carried by every inbound marketplace event."""

    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    asset_id: str = Field(..., alias="assetId", min_length=1)
    seller: str
    buyer: str | None = None
    price: str  # decimal wei string, parsed by the store
    asset_name: str = Field(default="", alias="assetName")
    asset_level: int = Field(default=0, alias="assetLevel", ge=0)
    asset_stats: dict[str, int | str] = Field(default_factory=dict, alias="assetStats")


class TransactionRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    asset_id: str
    asset_name: str
    seller: str
    buyer: str = ""  # only populated for sales
    price: MonetaryValue
    kind: TransactionKind
    timestamp: int = Field(..., ge=0)  # Unix epoch seconds, UTC
    asset_level: int = 0
    asset_stats: Mapping[str, int | str] = Field(default_factory=dict, validate_default=True)

    @field_validator("asset_stats")
    @classmethod
    def _freeze_stats(cls, value: Mapping[str, int | str]) -> Mapping[str, int | str]:
        return MappingProxyType(dict(value))

    @field_serializer("asset_stats")
    def _dump_stats(self, value: Mapping[str, int | str]) -> dict[str, int | str]:
        return dict(value)

    def __deepcopy__(self, memo: dict[int, Any] | None = None) -> TransactionRecord:
        # Fully immutable, so copies may share the instance
        return self

    @property
    def rarity(self) -> RarityTier | None:
        return RarityTier.parse(self.asset_stats.get("rarity"))


class PricePoint(BaseModel):
    asset_id: str
    price: MonetaryValue
    timestamp: int = Field(..., ge=0)


class AssetPriceHistory(BaseModel):
    asset_id: str
    # Fixed at first observation; later renames are not reflected
    asset_name: str
    price_points: list[PricePoint] = Field(default_factory=list)
    sale_records: list[TransactionRecord] = Field(default_factory=list)

    highest_price: MonetaryValue = Field(default_factory=MonetaryValue.zero)
    lowest_price: MonetaryValue = Field(default_factory=MonetaryValue.zero)
    average_price: MonetaryValue = Field(default_factory=MonetaryValue.zero)
    total_sales: int = 0

    def add_price_point(self, price: MonetaryValue, timestamp: int) -> PricePoint:
        point = PricePoint(asset_id=self.asset_id, price=price, timestamp=timestamp)
        self.price_points.append(point)
        return point

    def add_sale(self, record: TransactionRecord) -> None:
        self.sale_records.append(record)
        self.update_analytics()

    def update_analytics(self) -> None:
        """Recompute high/low/average/count from the sale records.

        Listings and price updates do not contribute. With no sales the
        derived fields keep their zero defaults.
        """
        if not self.sale_records:
            return
        prices = [s.price for s in self.sale_records]
        self.highest_price = max(prices)
        self.lowest_price = min(prices)
        self.average_price = total(prices).divide(len(prices))
        self.total_sales = len(prices)


class GlobalMarketStats(BaseModel):
    total_transactions: int = 0
    total_sales: int = 0
    total_volume: MonetaryValue = Field(default_factory=MonetaryValue.zero)
    average_sale_price: MonetaryValue = Field(default_factory=MonetaryValue.zero)
    sales_by_day: dict[str, int] = Field(default_factory=dict)  # "YYYY-MM-DD" (UTC)
    sales_by_level: dict[int, int] = Field(default_factory=dict)
