from __future__ import annotations

import random
from decimal import ROUND_HALF_UP, Decimal
from enum import IntEnum

from .money import WEI_PER_ETHER, MonetaryValue


class RarityTier(IntEnum):
    COMMON = 0
    UNCOMMON = 1
    RARE = 2
    EPIC = 3
    LEGENDARY = 4
    MYTHIC = 5

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @classmethod
    def parse(cls, tag: object) -> RarityTier | None:
        """Tier for a tier-name tag ("Rare", "rare"); None for anything else."""
        if not isinstance(tag, str):
            return None
        return cls.__members__.get(tag.strip().upper())


VALUE_MULTIPLIERS: dict[RarityTier, Decimal] = {
    RarityTier.COMMON: Decimal("1.0"),
    RarityTier.UNCOMMON: Decimal("1.5"),
    RarityTier.RARE: Decimal("2.5"),
    RarityTier.EPIC: Decimal("4.0"),
    RarityTier.LEGENDARY: Decimal("7.0"),
    RarityTier.MYTHIC: Decimal("12.0"),
}

# Percent weights, sum to 100
DROP_RATES: dict[RarityTier, float] = {
    RarityTier.COMMON: 60.0,
    RarityTier.UNCOMMON: 25.0,
    RarityTier.RARE: 10.0,
    RarityTier.EPIC: 3.0,
    RarityTier.LEGENDARY: 1.5,
    RarityTier.MYTHIC: 0.5,
}

_SCORE_THRESHOLDS: list[tuple[float, RarityTier]] = [
    (95.0, RarityTier.MYTHIC),
    (85.0, RarityTier.LEGENDARY),
    (70.0, RarityTier.EPIC),
    (55.0, RarityTier.RARE),
    (40.0, RarityTier.UNCOMMON),
]


def value_multiplier(tier: RarityTier) -> Decimal:
    return VALUE_MULTIPLIERS[tier]


def roll_random_rarity(rng: random.Random | None = None) -> RarityTier:
    """Draw a tier using the cumulative drop-rate table against uniform [0, 100)."""
    roll = (rng or random).random() * 100.0
    cumulative = 0.0
    for tier in RarityTier:
        cumulative += DROP_RATES[tier]
        if roll < cumulative:
            return tier
    return RarityTier.COMMON


def determine_rarity(strength: int, agility: int, intelligence: int) -> RarityTier:
    """Score-based tier: more total stats and a more specialised spread rank higher."""
    total_stats = strength + agility + intelligence
    top = max(strength, agility, intelligence)
    variance = top / ((total_stats // 3) + 0.1)
    score = total_stats * 2 + variance * 10
    for threshold, tier in _SCORE_THRESHOLDS:
        if score >= threshold:
            return tier
    return RarityTier.COMMON


def suggested_base_price(
    level: int,
    strength: int,
    agility: int,
    intelligence: int,
    rarity: RarityTier | None = None,
) -> MonetaryValue:
    ether = Decimal("0.01") + level * Decimal("0.005")
    ether += (strength + agility + intelligence) * Decimal("0.001")
    if rarity is not None:
        ether *= value_multiplier(rarity)
    wei = (ether * WEI_PER_ETHER).to_integral_value(rounding=ROUND_HALF_UP)
    return MonetaryValue(max(0, int(wei)))
