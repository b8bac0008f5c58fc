from __future__ import annotations

import argparse
import asyncio
import json
import random
from typing import Any

from nftstats.db.persistence import MemoryBlobStore, RedisBlobStore
from nftstats.logging import configure_logging
from nftstats.models.market import Listing
from nftstats.models.rarity import determine_rarity, roll_random_rarity, suggested_base_price
from nftstats.services.events import ListingEvent, ListingEventBus
from nftstats.services.store import AnalyticsStore

NAMES = ["Aria", "Borin", "Cael", "Dax", "Elowen", "Fenn", "Gryph", "Hale"]


def _random_listing(
    rng: random.Random, asset_id: int, wallets: list[str], from_stats: bool = False
) -> Listing:
    strength, agility, intelligence = (rng.randint(1, 20) for _ in range(3))
    level = rng.randint(1, 10)
    if from_stats:
        tier = determine_rarity(strength, agility, intelligence)
    else:
        tier = roll_random_rarity(rng)
    price = suggested_base_price(level, strength, agility, intelligence, tier)
    return Listing(
        asset_id=str(asset_id),
        seller=rng.choice(wallets),
        price=str(price),
        asset_name=f"{rng.choice(NAMES)} #{asset_id}",
        asset_level=level,
        asset_stats={
            "strength": strength,
            "agility": agility,
            "intelligence": intelligence,
            "rarity": tier.label,
        },
    )


async def simulate(
    bus: ListingEventBus,
    rng: random.Random,
    events: int,
    assets: int,
    wallets: list[str],
    from_stats: bool = False,
) -> None:
    open_listings: dict[str, Listing] = {}
    for _ in range(events):
        if not open_listings or rng.random() < 0.35:
            listing = _random_listing(rng, rng.randint(1, assets), wallets, from_stats)
            open_listings[listing.asset_id] = listing
            await bus.publish(ListingEvent.CREATED, listing)
            continue

        asset_id = rng.choice(list(open_listings))
        listing = open_listings[asset_id]
        action = rng.random()
        if action < 0.3:
            # Reprice within +/-20%
            factor = rng.uniform(0.8, 1.2)
            repriced = listing.model_copy(update={"price": str(int(int(listing.price) * factor))})
            open_listings[asset_id] = repriced
            await bus.publish(ListingEvent.UPDATED, repriced)
        elif action < 0.85:
            buyer = rng.choice([w for w in wallets if w != listing.seller])
            await bus.publish(ListingEvent.SOLD, listing.model_copy(update={"buyer": buyer}))
            del open_listings[asset_id]
        else:
            await bus.publish(ListingEvent.CANCELLED, listing)
            del open_listings[asset_id]


def _report(store: AnalyticsStore) -> dict[str, Any]:
    stats = store.get_global_stats()
    return {
        "global": stats.model_dump(mode="json"),
        "top_selling": [
            {"asset_id": a, "name": h.asset_name, "total_sales": h.total_sales}
            for a, h in store.get_top_selling_assets()
        ],
        "most_valuable": [
            {"asset_id": a, "name": h.asset_name, "highest_price": str(h.highest_price)}
            for a, h in store.get_most_valuable_assets()
        ],
        "sales_by_rarity": {t.label: n for t, n in store.get_sales_by_rarity().items()},
        "average_price_by_rarity": {
            t.label: str(v) for t, v in store.get_average_price_by_rarity().items()
        },
    }


async def main() -> None:
    ap = argparse.ArgumentParser(description="Feed a synthetic marketplace event stream into the analytics store")
    ap.add_argument("--events", type=int, default=500)
    ap.add_argument("--assets", type=int, default=40)
    ap.add_argument("--wallets", type=int, default=12)
    ap.add_argument("--seed", type=int, default=None)
    ap.add_argument(
        "--rarity",
        choices=["roll", "stats"],
        default="roll",
        help="Roll tiers from drop rates or derive them from character stats",
    )
    ap.add_argument("--max-transactions", type=int, default=None)
    ap.add_argument("--redis", action="store_true", help="Persist to Redis instead of memory")
    args = ap.parse_args()

    configure_logging("WARNING")
    rng = random.Random(args.seed)
    wallets = [f"0x{rng.getrandbits(160):040x}" for _ in range(max(2, args.wallets))]

    store = AnalyticsStore(
        RedisBlobStore() if args.redis else MemoryBlobStore(),
        max_transactions=args.max_transactions,
    )
    await store.load()
    bus = ListingEventBus()
    store.attach(bus)

    await simulate(bus, rng, args.events, max(1, args.assets), wallets, args.rarity == "stats")
    print(json.dumps(_report(store), indent=2))


if __name__ == "__main__":
    asyncio.run(main())
