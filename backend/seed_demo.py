"""Load sample markets, price history and movements for trying out the dashboard.

Usage (run from backend/ with ES running):
    python seed_demo.py
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone

import config
from core.es_store import ESStore
from core.store import MarketStore
from models.market import Movement, NormalizedMarket, PriceHistoryPoint
from services.movement_detector import calculate_percentage_change, classify_significance

logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")
logger = logging.getLogger(__name__)

# (id, question, category, price 24h ago, price now)
DEMO_MARKETS = [
    ("sample_btc_100k", "Will Bitcoin reach $100,000 by end of 2025?", "Crypto", 0.45, 0.65),
    ("sample_election", "Will the incumbent party win the next election?", "Politics", 0.55, 0.48),
    ("sample_fed_rates", "Will the Fed cut rates in Q1 2025?", "Economics", 0.60, 0.72),
    ("sample_ai_agi", "Will AGI be achieved before 2030?", "Technology", 0.30, 0.42),
    ("sample_eth_flip", "Will Ethereum market cap exceed Bitcoin in 2025?", "Crypto", 0.18, 0.22),
]

# Hours before now, and fraction of the move completed at that point
PATH = [(24, 0.0), (6, 0.2), (2, 0.5), (1, 0.8), (0, 1.0)]


async def seed_demo(store: MarketStore, now: datetime) -> dict:
    stats = {"markets": 0, "points": 0, "movements": 0}
    for market_id, question, category, start, end in DEMO_MARKETS:
        await store.upsert_market(
            NormalizedMarket(id=market_id, question=question, category=category, probability=end),
            now,
        )
        stats["markets"] += 1

        points = [
            PriceHistoryPoint(
                market_id=market_id,
                probability=round(start + (end - start) * frac, 4),
                timestamp=now - timedelta(hours=hours),
            )
            for hours, frac in PATH
        ]
        stats["points"] += await store.add_price_points(points)

        change = calculate_percentage_change(start, end)
        significance = classify_significance(change, config.MOVEMENT_THRESHOLD)
        if significance is None:
            continue
        await store.add_movement(Movement(
            market_id=market_id,
            start_price=start,
            end_price=end,
            change_percent=change,
            start_time=points[0].timestamp,
            end_time=now,
            significance=significance,
            created_at=now,
        ))
        stats["movements"] += 1
    return stats


async def main():
    store = ESStore(hosts=[config.ES_HOST])
    try:
        await store.ensure_indices()
        stats = await seed_demo(store, datetime.now(timezone.utc))
        logger.info(
            "Seeded %d markets, %d price points, %d movements",
            stats["markets"], stats["points"], stats["movements"],
        )
    finally:
        await store.close()


if __name__ == "__main__":
    asyncio.run(main())
