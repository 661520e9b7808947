"""Print store status: document counts and the most recent movements.

Usage (run from backend/ with ES running):
    python check_data.py [--limit 10]
"""

import argparse
import asyncio
import logging

import config
from core.es_store import ESStore
from services.market_service import MarketService

logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")
logger = logging.getLogger(__name__)


async def check_data(limit: int = 10):
    store = ESStore(hosts=[config.ES_HOST])
    try:
        counts = await store.counts()
        logger.info(
            "Markets: %d | Price history points: %d | Movements: %d",
            counts.get("markets", 0),
            counts.get("price_history", 0),
            counts.get("movements", 0),
        )

        movements = await MarketService(store).get_recent_movements(limit=limit)
        if not movements:
            logger.info("No movements detected yet; they appear after the next polling cycle")
            return

        for m in movements:
            question = m.market.question if m.market else m.market_id
            logger.info(
                "%s: %+.2f%% (%s) from %.2f%% to %.2f%% at %s",
                question,
                m.change_percent,
                m.significance.value,
                m.start_price * 100,
                m.end_price * 100,
                m.created_at.isoformat(),
            )
    finally:
        await store.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Show movement tracker data status")
    parser.add_argument("--limit", type=int, default=10, help="Recent movements to list")
    args = parser.parse_args()
    asyncio.run(check_data(args.limit))
