"""Market service: read-only queries over markets, history and movements."""

import logging

import pandas as pd

from core.store import MarketStore
from models.market import MarketDetails, MovementWithMarket, Significance

logger = logging.getLogger(__name__)

MAX_PRICE_POINTS = 1000
MAX_MARKET_MOVEMENTS = 10

EXPORT_COLUMNS = [
    "created_at", "market_id", "question", "significance", "change_percent",
    "start_price", "end_price", "start_time", "end_time", "category",
]


class MarketService:
    def __init__(self, store: MarketStore):
        self.store = store

    async def get_recent_movements(
        self, limit: int = 20, significance: Significance | None = None
    ) -> list[MovementWithMarket]:
        """Newest movements first, each with its market embedded."""
        movements = await self.store.recent_movements(limit=limit, significance=significance)
        markets = await self.store.get_markets([m.market_id for m in movements])
        return [
            MovementWithMarket(**m.model_dump(), market=markets.get(m.market_id))
            for m in movements
        ]

    async def get_market_details(self, market_id: str) -> MarketDetails | None:
        market = await self.store.get_market(market_id)
        if market is None:
            return None
        points = await self.store.recent_price_points(market_id, limit=MAX_PRICE_POINTS)
        movements = await self.store.recent_movements(
            limit=MAX_MARKET_MOVEMENTS, market_id=market_id
        )
        return MarketDetails(
            **market.model_dump(),
            price_histories=points,
            movements=movements,
        )


def movements_to_frame(movements: list[MovementWithMarket]) -> pd.DataFrame:
    """Flatten movements with their market into a spreadsheet-ready frame."""
    if not movements:
        return pd.DataFrame(columns=EXPORT_COLUMNS)

    rows = []
    for m in movements:
        row = m.model_dump(mode="json", exclude={"market", "id"})
        row["question"] = m.market.question if m.market else ""
        row["category"] = m.market.category if m.market else None
        row["change_percent"] = round(m.change_percent, 2)
        rows.append(row)

    df = pd.DataFrame(rows)
    cols = [c for c in EXPORT_COLUMNS if c in df.columns]
    return df[cols]
