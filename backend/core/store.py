"""Abstract time-series store consumed by the collector, detector and query surface."""

from abc import ABC, abstractmethod
from datetime import datetime

from models.market import Market, Movement, NormalizedMarket, PriceHistoryPoint, Significance


class StoreWriteError(Exception):
    """A write the caller depends on was not persisted."""


class MarketStore(ABC):
    """Markets, an append-only price history and append-only movement records.

    Price points are ordered by timestamp, ties broken by insertion order.
    """

    @abstractmethod
    async def upsert_market(self, market: NormalizedMarket, now: datetime) -> Market:
        """Create the market if unseen, else overwrite mutable fields and bump updated_at."""
        ...

    @abstractmethod
    async def get_market(self, market_id: str) -> Market | None:
        ...

    @abstractmethod
    async def get_markets(self, market_ids: list[str]) -> dict[str, Market]:
        """Fetch several markets by id; unknown ids are omitted."""
        ...

    @abstractmethod
    async def count_price_points(self, market_id: str) -> int:
        ...

    @abstractmethod
    async def add_price_points(self, points: list[PriceHistoryPoint]) -> int:
        """Append points in the given order. Returns the number written."""
        ...

    @abstractmethod
    async def earliest_price_point(
        self, market_id: str, since: datetime | None = None
    ) -> PriceHistoryPoint | None:
        """Earliest point with timestamp >= since (unbounded when since is None)."""
        ...

    @abstractmethod
    async def recent_price_points(self, market_id: str, limit: int = 1000) -> list[PriceHistoryPoint]:
        """Most recent points, newest first."""
        ...

    @abstractmethod
    async def find_recent_movement(
        self, market_id: str, significance: Significance, since: datetime
    ) -> Movement | None:
        """Any movement for (market, significance) created at or after since."""
        ...

    @abstractmethod
    async def add_movement(self, movement: Movement) -> Movement:
        """Append a movement; returns it with its assigned id."""
        ...

    @abstractmethod
    async def recent_movements(
        self,
        limit: int = 20,
        market_id: str | None = None,
        significance: Significance | None = None,
    ) -> list[Movement]:
        """Most recently created movements, newest first."""
        ...

    @abstractmethod
    async def counts(self) -> dict[str, int]:
        """Document counts for markets, price_history and movements."""
        ...
