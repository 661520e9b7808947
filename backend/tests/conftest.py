"""Shared fixtures: in-memory store, fake upstream client and a controllable clock."""

import itertools
import uuid
from datetime import datetime, timedelta, timezone

import pytest

from core.gamma_client import MarketSourceError
from core.store import MarketStore
from models.market import Market, Movement, NormalizedMarket, PriceHistoryPoint, ProbabilitySource

T0 = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


class InMemoryStore(MarketStore):
    def __init__(self):
        self.markets: dict[str, Market] = {}
        self.points: list[tuple[int, PriceHistoryPoint]] = []
        self.movements: list[Movement] = []
        self._seq = itertools.count()

    async def upsert_market(self, market, now):
        existing = self.markets.get(market.id)
        doc = Market(
            id=market.id,
            question=market.question,
            description=market.description,
            category=market.category,
            end_date=market.end_date,
            active=market.active,
            volume=market.volume,
            created_at=existing.created_at if existing else now,
            updated_at=now,
        )
        self.markets[market.id] = doc
        return doc

    async def get_market(self, market_id):
        return self.markets.get(market_id)

    async def get_markets(self, market_ids):
        return {mid: self.markets[mid] for mid in market_ids if mid in self.markets}

    async def count_price_points(self, market_id):
        return sum(1 for _, p in self.points if p.market_id == market_id)

    async def add_price_points(self, points):
        for point in points:
            self.points.append((next(self._seq), point))
        return len(points)

    async def earliest_price_point(self, market_id, since=None):
        candidates = [
            (p.timestamp, seq, p)
            for seq, p in self.points
            if p.market_id == market_id and (since is None or p.timestamp >= since)
        ]
        if not candidates:
            return None
        return min(candidates, key=lambda c: (c[0], c[1]))[2]

    async def recent_price_points(self, market_id, limit=1000):
        ordered = sorted(
            ((p.timestamp, seq, p) for seq, p in self.points if p.market_id == market_id),
            key=lambda c: (c[0], c[1]),
            reverse=True,
        )
        return [c[2] for c in ordered[:limit]]

    async def find_recent_movement(self, market_id, significance, since):
        for m in self.movements:
            if m.market_id == market_id and m.significance == significance and m.created_at >= since:
                return m
        return None

    async def add_movement(self, movement):
        stored = movement.model_copy(update={"id": movement.id or str(uuid.uuid4())})
        self.movements.append(stored)
        return stored

    async def recent_movements(self, limit=20, market_id=None, significance=None):
        selected = [
            m for m in self.movements
            if (market_id is None or m.market_id == market_id)
            and (significance is None or m.significance == significance)
        ]
        selected.sort(key=lambda m: m.created_at, reverse=True)
        return selected[:limit]

    async def counts(self):
        return {
            "markets": len(self.markets),
            "price_history": len(self.points),
            "movements": len(self.movements),
        }

    def history(self, market_id: str) -> list[PriceHistoryPoint]:
        return [p for _, p in self.points if p.market_id == market_id]


class FakeClient:
    """Stands in for PolymarketClient with canned markets and history."""

    def __init__(self, markets=None, history=None):
        self.markets: list[NormalizedMarket] = markets or []
        self.history: dict[str, list[tuple[datetime, float]]] = history or {}
        self.fail_markets = False
        self.fail_history: set[str] = set()
        self.history_calls: list[str] = []

    async def fetch_active_markets(self, limit=100):
        if self.fail_markets:
            raise MarketSourceError("upstream down")
        return list(self.markets)[:limit]

    async def fetch_price_history(self, market_id, start, end):
        self.history_calls.append(market_id)
        if market_id in self.fail_history:
            raise MarketSourceError(f"history unavailable for {market_id}")
        return [(ts, p) for ts, p in self.history.get(market_id, []) if start <= ts <= end]


class FakeClock:
    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


def make_market(market_id: str = "m1", probability: float = 0.5, **kwargs) -> NormalizedMarket:
    kwargs.setdefault("probability_source", ProbabilitySource.YES_TOKEN)
    return NormalizedMarket(
        id=market_id,
        question=kwargs.pop("question", f"Question {market_id}?"),
        probability=probability,
        volume=kwargs.pop("volume", 1000.0),
        **kwargs,
    )


def make_point(market_id: str, probability: float, timestamp: datetime) -> PriceHistoryPoint:
    return PriceHistoryPoint(market_id=market_id, probability=probability, timestamp=timestamp)


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def client():
    return FakeClient()
