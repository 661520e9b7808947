"""Collector service: one polling cycle over all active markets."""

import logging
from datetime import datetime, timedelta, timezone
from enum import Enum

from core.gamma_client import MarketSourceError, PolymarketClient
from core.store import MarketStore, StoreWriteError
from models.market import NormalizedMarket, PriceHistoryPoint
from models.settings import CollectorSettings
from services.movement_detector import MovementDetector
from utils.dedup import dedupe_markets
from utils.parsing import price_to_probability

logger = logging.getLogger(__name__)


class SeedResult(str, Enum):
    HAS_HISTORY = "has_history"
    SEEDED = "seeded"
    NO_HISTORY = "no_history"
    FAILED = "failed"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CollectorService:
    def __init__(
        self,
        store: MarketStore,
        client: PolymarketClient,
        settings: CollectorSettings | None = None,
        detector: MovementDetector | None = None,
        clock=utcnow,
    ):
        self.store = store
        self.client = client
        self.settings = settings or CollectorSettings()
        self.detector = detector or MovementDetector(store, self.settings)
        self.clock = clock
        self.last_run_stats: dict | None = None
        self.last_run_utc: datetime | None = None
        self.is_running: bool = False

    async def run(self) -> dict:
        """Execute a full collection cycle. Returns stats dict."""
        if self.is_running:
            logger.warning("Skipping collection cycle: previous cycle still running")
            return {"skipped": True, "error": "Collection already in progress"}

        self.is_running = True
        run_start = self.clock()
        stats = {
            "started_utc": run_start.isoformat(),
            "markets": 0,
            "processed": 0,
            "seeded": 0,
            "degraded": 0,
            "points": 0,
            "movements": 0,
            "errors": [],
        }

        try:
            logger.info("Collecting market data")
            try:
                markets = await self.client.fetch_active_markets(
                    limit=self.settings.market_fetch_limit
                )
            except MarketSourceError as e:
                logger.error("Aborting collection cycle: %s", e)
                stats["errors"].append(str(e))
                return stats

            markets = dedupe_markets(markets)
            stats["markets"] = len(markets)

            for market in markets:
                try:
                    await self._process_market(market, stats)
                    stats["processed"] += 1
                except Exception as e:
                    logger.exception("Error processing market %s", market.id)
                    stats["errors"].append(f"Market {market.id}: {e}")

        except Exception as e:
            logger.exception("Collection run failed")
            stats["errors"].append(str(e))
        finally:
            self.is_running = False
            run_end = self.clock()
            stats["finished_utc"] = run_end.isoformat()
            stats["duration_seconds"] = (run_end - run_start).total_seconds()
            self.last_run_stats = stats
            self.last_run_utc = run_end
            logger.info("Collection run completed: %s", stats)

        return stats

    async def _process_market(self, market: NormalizedMarket, stats: dict):
        now = self.clock()
        await self.store.upsert_market(market, now)

        seed = await self.seed_history(market, now)
        if seed == SeedResult.SEEDED:
            stats["seeded"] += 1

        if market.degraded:
            logger.warning("No usable price data for market %s; using default probability", market.id)
            stats["degraded"] += 1

        written = await self.store.add_price_points([
            PriceHistoryPoint(
                market_id=market.id,
                probability=market.probability,
                volume=market.volume,
                timestamp=now,
            )
        ])
        if not written:
            raise StoreWriteError("live price point was not stored")
        stats["points"] += 1

        movement = await self.detector.detect(market.id, market.probability, now=now)
        if movement is not None:
            stats["movements"] += 1

    async def seed_history(self, market: NormalizedMarket, now: datetime | None = None) -> SeedResult:
        """Backfill recent history the first time a market is seen."""
        now = now or self.clock()
        if await self.store.count_price_points(market.id) > 0:
            return SeedResult.HAS_HISTORY

        start = now - timedelta(hours=self.settings.seed_hours)
        try:
            history = await self.client.fetch_price_history(
                market.price_history_id or market.id, start, now
            )
        except MarketSourceError as e:
            logger.warning("Backfill failed for market %s: %s", market.id, e)
            return SeedResult.FAILED

        if not history:
            return SeedResult.NO_HISTORY

        points = [
            PriceHistoryPoint(
                market_id=market.id,
                probability=price_to_probability(price),
                timestamp=ts,
            )
            for ts, price in sorted(history, key=lambda item: item[0])
        ]
        written = await self.store.add_price_points(points)
        logger.info("Seeded %d history points for market %s", written, market.id)
        return SeedResult.SEEDED
