"""Movement detector: baseline selection, significance classification and dedup."""

import logging
from datetime import datetime, timedelta, timezone

from core.store import MarketStore
from models.market import Movement, PriceHistoryPoint, Significance
from models.settings import CollectorSettings

logger = logging.getLogger(__name__)

MAJOR_THRESHOLD = 25.0
MODERATE_THRESHOLD = 15.0
PRIMARY_WINDOW = timedelta(hours=24)


def calculate_percentage_change(baseline: float, current: float) -> float:
    """Signed percentage change from baseline to current.

    A zero baseline counts any rise as a full-scale (100%) move.
    """
    if baseline == 0:
        return 100.0 if current > 0 else 0.0
    return (current - baseline) / baseline * 100


def classify_significance(change_percent: float, threshold: float = 10.0) -> Significance | None:
    """Map abs(change_percent) onto a tier; boundaries are inclusive."""
    magnitude = abs(change_percent)
    if magnitude >= MAJOR_THRESHOLD:
        return Significance.MAJOR
    if magnitude >= MODERATE_THRESHOLD:
        return Significance.MODERATE
    if magnitude >= threshold:
        return Significance.MINOR
    return None


class MovementDetector:
    def __init__(self, store: MarketStore, settings: CollectorSettings | None = None):
        self.store = store
        self.settings = settings or CollectorSettings()

    async def select_baseline(self, market_id: str, now: datetime) -> PriceHistoryPoint | None:
        """Earliest point in the last 24h, else in the lookback window, else ever."""
        baseline = await self.store.earliest_price_point(market_id, since=now - PRIMARY_WINDOW)
        if baseline is None:
            lookback = timedelta(minutes=self.settings.lookback_minutes)
            baseline = await self.store.earliest_price_point(market_id, since=now - lookback)
        if baseline is None:
            baseline = await self.store.earliest_price_point(market_id)
        return baseline

    async def detect(
        self, market_id: str, current_probability: float, now: datetime | None = None
    ) -> Movement | None:
        """Record a movement if the change is significant and not a recent duplicate."""
        now = now or datetime.now(timezone.utc)

        baseline = await self.select_baseline(market_id, now)
        if baseline is None:
            logger.debug("No baseline yet for market %s", market_id)
            return None

        change = calculate_percentage_change(baseline.probability, current_probability)
        significance = classify_significance(change, self.settings.movement_threshold)
        if significance is None:
            return None

        # At most one movement per (market, significance) per rolling window;
        # direction is deliberately not part of the key.
        window_start = now - timedelta(minutes=self.settings.dedup_window_minutes)
        existing = await self.store.find_recent_movement(market_id, significance, window_start)
        if existing is not None:
            logger.debug(
                "Suppressed duplicate %s movement for market %s (%.2f%%)",
                significance.value, market_id, change,
            )
            return None

        movement = await self.store.add_movement(
            Movement(
                market_id=market_id,
                start_price=baseline.probability,
                end_price=current_probability,
                change_percent=change,
                start_time=baseline.timestamp,
                end_time=now,
                significance=significance,
                created_at=now,
            )
        )
        logger.warning(
            "%s movement detected for market %s: %+.2f%%",
            significance.value.upper(), market_id, change,
        )
        return movement
