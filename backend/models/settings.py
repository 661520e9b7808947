"""Pydantic model for collector and detector settings."""

from pydantic import BaseModel, Field

import config


class CollectorSettings(BaseModel):
    movement_threshold: float = Field(default=10.0, gt=0)
    lookback_minutes: int = Field(default=60, gt=0)
    poll_interval_minutes: int = Field(default=5, gt=0)
    market_fetch_limit: int = Field(default=100, ge=1, le=1000)
    seed_hours: int = Field(default=24, gt=0)
    dedup_window_minutes: int = Field(default=60, gt=0)

    @classmethod
    def from_config(cls) -> "CollectorSettings":
        """Build settings from environment-backed config values."""
        return cls(
            movement_threshold=config.MOVEMENT_THRESHOLD,
            lookback_minutes=config.MOVEMENT_LOOKBACK_MINUTES,
            poll_interval_minutes=config.POLL_INTERVAL_MINUTES,
            market_fetch_limit=config.MARKET_FETCH_LIMIT,
        )
