"""Pydantic models for markets, price history and detected movements."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class Significance(str, Enum):
    MINOR = "minor"
    MODERATE = "moderate"
    MAJOR = "major"


class ProbabilitySource(str, Enum):
    """Which fallback branch produced a market's probability."""

    YES_TOKEN = "yes_token"
    FIRST_TOKEN = "first_token"
    OUTCOME_PRICES = "outcome_prices"
    DEFAULT = "default"


class NormalizedMarket(BaseModel):
    """Canonical market record produced by the source client."""

    id: str
    question: str = ""
    description: str | None = None
    category: str | None = None
    end_date: datetime | None = None
    active: bool = True
    volume: float = 0.0
    probability: float = 0.5
    probability_source: ProbabilitySource = ProbabilitySource.DEFAULT
    price_history_id: str | None = None
    source_schema: str = ""

    @property
    def degraded(self) -> bool:
        return self.probability_source == ProbabilitySource.DEFAULT


class Market(BaseModel):
    id: str
    question: str = ""
    description: str | None = None
    category: str | None = None
    end_date: datetime | None = None
    active: bool = True
    volume: float = 0.0
    created_at: datetime
    updated_at: datetime


class PriceHistoryPoint(BaseModel):
    market_id: str
    probability: float
    volume: float | None = None
    timestamp: datetime


class Movement(BaseModel):
    id: str | None = None
    market_id: str
    start_price: float
    end_price: float
    change_percent: float
    start_time: datetime
    end_time: datetime
    significance: Significance
    created_at: datetime


class MovementWithMarket(Movement):
    market: Market | None = None


class MarketDetails(Market):
    """Market with its most recent price points and movements, newest first."""
    price_histories: list[PriceHistoryPoint] = Field(default_factory=list)
    movements: list[Movement] = Field(default_factory=list)
