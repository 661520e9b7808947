"""Polymarket Gamma + CLOB API client with retry and response normalization."""

import logging
from datetime import datetime, timezone

import httpx

from core.normalizers import normalize_markets
from models.market import NormalizedMarket
from utils.parsing import parse_datetime, parse_float
from utils.retry import retry_with_backoff

logger = logging.getLogger(__name__)

GAMMA_BASE_URL = "https://gamma-api.polymarket.com"
CLOB_BASE_URL = "https://clob.polymarket.com"

# Minutes per history point requested from the CLOB API.
HISTORY_FIDELITY = 5


class MarketSourceError(Exception):
    """Upstream market data could not be fetched or understood."""


class PolymarketClient:
    def __init__(
        self,
        timeout: float = 30,
        gamma_base_url: str = GAMMA_BASE_URL,
        clob_base_url: str = CLOB_BASE_URL,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._gamma = httpx.AsyncClient(base_url=gamma_base_url, timeout=timeout, transport=transport)
        self._clob = httpx.AsyncClient(base_url=clob_base_url, timeout=timeout, transport=transport)

    async def close(self):
        await self._gamma.aclose()
        await self._clob.aclose()

    @retry_with_backoff(max_attempts=3, base_delay=1.0)
    async def _get(self, client: httpx.AsyncClient, path: str, params: dict | None = None) -> dict | list:
        resp = await client.get(path, params=params)
        resp.raise_for_status()
        return resp.json()

    async def fetch_active_markets(self, limit: int = 100) -> list[NormalizedMarket]:
        """Fetch the top active markets by 24h volume, normalized.

        Raises MarketSourceError if the list cannot be fetched or parsed.
        Identifiers are not de-duplicated here.
        """
        params = {
            "limit": limit,
            "active": "true",
            "closed": "false",
            "archived": "false",
            "order": "volume24hr",
            "ascending": "false",
        }
        try:
            result = await self._get(self._gamma, "/markets", params=params)
        except (httpx.HTTPError, ValueError) as e:
            raise MarketSourceError(f"Failed to fetch active markets: {e}") from e

        if isinstance(result, dict):
            result = result.get("data") or result.get("markets")
        if not isinstance(result, list):
            raise MarketSourceError("Unexpected active markets payload")

        markets = normalize_markets(result)
        logger.info("Fetched %d active markets (%d raw records)", len(markets), len(result))
        return markets

    async def fetch_price_history(
        self, market_id: str, start: datetime, end: datetime
    ) -> list[tuple[datetime, float]]:
        """Fetch (timestamp, raw_price) pairs for a market, ascending by timestamp.

        Raises MarketSourceError on upstream failure; malformed points are dropped.
        """
        params = {
            "market": market_id,
            "startTs": int(start.timestamp()),
            "endTs": int(end.timestamp()),
            "fidelity": HISTORY_FIDELITY,
        }
        try:
            result = await self._get(self._clob, "/prices-history", params=params)
        except (httpx.HTTPError, ValueError) as e:
            raise MarketSourceError(f"Failed to fetch price history for {market_id}: {e}") from e

        raw_points = result.get("history", []) if isinstance(result, dict) else result
        if not isinstance(raw_points, list):
            raise MarketSourceError(f"Unexpected price history payload for {market_id}")

        by_timestamp: dict[datetime, float] = {}
        for point in raw_points:
            if not isinstance(point, dict):
                continue
            ts = parse_datetime(point.get("t", point.get("timestamp")))
            price = parse_float(point.get("p", point.get("price")))
            if ts is None or price is None:
                continue
            by_timestamp.setdefault(ts.astimezone(timezone.utc), price)

        return sorted(by_timestamp.items())
