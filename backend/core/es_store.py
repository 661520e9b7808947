"""Elasticsearch-backed MarketStore with index management."""

import logging
import time
import uuid
from datetime import datetime
from typing import Any

from elasticsearch import AsyncElasticsearch, NotFoundError
from elasticsearch.helpers import async_bulk

from core.es_indices import ALL_INDICES, MARKETS_INDEX, MOVEMENTS_INDEX, PRICE_HISTORY_INDEX
from core.store import MarketStore
from models.market import Market, Movement, NormalizedMarket, PriceHistoryPoint, Significance

logger = logging.getLogger(__name__)

# Writes block until visible so a point appended in a cycle is seen by detection.
REFRESH = "wait_for"


class ESStore(MarketStore):
    def __init__(self, hosts: list[str], timeout: int = 30):
        self.client = AsyncElasticsearch(hosts=hosts, request_timeout=timeout)

    async def close(self):
        await self.client.close()

    async def health(self) -> dict:
        return await self.client.cluster.health()

    async def ensure_indices(self):
        """Create missing indices; add new mapping fields to existing ones."""
        for name, body in ALL_INDICES.items():
            if await self.client.indices.exists(index=name):
                try:
                    await self.client.indices.put_mapping(
                        index=name, properties=body["mappings"]["properties"]
                    )
                except Exception as e:
                    logger.warning("Could not update mappings for %s: %s", name, e)
                continue
            await self.client.indices.create(index=name, mappings=body["mappings"])
            logger.info("Created index: %s", name)

    async def _search(
        self,
        index: str,
        filters: list[dict] | None = None,
        sort: list | None = None,
        size: int = 100,
    ) -> list[dict]:
        query: dict[str, Any] = {"bool": {"filter": filters}} if filters else {"match_all": {}}
        result = await self.client.search(index=index, query=query, sort=sort, size=size)
        return [hit["_source"] for hit in result["hits"]["hits"]]

    # --- markets ---

    async def upsert_market(self, market: NormalizedMarket, now: datetime) -> Market:
        existing = await self.get_market(market.id)
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
        await self.client.index(
            index=MARKETS_INDEX,
            id=market.id,
            document=doc.model_dump(mode="json"),
            refresh=REFRESH,
        )
        return doc

    async def get_market(self, market_id: str) -> Market | None:
        try:
            result = await self.client.get(index=MARKETS_INDEX, id=market_id)
        except NotFoundError:
            return None
        return Market(**result["_source"])

    async def get_markets(self, market_ids: list[str]) -> dict[str, Market]:
        if not market_ids:
            return {}
        result = await self.client.mget(index=MARKETS_INDEX, ids=list(set(market_ids)))
        return {
            doc["_id"]: Market(**doc["_source"])
            for doc in result["docs"]
            if doc.get("found")
        }

    # --- price history ---

    async def count_price_points(self, market_id: str) -> int:
        result = await self.client.count(
            index=PRICE_HISTORY_INDEX, query={"term": {"market_id": market_id}}
        )
        return result["count"]

    async def add_price_points(self, points: list[PriceHistoryPoint]) -> int:
        if not points:
            return 0
        base_seq = time.time_ns()
        actions = []
        for offset, point in enumerate(points):
            doc = point.model_dump(mode="json")
            doc["seq"] = base_seq + offset
            actions.append({
                "_index": PRICE_HISTORY_INDEX,
                "_id": str(uuid.uuid4()),
                "_source": doc,
            })

        success, errors = await async_bulk(
            self.client,
            actions,
            chunk_size=500,
            raise_on_error=False,
            refresh=REFRESH,
        )
        if errors:
            logger.warning("Price history bulk insert had %d errors", len(errors))
        return success

    async def earliest_price_point(
        self, market_id: str, since: datetime | None = None
    ) -> PriceHistoryPoint | None:
        filters: list[dict] = [{"term": {"market_id": market_id}}]
        if since is not None:
            filters.append({"range": {"timestamp": {"gte": since.isoformat()}}})
        hits = await self._search(
            PRICE_HISTORY_INDEX,
            filters=filters,
            sort=[{"timestamp": {"order": "asc"}}, {"seq": {"order": "asc"}}],
            size=1,
        )
        return PriceHistoryPoint(**hits[0]) if hits else None

    async def recent_price_points(self, market_id: str, limit: int = 1000) -> list[PriceHistoryPoint]:
        hits = await self._search(
            PRICE_HISTORY_INDEX,
            filters=[{"term": {"market_id": market_id}}],
            sort=[{"timestamp": {"order": "desc"}}, {"seq": {"order": "desc"}}],
            size=limit,
        )
        return [PriceHistoryPoint(**h) for h in hits]

    # --- movements ---

    async def find_recent_movement(
        self, market_id: str, significance: Significance, since: datetime
    ) -> Movement | None:
        hits = await self._search(
            MOVEMENTS_INDEX,
            filters=[
                {"term": {"market_id": market_id}},
                {"term": {"significance": Significance(significance).value}},
                {"range": {"created_at": {"gte": since.isoformat()}}},
            ],
            sort=[{"created_at": {"order": "desc"}}],
            size=1,
        )
        return Movement(**hits[0]) if hits else None

    async def add_movement(self, movement: Movement) -> Movement:
        stored = movement.model_copy(update={"id": movement.id or str(uuid.uuid4())})
        await self.client.index(
            index=MOVEMENTS_INDEX,
            id=stored.id,
            document=stored.model_dump(mode="json"),
            refresh=REFRESH,
        )
        return stored

    async def recent_movements(
        self,
        limit: int = 20,
        market_id: str | None = None,
        significance: Significance | None = None,
    ) -> list[Movement]:
        filters = []
        if market_id:
            filters.append({"term": {"market_id": market_id}})
        if significance:
            filters.append({"term": {"significance": Significance(significance).value}})
        hits = await self._search(
            MOVEMENTS_INDEX,
            filters=filters,
            sort=[{"created_at": {"order": "desc"}}],
            size=limit,
        )
        return [Movement(**h) for h in hits]

    async def counts(self) -> dict[str, int]:
        result = {}
        for name in ALL_INDICES:
            resp = await self.client.count(index=name)
            result[name] = resp["count"]
        return result
