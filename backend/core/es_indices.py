"""Elasticsearch index mappings for markets, price history and movements."""

MARKETS_INDEX = "markets"
PRICE_HISTORY_INDEX = "price_history"
MOVEMENTS_INDEX = "movements"

MARKETS_MAPPING = {
    "mappings": {
        "properties": {
            "id": {"type": "keyword"},
            "question": {
                "type": "text",
                "fields": {"keyword": {"type": "keyword", "ignore_above": 512}},
            },
            "description": {"type": "text"},
            "category": {"type": "keyword"},
            "end_date": {"type": "date"},
            "active": {"type": "boolean"},
            "volume": {"type": "double"},
            "created_at": {"type": "date"},
            "updated_at": {"type": "date"},
        }
    },
}

PRICE_HISTORY_MAPPING = {
    "mappings": {
        "properties": {
            "market_id": {"type": "keyword"},
            "probability": {"type": "double"},
            "volume": {"type": "double"},
            "timestamp": {"type": "date"},
            "seq": {"type": "long"},  # insertion order, tie-breaker on timestamp
        }
    },
}

MOVEMENTS_MAPPING = {
    "mappings": {
        "properties": {
            "id": {"type": "keyword"},
            "market_id": {"type": "keyword"},
            "start_price": {"type": "double"},
            "end_price": {"type": "double"},
            "change_percent": {"type": "double"},
            "start_time": {"type": "date"},
            "end_time": {"type": "date"},
            "significance": {"type": "keyword"},  # minor / moderate / major
            "created_at": {"type": "date"},
        }
    },
}

ALL_INDICES = {
    MARKETS_INDEX: MARKETS_MAPPING,
    PRICE_HISTORY_INDEX: PRICE_HISTORY_MAPPING,
    MOVEMENTS_INDEX: MOVEMENTS_MAPPING,
}
