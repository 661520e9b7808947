"""Market de-duplication within a fetched batch."""


def dedupe_markets(markets: list, key: str = "id") -> list:
    """Drop repeated markets by identifier, keeping the first occurrence."""
    seen: set[str] = set()
    unique = []
    for market in markets:
        market_id = getattr(market, key)
        if market_id in seen:
            continue
        seen.add(market_id)
        unique.append(market)
    return unique
