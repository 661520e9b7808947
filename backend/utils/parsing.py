"""Defensive parsing helpers for loosely-typed upstream API fields."""

import json
from datetime import datetime, timezone

# Epoch values above this are treated as milliseconds.
_EPOCH_MS_CUTOFF = 10_000_000_000


def parse_json_list(value) -> list:
    """Return a list from a list or a JSON-encoded list string; [] otherwise."""
    if isinstance(value, list):
        return value
    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except (json.JSONDecodeError, TypeError):
            return []
        return parsed if isinstance(parsed, list) else []
    return []


def parse_float(value, default: float | None = None) -> float | None:
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def parse_datetime(value) -> datetime | None:
    """Parse ISO strings and epoch seconds/milliseconds into aware UTC datetimes."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        ts = float(value)
        if ts > _EPOCH_MS_CUTOFF:
            ts /= 1000
        try:
            return datetime.fromtimestamp(ts, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        text = value.strip()
        if text.replace(".", "", 1).isdigit():
            return parse_datetime(float(text))
        try:
            dt = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return None
        return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)
    return None


def price_to_probability(price: float) -> float:
    """Convert a raw price to a probability in [0, 1].

    The source returns some prices on a 0-100 scale and others as fractions;
    anything above 1 is treated as a percentage.
    """
    if price > 1:
        price = price / 100
    return max(0.0, min(1.0, price))
