"""Market record normalization: ordered parser strategies and probability derivation.

The upstream API has returned markets in at least two shapes over time:

- ``gamma``: camelCase fields, list fields JSON-encoded as strings
  (``outcomes``, ``outcomePrices``, ``clobTokenIds``), ``volume24hr``, ``endDate``.
- ``clob``: snake_case fields, ``tokens`` as a list of ``{outcome, price,
  token_id}``, ``volume_24hr``, ``end_date_iso``, ``outcome_prices``.

Each strategy either recognizes a raw record and returns a NormalizedMarket,
or returns None so the next strategy can try. The first success wins.
"""

import logging
from dataclasses import dataclass

from models.market import NormalizedMarket, ProbabilitySource
from utils.parsing import parse_datetime, parse_float, parse_json_list, price_to_probability

logger = logging.getLogger(__name__)

DEFAULT_PROBABILITY = 0.5

GAMMA_KEYS = ("outcomePrices", "volume24hr", "endDate", "clobTokenIds", "conditionId")


@dataclass
class OutcomeToken:
    outcome: str
    price: float | None
    token_id: str | None = None


def derive_probability(
    tokens: list[OutcomeToken],
    outcomes: list,
    outcome_prices: list,
) -> tuple[float, ProbabilitySource]:
    """Derive a probability, trying each source in strict order.

    1. the token labelled "yes" (case-insensitive)
    2. the first token
    3. the declared outcome-price list ("yes" position if labelled, else first)
    4. a neutral 0.5
    """
    for token in tokens:
        if token.price is not None and token.outcome.strip().lower() == "yes":
            return token.price, ProbabilitySource.YES_TOKEN
    if tokens and tokens[0].price is not None:
        return tokens[0].price, ProbabilitySource.FIRST_TOKEN

    if outcome_prices:
        index = _yes_index(outcomes)
        if index >= len(outcome_prices):
            index = 0
        price = parse_float(outcome_prices[index])
        if price is not None:
            return price_to_probability(price), ProbabilitySource.OUTCOME_PRICES

    return DEFAULT_PROBABILITY, ProbabilitySource.DEFAULT


def _yes_index(outcomes: list) -> int:
    for i, label in enumerate(outcomes):
        if isinstance(label, str) and label.strip().lower() == "yes":
            return i
    return 0


def _parse_tokens(raw_tokens) -> list[OutcomeToken]:
    tokens = []
    if not isinstance(raw_tokens, list):
        return tokens
    for raw in raw_tokens:
        if not isinstance(raw, dict):
            continue
        token_id = raw.get("token_id") or raw.get("tokenId")
        tokens.append(
            OutcomeToken(
                outcome=str(raw.get("outcome") or ""),
                price=parse_float(raw.get("price")),
                token_id=str(token_id) if token_id else None,
            )
        )
    return tokens


def _history_token(tokens: list[OutcomeToken], outcomes: list, token_ids: list) -> str | None:
    """CLOB token used for price history: the "yes" token when identifiable."""
    for token in tokens:
        if token.token_id and token.outcome.strip().lower() == "yes":
            return token.token_id
    if tokens and tokens[0].token_id:
        return tokens[0].token_id
    if token_ids:
        index = _yes_index(outcomes)
        return str(token_ids[index if index < len(token_ids) else 0])
    return None


def _composite_active(raw: dict) -> bool:
    return (
        bool(raw.get("active", True))
        and not bool(raw.get("closed", False))
        and not bool(raw.get("archived", False))
    )


class GammaMarketParser:
    name = "gamma"

    def parse(self, raw: dict) -> NormalizedMarket | None:
        market_id = raw.get("id")
        if not market_id or not any(k in raw for k in GAMMA_KEYS):
            return None

        outcomes = parse_json_list(raw.get("outcomes"))
        outcome_prices = parse_json_list(raw.get("outcomePrices"))
        token_ids = parse_json_list(raw.get("clobTokenIds"))
        tokens = _parse_tokens(raw.get("tokens"))
        probability, source = derive_probability(tokens, outcomes, outcome_prices)

        category = raw.get("category")
        if not category:
            events = raw.get("events")
            if isinstance(events, list) and events and isinstance(events[0], dict):
                category = events[0].get("category")

        return NormalizedMarket(
            id=str(market_id),
            question=raw.get("question") or raw.get("title") or "",
            description=raw.get("description") or None,
            category=category or None,
            end_date=parse_datetime(raw.get("endDate") or raw.get("endDateIso")),
            active=_composite_active(raw),
            volume=parse_float(raw.get("volume24hr"), 0.0),
            probability=probability,
            probability_source=source,
            price_history_id=_history_token(tokens, outcomes, token_ids),
            source_schema=self.name,
        )


class ClobMarketParser:
    """snake_case shape; also the lenient fallback for any record with an id."""

    name = "clob"

    def parse(self, raw: dict) -> NormalizedMarket | None:
        market_id = raw.get("id") or raw.get("condition_id")
        if not market_id:
            return None

        outcomes = parse_json_list(raw.get("outcomes"))
        outcome_prices = parse_json_list(raw.get("outcome_prices"))
        tokens = _parse_tokens(raw.get("tokens"))
        probability, source = derive_probability(tokens, outcomes, outcome_prices)

        return NormalizedMarket(
            id=str(market_id),
            question=raw.get("question") or "",
            description=raw.get("description") or None,
            category=raw.get("category") or None,
            end_date=parse_datetime(raw.get("end_date_iso")),
            active=_composite_active(raw),
            volume=parse_float(raw.get("volume_24hr"), 0.0),
            probability=probability,
            probability_source=source,
            price_history_id=_history_token(tokens, outcomes, []),
            source_schema=self.name,
        )


MARKET_PARSERS = [GammaMarketParser(), ClobMarketParser()]


def normalize_market(raw, parsers=None) -> NormalizedMarket | None:
    """Run the parser strategies in order; None if none accepts the record."""
    if not isinstance(raw, dict):
        return None
    for parser in parsers or MARKET_PARSERS:
        try:
            market = parser.parse(raw)
        except (TypeError, ValueError, KeyError, IndexError, AttributeError) as e:
            logger.debug("Parser %s rejected market %s: %s", parser.name, raw.get("id"), e)
            continue
        if market is not None:
            return market
    return None


def normalize_markets(raw_markets: list) -> list[NormalizedMarket]:
    markets = []
    for raw in raw_markets:
        market = normalize_market(raw)
        if market is None:
            logger.warning("Skipping unrecognized market record: %s", str(raw)[:200])
            continue
        markets.append(market)
    return markets
