"""Tests for market schema strategies and probability derivation."""

import json
from datetime import datetime, timezone

import pytest

from core.normalizers import (
    ClobMarketParser,
    GammaMarketParser,
    OutcomeToken,
    derive_probability,
    normalize_market,
    normalize_markets,
)
from models.market import ProbabilitySource


def gamma_market(**overrides) -> dict:
    raw = {
        "id": "512345",
        "question": "Will it rain tomorrow?",
        "description": "Resolves YES if it rains.",
        "category": "Weather",
        "endDate": "2025-12-31T12:00:00Z",
        "outcomes": json.dumps(["Yes", "No"]),
        "outcomePrices": json.dumps(["0.62", "0.38"]),
        "clobTokenIds": json.dumps(["tok-yes", "tok-no"]),
        "volume24hr": 12345.6,
        "active": True,
        "closed": False,
        "archived": False,
    }
    raw.update(overrides)
    return raw


def clob_market(**overrides) -> dict:
    raw = {
        "condition_id": "0xabc",
        "question": "Will BTC close above $100k?",
        "end_date_iso": "2025-09-30T00:00:00Z",
        "volume_24hr": "987.5",
        "tokens": [
            {"outcome": "No", "price": 0.7, "token_id": "t-no"},
            {"outcome": "Yes", "price": 0.3, "token_id": "t-yes"},
        ],
        "active": True,
        "closed": False,
    }
    raw.update(overrides)
    return raw


class TestDeriveProbability:
    def test_prefers_yes_token(self):
        tokens = [OutcomeToken("No", 0.7), OutcomeToken("YES", 0.3)]
        assert derive_probability(tokens, [], []) == (0.3, ProbabilitySource.YES_TOKEN)

    def test_first_token_without_yes_label(self):
        tokens = [OutcomeToken("Trump", 0.55), OutcomeToken("Harris", 0.45)]
        assert derive_probability(tokens, [], []) == (0.55, ProbabilitySource.FIRST_TOKEN)

    def test_outcome_prices_fraction(self):
        prob, source = derive_probability([], ["Yes", "No"], ["0.25", "0.75"])
        assert prob == 0.25
        assert source == ProbabilitySource.OUTCOME_PRICES

    def test_outcome_prices_use_yes_position(self):
        prob, _ = derive_probability([], ["No", "Yes"], ["0.25", "0.75"])
        assert prob == 0.75

    def test_outcome_prices_percentage_scale(self):
        prob, source = derive_probability([], [], [62])
        assert prob == pytest.approx(0.62)
        assert source == ProbabilitySource.OUTCOME_PRICES

    def test_outcome_prices_clamped(self):
        prob, _ = derive_probability([], [], ["250"])
        assert prob == 1.0

    def test_defaults_to_neutral(self):
        assert derive_probability([], [], []) == (0.5, ProbabilitySource.DEFAULT)

    def test_unparseable_price_defaults(self):
        assert derive_probability([], [], ["n/a"]) == (0.5, ProbabilitySource.DEFAULT)

    def test_unpriced_tokens_fall_through(self):
        tokens = [OutcomeToken("Yes", None)]
        prob, source = derive_probability(tokens, ["Yes", "No"], ["0.4", "0.6"])
        assert (prob, source) == (0.4, ProbabilitySource.OUTCOME_PRICES)


class TestGammaParser:
    def test_parses_camel_case_shape(self):
        m = GammaMarketParser().parse(gamma_market())
        assert m.id == "512345"
        assert m.question == "Will it rain tomorrow?"
        assert m.category == "Weather"
        assert m.end_date == datetime(2025, 12, 31, 12, tzinfo=timezone.utc)
        assert m.volume == pytest.approx(12345.6)
        assert m.probability == pytest.approx(0.62)
        assert m.probability_source == ProbabilitySource.OUTCOME_PRICES
        assert m.price_history_id == "tok-yes"
        assert m.source_schema == "gamma"
        assert m.active is True

    def test_rejects_snake_case_shape(self):
        assert GammaMarketParser().parse(clob_market(id="x")) is None

    def test_category_from_event(self):
        raw = gamma_market(category=None, events=[{"category": "Sports"}])
        assert GammaMarketParser().parse(raw).category == "Sports"

    @pytest.mark.parametrize(
        "flags",
        [{"active": False}, {"closed": True}, {"archived": True}],
    )
    def test_composite_active_flag(self, flags):
        assert GammaMarketParser().parse(gamma_market(**flags)).active is False


class TestClobParser:
    def test_parses_snake_case_shape(self):
        m = ClobMarketParser().parse(clob_market())
        assert m.id == "0xabc"
        assert m.end_date == datetime(2025, 9, 30, tzinfo=timezone.utc)
        assert m.volume == pytest.approx(987.5)
        assert m.probability == 0.3
        assert m.probability_source == ProbabilitySource.YES_TOKEN
        assert m.price_history_id == "t-yes"
        assert m.source_schema == "clob"

    def test_bare_record_is_degraded(self):
        m = ClobMarketParser().parse({"id": "m9", "question": "Bare?"})
        assert m.probability == 0.5
        assert m.degraded

    def test_requires_identifier(self):
        assert ClobMarketParser().parse({"question": "No id"}) is None


class TestNormalizeMarket:
    def test_first_matching_strategy_wins(self):
        assert normalize_market(gamma_market()).source_schema == "gamma"
        assert normalize_market(clob_market()).source_schema == "clob"

    def test_unrecognized_records_skipped(self):
        markets = normalize_markets([gamma_market(), {"foo": "bar"}, "junk", clob_market()])
        assert [m.id for m in markets] == ["512345", "0xabc"]

    def test_duplicates_preserved(self):
        markets = normalize_markets([gamma_market(), gamma_market()])
        assert len(markets) == 2

    def test_malformed_events_do_not_drop_neighbours(self):
        bad = gamma_market(id="1", category=None, events={"a": 1})
        markets = normalize_markets([bad, gamma_market(id="2")])
        assert [m.id for m in markets] == ["1", "2"]
        assert markets[0].category is None

    def test_parser_lookup_error_falls_through(self):
        class BrokenParser:
            name = "broken"

            def parse(self, raw):
                return raw["missing"]

        market = normalize_market(clob_market(), parsers=[BrokenParser(), ClobMarketParser()])
        assert market.source_schema == "clob"
