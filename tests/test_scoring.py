"""Tests for the shared scoring rule set."""

import pytest

from stock_health.engines import scoring
from stock_health.engines.models import QuoteRecord


class TestSubScores:
    """Tests for technical, fundamental and risk sub-scores."""

    def test_scenario_scores(self, scenario_quote: QuoteRecord) -> None:
        """Up 3.6% on 2.5x volume, P/E 12, 4% yield, ROE 20%, beta 0.7, vol 15%."""
        card = scoring.score_quote(scenario_quote)
        # 50 + 10 (0 < change <= 5%) + 15 (volume ratio 2.5)
        assert card.technical == 75
        # 50 + 20 + 10 + 15
        assert card.fundamental == 95
        # 50 + 20 + 15
        assert card.risk == 85

    def test_price_only_scores_are_base(self, bare_quote: QuoteRecord) -> None:
        """With nothing but a price every sub-score stays at 50."""
        card = scoring.score_quote(bare_quote)
        assert (card.technical, card.fundamental, card.risk) == (50, 50, 50)
        assert card.outcomes == ()

    def test_large_move_scores_twenty(self) -> None:
        """A move above 5% adds 20, below -5% subtracts 20."""
        up = QuoteRecord(symbol="X", price=106.0, previous_close=100.0)
        down = QuoteRecord(symbol="X", price=94.0, previous_close=100.0)
        assert scoring.technical_score(up) == 70
        assert scoring.technical_score(down) == 30

    def test_small_down_move(self) -> None:
        """A move between -5% and 0 subtracts 10."""
        quote = QuoteRecord(symbol="X", price=99.0, previous_close=100.0)
        assert scoring.technical_score(quote) == 40

    def test_unchanged_price_no_adjustment(self) -> None:
        """Exactly zero change leaves the score alone but still records a factor."""
        quote = QuoteRecord(symbol="X", price=100.0, previous_close=100.0)
        outcomes = scoring.technical_rules(quote)
        assert scoring.technical_score(quote) == 50
        assert [o.name for o in outcomes] == ["price_change"]
        assert outcomes[0].points == 0

    def test_low_volume_penalty(self) -> None:
        quote = QuoteRecord(symbol="X", price=100.0, volume=400, average_volume=1000)
        assert scoring.technical_score(quote) == 35

    def test_zero_previous_close_skipped(self) -> None:
        """A zero denominator skips the rule instead of dividing."""
        quote = QuoteRecord(symbol="X", price=100.0, previous_close=0.0, average_volume=0.0, volume=10)
        assert scoring.technical_rules(quote) == []

    def test_zero_volume_is_present(self) -> None:
        """Zero volume is a value, not a missing field."""
        quote = QuoteRecord(symbol="X", price=100.0, volume=0, average_volume=1000)
        assert scoring.technical_score(quote) == 35

    @pytest.mark.parametrize(
        ("pe", "expected"),
        [(10, 70), (15, 60), (24.9, 60), (25, 50), (30, 50), (30.1, 40), (50, 40), (51, 30)],
    )
    def test_pe_bands(self, pe: float, expected: int) -> None:
        """P/E bands, including the 25-30 dead zone."""
        quote = QuoteRecord(symbol="X", price=1.0, pe_ratio=pe)
        assert scoring.fundamental_score(quote) == expected

    def test_dividend_and_roe_bands(self) -> None:
        quote = QuoteRecord(symbol="X", price=1.0, dividend_yield=0.06, return_on_equity=0.12)
        assert scoring.fundamental_score(quote) == 75
        weak = QuoteRecord(symbol="X", price=1.0, dividend_yield=0.03, return_on_equity=0.01)
        assert scoring.fundamental_score(weak) == 35

    def test_risk_bands(self) -> None:
        quote = QuoteRecord(symbol="X", price=1.0, beta=1.0, volatility=0.3)
        assert scoring.risk_score(quote) == 60
        risky = QuoteRecord(symbol="X", price=1.0, beta=1.6, volatility=0.5)
        assert scoring.risk_score(risky) == 15

    def test_extreme_inputs_stay_in_range(self) -> None:
        """Absurd magnitudes never push a score out of 0-100."""
        quote = QuoteRecord(
            symbol="X",
            price=1e9,
            previous_close=1e-9,
            volume=1e15,
            average_volume=1.0,
            pe_ratio=10000,
            dividend_yield=50.0,
            return_on_equity=-1000,
            beta=-50,
            volatility=100,
        )
        card = scoring.score_quote(quote)
        for value in (card.technical, card.fundamental, card.risk, scoring.health_score(quote)):
            assert isinstance(value, int)
            assert 0 <= value <= 100

    def test_factors_carry_weight(self, scenario_quote: QuoteRecord) -> None:
        """Each factor's weight is its points on a 0-1 scale."""
        factors = scoring.score_quote(scenario_quote).factors
        by_name = {f.name: f for f in factors}
        assert by_name["pe_ratio"].weight == pytest.approx(0.2)
        assert by_name["volume_ratio"].weight == pytest.approx(0.15)
        assert by_name["price_change"].category == "technical"
        assert len(factors) == 7


class TestHealthScore:
    """Tests for the positional health heuristic."""

    def test_scenario_baseline(self, scenario_quote: QuoteRecord) -> None:
        # 50 + 15 (P/E) - 10 (move > 3%) + 5 (volume) + 8 (yield) + 7 (ROE)
        assert scoring.health_score(scenario_quote) == 75

    def test_price_only(self, bare_quote: QuoteRecord) -> None:
        assert scoring.health_score(bare_quote) == 50

    def test_near_52_week_low(self) -> None:
        quote = QuoteRecord(symbol="X", price=105, fifty_two_week_low=100, fifty_two_week_high=200)
        assert scoring.health_score(quote) == 70

    def test_near_52_week_high(self) -> None:
        quote = QuoteRecord(symbol="X", price=190, fifty_two_week_low=100, fifty_two_week_high=200)
        assert scoring.health_score(quote) == 35

    def test_flat_band_skipped(self) -> None:
        quote = QuoteRecord(symbol="X", price=100, fifty_two_week_low=100, fifty_two_week_high=100)
        assert scoring.health_score(quote) == 50

    def test_negative_roe(self) -> None:
        quote = QuoteRecord(symbol="X", price=100, return_on_equity=-0.1)
        assert scoring.health_score(quote) == 40

    def test_daily_change_takes_precedence(self) -> None:
        """Reported daily change (percent) wins over the previous-close move."""
        quote = QuoteRecord(symbol="X", price=100, previous_close=90, daily_change=-4.0)
        assert scoring.health_score(quote) == 60

    def test_independent_of_sub_scores(self, scenario_quote: QuoteRecord) -> None:
        card = scoring.score_quote(scenario_quote)
        mean = round((card.technical + card.fundamental + card.risk) / 3)
        assert scoring.health_score(scenario_quote) != mean


class TestConfidence:
    """Tests for the data-completeness confidence."""

    def test_price_only(self, bare_quote: QuoteRecord) -> None:
        assert scoring.confidence(bare_quote) == 0.5

    def test_scenario(self, scenario_quote: QuoteRecord) -> None:
        assert scoring.confidence(scenario_quote) == pytest.approx(0.8)

    def test_scenario_with_market_cap(self) -> None:
        quote = QuoteRecord(
            symbol="X", price=580, pe_ratio=12, dividend_yield=0.04, return_on_equity=0.2,
            market_cap=3e11,
        )
        assert scoring.confidence(quote) >= 0.85

    def test_zero_dividend_adds_nothing(self) -> None:
        quote = QuoteRecord(symbol="X", price=1, dividend_yield=0.0)
        assert scoring.confidence(quote) == 0.5

    def test_history_needs_more_than_twenty(self) -> None:
        twenty = QuoteRecord(symbol="X", price=1, history=tuple(range(1, 21)))
        twenty_one = QuoteRecord(symbol="X", price=1, history=tuple(range(1, 22)))
        assert scoring.confidence(twenty) == 0.5
        assert scoring.confidence(twenty_one) == pytest.approx(0.65)

    def test_monotonic_and_capped(self) -> None:
        """Adding fields one at a time never lowers confidence; it stops at 0.95."""
        steps = [
            {"pe_ratio": 20},
            {"dividend_yield": 0.02},
            {"return_on_equity": 0.1},
            {"market_cap": 1e9},
            {"history": tuple(range(1, 30))},
        ]
        fields: dict = {}
        previous = scoring.confidence(QuoteRecord(symbol="X", price=1))
        for step in steps:
            fields.update(step)
            current = scoring.confidence(QuoteRecord(symbol="X", price=1, **fields))
            assert current >= previous
            previous = current
        assert previous == scoring.MAX_CONFIDENCE


class TestSignals:
    """Tests for qualitative signal derivation."""

    def test_scenario_without_history(self, scenario_quote: QuoteRecord) -> None:
        """Without history the labels come from the sub-score bands."""
        signals = scoring.derive_signals(scenario_quote, scoring.score_quote(scenario_quote))
        assert signals.trend == "bullish"
        assert signals.valuation == "attractive"
        assert signals.dividend_strength == "moderate"
        assert signals.fundamental_rating == "positive"
        assert signals.risk_level == "low"
        assert signals.sentiment == "neutral"

    def test_rising_history_is_bullish(self, rising_history: tuple[float, ...]) -> None:
        quote = QuoteRecord(symbol="X", price=160.0, previous_close=159.0, history=rising_history)
        signals = scoring.derive_signals(quote, scoring.score_quote(quote))
        assert signals.trend == "bullish"
        assert signals.momentum == "strong"
        assert signals.sentiment == "positive"
        # |0.63%| < 2
        assert signals.risk_level == "low"

    def test_falling_history_is_bearish(self, rising_history: tuple[float, ...]) -> None:
        falling = tuple(reversed(rising_history))
        quote = QuoteRecord(symbol="X", price=99.0, daily_change=-6.0, history=falling)
        signals = scoring.derive_signals(quote, scoring.score_quote(quote))
        assert signals.trend == "bearish"
        assert signals.momentum == "weak"
        assert signals.sentiment == "negative"
        assert signals.risk_level == "high"

    def test_expensive_without_dividend_is_negative(self, troubled_quote: QuoteRecord) -> None:
        signals = scoring.derive_signals(troubled_quote, scoring.score_quote(troubled_quote))
        assert signals.valuation == "expensive"
        assert signals.dividend_strength == "none"
        assert signals.fundamental_rating == "negative"
        assert signals.risk_level == "high"


class TestNarratives:
    """Tests for strengths, weaknesses, opportunities and threats."""

    def test_scenario_strengths(self, scenario_quote: QuoteRecord) -> None:
        signals = scoring.derive_signals(scenario_quote, scoring.score_quote(scenario_quote))
        items = scoring.strengths(scenario_quote, signals)
        assert "Valuation looks attractive" in items
        assert "High return on equity" in items

    def test_missing_dividend_is_weakness(self, bare_quote: QuoteRecord) -> None:
        signals = scoring.derive_signals(bare_quote, scoring.score_quote(bare_quote))
        assert "Low dividend yield" in scoring.weaknesses(bare_quote, signals)

    def test_near_low_opportunity(self) -> None:
        quote = QuoteRecord(symbol="X", price=102, fifty_two_week_low=100, dividend_yield=0.05)
        items = scoring.opportunities(quote)
        assert len(items) == 2

    def test_threats(self, troubled_quote: QuoteRecord) -> None:
        assert scoring.threats(troubled_quote) == ("Rich valuation carries bubble risk",)
