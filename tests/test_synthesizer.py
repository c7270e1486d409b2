"""Tests for recommendation synthesis."""

from stock_health.engines.models import Action, QualitativeSignals, Recommendation
from stock_health.engines.synthesizer import (
    REASONING_DELIMITER,
    signals_from_scores,
    synthesize,
)


class TestPrecedence:
    """Tests for the ordered precedence chain."""

    def test_neutral_defaults_to_hold(self) -> None:
        result = synthesize(50, 50, 50, base_health_score=50)
        assert result.action == Action.HOLD
        assert result.health_score == 50
        assert result.reasoning == ()

    def test_bullish_positive_low_risk_is_buy(self) -> None:
        signals = QualitativeSignals(trend="bullish", fundamental_rating="positive", risk_level="low")
        result = synthesize(75, 95, 85, signals, base_health_score=75)
        assert result.action == Action.BUY
        # 75 + 10, then +5 capped at 90
        assert result.health_score == 90

    def test_bearish_trend_waits(self) -> None:
        signals = QualitativeSignals(trend="bearish")
        result = synthesize(30, 50, 50, signals, base_health_score=60)
        assert result.action == Action.WAIT
        assert result.action.to_recommendation() == Recommendation.HOLD
        assert result.health_score == 60

    def test_positive_fundamentals_skip_bonus_when_waiting(self) -> None:
        """The +10 only applies while the action is BUY or HOLD."""
        signals = QualitativeSignals(trend="bearish", fundamental_rating="positive")
        result = synthesize(30, 80, 50, signals, base_health_score=60)
        assert result.action == Action.WAIT
        assert result.health_score == 60

    def test_negative_fundamentals_override_buy(self) -> None:
        signals = QualitativeSignals(trend="bullish", fundamental_rating="negative")
        result = synthesize(80, 20, 50, signals, base_health_score=60)
        assert result.action == Action.CAUTIOUS
        assert result.health_score == 60

    def test_high_risk_with_negative_fundamentals_is_cautious(self) -> None:
        """Regardless of trend, negative fundamentals plus high risk end CAUTIOUS."""
        for trend in ("bullish", "neutral", "bearish"):
            signals = QualitativeSignals(
                trend=trend, fundamental_rating="negative", risk_level="high"
            )
            result = synthesize(50, 20, 20, signals, base_health_score=50)
            assert result.action == Action.CAUTIOUS

    def test_high_risk_penalty_has_floor(self) -> None:
        signals = QualitativeSignals(risk_level="high")
        assert synthesize(50, 50, 20, signals, base_health_score=60).health_score == 45
        assert synthesize(50, 50, 20, signals, base_health_score=25).health_score == 20

    def test_high_risk_floor_can_raise_low_scores(self) -> None:
        """max(20, score - 15) lifts a base below 20 up to 20."""
        signals = QualitativeSignals(risk_level="high")
        assert synthesize(50, 50, 20, signals, base_health_score=5).health_score == 20

    def test_low_risk_ceiling(self) -> None:
        signals = QualitativeSignals(risk_level="low")
        assert synthesize(50, 50, 80, signals, base_health_score=70).health_score == 75
        assert synthesize(50, 50, 80, signals, base_health_score=88).health_score == 90

    def test_low_risk_ceiling_does_not_lower_high_scores(self) -> None:
        """min(90, score + 5) is applied as written, so 95 becomes 90."""
        signals = QualitativeSignals(risk_level="low")
        assert synthesize(50, 50, 80, signals, base_health_score=95).health_score == 90

    def test_base_score_rounds_half_up(self) -> None:
        assert synthesize(50, 50, 50, base_health_score=62.5).health_score == 63


class TestReasoning:
    """Tests for reasoning order and delimiter."""

    def test_reasons_in_step_order(self) -> None:
        signals = QualitativeSignals(
            trend="bullish",
            fundamental_rating="positive",
            risk_level="low",
            sentiment="positive",
        )
        result = synthesize(70, 80, 80, signals, base_health_score=60)
        assert len(result.reasoning) == 4
        assert "uptrend" in result.reasoning[0]
        assert "Fundamentals" in result.reasoning[1]
        assert "Risk" in result.reasoning[2]
        assert "sentiment" in result.reasoning[3]

    def test_sentiment_only_adds_reason(self) -> None:
        signals = QualitativeSignals(sentiment="positive")
        result = synthesize(50, 50, 50, signals, base_health_score=50)
        assert result.action == Action.HOLD
        assert result.health_score == 50
        assert len(result.reasoning) == 1

    def test_full_width_delimiter(self) -> None:
        signals = QualitativeSignals(trend="bullish", risk_level="high")
        result = synthesize(70, 50, 20, signals, base_health_score=50)
        assert REASONING_DELIMITER == "；"
        assert result.reasoning_text == REASONING_DELIMITER.join(result.reasoning)
        assert result.reasoning_text.count("；") == 1


class TestSignalsFromScores:
    """Tests for score-band fallback signals."""

    def test_bands(self) -> None:
        signals = signals_from_scores(60, 70, 70)
        assert signals.trend == "bullish"
        assert signals.fundamental_rating == "positive"
        assert signals.risk_level == "low"

    def test_low_bands(self) -> None:
        signals = signals_from_scores(40, 30, 30)
        assert signals.trend == "bearish"
        assert signals.fundamental_rating == "negative"
        assert signals.risk_level == "high"

    def test_omitted_signals_use_bands(self) -> None:
        result = synthesize(40, 30, 30, base_health_score=50)
        assert result.action == Action.CAUTIOUS
        assert result.health_score == 35
