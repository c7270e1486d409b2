"""
Deterministic rule set shared by every scoring engine.

Each sub-score starts at 50 and applies additive adjustments, then clamps to
[0, 100]. Rules are evaluated as if/elif chains in the order listed in the
rule functions; a missing input skips its rule entirely.

The health score uses its own positional heuristic and is NOT derived from
the three sub-scores. Both rule sets read overlapping inputs (P/E, dividend
yield, ROE) with different thresholds and weights.
"""

import math
from dataclasses import dataclass

from stock_health.engines.models import AnalysisFactor, QualitativeSignals, QuoteRecord
from stock_health.utils.indicators import (
    gain_loss_balance,
    latest_sma,
    to_price_series,
)

BASE_SCORE = 50
MAX_CONFIDENCE = 0.95

# Trend needs at least this many closes; sentiment and risk use > 5
MIN_TREND_HISTORY = 10
MIN_SIGNAL_HISTORY = 5
CONFIDENCE_HISTORY_THRESHOLD = 20


def clamp_score(value: float) -> int:
    """Round half-up and clamp to the 0-100 score range."""
    return int(max(0, min(100, math.floor(value + 0.5))))


@dataclass(frozen=True)
class RuleOutcome:
    """Single rule evaluation: the input it read and the points it applied."""

    category: str
    name: str
    value: float
    points: int
    description: str

    def to_factor(self) -> AnalysisFactor:
        return AnalysisFactor(
            category=self.category,
            name=self.name,
            value=round(self.value, 4),
            weight=self.points / 100,
            description=self.description,
        )


@dataclass(frozen=True)
class ScoreCard:
    """Sub-scores plus the rule outcomes that produced them, in evaluation order."""

    technical: int
    fundamental: int
    risk: int
    outcomes: tuple[RuleOutcome, ...]

    @property
    def factors(self) -> tuple[AnalysisFactor, ...]:
        return tuple(o.to_factor() for o in self.outcomes)


# ============================================================================
# SUB-SCORE RULES
# ============================================================================


def technical_rules(quote: QuoteRecord) -> list[RuleOutcome]:
    """Price momentum versus previous close, then volume versus its average."""
    outcomes: list[RuleOutcome] = []

    if quote.price is not None and quote.previous_close:
        change = (quote.price - quote.previous_close) / quote.previous_close
        if change > 0.05:
            points, text = 20, "Price up more than 5% versus previous close"
        elif change > 0:
            points, text = 10, "Price up versus previous close"
        elif change < -0.05:
            points, text = -20, "Price down more than 5% versus previous close"
        elif change < 0:
            points, text = -10, "Price down versus previous close"
        else:
            points, text = 0, "Price unchanged versus previous close"
        outcomes.append(RuleOutcome("technical", "price_change", change, points, text))

    if quote.volume is not None and quote.average_volume:
        ratio = quote.volume / quote.average_volume
        if ratio > 1.5:
            points, text = 15, "Volume more than 1.5x its average"
        elif ratio < 0.5:
            points, text = -15, "Volume below half its average"
        else:
            points, text = 0, "Volume in line with its average"
        outcomes.append(RuleOutcome("technical", "volume_ratio", ratio, points, text))

    return outcomes


def fundamental_rules(quote: QuoteRecord) -> list[RuleOutcome]:
    """P/E band, dividend yield, return on equity."""
    outcomes: list[RuleOutcome] = []

    pe = quote.pe_ratio
    if pe is not None:
        if pe < 15:
            points, text = 20, "P/E below 15"
        elif pe < 25:
            points, text = 10, "P/E between 15 and 25"
        elif pe > 50:
            points, text = -20, "P/E above 50"
        elif pe > 30:
            points, text = -10, "P/E between 30 and 50"
        else:
            points, text = 0, "P/E between 25 and 30"
        outcomes.append(RuleOutcome("fundamental", "pe_ratio", pe, points, text))

    dy = quote.dividend_yield
    if dy is not None:
        if dy > 0.05:
            points, text = 15, "Dividend yield above 5%"
        elif dy > 0.03:
            points, text = 10, "Dividend yield between 3% and 5%"
        else:
            points, text = 0, "Dividend yield at or below 3%"
        outcomes.append(RuleOutcome("fundamental", "dividend_yield", dy, points, text))

    roe = quote.return_on_equity
    if roe is not None:
        if roe > 0.15:
            points, text = 15, "Return on equity above 15%"
        elif roe > 0.10:
            points, text = 10, "Return on equity between 10% and 15%"
        elif roe < 0.05:
            points, text = -15, "Return on equity below 5%"
        else:
            points, text = 0, "Return on equity between 5% and 10%"
        outcomes.append(RuleOutcome("fundamental", "return_on_equity", roe, points, text))

    return outcomes


def risk_rules(quote: QuoteRecord) -> list[RuleOutcome]:
    """Beta then volatility. Higher points mean lower risk."""
    outcomes: list[RuleOutcome] = []

    beta = quote.beta
    if beta is not None:
        if beta < 0.8:
            points, text = 20, "Beta below 0.8"
        elif beta < 1.2:
            points, text = 10, "Beta between 0.8 and 1.2"
        elif beta > 1.5:
            points, text = -20, "Beta above 1.5"
        else:
            points, text = 0, "Beta between 1.2 and 1.5"
        outcomes.append(RuleOutcome("risk", "beta", beta, points, text))

    vol = quote.volatility
    if vol is not None:
        if vol < 0.2:
            points, text = 15, "Volatility below 20%"
        elif vol > 0.4:
            points, text = -15, "Volatility above 40%"
        else:
            points, text = 0, "Volatility between 20% and 40%"
        outcomes.append(RuleOutcome("risk", "volatility", vol, points, text))

    return outcomes


def _total(outcomes: list[RuleOutcome]) -> int:
    return clamp_score(BASE_SCORE + sum(o.points for o in outcomes))


def technical_score(quote: QuoteRecord) -> int:
    return _total(technical_rules(quote))


def fundamental_score(quote: QuoteRecord) -> int:
    return _total(fundamental_rules(quote))


def risk_score(quote: QuoteRecord) -> int:
    return _total(risk_rules(quote))


def score_quote(quote: QuoteRecord) -> ScoreCard:
    """Evaluate all three rule groups once and keep the outcomes for the factor list."""
    technical = technical_rules(quote)
    fundamental = fundamental_rules(quote)
    risk = risk_rules(quote)
    return ScoreCard(
        technical=_total(technical),
        fundamental=_total(fundamental),
        risk=_total(risk),
        outcomes=tuple(technical + fundamental + risk),
    )


# ============================================================================
# HEALTH SCORE (positional heuristic)
# ============================================================================


def health_score(quote: QuoteRecord) -> int:
    """
    Quick-glance health score, computed independently of the sub-scores.

    Base 50, then: position within the 52-week band, P/E band, size of the
    daily move, presence of volume, dividend yield and ROE.
    """
    score = float(BASE_SCORE)

    high, low = quote.fifty_two_week_high, quote.fifty_two_week_low
    if quote.price is not None and high is not None and low is not None and high != low:
        position = (quote.price - low) / (high - low)
        if position < 0.3:
            score += 20
        elif position > 0.7:
            score -= 15

    if quote.pe_ratio is not None:
        if quote.pe_ratio < 15:
            score += 15
        elif quote.pe_ratio > 30:
            score -= 15

    change = quote.change_percent
    if change is not None:
        if change > 3:
            score -= 10
        elif change < -3:
            score += 10

    if quote.volume:
        score += 5

    if quote.dividend_yield is not None and quote.dividend_yield > 0.03:
        score += 8

    if quote.return_on_equity is not None:
        if quote.return_on_equity > 0.10:
            score += 7
        elif quote.return_on_equity < 0:
            score -= 10

    return clamp_score(score)


# ============================================================================
# CONFIDENCE
# ============================================================================


def confidence(quote: QuoteRecord) -> float:
    """
    Completeness of the inputs, not statistical certainty.

    Never decreases as optional fields are filled in, capped at 0.95.
    """
    value = 0.5
    if quote.pe_ratio is not None:
        value += 0.1
    if quote.dividend_yield is not None and quote.dividend_yield > 0:
        value += 0.1
    if len(quote.history) > CONFIDENCE_HISTORY_THRESHOLD:
        value += 0.15
    if quote.return_on_equity is not None:
        value += 0.1
    if quote.market_cap is not None:
        value += 0.05
    return round(min(MAX_CONFIDENCE, value), 2)


# ============================================================================
# QUALITATIVE SIGNALS
# ============================================================================


def derive_signals(quote: QuoteRecord, scores: ScoreCard) -> QualitativeSignals:
    """
    Label trend, fundamentals, risk and sentiment for the synthesizer.

    History-based rules apply when enough closes are present; otherwise the
    labels fall back to the corresponding sub-score bands.
    """
    prices = to_price_series(quote.history)
    price = quote.price

    # Trend and momentum
    trend = "neutral"
    momentum = "neutral"
    if len(prices) >= MIN_TREND_HISTORY and price is not None:
        sma20 = latest_sma(prices, 20) or float(prices.iloc[-20:].mean())
        sma50 = latest_sma(prices, 50) or float(prices.mean())
        if price > sma20 > sma50:
            trend = "bullish"
        elif price < sma20 < sma50:
            trend = "bearish"
        avg_gain, avg_loss = gain_loss_balance(prices)
        if avg_gain > avg_loss * 1.5:
            momentum = "strong"
        elif avg_loss > avg_gain * 1.5:
            momentum = "weak"
    elif scores.technical >= 60:
        trend = "bullish"
    elif scores.technical <= 40:
        trend = "bearish"

    # Fundamentals
    valuation = "fair"
    if quote.pe_ratio is not None:
        if quote.pe_ratio < 15:
            valuation = "attractive"
        elif quote.pe_ratio > 25:
            valuation = "expensive"

    dividend_strength = "none"
    if quote.dividend_yield is not None:
        if quote.dividend_yield > 0.04:
            dividend_strength = "strong"
        elif quote.dividend_yield > 0.02:
            dividend_strength = "moderate"

    fundamental_rating = "neutral"
    if valuation == "attractive" and dividend_strength != "none":
        fundamental_rating = "positive"
    elif valuation == "expensive" and dividend_strength == "none":
        fundamental_rating = "negative"

    # Risk
    risk_level = "medium"
    change = quote.change_percent
    if len(prices) > MIN_SIGNAL_HISTORY and change is not None:
        if abs(change) > 5:
            risk_level = "high"
        elif abs(change) < 2:
            risk_level = "low"
    elif scores.risk >= 70:
        risk_level = "low"
    elif scores.risk <= 30:
        risk_level = "high"

    # Sentiment
    sentiment = "neutral"
    if len(prices) > MIN_SIGNAL_HISTORY and price is not None:
        average = float(prices.mean())
        if price > average * 1.05:
            sentiment = "positive"
        elif price < average * 0.95:
            sentiment = "negative"

    return QualitativeSignals(
        trend=trend,
        momentum=momentum,
        fundamental_rating=fundamental_rating,
        valuation=valuation,
        dividend_strength=dividend_strength,
        risk_level=risk_level,
        sentiment=sentiment,
    )


# ============================================================================
# NARRATIVE LISTS
# ============================================================================


def strengths(quote: QuoteRecord, signals: QualitativeSignals) -> tuple[str, ...]:
    items = []
    if signals.trend == "bullish":
        items.append("Technical trend is rising")
    if signals.valuation == "attractive":
        items.append("Valuation looks attractive")
    if signals.dividend_strength == "strong":
        items.append("Strong dividend yield")
    if quote.return_on_equity is not None and quote.return_on_equity > 0.15:
        items.append("High return on equity")
    if quote.market_cap is not None and quote.market_cap > 1e10:
        items.append("Large market capitalization")
    return tuple(items)


def weaknesses(quote: QuoteRecord, signals: QualitativeSignals) -> tuple[str, ...]:
    items = []
    if signals.trend == "bearish":
        items.append("Technical trend is falling")
    if signals.valuation == "expensive":
        items.append("Valuation looks stretched")
    if quote.dividend_yield is None or quote.dividend_yield < 0.01:
        items.append("Low dividend yield")
    if quote.pe_ratio is not None and quote.pe_ratio > 30:
        items.append("P/E ratio is elevated")
    return tuple(items)


def opportunities(quote: QuoteRecord) -> tuple[str, ...]:
    items = []
    low = quote.fifty_two_week_low
    if quote.price is not None and low and (quote.price - low) / low < 0.1:
        items.append("Trading near its 52-week low, a potential entry point")
    if quote.dividend_yield is not None and quote.dividend_yield > 0.03:
        items.append("High dividend provides steady income")
    prices = to_price_series(quote.history)
    if quote.price is not None and len(prices) > MIN_TREND_HISTORY:
        recent_low = float(prices.iloc[-5:].min())
        if quote.price < recent_low * 1.02:
            items.append("Near a recent low, room for a rebound")
    return tuple(items)


def threats(quote: QuoteRecord) -> tuple[str, ...]:
    items = []
    if quote.daily_change is not None and abs(quote.daily_change) > 4:
        items.append("Large recent swings, watch the risk")
    prices = to_price_series(quote.history)
    if len(prices) > MIN_TREND_HISTORY:
        # Population std of daily returns
        daily_vol = float(prices.pct_change().dropna().std(ddof=0))
        if daily_vol > 0.05:
            items.append("High price volatility raises investment risk")
    if quote.pe_ratio is not None and quote.pe_ratio > 25:
        items.append("Rich valuation carries bubble risk")
    return tuple(items)
