"""
Recommendation synthesis.

The rules run as a precedence chain, not a weighted vote:

1. technical trend picks BUY/WAIT only while the action is still HOLD
2. negative fundamentals force CAUTIOUS; positive ones add 10 to BUY/HOLD
3. high risk forces CAUTIOUS and costs 15 (floor 20); low risk adds 5 (cap 90)
4. positive sentiment only adds a reason

Later steps override earlier action choices. Reasons are kept in step order.
"""

import math
from dataclasses import dataclass

from stock_health.engines.models import Action, QualitativeSignals

# Full-width semicolon, as rendered by the chat templates
REASONING_DELIMITER = "；"


@dataclass(frozen=True)
class Synthesis:
    """Synthesizer output: final action, adjusted health score, reasons in step order."""

    action: Action
    health_score: int
    reasoning: tuple[str, ...]

    @property
    def reasoning_text(self) -> str:
        return REASONING_DELIMITER.join(self.reasoning)


def signals_from_scores(
    technical_score: int,
    fundamental_score: int,
    risk_score: int,
) -> QualitativeSignals:
    """Coarse labels derived from sub-score bands alone."""
    trend = "neutral"
    if technical_score >= 60:
        trend = "bullish"
    elif technical_score <= 40:
        trend = "bearish"

    rating = "neutral"
    if fundamental_score >= 70:
        rating = "positive"
    elif fundamental_score <= 30:
        rating = "negative"

    risk_level = "medium"
    if risk_score >= 70:
        risk_level = "low"
    elif risk_score <= 30:
        risk_level = "high"

    return QualitativeSignals(trend=trend, fundamental_rating=rating, risk_level=risk_level)


def synthesize(
    technical_score: int,
    fundamental_score: int,
    risk_score: int,
    signals: QualitativeSignals | None = None,
    *,
    base_health_score: float,
) -> Synthesis:
    """
    Combine sub-scores and qualitative signals into one action.

    Args:
        technical_score: Technical sub-score (0-100)
        fundamental_score: Fundamental sub-score (0-100)
        risk_score: Risk sub-score (0-100, higher is safer)
        signals: Qualitative labels; derived from the sub-score bands when omitted
        base_health_score: Health score before recommendation adjustments

    Returns:
        Synthesis with action, adjusted health score and ordered reasons
    """
    if signals is None:
        signals = signals_from_scores(technical_score, fundamental_score, risk_score)

    action = Action.HOLD
    score = math.floor(base_health_score + 0.5)
    reasoning: list[str] = []

    if signals.trend == "bullish":
        reasoning.append("Technical indicators point to an uptrend")
        if action == Action.HOLD:
            action = Action.BUY
    elif signals.trend == "bearish":
        reasoning.append("Technical indicators point to a downtrend")
        if action == Action.HOLD:
            action = Action.WAIT

    if signals.fundamental_rating == "positive":
        reasoning.append("Fundamentals look positive")
        if action in (Action.BUY, Action.HOLD):
            score += 10
    elif signals.fundamental_rating == "negative":
        reasoning.append("Fundamentals raise concerns")
        action = Action.CAUTIOUS

    if signals.risk_level == "high":
        reasoning.append("Risk level is elevated, proceed with caution")
        action = Action.CAUTIOUS
        score = max(20, score - 15)
    elif signals.risk_level == "low":
        reasoning.append("Risk level is moderate")
        score = min(90, score + 5)

    if signals.sentiment == "positive":
        reasoning.append("Market sentiment is positive")

    score = max(0, min(100, score))

    return Synthesis(action=action, health_score=int(score), reasoning=tuple(reasoning))
