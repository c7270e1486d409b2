"""Scoring engine contract and the shared analysis pipeline."""

import logging
from abc import ABC
from typing import ClassVar

from stock_health.config import Settings
from stock_health.engines import scoring
from stock_health.engines.models import AnalysisResult, Annotation, QuoteRecord
from stock_health.engines.scoring import ScoreCard
from stock_health.engines.synthesizer import synthesize

logger = logging.getLogger(__name__)


class ScoringEngine(ABC):
    """
    Base class for analysis engines.

    ``analyze`` is a pure function of ``(symbol, quote)`` plus the settings
    given at construction. Subclasses customise it through three hooks:
    ``base_health_score`` (the pre-synthesis baseline), ``annotate`` (optional
    advisory narrative) and ``summarize``.
    """

    mode: ClassVar[str]

    def __init__(self, settings: Settings | None = None, log: logging.Logger | None = None):
        self.settings = settings or Settings()
        self.logger = log or logger

    async def analyze(self, symbol: str, quote: QuoteRecord) -> AnalysisResult:
        """
        Analyze one quote.

        Never raises for missing data: a quote without a price yields a
        degraded result with zeroed scores.
        """
        symbol = symbol.upper().strip()

        if quote.price is None:
            reason = f"Cannot analyze {symbol}: price is unavailable"
            self.logger.info(reason)
            return AnalysisResult.degraded_result(symbol, self.mode, reason, quote.market_type)

        scores = scoring.score_quote(quote)
        signals = scoring.derive_signals(quote, scores)
        synthesis = synthesize(
            scores.technical,
            scores.fundamental,
            scores.risk,
            signals,
            base_health_score=self.base_health_score(quote, scores),
        )
        annotation = await self.annotate(symbol, quote)

        return AnalysisResult(
            symbol=symbol,
            mode=self.mode,
            market_type=quote.market_type,
            technical_score=scores.technical,
            fundamental_score=scores.fundamental,
            risk_score=scores.risk,
            health_score=synthesis.health_score,
            recommendation=synthesis.action.to_recommendation(),
            action=synthesis.action,
            confidence=scoring.confidence(quote),
            factors=scores.factors,
            summary=self.summarize(symbol, synthesis.health_score, annotation),
            reasoning=synthesis.reasoning_text,
            signals=signals,
            strengths=scoring.strengths(quote, signals),
            weaknesses=scoring.weaknesses(quote, signals),
            opportunities=scoring.opportunities(quote),
            threats=scoring.threats(quote),
            annotation=annotation,
            data_quality=quote.data_quality,
        )

    def base_health_score(self, quote: QuoteRecord, scores: ScoreCard) -> float:
        """Health score before recommendation adjustments."""
        return scoring.health_score(quote)

    async def annotate(self, symbol: str, quote: QuoteRecord) -> Annotation | None:
        """Optional advisory narrative. Must not affect any numeric score."""
        return None

    def summarize(self, symbol: str, health_score: int, annotation: Annotation | None) -> str:
        return f"{symbol} analysis complete (health score {health_score})"
