"""Deterministic weighted-rule engine."""

from stock_health.engines.base import ScoringEngine
from stock_health.engines.models import Annotation


class FormulaEngine(ScoringEngine):
    """Pure rule-based scoring with no external calls."""

    mode = "formula"

    def summarize(self, symbol: str, health_score: int, annotation: Annotation | None) -> str:
        return f"Formula analysis of {symbol} complete (health score {health_score})"
