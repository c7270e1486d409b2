"""Pluggable analysis engines."""

from stock_health.engines.models import (
    Action,
    AnalysisFactor,
    AnalysisResult,
    Annotation,
    MarketType,
    QualitativeSignals,
    QuoteRecord,
    Recommendation,
)
from stock_health.engines.base import ScoringEngine
from stock_health.engines.composite import CompositeEngine
from stock_health.engines.formula import FormulaEngine
from stock_health.engines.registry import (
    EngineRegistrationError,
    EngineRegistry,
    build_default_registry,
)
from stock_health.engines.synthesizer import REASONING_DELIMITER, Synthesis, synthesize

__all__ = [
    # Models
    "Action",
    "AnalysisFactor",
    "AnalysisResult",
    "Annotation",
    "MarketType",
    "QualitativeSignals",
    "QuoteRecord",
    "Recommendation",
    # Engines
    "CompositeEngine",
    "FormulaEngine",
    "ScoringEngine",
    # Registry
    "EngineRegistrationError",
    "EngineRegistry",
    "build_default_registry",
    # Synthesizer
    "REASONING_DELIMITER",
    "Synthesis",
    "synthesize",
]
