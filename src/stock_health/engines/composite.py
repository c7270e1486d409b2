"""Rule-based engine refined by an optional external annotation call."""

import asyncio
import logging

from stock_health.config import Settings
from stock_health.engines.annotator import (
    Annotator,
    OpenAIAnnotator,
    build_annotation_prompt,
    fallback_annotation,
    parse_annotation,
)
from stock_health.engines.base import ScoringEngine
from stock_health.engines.models import Annotation, QuoteRecord


class CompositeEngine(ScoringEngine):
    """
    Same numeric scoring as the formula engine plus an advisory annotation.

    The annotator is an injected async callable. Its output only fills
    ``AnalysisResult.annotation``; any failure, timeout or unusable reply
    falls back to the built-in narrative.
    """

    mode = "composite"

    def __init__(
        self,
        settings: Settings | None = None,
        log: logging.Logger | None = None,
        annotator: Annotator | None = None,
    ):
        super().__init__(settings, log)
        self.annotator = annotator
        self.timeout = self.settings.annotation_timeout

    @classmethod
    def from_settings(
        cls, settings: Settings, log: logging.Logger | None = None
    ) -> "CompositeEngine":
        """Build with an OpenAI annotator when an API key is configured."""
        annotator: Annotator | None = None
        if settings.openai_api_key:
            annotator = OpenAIAnnotator(
                api_key=settings.openai_api_key,
                model=settings.openai_model,
                base_url=settings.openai_base_url,
            )
        return cls(settings, log, annotator)

    async def annotate(self, symbol: str, quote: QuoteRecord) -> Annotation:
        if self.annotator is None:
            self.logger.debug(f"{symbol}: no annotation service configured, using fallback")
            return fallback_annotation()

        prompt = build_annotation_prompt(symbol, quote)
        try:
            text = await asyncio.wait_for(self.annotator(prompt), timeout=self.timeout)
            annotation = parse_annotation(text)
        except TimeoutError:
            self.logger.warning(f"{symbol}: annotation exceeded {self.timeout}s, using fallback")
            return fallback_annotation()
        except Exception as e:
            self.logger.warning(f"{symbol}: annotation failed ({type(e).__name__}: {e}), using fallback")
            return fallback_annotation()

        if not annotation.insights:
            self.logger.info(f"{symbol}: annotation had no usable insights, using fallback")
            return fallback_annotation()
        return annotation

    def summarize(self, symbol: str, health_score: int, annotation: Annotation | None) -> str:
        source = annotation.source if annotation else "fallback"
        return (
            f"Composite analysis of {symbol} complete (health score {health_score}, "
            f"{source} annotation)"
        )
