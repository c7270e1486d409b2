"""Analysis orchestration: engine resolution, result caching and batch fan-out."""

import asyncio
import logging
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from stock_health.config import Settings
from stock_health.data.cache import BoundedTTLCache
from stock_health.engines.base import ScoringEngine
from stock_health.engines.models import AnalysisResult, MarketType, QuoteRecord, Recommendation
from stock_health.engines.registry import EngineRegistry
from stock_health.utils.validators import AnalysisRequest

logger = logging.getLogger(__name__)

TOP_PERFORMERS = 3

_BUY_SIDE = {Recommendation.STRONG_BUY, Recommendation.BUY}
_SELL_SIDE = {Recommendation.SELL, Recommendation.STRONG_SELL}


@dataclass(frozen=True)
class BatchAnalysis:
    """Per-symbol results in input order plus an aggregate summary."""

    results: tuple[AnalysisResult, ...]
    summary: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "results": [r.to_dict() for r in self.results],
            "summary": self.summary,
        }


def summarize_batch(results: Iterable[AnalysisResult]) -> dict[str, Any]:
    """
    Aggregate a batch: totals, average health of successful items,
    top performers and buy/hold/sell counts.
    """
    results = list(results)
    successful = [r for r in results if not r.degraded]

    average = None
    if successful:
        average = round(sum(r.health_score for r in successful) / len(successful), 1)

    ranked = sorted(successful, key=lambda r: r.health_score, reverse=True)
    top = [
        {
            "symbol": r.symbol,
            "health_score": r.health_score,
            "recommendation": r.recommendation.value,
        }
        for r in ranked[:TOP_PERFORMERS]
    ]

    sides: Counter[str] = Counter()
    for r in successful:
        if r.recommendation in _BUY_SIDE:
            sides["buy"] += 1
        elif r.recommendation in _SELL_SIDE:
            sides["sell"] += 1
        else:
            sides["hold"] += 1

    return {
        "total": len(results),
        "successful": len(successful),
        "failed": len(results) - len(successful),
        "average_health_score": average,
        "top_performers": top,
        "recommendations": {
            "buy": sides["buy"],
            "hold": sides["hold"],
            "sell": sides["sell"],
        },
    }


class AnalysisService:
    """
    Resolves engines by mode, caches results per ``(symbol, mode)``, and
    runs batches with per-item failure isolation.

    Degraded results are returned but never cached.
    """

    def __init__(
        self,
        registry: EngineRegistry,
        cache: BoundedTTLCache | None = None,
        settings: Settings | None = None,
        log: logging.Logger | None = None,
    ):
        self.registry = registry
        self.settings = settings or Settings()
        if cache is None:
            cache = BoundedTTLCache(
                ttl=self.settings.cache_ttl,
                max_size=self.settings.cache_max_size,
                sweep_interval=self.settings.cache_sweep_interval,
            )
        self.cache = cache
        self.logger = log or logger

    def resolve_mode(self, mode: str | None) -> str | None:
        """
        Mode that will actually run: the requested one if registered, else the
        default mode if registered, else None.
        """
        requested = (mode or self.settings.default_mode).lower().strip()
        if self.registry.is_supported(requested):
            return requested
        default = self.settings.default_mode
        if self.registry.is_supported(default):
            self.logger.warning(f"Unsupported analysis mode '{requested}', using '{default}'")
            return default
        return None

    def _engine_for(self, mode: str) -> ScoringEngine | None:
        return self.registry.create(mode)

    def cached(self, symbol: str, mode: str | None = None) -> AnalysisResult | None:
        """Cached result for a symbol and mode, without running an analysis."""
        try:
            key = AnalysisRequest(symbol, mode or self.settings.default_mode).to_uri()
        except ValueError:
            return None
        return self.cache.get(key)

    def invalidate(self, symbol: str) -> int:
        """Drop cached results for a symbol across all modes."""
        return self.cache.delete_matching(f"analysis://{symbol.upper().strip()}/")

    async def analyze(
        self,
        symbol: str,
        quote: QuoteRecord,
        mode: str | None = None,
        use_cache: bool = True,
    ) -> AnalysisResult:
        """
        Analyze one quote. Never raises: every failure becomes a degraded result.

        Args:
            symbol: Ticker symbol
            quote: Quote snapshot to score
            mode: Engine mode (default: settings.default_mode)
            use_cache: Serve and store cached results
        """
        requested = mode or self.settings.default_mode
        resolved = self.resolve_mode(requested)
        market_type = quote.market_type if quote is not None else MarketType.EQUITY
        if resolved is None:
            return AnalysisResult.degraded_result(
                symbol,
                requested,
                f"Unsupported analysis mode '{requested}'",
                market_type,
            )

        try:
            key = AnalysisRequest(symbol, resolved).to_uri()
        except ValueError as e:
            return AnalysisResult.degraded_result(symbol, resolved, str(e), market_type)

        if use_cache:
            hit = self.cache.get(key)
            if hit is not None:
                self.logger.debug(f"Cache hit for {key}")
                return hit

        engine = self._engine_for(resolved)
        if engine is None:
            return AnalysisResult.degraded_result(
                symbol, resolved, f"Unsupported analysis mode '{resolved}'", market_type
            )

        try:
            result = await engine.analyze(symbol, quote)
        except Exception as e:
            self.logger.exception(f"Analysis of {symbol} ({resolved}) failed")
            return AnalysisResult.degraded_result(
                symbol, resolved, f"Analysis failed: {e}", market_type
            )

        if use_cache and not result.degraded:
            self.cache.set(key, result)
        return result

    async def analyze_batch(
        self,
        items: Iterable[tuple[str, QuoteRecord]],
        mode: str | None = None,
        use_cache: bool = True,
    ) -> BatchAnalysis:
        """
        Analyze many quotes concurrently.

        One item failing never affects the others; results keep input order.
        """
        items = list(items)

        async def run_one(symbol: str, quote: QuoteRecord) -> AnalysisResult:
            try:
                return await self.analyze(symbol, quote, mode, use_cache)
            except Exception as e:
                self.logger.exception(f"Batch item {symbol} failed")
                return AnalysisResult.degraded_result(
                    symbol, mode or self.settings.default_mode, f"Analysis failed: {e}"
                )

        results = await asyncio.gather(*[run_one(s, q) for s, q in items])
        return BatchAnalysis(results=tuple(results), summary=summarize_batch(results))

    def cache_stats(self) -> dict[str, Any]:
        return self.cache.stats()
