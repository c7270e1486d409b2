"""Chat-facing analysis tools returning JSON-ready dicts."""

import asyncio
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from time import perf_counter
from typing import Any

from stock_health.data.quote_source import fetch_quote
from stock_health.data.quote_store import QuoteStore
from stock_health.data.market_session import get_market_state, staleness_warnings
from stock_health.engines.models import AnalysisResult, QuoteRecord
from stock_health.service import AnalysisService, summarize_batch
from stock_health.utils.provenance import build_error_response, build_meta, build_provenance
from stock_health.utils.validators import normalize_symbol

QuoteLoader = Callable[[str], Awaitable[QuoteRecord]]


async def _load_quote(
    symbol: str,
    store: QuoteStore | None,
    loader: QuoteLoader,
) -> tuple[QuoteRecord, str]:
    """Quote from the snapshot store if fresh, else from the loader. Returns (quote, source)."""
    if store is not None:
        stored = store.get(symbol)
        if stored is not None:
            return stored, "quote_store"

    quote = await loader(symbol)
    if store is not None:
        store.store(quote)
    return quote, "yfinance"


def _unsupported_mode(service: AnalysisService, mode: str) -> dict[str, Any] | None:
    if service.registry.is_supported(mode):
        return None
    supported = ", ".join(service.registry.supported_modes())
    return build_error_response(
        error_type="unsupported_mode",
        message=f"Unsupported analysis mode '{mode}'. Supported: {supported}",
    )


async def analyze_symbol(
    service: AnalysisService,
    symbol: str,
    mode: str | None = None,
    *,
    store: QuoteStore | None = None,
    loader: QuoteLoader = fetch_quote,
) -> dict[str, Any]:
    """
    Fetch a quote and run a health analysis on it.

    Args:
        service: Analysis service
        symbol: Stock or ETF ticker
        mode: Engine mode (default: configured default mode)
        store: Optional quote snapshot store
        loader: Async quote loader (default: yfinance)

    Returns:
        Dict with meta, provenance, market state and the analysis result
    """
    start_time = perf_counter()

    try:
        normalized_symbol = normalize_symbol(symbol)
    except ValueError as e:
        return build_error_response(error_type="invalid_symbol", message=str(e), symbol=symbol)

    mode = (mode or service.settings.default_mode).lower().strip()
    if error := _unsupported_mode(service, mode):
        return error

    try:
        quote, source = await _load_quote(normalized_symbol, store, loader)
    except ValueError as e:
        return build_error_response(
            error_type="invalid_symbol",
            message=str(e),
            symbol=normalized_symbol,
        )
    except Exception as e:
        return build_error_response(
            error_type="data_unavailable",
            message=f"Failed to fetch data: {e}",
            symbol=normalized_symbol,
        )

    result = await service.analyze(normalized_symbol, quote, mode)
    market_state = get_market_state()
    duration_ms = (perf_counter() - start_time) * 1000

    return {
        "meta": build_meta("analyze_symbol", duration_ms),
        "data_provenance": {
            "quote": build_provenance(
                source=source,
                as_of=datetime.now(UTC),
                history_points=len(quote.history),
                data_quality=quote.data_quality,
                warnings=staleness_warnings(market_state),
            ),
        },
        "market_state": market_state,
        "analysis": result.to_dict(),
    }


async def analyze_symbols(
    service: AnalysisService,
    symbols: list[str],
    mode: str | None = None,
    *,
    store: QuoteStore | None = None,
    loader: QuoteLoader = fetch_quote,
) -> dict[str, Any]:
    """
    Analyze several symbols concurrently.

    A symbol that cannot be fetched becomes a degraded entry; the call as
    a whole only fails on a bad request (empty list, too many symbols,
    unknown mode).
    """
    start_time = perf_counter()

    unique = list(dict.fromkeys(s.upper().strip() for s in symbols or [] if s and s.strip()))
    if not unique:
        return build_error_response(
            error_type="invalid_request",
            message="At least one symbol is required",
        )
    limit = service.settings.batch_max_symbols
    if len(unique) > limit:
        return build_error_response(
            error_type="invalid_request",
            message=f"Too many symbols: {len(unique)} (max {limit})",
        )

    mode = (mode or service.settings.default_mode).lower().strip()
    if error := _unsupported_mode(service, mode):
        return error

    async def load(symbol: str) -> QuoteRecord:
        quote, _ = await _load_quote(normalize_symbol(symbol), store, loader)
        return quote

    loaded = await asyncio.gather(*[load(s) for s in unique], return_exceptions=True)

    fetched = [(s, q) for s, q in zip(unique, loaded) if isinstance(q, QuoteRecord)]
    batch = await service.analyze_batch(fetched, mode)
    by_symbol = {r.symbol: r for r in batch.results}

    results: list[AnalysisResult] = []
    for symbol, outcome in zip(unique, loaded):
        if isinstance(outcome, QuoteRecord):
            results.append(by_symbol[symbol])
        else:
            results.append(
                AnalysisResult.degraded_result(symbol, mode, f"Failed to fetch data: {outcome}")
            )

    market_state = get_market_state()
    duration_ms = (perf_counter() - start_time) * 1000
    return {
        "meta": build_meta("analyze_symbols", duration_ms),
        "data_provenance": {
            "quotes": build_provenance(
                source="yfinance",
                as_of=datetime.now(UTC),
                warnings=staleness_warnings(market_state),
            ),
        },
        "market_state": market_state,
        "results": [r.to_dict() for r in results],
        "summary": summarize_batch(results),
    }


async def list_modes(service: AnalysisService) -> dict[str, Any]:
    """Registered engine modes and the default."""
    return {
        "meta": build_meta("list_analysis_modes"),
        "modes": service.registry.supported_modes(),
        "default_mode": service.settings.default_mode,
    }


async def cache_status(service: AnalysisService, limit: int = 10) -> dict[str, Any]:
    """Result cache statistics and the most interesting entries."""
    cache = service.cache
    return {
        "meta": build_meta("analysis_cache_status"),
        "stats": cache.stats(),
        "most_accessed": cache.most_accessed(limit),
        "recently_accessed": cache.recently_accessed(limit),
        "oldest": cache.oldest(limit),
    }
