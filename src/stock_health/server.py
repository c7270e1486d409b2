"""Stock Health MCP Server using FastMCP."""

import asyncio
import json
import logging
from dataclasses import dataclass

from fastmcp import FastMCP

from stock_health import SCHEMA_VERSION, SERVER_VERSION, tools
from stock_health.config import Settings
from stock_health.data.cache import BoundedTTLCache
from stock_health.data.quote_store import QuoteStore
from stock_health.data.yfinance_client import shutdown_executor
from stock_health.engines.registry import build_default_registry
from stock_health.prompts.templates import get_prompt
from stock_health.service import AnalysisService

settings = Settings.from_env()

# Configure logging
logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO))
logger = logging.getLogger(__name__)

# Create FastMCP server instance
mcp = FastMCP(
    name="stock-health",
)


@dataclass
class ServerContext:
    """Long-lived collaborators shared by every tool call."""

    service: AnalysisService
    store: QuoteStore


def build_context(settings: Settings) -> ServerContext:
    registry = build_default_registry(settings)
    cache = BoundedTTLCache(
        ttl=settings.cache_ttl,
        max_size=settings.cache_max_size,
        sweep_interval=settings.cache_sweep_interval,
    )
    service = AnalysisService(registry, cache, settings)
    store = QuoteStore(settings.quote_cache_dir, settings.quote_cache_ttl)
    return ServerContext(service=service, store=store)


_context: ServerContext | None = None


def get_context() -> ServerContext:
    global _context
    if _context is None:
        _context = build_context(settings)
    return _context


# ============================================================================
# TOOLS
# ============================================================================


@mcp.tool
async def analyze_symbol(symbol: str, mode: str | None = None) -> str:
    """
    Health analysis of a stock or ETF.

    Returns a 0-100 health score, a recommendation (BUY/HOLD/CAUTIOUS...),
    technical/fundamental/risk sub-scores, confidence, reasoning and the
    individual rule factors behind each score.

    Args:
        symbol: Ticker symbol (e.g., AAPL, 2330.TW, SPY)
        mode: Analysis mode - "formula" (rules only) or "composite"
            (rules plus an advisory annotation). Default from server config.

    Returns:
        JSON with the analysis result
    """
    ctx = get_context()
    result = await tools.analyze_symbol(ctx.service, symbol, mode, store=ctx.store)
    return json.dumps(result, indent=2, default=str, ensure_ascii=False)


@mcp.tool
async def analyze_symbols(symbols: list[str], mode: str | None = None) -> str:
    """
    Health analysis for several symbols at once.

    Symbols that fail to load are reported as degraded entries without
    failing the whole batch.

    Args:
        symbols: Ticker symbols
        mode: Analysis mode (see analyze_symbol)

    Returns:
        JSON with per-symbol results and a batch summary
    """
    ctx = get_context()
    result = await tools.analyze_symbols(ctx.service, symbols, mode, store=ctx.store)
    return json.dumps(result, indent=2, default=str, ensure_ascii=False)


@mcp.tool
async def list_analysis_modes() -> str:
    """List registered analysis modes and the default mode."""
    result = await tools.list_modes(get_context().service)
    return json.dumps(result, indent=2, default=str)


@mcp.tool
async def analysis_cache_status(limit: int = 10) -> str:
    """
    Show analysis cache statistics.

    Args:
        limit: Entries to list per ranking (default: 10)
    """
    result = await tools.cache_status(get_context().service, limit)
    return json.dumps(result, indent=2, default=str)


# ============================================================================
# RESOURCES
# ============================================================================


@mcp.resource("analysis://{symbol}/{mode}")
def get_cached_analysis(symbol: str, mode: str) -> str:
    """
    Get a cached analysis result as JSON.

    Only serves results already in the cache; never runs an analysis.
    """
    result = get_context().service.cached(symbol, mode)
    if result is None:
        return (
            f"Analysis not cached. Call analyze_symbol('{symbol}', '{mode}') first."
        )
    return json.dumps(result.to_dict(), indent=2, default=str, ensure_ascii=False)


# ============================================================================
# PROMPTS
# ============================================================================


@mcp.prompt
def health_check(symbol: str) -> str:
    """Quick health check with score, recommendation and reasoning."""
    result = get_prompt("health_check", {"symbol": symbol})
    if result:
        return result["messages"][0]["content"]
    return f"Run analyze_symbol on {symbol}."


@mcp.prompt
def compare_health(symbols: str) -> str:
    """Compare health scores across several symbols."""
    result = get_prompt("compare_health", {"symbols": symbols})
    if result:
        return result["messages"][0]["content"]
    return f"Run analyze_symbols on {symbols}."


# ============================================================================
# ENTRY POINT
# ============================================================================


def main() -> None:
    """Run the MCP server."""
    logger.info(
        f"Starting Stock Health MCP Server v{SERVER_VERSION} (schema v{SCHEMA_VERSION}), "
        f"default mode '{settings.default_mode}'"
    )
    ctx = get_context()
    ctx.service.cache.start_sweeper()
    try:
        mcp.run()
    finally:
        ctx.service.cache.close()
        ctx.store.close()
        asyncio.run(shutdown_executor())


if __name__ == "__main__":
    main()
