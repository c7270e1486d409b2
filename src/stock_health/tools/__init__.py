"""Stock health tools."""

from stock_health.tools.analyze import analyze_symbol, analyze_symbols, cache_status, list_modes

__all__ = [
    "analyze_symbol",
    "analyze_symbols",
    "cache_status",
    "list_modes",
]
