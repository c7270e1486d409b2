"""Utility modules."""

from stock_health.utils.indicators import (
    calculate_max_drawdown,
    calculate_sma,
    calculate_volatility,
    gain_loss_balance,
    latest_sma,
    to_price_series,
)
from stock_health.utils.provenance import build_error_response, build_meta, build_provenance
from stock_health.utils.sanitize import sanitize_text
from stock_health.utils.validators import (
    AnalysisRequest,
    FetchParams,
    normalize_mode,
    normalize_symbol,
)

__all__ = [
    "calculate_max_drawdown",
    "calculate_sma",
    "calculate_volatility",
    "gain_loss_balance",
    "latest_sma",
    "to_price_series",
    "build_error_response",
    "build_meta",
    "build_provenance",
    "sanitize_text",
    "AnalysisRequest",
    "FetchParams",
    "normalize_mode",
    "normalize_symbol",
]
