"""Data layer: result cache, quote source and quote snapshot store."""

from stock_health.data.cache import BoundedTTLCache, CacheEntry
from stock_health.data.market_session import get_market_state, staleness_warnings
from stock_health.data.quote_source import fetch_quote, quote_from_info
from stock_health.data.quote_store import QuoteStore
from stock_health.data.yfinance_client import (
    ServerShuttingDownError,
    YFinanceRetryError,
    shutdown_executor,
)

__all__ = [
    "BoundedTTLCache",
    "CacheEntry",
    "QuoteStore",
    "ServerShuttingDownError",
    "YFinanceRetryError",
    "fetch_quote",
    "get_market_state",
    "quote_from_info",
    "shutdown_executor",
    "staleness_warnings",
]
