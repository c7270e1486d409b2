"""Builds QuoteRecords from yfinance info dicts and price history."""

import asyncio
import logging
import math
from collections.abc import Mapping, Sequence
from typing import Any

from stock_health.data.yfinance_client import fetch_history, fetch_info
from stock_health.engines.models import MarketType, QuoteRecord
from stock_health.utils.indicators import (
    calculate_max_drawdown,
    calculate_volatility,
    to_price_series,
)
from stock_health.utils.sanitize import sanitize_text
from stock_health.utils.validators import FetchParams, normalize_symbol

logger = logging.getLogger(__name__)

_FUND_QUOTE_TYPES = {"ETF", "MUTUALFUND"}


def _first(info: Mapping[str, Any], *keys: str) -> Any:
    """First key whose value is not None."""
    for key in keys:
        value = info.get(key)
        if value is not None:
            return value
    return None


# (info key, divisor to reach a decimal ratio), in order of preference.
# dividendYield and netExpenseRatio are reported in percent (0.44 means 0.44%),
# the others already as decimals.
_DIVIDEND_YIELD_KEYS = (("dividendYield", 100), ("yield", 1), ("trailingAnnualDividendYield", 1))
_EXPENSE_RATIO_KEYS = (("netExpenseRatio", 100), ("annualReportExpenseRatio", 1))


def _decimal_ratio(info: Mapping[str, Any], keys: Sequence[tuple[str, int]]) -> float | None:
    """First available ratio among ``keys``, converted with that key's own unit."""
    for key, divisor in keys:
        value = info.get(key)
        if isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value):
            return value / divisor
    return None


def quote_from_info(
    symbol: str,
    info: Mapping[str, Any],
    closes: Sequence[float] | None = None,
) -> QuoteRecord:
    """
    Map a yfinance ``info`` dict (plus optional closes) onto a QuoteRecord.

    Volatility and max drawdown are computed from the closes when given.
    Missing or NaN values stay None.
    """
    quote_type = str(info.get("quoteType") or "").upper()
    market_type = MarketType.FUND if quote_type in _FUND_QUOTE_TYPES else MarketType.EQUITY

    prices = to_price_series(closes)
    volatility = calculate_volatility(prices.pct_change().dropna()) if len(prices) else None
    max_drawdown = calculate_max_drawdown(prices)

    debt_to_equity = info.get("debtToEquity")
    if isinstance(debt_to_equity, (int, float)):
        # Reported as a percentage (150.0 means 1.5x)
        debt_to_equity = debt_to_equity / 100

    mapped = {
        "marketType": market_type,
        "name": sanitize_text(_first(info, "shortName", "longName")),
        "currency": sanitize_text(info.get("currency")),
        "sector": sanitize_text(info.get("sector")),
        "industry": sanitize_text(_first(info, "industry", "category")),
        "price": _first(info, "regularMarketPrice", "currentPrice", "navPrice"),
        "previousClose": _first(info, "previousClose", "regularMarketPreviousClose"),
        "volume": _first(info, "regularMarketVolume", "volume"),
        "averageVolume": _first(info, "averageVolume", "averageDailyVolume10Day"),
        "marketCap": _first(info, "marketCap", "totalAssets"),
        "dailyChange": info.get("regularMarketChangePercent"),
        "fiftyTwoWeekHigh": info.get("fiftyTwoWeekHigh"),
        "fiftyTwoWeekLow": info.get("fiftyTwoWeekLow"),
        "peRatio": info.get("trailingPE"),
        "pbRatio": info.get("priceToBook"),
        "eps": info.get("trailingEps"),
        "dividendYield": _decimal_ratio(info, _DIVIDEND_YIELD_KEYS),
        "returnOnEquity": info.get("returnOnEquity"),
        "debtToEquity": debt_to_equity,
        "profitMargin": info.get("profitMargins"),
        "grossMargin": info.get("grossMargins"),
        "operatingMargin": info.get("operatingMargins"),
        "revenueGrowth": info.get("revenueGrowth"),
        "earningsGrowth": info.get("earningsGrowth"),
        "beta": _first(info, "beta", "beta3Year"),
        "volatility": volatility,
        "maxDrawdown": max_drawdown,
        "expenseRatio": _decimal_ratio(info, _EXPENSE_RATIO_KEYS),
        "history": tuple(prices.tolist()),
    }
    return QuoteRecord.from_mapping(symbol, mapped)


async def fetch_quote(symbol: str, period: str = "6mo") -> QuoteRecord:
    """
    Fetch info and history concurrently and build a QuoteRecord.

    History is optional: if it fails the record is built without it.

    Raises:
        ValueError: If the symbol is invalid
        YFinanceRetryError: If the info fetch exhausts its retries
    """
    normalized = normalize_symbol(symbol)
    info_result, history_result = await asyncio.gather(
        fetch_info(normalized),
        fetch_history(FetchParams(symbol=normalized, period=period)),
        return_exceptions=True,
    )

    if isinstance(info_result, BaseException):
        raise info_result

    closes: list[float] | None = None
    if isinstance(history_result, BaseException):
        logger.info(f"{normalized}: price history unavailable ({history_result})")
    else:
        closes = history_result

    return quote_from_info(normalized, info_result, closes)
