"""Async yfinance client with bounded concurrency and retry logic."""

import asyncio
import logging
import math
import os
import random
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import Any, TypeVar

import pandas as pd
import yfinance as yf
from requests.exceptions import HTTPError

from stock_health.utils.validators import FetchParams, normalize_symbol

logger = logging.getLogger(__name__)

# Bounded concurrency for yfinance calls
_max_workers = int(os.environ.get("YF_MAX_WORKERS", "4"))
_executor = ThreadPoolExecutor(max_workers=_max_workers)
_fetch_semaphore = asyncio.Semaphore(_max_workers)

# Retry configuration
_max_retries = int(os.environ.get("YF_MAX_RETRIES", "3"))
_base_delay = float(os.environ.get("YF_BASE_DELAY", "1.0"))  # seconds
_max_delay = float(os.environ.get("YF_MAX_DELAY", "30.0"))  # seconds

# Shutdown coordination
shutdown_event = asyncio.Event()

T = TypeVar("T")

_RETRYABLE_PATTERNS = (
    "rate limit",
    "too many requests",
    "connection",
    "timeout",
    "temporary",
)


class ServerShuttingDownError(Exception):
    """Raised when server is shutting down."""

    pass


class YFinanceRetryError(Exception):
    """Raised when yfinance fails after all retries."""

    def __init__(self, message: str, last_error: Exception | None = None):
        super().__init__(message)
        self.last_error = last_error


def _is_retryable_error(error: Exception) -> tuple[bool, int]:
    """
    Classify an upstream error.

    Returns:
        Tuple of (is_retryable, max_retries_for_this_error)
    """
    if isinstance(error, HTTPError) and error.response is not None:
        status_code = error.response.status_code
        if status_code == 401:
            # Invalid crumb rarely recovers after one retry
            return (True, 1)
        if status_code == 429 or 500 <= status_code < 600:
            return (True, _max_retries)

    error_str = str(error).lower()
    if "401" in error_str or "invalid crumb" in error_str:
        return (True, 1)
    if any(pattern in error_str for pattern in _RETRYABLE_PATTERNS):
        return (True, _max_retries)

    return (False, 0)


def _calculate_backoff(attempt: int) -> float:
    """Exponential backoff with +/-25% jitter, capped at the max delay."""
    delay = _base_delay * (2**attempt)
    jitter = delay * 0.25 * (2 * random.random() - 1)
    return min(delay + jitter, _max_delay)


async def _retry_with_backoff(
    operation_name: str,
    sync_func: Callable[[], T],
    max_retries: int = _max_retries,
) -> T:
    """
    Run a blocking function in the executor, retrying transient failures.

    Raises:
        YFinanceRetryError: If all retries exhausted
        ServerShuttingDownError: If server is shutting down
    """
    last_error: Exception | None = None

    for attempt in range(max_retries + 1):
        if shutdown_event.is_set():
            raise ServerShuttingDownError("Server is shutting down")

        try:
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(_executor, sync_func)
        except Exception as e:
            last_error = e
            is_retryable, error_max_retries = _is_retryable_error(e)
            if not is_retryable:
                raise

            effective_max_retries = min(max_retries, error_max_retries)
            if attempt >= effective_max_retries:
                logger.warning(
                    f"{operation_name}: Failed after {attempt + 1} attempts. Last error: {e}"
                )
                raise YFinanceRetryError(
                    f"Failed after {attempt + 1} attempts: {e}",
                    last_error=last_error,
                ) from e

            delay = _calculate_backoff(attempt)
            logger.info(
                f"{operation_name}: Attempt {attempt + 1} failed ({e}). "
                f"Retrying in {delay:.1f}s..."
            )
            await asyncio.sleep(delay)

    raise YFinanceRetryError(
        f"Failed after {max_retries + 1} attempts",
        last_error=last_error,
    )


def _extract_closes(df: pd.DataFrame) -> list[float]:
    """Closing prices, oldest first, from a yf.download frame."""
    # Newer yfinance returns (field, ticker) MultiIndex columns even for one ticker
    if "Close" not in df.columns.get_level_values(0):
        return []
    close = df["Close"]
    if isinstance(close, pd.DataFrame):
        close = close.iloc[:, 0]
    close = pd.to_numeric(close, errors="coerce").dropna()
    return [float(v) for v in close.tolist() if not math.isinf(v)]


async def fetch_history(params: FetchParams) -> list[float]:
    """
    Fetch daily closing prices with bounded concurrency and retries.

    Returns:
        Closing prices, oldest first

    Raises:
        ServerShuttingDownError: If server is shutting down
        YFinanceRetryError: If all retries exhausted for retryable errors
        ValueError: If no data returned
    """
    if shutdown_event.is_set():
        raise ServerShuttingDownError("Server is shutting down")

    def _fetch() -> list[float]:
        df = yf.download(**params.to_yf_kwargs())
        if df is None or df.empty:
            raise ValueError(f"No data returned for {params.symbol}")
        return _extract_closes(df)

    async with _fetch_semaphore:
        return await _retry_with_backoff(f"fetch_history({params.symbol})", _fetch)


async def fetch_info(symbol: str) -> dict[str, Any]:
    """
    Fetch quote and fundamentals metadata for a symbol.

    Raises:
        ServerShuttingDownError: If server is shutting down
        YFinanceRetryError: If all retries exhausted for retryable errors
        ValueError: If symbol is invalid or unknown upstream
    """
    if shutdown_event.is_set():
        raise ServerShuttingDownError("Server is shutting down")

    normalized_symbol = normalize_symbol(symbol)

    def _fetch() -> dict[str, Any]:
        info = yf.Ticker(normalized_symbol).info
        if not info:
            raise ValueError(f"Invalid symbol: {symbol}")
        return dict(info)

    async with _fetch_semaphore:
        return await _retry_with_backoff(f"fetch_info({normalized_symbol})", _fetch)


async def shutdown_executor() -> None:
    """Cleanup on server shutdown."""
    shutdown_event.set()
    _executor.shutdown(wait=False, cancel_futures=True)
