"""Indicator calculations over closing-price history."""

import math
from collections.abc import Sequence

import pandas as pd


def to_price_series(history: Sequence[float] | pd.Series | None) -> pd.Series:
    """Coerce a closing-price history into a float Series with NaNs dropped."""
    if history is None:
        return pd.Series(dtype=float)
    series = pd.Series(list(history), dtype=float)
    return series.dropna().reset_index(drop=True)


def calculate_sma(prices: pd.Series, period: int) -> pd.Series:
    """
    Calculate Simple Moving Average.

    Args:
        prices: Price series (typically close prices)
        period: Number of periods for the average

    Returns:
        SMA series
    """
    return prices.rolling(window=period, min_periods=period).mean()


def latest_sma(prices: pd.Series, period: int) -> float | None:
    """Last SMA value, or None if the series is shorter than the period."""
    if len(prices) < period:
        return None
    value = calculate_sma(prices, period).iloc[-1]
    if pd.isna(value):
        return None
    return float(value)


def calculate_volatility(returns: pd.Series, annualize: bool = True) -> float | None:
    """
    Calculate volatility (standard deviation of returns).

    Args:
        returns: Returns series
        annualize: Whether to annualize (assumes daily data, 252 trading days)

    Returns:
        Volatility as decimal, or None if insufficient data
    """
    if len(returns) < 20:
        return None

    std = returns.std()
    if pd.isna(std):
        return None

    if annualize:
        return float(std * math.sqrt(252))
    return float(std)


def gain_loss_balance(prices: pd.Series, window: int = 10) -> tuple[float, float]:
    """
    Average gain and average loss over the trailing window.

    The first bar of the window contributes zero to both, matching a
    simple RSI approximation.
    """
    recent = prices.iloc[-window:]
    delta = recent.diff().fillna(0.0)
    gains = delta.clip(lower=0.0)
    losses = (-delta).clip(lower=0.0)
    if len(recent) == 0:
        return 0.0, 0.0
    return float(gains.mean()), float(losses.mean())


def calculate_max_drawdown(prices: pd.Series) -> float | None:
    """
    Deepest peak-to-trough decline.

    Returns:
        Max drawdown as negative decimal (-0.20 = 20% drawdown), or None
    """
    if len(prices) < 2:
        return None

    running_peak = prices.cummax()
    drawdown = (prices - running_peak) / running_peak

    worst = drawdown.min()
    if pd.isna(worst):
        return None
    return float(worst)
