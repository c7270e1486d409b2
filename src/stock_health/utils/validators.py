"""Validation utilities and parameter classes."""

import re
from dataclasses import dataclass
from typing import Any

# Allowlists for cache key stability
VALID_PERIODS = {"1mo", "3mo", "6mo", "1y", "2y"}
VALID_INTERVALS = {"1d", "1wk"}

# Tickers like AAPL, BRK-B, 2330.TW, ^GSPC, 0050.TW
_SYMBOL_RE = re.compile(r"^\^?[A-Z0-9][A-Z0-9.\-=]{0,14}$")


def normalize_symbol(symbol: str) -> str:
    """
    Uppercase and strip a ticker symbol, rejecting anything that is not ticker-shaped.

    Raises:
        ValueError: If the symbol is empty or contains unexpected characters
    """
    normalized = (symbol or "").upper().strip()
    if not _SYMBOL_RE.match(normalized):
        raise ValueError(f"Invalid symbol '{symbol}'")
    return normalized


def normalize_mode(mode: str) -> str:
    """Lowercase and strip an engine mode name."""
    normalized = (mode or "").lower().strip()
    if not normalized:
        raise ValueError("Analysis mode must be a non-empty string")
    return normalized


@dataclass(frozen=True)
class AnalysisRequest:
    """Immutable analysis request. Used for cache key + engine lookup."""

    symbol: str
    mode: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "symbol", normalize_symbol(self.symbol))
        object.__setattr__(self, "mode", normalize_mode(self.mode))

    def to_uri(self) -> str:
        """Canonical URI for caching."""
        return f"analysis://{self.symbol}/{self.mode}"


@dataclass(frozen=True)
class FetchParams:
    """Immutable price history fetch parameters."""

    symbol: str
    period: str = "6mo"
    interval: str = "1d"

    def __post_init__(self) -> None:
        object.__setattr__(self, "symbol", normalize_symbol(self.symbol))

        period = self.period.lower().strip()
        interval = self.interval.lower().strip()

        if period not in VALID_PERIODS:
            raise ValueError(f"Invalid period '{self.period}'. Must be one of: {VALID_PERIODS}")
        if interval not in VALID_INTERVALS:
            raise ValueError(
                f"Invalid interval '{self.interval}'. Must be one of: {VALID_INTERVALS}"
            )

        object.__setattr__(self, "period", period)
        object.__setattr__(self, "interval", interval)

    def to_yf_kwargs(self) -> dict[str, Any]:
        """Kwargs for yf.download()."""
        return {
            "tickers": self.symbol,
            "period": self.period,
            "interval": self.interval,
            "auto_adjust": True,
            "progress": False,
        }
