"""Pytest configuration and fixtures."""

import pandas as pd
import pytest

from stock_health.config import Settings
from stock_health.data.cache import BoundedTTLCache
from stock_health.engines.models import MarketType, QuoteRecord
from stock_health.engines.registry import build_default_registry
from stock_health.service import AnalysisService


class FakeClock:
    """Manually advanced clock for cache expiry tests."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings() -> Settings:
    """Settings with no annotation service configured."""
    return Settings(annotation_timeout=0.5)


@pytest.fixture
def scenario_quote() -> QuoteRecord:
    """Cheap, dividend-paying, low-beta stock on a strong up day."""
    return QuoteRecord(
        symbol="acme",
        price=580.0,
        previous_close=560.0,
        volume=5_000_000,
        average_volume=2_000_000,
        pe_ratio=12.0,
        dividend_yield=0.04,
        return_on_equity=0.20,
        beta=0.7,
        volatility=0.15,
    )


@pytest.fixture
def bare_quote() -> QuoteRecord:
    """Only a price is known."""
    return QuoteRecord(symbol="BARE", price=100.0)


@pytest.fixture
def troubled_quote() -> QuoteRecord:
    """Expensive, no dividend, very high beta and volatility, rallying."""
    return QuoteRecord(
        symbol="RISKY",
        price=110.0,
        previous_close=100.0,
        pe_ratio=80.0,
        return_on_equity=0.02,
        beta=2.5,
        volatility=0.9,
    )


@pytest.fixture
def rising_history() -> tuple[float, ...]:
    """Sixty closes rising steadily from 100 to 159."""
    return tuple(100.0 + i for i in range(60))


@pytest.fixture
def fund_quote() -> QuoteRecord:
    return QuoteRecord(
        symbol="spy",
        market_type=MarketType.FUND,
        price=500.0,
        previous_close=499.0,
        dividend_yield=0.013,
        beta=1.0,
        expense_ratio=0.0009,
    )


@pytest.fixture
def sample_price_series() -> pd.Series:
    """Sample price series for indicator testing."""
    return pd.Series(
        [100.0, 101.0, 102.0, 101.5, 103.0, 104.0, 103.5, 105.0, 106.0, 105.5,
         107.0, 108.0, 107.5, 109.0, 110.0, 109.5, 111.0, 112.0, 111.5, 113.0,
         114.0, 113.5, 115.0, 116.0, 115.5, 117.0, 118.0, 117.5, 119.0, 120.0]
    )


@pytest.fixture
def sample_returns_series(sample_price_series: pd.Series) -> pd.Series:
    return sample_price_series.pct_change().dropna()


@pytest.fixture
def service(settings: Settings, clock: FakeClock) -> AnalysisService:
    """Service over the default registry with a fake-clock cache."""
    cache = BoundedTTLCache(ttl=settings.cache_ttl, max_size=10, clock=clock)
    return AnalysisService(build_default_registry(settings), cache, settings)
