"""Value objects flowing through the analysis engines."""

import math
import re
from collections.abc import Mapping
from dataclasses import asdict, dataclass, field, fields
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class MarketType(str, Enum):
    """Instrument class of a quote."""

    EQUITY = "equity"
    FUND = "fund"


class Recommendation(str, Enum):
    """User-facing recommendation vocabulary."""

    STRONG_BUY = "STRONG_BUY"
    BUY = "BUY"
    HOLD = "HOLD"
    CAUTIOUS = "CAUTIOUS"
    SELL = "SELL"
    STRONG_SELL = "STRONG_SELL"


class Action(str, Enum):
    """Raw action chosen by the recommendation synthesizer."""

    BUY = "BUY"
    HOLD = "HOLD"
    WAIT = "WAIT"
    CAUTIOUS = "CAUTIOUS"

    def to_recommendation(self) -> Recommendation:
        return _ACTION_TO_RECOMMENDATION[self]


_ACTION_TO_RECOMMENDATION = {
    Action.BUY: Recommendation.BUY,
    Action.HOLD: Recommendation.HOLD,
    Action.WAIT: Recommendation.HOLD,
    Action.CAUTIOUS: Recommendation.CAUTIOUS,
}


def _safe_float(value: Any) -> float | None:
    """Convert to float, mapping None/NaN/blank/unparseable to None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip().replace(",", "")
        if not value or value.lower() in {"na", "n/a", "none", "null", "-"}:
            return None
    try:
        result = float(value)
    except (ValueError, TypeError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


def _normalize_key(raw_key: Any) -> str:
    """camelCase or snake_case to snake_case; all-caps keys (PE, ROE) are just lowercased."""
    text = str(raw_key).strip()
    if text.isupper():
        return text.lower()
    return _CAMEL_RE.sub("_", text).lower()


# Alternate spellings accepted by QuoteRecord.from_mapping
_KEY_ALIASES = {
    "roe": "return_on_equity",
    "pe": "pe_ratio",
    "pb": "pb_ratio",
    "previous_price": "previous_close",
    "avg_volume": "average_volume",
    "market_capitalization": "market_cap",
    "change_percent": "daily_change",
    "historical_prices": "history",
    "closes": "history",
}


@dataclass(frozen=True)
class QuoteRecord:
    """
    Read-only snapshot of one instrument.

    Every numeric field is nullable. None means "unknown" and every scoring
    rule skips it; it is never read as zero. ``daily_change`` is a percent
    (3.2 means +3.2%), every other ratio is a decimal (0.04 means 4%).
    ``history`` holds closing prices, oldest first.
    """

    symbol: str
    market_type: MarketType = MarketType.EQUITY
    name: str | None = None
    currency: str | None = None
    sector: str | None = None
    industry: str | None = None

    # Price / liquidity
    price: float | None = None
    previous_close: float | None = None
    volume: float | None = None
    average_volume: float | None = None
    market_cap: float | None = None
    daily_change: float | None = None
    fifty_two_week_high: float | None = None
    fifty_two_week_low: float | None = None

    # Valuation
    pe_ratio: float | None = None
    pb_ratio: float | None = None
    eps: float | None = None
    dividend_yield: float | None = None

    # Quality
    return_on_equity: float | None = None
    debt_to_equity: float | None = None
    profit_margin: float | None = None
    gross_margin: float | None = None
    operating_margin: float | None = None
    revenue_growth: float | None = None
    earnings_growth: float | None = None

    # Risk
    beta: float | None = None
    volatility: float | None = None
    sharpe_ratio: float | None = None
    max_drawdown: float | None = None

    # Funds
    expense_ratio: float | None = None

    history: tuple[float, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "symbol", self.symbol.upper().strip())
        object.__setattr__(self, "market_type", MarketType(self.market_type))
        for name in NUMERIC_FIELDS:
            object.__setattr__(self, name, _safe_float(getattr(self, name)))
        object.__setattr__(
            self,
            "history",
            tuple(v for v in (_safe_float(p) for p in self.history or ()) if v is not None),
        )

    @property
    def change_percent(self) -> float | None:
        """Daily move in percent, falling back to the move versus previous close."""
        if self.daily_change is not None:
            return self.daily_change
        if self.price is None or not self.previous_close:
            return None
        return (self.price - self.previous_close) / self.previous_close * 100

    @property
    def data_quality(self) -> float:
        """Fraction of optional numeric fields that are populated."""
        names = NUMERIC_FIELDS
        present = sum(1 for name in names if getattr(self, name) is not None)
        return round(present / len(names), 2)

    @classmethod
    def from_mapping(cls, symbol: str, data: Mapping[str, Any]) -> "QuoteRecord":
        """
        Build a record from a loosely-typed mapping.

        Accepts camelCase or snake_case keys plus a few common aliases
        (``roe``, ``previousPrice``, ``avgVolume``). Unknown keys are ignored
        and unparseable numbers become None.
        """
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for raw_key, value in data.items():
            key = _normalize_key(raw_key)
            key = _KEY_ALIASES.get(key, key)
            if key not in known or key == "symbol":
                continue
            if key == "market_type":
                kwargs[key] = _parse_market_type(value)
            elif key == "history":
                kwargs[key] = tuple(value or ())
            elif key in TEXT_FIELDS:
                kwargs[key] = str(value).strip() if value is not None else None
            else:
                kwargs[key] = _safe_float(value)
        return cls(symbol=symbol, **kwargs)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["market_type"] = self.market_type.value
        data["history"] = list(self.history)
        return data


TEXT_FIELDS = ("name", "currency", "sector", "industry")
NUMERIC_FIELDS = tuple(
    f.name
    for f in fields(QuoteRecord)
    if f.name not in {"symbol", "market_type", "history", *TEXT_FIELDS}
)


def _parse_market_type(value: Any) -> MarketType:
    if isinstance(value, MarketType):
        return value
    text = str(value or "").strip().lower()
    if text in {"etf", "fund", "mutualfund", "mutual_fund"}:
        return MarketType.FUND
    return MarketType.EQUITY


@dataclass(frozen=True)
class AnalysisFactor:
    """
    One rule evaluation used to justify a score.

    ``weight`` is the signed contribution of the rule on a 0-1 scale
    (a +20 point adjustment is 0.2).
    """

    category: str
    name: str
    value: float
    weight: float
    description: str


@dataclass(frozen=True)
class QualitativeSignals:
    """Coarse labels fed to the recommendation synthesizer."""

    trend: str = "neutral"
    momentum: str = "neutral"
    fundamental_rating: str = "neutral"
    valuation: str = "fair"
    dividend_strength: str = "none"
    risk_level: str = "medium"
    sentiment: str = "neutral"


@dataclass(frozen=True)
class Annotation:
    """Advisory narrative from the external annotation service or its fallback."""

    sentiment: str
    insights: tuple[str, ...]
    source: str


@dataclass(frozen=True)
class AnalysisResult:
    """Immutable output of one analysis call."""

    symbol: str
    mode: str
    market_type: MarketType
    technical_score: int
    fundamental_score: int
    risk_score: int
    health_score: int
    recommendation: Recommendation
    action: Action
    confidence: float
    factors: tuple[AnalysisFactor, ...]
    summary: str
    reasoning: str = ""
    signals: QualitativeSignals | None = None
    strengths: tuple[str, ...] = ()
    weaknesses: tuple[str, ...] = ()
    opportunities: tuple[str, ...] = ()
    threats: tuple[str, ...] = ()
    annotation: Annotation | None = None
    data_quality: float = 0.0
    degraded: bool = False
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def degraded_result(
        cls,
        symbol: str,
        mode: str,
        reason: str,
        market_type: MarketType = MarketType.EQUITY,
    ) -> "AnalysisResult":
        """Structurally valid result with zeroed scores, used instead of raising."""
        return cls(
            symbol=symbol.upper().strip(),
            mode=mode,
            market_type=market_type,
            technical_score=0,
            fundamental_score=0,
            risk_score=0,
            health_score=0,
            recommendation=Recommendation.HOLD,
            action=Action.HOLD,
            confidence=0.0,
            factors=(AnalysisFactor("error", "analysis_error", 0.0, 0.0, reason),),
            summary=reason,
            degraded=True,
        )

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready dict with enums flattened to their values."""
        return {
            "symbol": self.symbol,
            "mode": self.mode,
            "market_type": self.market_type.value,
            "health_score": self.health_score,
            "recommendation": self.recommendation.value,
            "action": self.action.value,
            "confidence": self.confidence,
            "scores": {
                "technical": self.technical_score,
                "fundamental": self.fundamental_score,
                "risk": self.risk_score,
            },
            "summary": self.summary,
            "reasoning": self.reasoning,
            "signals": asdict(self.signals) if self.signals else None,
            "factors": [asdict(f) for f in self.factors],
            "strengths": list(self.strengths),
            "weaknesses": list(self.weaknesses),
            "opportunities": list(self.opportunities),
            "threats": list(self.threats),
            "annotation": (
                {
                    "sentiment": self.annotation.sentiment,
                    "insights": list(self.annotation.insights),
                    "source": self.annotation.source,
                }
                if self.annotation
                else None
            ),
            "data_quality": self.data_quality,
            "degraded": self.degraded,
            "timestamp": self.timestamp.isoformat(),
        }
