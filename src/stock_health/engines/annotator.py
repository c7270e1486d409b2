"""External annotation capability and its deterministic fallback."""

import re
from collections.abc import Awaitable, Callable

from openai import AsyncOpenAI

from stock_health.engines.models import Annotation, QuoteRecord

ANNOTATION_SYSTEM_PROMPT = (
    "You are a professional equity analyst. Give objective, concise commentary. "
    "Start with one line 'Sentiment: bullish', 'Sentiment: neutral' or "
    "'Sentiment: bearish', then 3-5 bullet points of key insights."
)

# Any async callable taking a prompt and returning free text
Annotator = Callable[[str], Awaitable[str]]

MAX_INSIGHTS = 5
MAX_INSIGHT_LENGTH = 200

FALLBACK_INSIGHTS: tuple[str, ...] = (
    "Technically the price sits in a reasonable range",
    "Fundamental indicators suggest stable operations",
    "Risk indicators are within an acceptable range",
    "Keep an eye on sector developments",
    "Long-term value is worth considering",
)

_BULLISH_WORDS = ("bullish", "buy", "positive", "upside", "outperform", "strong")
_BEARISH_WORDS = ("bearish", "sell", "negative", "downside", "underperform", "weak")
_SENTIMENT_LINE = re.compile(r"sentiment\s*[:\-]\s*(bullish|bearish|neutral)", re.IGNORECASE)
_BULLET = re.compile(r"^\s*(?:[-*•]|\d+[.)])\s+(.*\S)\s*$")


class OpenAIAnnotator:
    """Calls a chat-completions endpoint and returns the reply text."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        base_url: str | None = None,
        max_tokens: int = 600,
        temperature: float = 0.7,
    ):
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        # No client-side retries; the engine enforces its own timeout
        self._client = AsyncOpenAI(api_key=api_key, base_url=base_url, max_retries=0)

    async def __call__(self, prompt: str) -> str:
        response = await self._client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": ANNOTATION_SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )
        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            raise ValueError("Annotation service returned an empty reply")
        return content.strip()


def parse_annotation(text: str) -> Annotation:
    """
    Extract a coarse sentiment label and a few insight strings from free text.

    An explicit "Sentiment: X" line wins; otherwise bullish and bearish
    keywords are counted. Bullet or numbered lines become insights.
    """
    match = _SENTIMENT_LINE.search(text)
    if match:
        sentiment = match.group(1).lower()
    else:
        lowered = text.lower()
        bullish = sum(lowered.count(word) for word in _BULLISH_WORDS)
        bearish = sum(lowered.count(word) for word in _BEARISH_WORDS)
        if bullish > bearish:
            sentiment = "bullish"
        elif bearish > bullish:
            sentiment = "bearish"
        else:
            sentiment = "neutral"

    insights: list[str] = []
    for line in text.splitlines():
        bullet = _BULLET.match(line)
        if not bullet:
            continue
        item = bullet.group(1).strip()
        if _SENTIMENT_LINE.search(item):
            continue
        if len(item) > MAX_INSIGHT_LENGTH:
            item = item[:MAX_INSIGHT_LENGTH] + "..."
        insights.append(item)
        if len(insights) >= MAX_INSIGHTS:
            break

    return Annotation(sentiment=sentiment, insights=tuple(insights), source="external")


def fallback_annotation() -> Annotation:
    """Built-in narrative used whenever the external service is absent or fails."""
    return Annotation(sentiment="neutral", insights=FALLBACK_INSIGHTS, source="fallback")


def _fmt(value: float | None, pct: bool = False) -> str:
    if value is None:
        return "n/a"
    if pct:
        return f"{value * 100:.2f}%"
    return f"{value:,.2f}"


def build_annotation_prompt(symbol: str, quote: QuoteRecord) -> str:
    """Text prompt built from the quote's numeric fields."""
    name = quote.name or symbol
    return f"""Analyze the following instrument and give an investment view.

Symbol: {symbol}
Name: {name}
Type: {quote.market_type.value}
Sector: {quote.sector or "n/a"} / {quote.industry or "n/a"}

Basics:
- Price: {_fmt(quote.price)} {quote.currency or ""}
- Previous close: {_fmt(quote.previous_close)}
- Volume: {_fmt(quote.volume)} (average {_fmt(quote.average_volume)})
- Market cap: {_fmt(quote.market_cap)}
- 52-week range: {_fmt(quote.fifty_two_week_low)} - {_fmt(quote.fifty_two_week_high)}

Valuation and quality:
- P/E: {_fmt(quote.pe_ratio)}
- P/B: {_fmt(quote.pb_ratio)}
- Dividend yield: {_fmt(quote.dividend_yield, pct=True)}
- Return on equity: {_fmt(quote.return_on_equity, pct=True)}
- Debt to equity: {_fmt(quote.debt_to_equity)}
- Profit margin: {_fmt(quote.profit_margin, pct=True)}
- Revenue growth: {_fmt(quote.revenue_growth, pct=True)}
- Earnings growth: {_fmt(quote.earnings_growth, pct=True)}

Risk:
- Beta: {_fmt(quote.beta)}
- Volatility (annualized): {_fmt(quote.volatility, pct=True)}
- Max drawdown: {_fmt(quote.max_drawdown, pct=True)}

Reply with:
1. Sentiment line
2. Key strengths and risks as bullet points
3. Key insights as bullet points
"""
