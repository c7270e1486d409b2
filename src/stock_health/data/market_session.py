"""US exchange session clock, used to flag quotes whose price is not live."""

from datetime import datetime
from typing import Any

import pytz

EXCHANGE_TIMEZONE = "America/New_York"

# Weekday session boundaries in minutes after midnight, exchange time
_SESSION_STARTS = (
    (0, "closed"),
    (4 * 60, "pre_market"),
    (9 * 60 + 30, "regular"),
    (16 * 60, "after_hours"),
    (20 * 60, "closed"),
)


def session_for(now: datetime) -> str:
    """Session name for an exchange-local timestamp. Weekends are closed."""
    if now.weekday() >= 5:
        return "closed"
    minutes = now.hour * 60 + now.minute
    state = "closed"
    for start, name in _SESSION_STARTS:
        if minutes >= start:
            state = name
    return state


def get_market_state(now: datetime | None = None, tz: str = EXCHANGE_TIMEZONE) -> dict[str, Any]:
    """
    Clock-based market state (no holiday calendar).

    Args:
        now: Timestamp to evaluate (default: current time). Naive values are
            taken as exchange-local time, aware values are converted.
        tz: Exchange timezone

    Returns:
        Dict with state, quote_is_live, method and checked_at
    """
    zone = pytz.timezone(tz)
    if now is None:
        now = datetime.now(zone)
    elif now.tzinfo is None:
        now = zone.localize(now)
    else:
        now = now.astimezone(zone)

    state = session_for(now)
    return {
        "state": state,
        "quote_is_live": state == "regular",
        "method": "clock_only_no_holidays",
        "checked_at": now.isoformat(),
    }


def staleness_warnings(market_state: dict[str, Any]) -> list[str]:
    """Provenance warnings for a quote fetched outside the regular session."""
    if market_state["quote_is_live"]:
        return []
    state = market_state["state"].replace("_", " ")
    return [
        f"Market is {state}: price and daily change reflect the last regular session, "
        "so move-based technical rules may be stale"
    ]
