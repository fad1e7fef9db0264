"""Map timeframe tokens ("1h", "24h", "7", ...) to absolute cutoff instants."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Mapping

log = logging.getLogger(__name__)

# Token used when an unknown token is given and strict mode is off
FALLBACK_TOKEN = "1h"

# Lookback durations in minutes
DEFAULT_TIMEFRAMES: dict[str, float] = {
    "last": 30,
    "1h": 60,
    "6h": 360,
    "12h": 720,
    "24h": 1440,
    "7": 10_080,
    "7d": 10_080,
}


class UnknownTimeframeError(ValueError):
    """Raised in strict mode when a timeframe token is not recognised."""


def _parse_days(token: str) -> int | None:
    """Return the day count for a bare non-negative integer token, else None."""
    stripped = token.strip()
    if not stripped:
        return None
    try:
        days = int(stripped)
    except ValueError:
        return None
    return days if days >= 0 else None


def timeframe_duration(
    token: str,
    table: Mapping[str, float] | None = None,
    strict: bool = False,
) -> timedelta:
    """Return the lookback duration for *token*.

    Bare integers are days and take precedence over the named table, so
    ``"7"`` and ``"2"`` mean 7 and 2 days. Negative counts are treated as
    unknown tokens, which fall back to ``1h`` unless *strict* is set, in
    which case :class:`UnknownTimeframeError` is raised.
    """
    table = DEFAULT_TIMEFRAMES if table is None else table

    days = _parse_days(token)
    if days is not None:
        return timedelta(days=days)

    minutes = table.get(token)
    if minutes is None:
        if strict:
            raise UnknownTimeframeError(
                f"Unknown timeframe '{token}'. Known: {sorted(table)} or a day count"
            )
        log.warning("Unknown timeframe '%s', using %s", token, FALLBACK_TOKEN)
        minutes = table.get(FALLBACK_TOKEN, DEFAULT_TIMEFRAMES[FALLBACK_TOKEN])
    return timedelta(minutes=minutes)


def resolve_cutoff(
    token: str,
    table: Mapping[str, float] | None = None,
    now: datetime | None = None,
    strict: bool = False,
) -> datetime:
    """Resolve *token* to ``now - duration`` as an aware UTC datetime."""
    if now is None:
        now = datetime.now(timezone.utc)
    return now - timeframe_duration(token, table, strict=strict)


def describe_timeframe(token: str, table: Mapping[str, float] | None = None) -> str:
    """Human label for *token*, e.g. "30 minutes", "6 hours", "2 days".

    Unknown tokens are echoed back unchanged.
    """
    table = DEFAULT_TIMEFRAMES if table is None else table

    days = _parse_days(token)
    if days is not None:
        return _plural(days, "day")

    minutes = table.get(token)
    if minutes is None:
        return token
    if minutes > 1440 and minutes % 1440 == 0:
        return _plural(int(minutes // 1440), "day")
    if minutes % 60 == 0:
        return _plural(int(minutes // 60), "hour")
    return _plural(int(minutes), "minute")


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}" if count == 1 else f"{count} {unit}s"
