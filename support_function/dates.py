from __future__ import annotations

from datetime import date, datetime, time, timezone
from typing import Any


def parse_date(value: Any) -> datetime | None:
    """
    Interprets a value the way a JS `new Date(value)` would, at the precision we need.
    Returns an aware UTC datetime, or None when the value is not a valid date.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)

    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
        # date-only and naive strings are read as UTC
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)

    return None


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def normalize_day(value: Any, today: date | None = None) -> str:
    """Day-precision `YYYY-MM-DD`; anything unparsable becomes today (UTC)."""
    parsed = parse_date(value)
    if parsed is None:
        return (today or utc_today()).isoformat()
    return parsed.date().isoformat()


def day_start(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def to_js_iso(value: datetime | None) -> str | None:
    # Date.prototype.toISOString format, milliseconds included
    if value is None:
        return None
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"
