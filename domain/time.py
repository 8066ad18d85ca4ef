"""
Domain time utilities (pure).

Stored timestamps are always UTC; reports convert them to a local calendar
day only at the edge, through `local_date`.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Any
from zoneinfo import ZoneInfo


def require_utc_timestamp(name: str, value: datetime) -> None:
    """
    Reject naive or non-UTC timestamps.

    Raises:
        ValueError: naming the offending field
    """

    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError(f"{name} must be timezone-aware (UTC)")
    if value.utcoffset() != timedelta(0):
        raise ValueError(f"{name} must be a UTC timestamp (offset 0)")


def parse_utc_datetime(value: Any) -> datetime:
    """
    Turn a `timestamptz` value returned by PostgREST into an aware UTC datetime.

    Accepts ISO-8601 text (with "Z" or an explicit offset) or a datetime;
    naive values are taken as UTC.
    """

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    else:
        raise TypeError(f"Unsupported timestamp type: {type(value)!r}")

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def local_date(value: datetime, tz_name: str) -> date:
    """Calendar day of a UTC timestamp as seen from `tz_name`."""

    require_utc_timestamp("value", value)
    return value.astimezone(ZoneInfo(tz_name)).date()
