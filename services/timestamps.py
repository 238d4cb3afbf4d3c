"""Timestamp parsing and display helpers shared by the pipeline stages."""

from __future__ import annotations

import re
from datetime import date, datetime, timezone, tzinfo
from typing import Any, Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

NO_DATA = "–"

_LEGACY_TOKEN = re.compile(r"Date\((\d+),(\d+),(\d+),(\d+),(\d+),(\d+)\)")

DayBound = Union[date, str, None]


def resolve_timezone(name: Optional[str]) -> tzinfo:
    if not name or name.upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return timezone.utc


def parse_timestamp(value: Any, tz: tzinfo = timezone.utc) -> Optional[datetime]:
    """Parse a raw timestamp token into an aware UTC datetime.

    Accepts ISO-8601 strings, legacy ``Date(y,m,d,h,mi,s)`` tokens (zero-based
    month), epoch milliseconds and ``datetime`` objects. Naive values are
    interpreted in ``tz``. Anything unparseable yields ``None``.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        candidate = value.strip()
        if not candidate:
            return None
        if candidate.startswith("Date("):
            parsed = _parse_legacy_token(candidate)
            if parsed is None:
                return None
        else:
            if candidate.endswith("Z"):
                candidate = candidate[:-1] + "+00:00"
            try:
                parsed = datetime.fromisoformat(candidate)
            except ValueError:
                return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz)
    return parsed.astimezone(timezone.utc)


def _parse_legacy_token(value: str) -> Optional[datetime]:
    match = _LEGACY_TOKEN.match(value)
    if not match:
        return None
    year, month, day, hour, minute, second = (int(part) for part in match.groups())
    try:
        return datetime(year, month + 1, day, hour, minute, second)
    except ValueError:
        return None


def coerce_day(value: DayBound) -> Optional[str]:
    """Normalize a day bound to ``YYYY-MM-DD`` or ``None``."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    candidate = value.strip()
    if not candidate:
        return None
    return date.fromisoformat(candidate).isoformat()


def day_key(moment: datetime, tz: tzinfo = timezone.utc) -> str:
    return moment.astimezone(tz).date().isoformat()


def within_days(
    moment: Optional[datetime],
    start_date: DayBound,
    end_date: DayBound,
    tz: tzinfo = timezone.utc,
) -> bool:
    start = coerce_day(start_date)
    end = coerce_day(end_date)
    if start is None and end is None:
        return True
    if moment is None:
        return False
    key = day_key(moment, tz)
    if start is not None and key < start:
        return False
    if end is not None and key > end:
        return False
    return True


def sort_key(moment: Optional[datetime]) -> float:
    return moment.timestamp() if moment is not None else 0.0


def format_time(
    moment: Optional[datetime],
    tz: tzinfo = timezone.utc,
    pattern: str = "%Y-%m-%d %H:%M:%S",
) -> str:
    if moment is None:
        return NO_DATA
    return moment.astimezone(tz).strftime(pattern)
