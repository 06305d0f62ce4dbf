from __future__ import annotations

from datetime import date, datetime, time, timezone
from typing import Optional


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_calendar_date(value: Optional[str]) -> date:
    """Parse a strict YYYY-MM-DD calendar date. Raises ValueError otherwise."""
    if value is None or not value.strip():
        raise ValueError("date is required")
    s = value.strip()
    if len(s) != 10:
        raise ValueError(f"invalid calendar date: {value!r}")
    return date.fromisoformat(s)


def day_range(start: date, end: date) -> tuple[datetime, datetime]:
    """
    Inclusive datetime bounds covering whole calendar days:
    [start 00:00:00, end 23:59:59.999999].
    """
    return datetime.combine(start, time.min), datetime.combine(end, time.max)


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """
    Serializes datetime to ISO-8601 with trailing 'Z'.
    If dt is naive, it is treated as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt_utc = dt.astimezone(timezone.utc).replace(microsecond=0)
    return dt_utc.isoformat().replace("+00:00", "Z")
