from __future__ import annotations

import math
from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from ..timekeeping.offset import CanonicalOffset


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_iso_datetime(value: Optional[str], offset: Optional[CanonicalOffset] = None) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp.

    With ``offset`` the result is expressed in it; a value without its own
    offset is read as wall-clock time in ``offset``.
    """
    if value is None or value == "":
        return None
    parsed = datetime.fromisoformat(value)
    return offset.convert(parsed) if offset is not None else parsed


def to_iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def minutes_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 60


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def hours_to_timedelta(hours: float) -> timedelta:
    return timedelta(seconds=hours * 3600)


def format_hours(hours: float) -> str:
    """Format fractional hours as HH:MM."""
    minutes = round_half_up(max(hours, 0) * 60)
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def format_duration(hours: float) -> str:
    """Human readable duration: 45m, 7h 30m, 1d 2.0h (a day is 8 working hours)."""
    if hours < 1:
        return f"{round_half_up(hours * 60)}m"
    if hours < 8:
        whole = int(hours)
        minutes = round_half_up((hours - whole) * 60)
        if minutes == 60:
            whole, minutes = whole + 1, 0
        return f"{whole}h {minutes}m" if minutes else f"{whole}h"

    days = int(hours // 8)
    remaining = hours % 8
    return f"{days}d {remaining:.1f}h" if remaining > 0 else f"{days}d"
