from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone, tzinfo

from ..core.constants import MAX_UTC_OFFSET_MINUTES

_OFFSET_RE = re.compile(r"^(?:UTC)?([+-])(\d{1,2})(?::?(\d{2}))?$")


@dataclass(frozen=True)
class CanonicalOffset:
    """Fixed UTC offset every timestamp is normalized to.

    The canonical zone has no daylight-saving transitions, so a constant
    offset is enough; all conversion goes through this type instead of ad hoc
    hour arithmetic on datetimes.
    """

    minutes: int
    _tz: timezone = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.minutes, int):
            raise TypeError("offset minutes must be an int")
        if abs(self.minutes) > MAX_UTC_OFFSET_MINUTES:
            raise ValueError(f"UTC offset out of range: {self.minutes} minutes")
        object.__setattr__(self, "_tz", timezone(timedelta(minutes=self.minutes)))

    @classmethod
    def from_hours(cls, hours: int, minutes: int = 0) -> "CanonicalOffset":
        sign = -1 if hours < 0 else 1
        return cls(hours * 60 + sign * minutes)

    @classmethod
    def parse(cls, value: str) -> "CanonicalOffset":
        """Parse '+08:00', '-0530', 'UTC+8' style strings."""
        text = value.strip().upper()
        if text in {"Z", "UTC"}:
            return cls(0)
        m = _OFFSET_RE.match(text)
        if not m:
            raise ValueError(f"Invalid UTC offset: {value!r}")
        sign = -1 if m.group(1) == "-" else 1
        total = int(m.group(2)) * 60 + int(m.group(3) or 0)
        return cls(sign * total)

    @property
    def tzinfo(self) -> tzinfo:
        return self._tz

    def utcoffset(self) -> timedelta:
        return timedelta(minutes=self.minutes)

    def localize(self, value: datetime) -> datetime:
        """Attach the offset to a naive wall-clock time (no shifting)."""
        if value.tzinfo is not None:
            raise ValueError("localize() expects a naive datetime")
        return value.replace(tzinfo=self._tz)

    def convert(self, value: datetime) -> datetime:
        """Express any timestamp in this offset.

        Naive values are taken to already be canonical wall-clock time.
        """
        if value.tzinfo is None:
            return self.localize(value)
        return value.astimezone(self._tz)

    def __str__(self) -> str:
        sign = "-" if self.minutes < 0 else "+"
        hours, minutes = divmod(abs(self.minutes), 60)
        return f"{sign}{hours:02d}:{minutes:02d}"
