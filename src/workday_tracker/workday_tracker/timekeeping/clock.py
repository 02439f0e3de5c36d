from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Protocol

from .offset import CanonicalOffset


class Clock(Protocol):
    """Single entry point for "now", always in the canonical offset."""

    def now(self) -> datetime:
        raise NotImplementedError


class SystemClock:
    def __init__(self, offset: CanonicalOffset):
        self._offset = offset

    def now(self) -> datetime:
        return datetime.now(timezone.utc).astimezone(self._offset.tzinfo)


class FixedClock:
    """Manually driven clock for tests and replays."""

    def __init__(self, moment: datetime, offset: CanonicalOffset | None = None):
        self._offset = offset or CanonicalOffset(0)
        self._moment = self._offset.convert(moment)

    def now(self) -> datetime:
        return self._moment

    def set(self, moment: datetime) -> None:
        self._moment = self._offset.convert(moment)

    def advance(self, delta: timedelta | None = None, **kwargs) -> datetime:
        self._moment = self._moment + (delta or timedelta(**kwargs))
        return self._moment
