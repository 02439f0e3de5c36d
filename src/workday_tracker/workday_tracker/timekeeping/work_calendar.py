from __future__ import annotations

import calendar as _cal
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Iterable, Optional

from ..core.constants import (
    BUSINESS_DAY_END_HOUR,
    BUSINESS_DAY_START_HOUR,
    LUNCH_END_HOUR,
    LUNCH_START_HOUR,
    WORKING_WEEKDAYS,
)
from .clock import Clock, SystemClock
from .offset import CanonicalOffset


@dataclass(frozen=True)
class BusinessHours:
    """Advisory hours used only for break warnings, never for enforcement."""

    start: int = BUSINESS_DAY_START_HOUR
    end: int = BUSINESS_DAY_END_HOUR
    lunch_start: int = LUNCH_START_HOUR
    lunch_end: int = LUNCH_END_HOUR


class WorkCalendar:
    """Date/time arithmetic pinned to one canonical UTC offset.

    Every function is a pure function of its arguments except ``now()`` and
    ``today()``, which read the injected clock. Naive datetimes are treated
    as canonical wall-clock time; aware ones are converted.
    """

    def __init__(
        self,
        offset: CanonicalOffset,
        *,
        clock: Optional[Clock] = None,
        holidays: Iterable[date] = (),
        business_hours: Optional[BusinessHours] = None,
    ):
        self._offset = offset
        self._clock = clock or SystemClock(offset)
        self._holidays = frozenset(holidays)
        self._business_hours = business_hours or BusinessHours()

    @property
    def offset(self) -> CanonicalOffset:
        return self._offset

    @property
    def holidays(self) -> frozenset[date]:
        return self._holidays

    # -- now / canonicalization -------------------------------------------------

    def now(self) -> datetime:
        return self.to_local(self._clock.now())

    def today(self) -> date:
        return self.now().date()

    def to_local(self, value: datetime) -> datetime:
        return self._offset.convert(value)

    def local_date(self, value: datetime | date) -> date:
        if isinstance(value, datetime):
            return self.to_local(value).date()
        return value

    def is_today(self, value: datetime) -> bool:
        return self.local_date(value) == self.today()

    # -- working days -------------------------------------------------------------

    def is_holiday(self, value: datetime | date) -> bool:
        return self.local_date(value) in self._holidays

    def is_working_day(self, value: datetime | date) -> bool:
        d = self.local_date(value)
        return d.isoweekday() in WORKING_WEEKDAYS and d not in self._holidays

    def add_business_days(self, value: datetime | date, days: int) -> date:
        current = self.local_date(value)
        step = 1 if days >= 0 else -1
        added = 0
        while added < abs(days):
            current += timedelta(days=step)
            if self.is_working_day(current):
                added += 1
        return current

    def next_working_day(self, value: datetime | date) -> date:
        return self.add_business_days(value, 1)

    def previous_working_day(self, value: datetime | date) -> date:
        return self.add_business_days(value, -1)

    def working_days_in_range(self, start: datetime | date, end: datetime | date) -> list[date]:
        current, last = self.local_date(start), self.local_date(end)
        days = []
        while current <= last:
            if self.is_working_day(current):
                days.append(current)
            current += timedelta(days=1)
        return days

    # -- period boundaries ---------------------------------------------------------

    def _at(self, d: date, t: time) -> datetime:
        return self._offset.localize(datetime.combine(d, t))

    def start_of_day(self, value: datetime | date) -> datetime:
        return self._at(self.local_date(value), time.min)

    def end_of_day(self, value: datetime | date) -> datetime:
        return self._at(self.local_date(value), time.max)

    def start_of_week(self, value: datetime | date) -> datetime:
        d = self.local_date(value)
        return self.start_of_day(d - timedelta(days=d.weekday()))

    def end_of_week(self, value: datetime | date) -> datetime:
        return self.end_of_day(self.start_of_week(value).date() + timedelta(days=6))

    def start_of_month(self, value: datetime | date) -> datetime:
        return self.start_of_day(self.local_date(value).replace(day=1))

    def end_of_month(self, value: datetime | date) -> datetime:
        d = self.local_date(value)
        last = _cal.monthrange(d.year, d.month)[1]
        return self.end_of_day(d.replace(day=last))

    # -- durations ---------------------------------------------------------------

    def hours(self, start: datetime, end: datetime) -> float:
        """Wall-clock elapsed hours; 0 when ``end`` is not after ``start``.

        This is the only duration used for attendance totals.
        """
        a, b = self.to_local(start), self.to_local(end)
        if b <= a:
            return 0.0
        return (b - a).total_seconds() / 3600

    def working_hours(self, start: datetime, end: datetime) -> float:
        """Elapsed hours with whole non-working days removed (reporting only)."""
        a, b = self.to_local(start), self.to_local(end)
        if b <= a:
            return 0.0

        total = 0.0
        cursor = a
        while cursor < b:
            next_day = self.start_of_day(cursor.date() + timedelta(days=1))
            period_end = min(b, next_day)
            if self.is_working_day(cursor):
                total += (period_end - cursor).total_seconds() / 3600
            cursor = next_day
        return round(total, 2)

    # -- advisory classifiers ------------------------------------------------------

    def is_within_business_hours(self, value: datetime) -> bool:
        hour = self.to_local(value).hour
        return self._business_hours.start <= hour < self._business_hours.end

    def is_lunch_time(self, value: datetime) -> bool:
        hour = self.to_local(value).hour
        return self._business_hours.lunch_start <= hour < self._business_hours.lunch_end

    def time_of_day(self, value: datetime) -> str:
        hour = self.to_local(value).hour
        if 5 <= hour < 8:
            return "Early Morning"
        if 8 <= hour < 12:
            return "Morning"
        if 12 <= hour < 17:
            return "Afternoon"
        if 17 <= hour < 21:
            return "Evening"
        if 21 <= hour < 24:
            return "Night"
        return "Late Night"
