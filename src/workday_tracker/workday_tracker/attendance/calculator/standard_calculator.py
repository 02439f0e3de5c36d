from __future__ import annotations

from datetime import datetime

from ...core.constants import EARLY_DEPARTURE_BEFORE_HOUR, LATE_AFTER_HOUR, WORK_DAY_HOURS
from ...timekeeping.work_calendar import WorkCalendar
from ..model import AttendanceRecord, AttendanceTotals
from .base import HoursCalculator


class StandardHoursCalculator(HoursCalculator):
    """Standard rule: hours(in, end) - break minutes / 60, not below 0.

    ``end`` is the clock-out for closed records and ``now`` for open ones, so
    a live total and the final total at close-out use the same formula.
    Open breaks contribute nothing until they are closed.
    """

    def __init__(self, calendar: WorkCalendar, *, work_day_hours: float = WORK_DAY_HOURS):
        self._calendar = calendar
        self._work_day_hours = float(work_day_hours)

    def compute(self, record: AttendanceRecord, *, now: datetime) -> AttendanceTotals:
        effective_end = record.clock_out if record.clock_out is not None else now
        elapsed = self._calendar.hours(record.clock_in, effective_end)
        break_minutes = sum(b.duration or 0 for b in record.breaks)

        total = max(0.0, elapsed - break_minutes / 60)
        regular = min(total, self._work_day_hours)
        overtime = max(0.0, total - self._work_day_hours)

        is_late = self._calendar.to_local(record.clock_in).hour > LATE_AFTER_HOUR
        is_early = (
            record.clock_out is not None
            and self._calendar.to_local(record.clock_out).hour < EARLY_DEPARTURE_BEFORE_HOUR
        )

        return AttendanceTotals(
            total_hours=total,
            regular_hours=regular,
            overtime_hours=overtime,
            is_late=is_late,
            is_early_departure=is_early,
        )
