from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Iterable, Optional, Sequence

from ..common.datetime_utils import hours_to_timedelta
from ..core.constants import WORK_DAY_HOURS
from ..core.enums import AttendanceStatus, ProgressStatus
from ..timekeeping.work_calendar import WorkCalendar
from .model import AttendanceRecord

COUNTED_STATUSES = (AttendanceStatus.COMPLETED, AttendanceStatus.APPROVED)


@dataclass(frozen=True)
class DailyProgress:
    date: date
    total_hours: float
    regular_hours: float
    overtime_hours: float
    goal_hours: float
    completion_percentage: float
    status: ProgressStatus
    projected_finish_time: Optional[datetime] = None


@dataclass(frozen=True)
class WeeklyProgress:
    week_start: date
    week_end: date
    days: list[DailyProgress]
    total_hours: float
    regular_hours: float
    overtime_hours: float
    goal_hours: float
    completion_percentage: float


@dataclass(frozen=True)
class AttendanceStatistics:
    total_entries: int = 0
    total_hours: float = 0.0
    regular_hours: float = 0.0
    overtime_hours: float = 0.0
    average_hours_per_entry: float = 0.0
    longest_entry: Optional[AttendanceRecord] = None
    shortest_entry: Optional[AttendanceRecord] = None
    entries_by_status: dict[str, int] = field(default_factory=dict)
    daily_progress: list[DailyProgress] = field(default_factory=list)


class AttendanceStatisticsBuilder:
    """Aggregates over records whose totals are already computed for ``now``.

    Hour figures only count COMPLETED and APPROVED records, and
    ``average_hours_per_entry`` divides by that same set, not by
    ``total_entries``: ACTIVE and REJECTED records contribute no hours, so
    they contribute no divisor either. ``total_entries`` and
    ``entries_by_status`` still count every record.
    """

    def __init__(self, calendar: WorkCalendar, *, goal_hours: float = WORK_DAY_HOURS):
        self._calendar = calendar
        self._goal = float(goal_hours)

    @property
    def goal_hours(self) -> float:
        return self._goal

    def project_completion(
        self, record: AttendanceRecord, *, now: datetime, worked_hours: Optional[float] = None
    ) -> Optional[datetime]:
        """Linear projection of when the goal is reached at the record's pace so far."""
        worked = record.total_hours if worked_hours is None else worked_hours
        remaining = self._goal - worked
        if remaining <= 0:
            return None

        elapsed = self._calendar.hours(record.clock_in, now)
        pace = record.total_hours / elapsed if elapsed > 0 else 0.0
        if pace <= 0:
            pace = 1.0
        return self._calendar.to_local(now) + hours_to_timedelta(remaining / pace)

    def _progress_status(self, total: float) -> ProgressStatus:
        if total <= 0:
            return ProgressStatus.NOT_STARTED
        if total < self._goal:
            return ProgressStatus.IN_PROGRESS
        if total > self._goal:
            return ProgressStatus.EXCEEDED
        return ProgressStatus.COMPLETED

    def summarize_day(self, day: date, records: Sequence[AttendanceRecord], *, now: datetime) -> DailyProgress:
        total = sum(r.total_hours for r in records)
        regular = min(total, self._goal)
        overtime = max(0.0, total - self._goal)
        status = self._progress_status(total)

        projected = None
        if status == ProgressStatus.IN_PROGRESS:
            open_records = [r for r in records if r.is_open]
            if open_records:
                projected = self.project_completion(open_records[0], now=now, worked_hours=total)

        return DailyProgress(
            date=day,
            total_hours=total,
            regular_hours=regular,
            overtime_hours=overtime,
            goal_hours=self._goal,
            completion_percentage=min(100.0, total / self._goal * 100) if self._goal else 100.0,
            status=status,
            projected_finish_time=projected,
        )

    def daily_progress(self, records: Iterable[AttendanceRecord], *, now: datetime) -> list[DailyProgress]:
        by_day: dict[date, list[AttendanceRecord]] = {}
        for r in records:
            by_day.setdefault(self._calendar.local_date(r.clock_in), []).append(r)
        return [self.summarize_day(day, by_day[day], now=now) for day in sorted(by_day)]

    def build(self, records: Sequence[AttendanceRecord], *, now: datetime) -> AttendanceStatistics:
        counted = [r for r in records if r.status in COUNTED_STATUSES]

        by_status: dict[str, int] = {}
        for r in records:
            by_status[r.status.value] = by_status.get(r.status.value, 0) + 1

        if not counted:
            return AttendanceStatistics(total_entries=len(records), entries_by_status=by_status)

        total = sum(r.total_hours for r in counted)
        ordered = sorted(counted, key=lambda r: r.total_hours, reverse=True)

        return AttendanceStatistics(
            total_entries=len(records),
            total_hours=total,
            regular_hours=sum(r.regular_hours for r in counted),
            overtime_hours=sum(r.overtime_hours for r in counted),
            average_hours_per_entry=total / len(counted),
            longest_entry=ordered[0],
            shortest_entry=ordered[-1],
            entries_by_status=by_status,
            daily_progress=self.daily_progress(counted, now=now),
        )

    def build_week(self, records: Sequence[AttendanceRecord], *, now: datetime) -> WeeklyProgress:
        week_start = self._calendar.start_of_week(now).date()
        days = [week_start + timedelta(days=i) for i in range(7)]

        by_day: dict[date, list[AttendanceRecord]] = {d: [] for d in days}
        for r in records:
            d = self._calendar.local_date(r.clock_in)
            if d in by_day:
                by_day[d].append(r)

        summaries = [self.summarize_day(d, by_day[d], now=now) for d in days]
        total = sum(s.total_hours for s in summaries)
        goal = self._goal * len(self._calendar.working_days_in_range(days[0], days[-1]))

        return WeeklyProgress(
            week_start=days[0],
            week_end=days[-1],
            days=summaries,
            total_hours=total,
            regular_hours=sum(s.regular_hours for s in summaries),
            overtime_hours=sum(s.overtime_hours for s in summaries),
            goal_hours=goal,
            completion_percentage=min(100.0, total / goal * 100) if goal else 100.0,
        )
