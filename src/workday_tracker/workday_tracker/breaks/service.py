from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Callable, Iterable, Optional, Sequence

from ..common.datetime_utils import minutes_between, round_half_up
from ..core.constants import (
    LUNCH_START_HOUR,
    SUGGESTED_BREAK_CLEARANCE_MINUTES,
    SUGGESTED_BREAK_INTERVAL_MINUTES,
    SUGGESTED_BREAKS_UNTIL_HOUR,
    SUGGESTED_FIRST_BREAK_AFTER_MINUTES,
    SUGGESTED_SHORT_BREAKS_MAX,
    WORK_DAY_HOURS,
)
from ..core.enums import BreakType
from ..core.exceptions import InvalidStateError, ValidationError
from ..timekeeping.work_calendar import WorkCalendar
from .catalog import BREAK_TYPES, coerce_break_type, get_config
from .model import BreakPeriod, BreakStatistics, BreakSuggestions, BreakTypeConfig, BreakValidationResult

logger = logging.getLogger(__name__)


def _new_break_id() -> str:
    return f"break_{uuid.uuid4().hex}"


class BreakAccounting:
    """Rules for the breaks nested inside one attendance record.

    Works on immutable ``BreakPeriod`` values and returns new ones; persisting
    them is the attendance service's job.
    """

    def __init__(self, calendar: WorkCalendar, *, id_factory: Callable[[], str] = _new_break_id):
        self._calendar = calendar
        self._new_id = id_factory

    # -- catalog -----------------------------------------------------------------

    def get_break_type_config(self, break_type: BreakType | str) -> Optional[BreakTypeConfig]:
        return get_config(break_type)

    def get_all_break_types(self) -> list[BreakTypeConfig]:
        return list(BREAK_TYPES.values())

    # -- lifecycle ---------------------------------------------------------------

    def start_break(self, break_type: BreakType | str, planned_duration: Optional[int] = None) -> BreakPeriod:
        resolved = coerce_break_type(break_type)
        if resolved is None:
            raise ValidationError(f"Invalid break type: {break_type}")

        config = BREAK_TYPES[resolved]
        return BreakPeriod(
            break_id=self._new_id(),
            type=resolved,
            start_time=self._calendar.now(),
            is_paid=config.is_paid,
            planned_duration=planned_duration,
        )

    def end_break(self, period: BreakPeriod, end_time: Optional[datetime] = None) -> BreakPeriod:
        if period.start_time is None:
            raise InvalidStateError(f"Break {period.break_id} has no start time")
        if period.end_time is not None:
            raise InvalidStateError(f"Break {period.break_id} already ended")

        end = self._calendar.to_local(end_time) if end_time else self._calendar.now()
        return replace(
            period,
            end_time=end,
            duration=round_half_up(minutes_between(period.start_time, end)),
        )

    # -- validation ----------------------------------------------------------------

    def are_overlapping(self, a: BreakPeriod, b: BreakPeriod, *, now: Optional[datetime] = None) -> bool:
        """Half-open intervals; an open break ends provisionally at ``now``."""
        if a.start_time is None or b.start_time is None:
            return False
        now = now or self._calendar.now()
        a_end = a.end_time or now
        b_end = b.end_time or now
        return a.start_time < b_end and b.start_time < a_end

    def validate_break(
        self,
        period: BreakPeriod,
        existing_breaks: Sequence[BreakPeriod] = (),
        *,
        now: Optional[datetime] = None,
    ) -> BreakValidationResult:
        config = get_config(period.type)
        if config is None:
            return BreakValidationResult(errors=(f"Invalid break type: {period.type}",))

        now = now or self._calendar.now()
        errors: list[str] = []
        warnings: list[str] = []

        if not period.break_id or not period.break_id.strip():
            errors.append("Break ID is required")
        if period.start_time is None:
            errors.append("Break start time is required")

        if period.start_time is not None and period.end_time is not None:
            if period.end_time <= period.start_time:
                errors.append("Break end time must be after start time")
            else:
                minutes = round_half_up(minutes_between(period.start_time, period.end_time))
                if minutes < config.min_duration:
                    warnings.append(f"Break is shorter than recommended minimum of {config.min_duration} minutes")
                if minutes > config.max_duration:
                    errors.append(f"Break exceeds maximum duration of {config.max_duration} minutes")

        if period.planned_duration is not None:
            if period.planned_duration <= 0:
                errors.append("Break duration must be positive")
            elif period.planned_duration > config.max_duration:
                errors.append(f"Break duration exceeds maximum of {config.max_duration} minutes")

        others = [b for b in existing_breaks if b.break_id != period.break_id]

        if period.start_time is not None:
            day = self._calendar.local_date(period.start_time)
            same_day = [
                b
                for b in others
                if b.type == period.type and b.start_time is not None and self._calendar.local_date(b.start_time) == day
            ]
            if len(same_day) >= config.max_per_day:
                plural = "s" if config.max_per_day > 1 else ""
                errors.append(f"Maximum {config.max_per_day} {config.name.lower()}{plural} allowed per day")

            if period.is_open and any(b.is_open for b in others):
                errors.append("Another break is still open")

            if any(self.are_overlapping(period, b, now=now) for b in others):
                errors.append("Break overlaps with another break period")

            if period.type == BreakType.LUNCH and not self._calendar.is_lunch_time(period.start_time):
                warnings.append("Lunch break is outside typical lunch hours (12:00 - 13:00)")
            if not self._calendar.is_within_business_hours(period.start_time):
                warnings.append("Break is outside typical business hours")

        return BreakValidationResult(
            errors=tuple(errors),
            warnings=tuple(warnings),
            suggested_duration=config.default_duration,
        )

    # -- forced closure ------------------------------------------------------------

    def auto_complete_breaks(
        self, breaks: Iterable[BreakPeriod], *, now: Optional[datetime] = None
    ) -> tuple[BreakPeriod, ...]:
        """Close every open break already past its ceiling at exactly start + max."""
        now = now or self._calendar.now()
        result = []
        for period in breaks:
            config = get_config(period.type)
            if period.is_open and config and minutes_between(period.start_time, now) > config.max_duration:
                auto_end = period.start_time + timedelta(minutes=config.max_duration)
                period = replace(self.end_break(period, auto_end), auto_completed=True)
                logger.info(
                    "Auto-completed %s break %s at %s", period.type.value, period.break_id, auto_end.isoformat()
                )
            result.append(period)
        return tuple(result)

    def close_open_breaks(self, breaks: Iterable[BreakPeriod], at: datetime) -> tuple[BreakPeriod, ...]:
        """Clock-out rule: overlong breaks stop at their ceiling, the rest at ``at``."""
        completed = self.auto_complete_breaks(breaks, now=at)
        return tuple(self.end_break(b, at) if b.is_open else b for b in completed)

    # -- read helpers --------------------------------------------------------------

    def get_active_breaks(self, breaks: Iterable[BreakPeriod]) -> list[BreakPeriod]:
        return [b for b in breaks if b.is_open]

    def is_on_break(self, breaks: Iterable[BreakPeriod]) -> bool:
        return bool(self.get_active_breaks(breaks))

    def get_current_break_type(self, breaks: Iterable[BreakPeriod]) -> Optional[BreakType]:
        active = self.get_active_breaks(breaks)
        return active[0].type if active else None

    def get_active_break_duration(self, period: BreakPeriod, *, now: Optional[datetime] = None) -> float:
        """Live minutes of an open break (0 for closed ones)."""
        if not period.is_open:
            return 0.0
        return max(minutes_between(period.start_time, now or self._calendar.now()), 0.0)

    def calculate_break_statistics(self, breaks: Iterable[BreakPeriod]) -> BreakStatistics:
        closed = [b for b in breaks if b.end_time is not None]
        if not closed:
            return BreakStatistics()

        total = sum(b.duration or 0 for b in closed)
        paid = sum(b.duration or 0 for b in closed if b.is_paid)
        unpaid = total - paid

        ordered = sorted(closed, key=lambda b: b.duration or 0, reverse=True)
        by_type: dict[str, int] = {}
        for b in closed:
            by_type[b.type.value] = by_type.get(b.type.value, 0) + 1

        work_minutes = WORK_DAY_HOURS * 60
        efficiency = max(0.0, (work_minutes - unpaid) / work_minutes * 100)

        return BreakStatistics(
            total_breaks=len(closed),
            total_break_minutes=total,
            paid_break_minutes=paid,
            unpaid_break_minutes=unpaid,
            average_break_minutes=total / len(closed),
            longest_break=ordered[0],
            shortest_break=ordered[-1],
            break_efficiency=round(efficiency, 2),
            by_type=by_type,
        )

    # -- planning ------------------------------------------------------------------

    def suggest_break_times(
        self, work_day_start: datetime, existing_breaks: Sequence[BreakPeriod] = ()
    ) -> BreakSuggestions:
        """Suggested lunch and short-break start times for the day of ``work_day_start``.

        Lunch is 12:00 unless a lunch break already started that day. Short
        breaks come 90 minutes in, then every two hours until 17:00; a slot
        within 30 minutes of an existing break is skipped.
        """
        start = self._calendar.to_local(work_day_start)
        day_start = self._calendar.start_of_day(start)
        day = day_start.date()

        has_lunch = any(
            b.type == BreakType.LUNCH and b.start_time is not None and self._calendar.local_date(b.start_time) == day
            for b in existing_breaks
        )
        lunch = None if has_lunch else day_start + timedelta(hours=LUNCH_START_HOUR)

        clearance = timedelta(minutes=SUGGESTED_BREAK_CLEARANCE_MINUTES)
        day_end = day_start + timedelta(hours=SUGGESTED_BREAKS_UNTIL_HOUR)
        slot = start + timedelta(minutes=SUGGESTED_FIRST_BREAK_AFTER_MINUTES)
        short_breaks: list[datetime] = []
        while slot < day_end and len(short_breaks) < SUGGESTED_SHORT_BREAKS_MAX:
            taken = any(b.start_time is not None and abs(b.start_time - slot) < clearance for b in existing_breaks)
            if not taken:
                short_breaks.append(slot)
            slot += timedelta(minutes=SUGGESTED_BREAK_INTERVAL_MINUTES)

        return BreakSuggestions(lunch=lunch, short_breaks=tuple(short_breaks))
