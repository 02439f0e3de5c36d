from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Any, Callable, Optional

from ..breaks.model import BreakPeriod
from ..breaks.service import BreakAccounting
from ..common.validators import require_non_empty
from ..core.constants import (
    DEFAULT_CLOCK_IN_FUTURE_TOLERANCE_MINUTES,
    MAX_SHIFT_HOURS,
    PENDING_ENTRY_HOURS,
    WORK_DAY_HOURS,
)
from ..core.enums import AttendanceStatus, BreakType, ChangeEventType
from ..core.exceptions import ConflictError, InvalidStateError, NotFoundError, ValidationError
from ..events.bus import EventBus
from ..events.model import ChangeEvent
from ..timekeeping.work_calendar import WorkCalendar
from .calculator.base import HoursCalculator
from .calculator.standard_calculator import StandardHoursCalculator
from .model import AttendanceFilters, AttendanceRecord, BreakResult, Location
from .repository import AttendanceRepository
from .serialization import break_to_dict, record_to_dict
from .statistics import AttendanceStatistics, AttendanceStatisticsBuilder, DailyProgress, WeeklyProgress

logger = logging.getLogger(__name__)


def _new_record_id() -> str:
    return f"time_entry_{uuid.uuid4().hex}"


class AttendanceService:
    """Clock-in/out lifecycle, break delegation, approval and queries.

    Every mutation reads current state, re-checks its precondition and writes
    with the version it read; a concurrent writer surfaces as ConflictError.
    After a successful write a ChangeEvent is published.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        calendar: WorkCalendar,
        breaks: BreakAccounting,
        bus: EventBus,
        *,
        calculator: Optional[HoursCalculator] = None,
        clock_in_future_tolerance: timedelta = timedelta(minutes=DEFAULT_CLOCK_IN_FUTURE_TOLERANCE_MINUTES),
        work_day_hours: float = WORK_DAY_HOURS,
        id_factory: Callable[[], str] = _new_record_id,
    ):
        self._attendance = attendance
        self._calendar = calendar
        self._breaks = breaks
        self._bus = bus
        self._calculator = calculator or StandardHoursCalculator(calendar, work_day_hours=work_day_hours)
        self._stats = AttendanceStatisticsBuilder(calendar, goal_hours=work_day_hours)
        self._future_tolerance = clock_in_future_tolerance
        self._new_id = id_factory

    # -- internals -------------------------------------------------------------

    def _load(self, record_id: str) -> AttendanceRecord:
        record = self._attendance.get_by_id(record_id)
        if record is None or record.is_deleted:
            raise NotFoundError(f"Attendance record {record_id} not found")
        return record

    def _require_active(self, record: AttendanceRecord, action: str) -> None:
        if record.status != AttendanceStatus.ACTIVE:
            raise InvalidStateError(f"Cannot {action} a {record.status.value} attendance record")

    def _hydrate(self, record: AttendanceRecord, now: Optional[datetime] = None) -> AttendanceRecord:
        return self._calculator.apply(record, now=now or self._calendar.now())

    def _read_view(self, record: AttendanceRecord, now: datetime) -> AttendanceRecord:
        """Statistics view: overlong open breaks are closed at their ceiling, nothing is written."""
        if record.is_open and record.breaks:
            record = replace(record, breaks=self._breaks.auto_complete_breaks(record.breaks, now=now))
        return self._hydrate(record, now)

    def _commit(self, previous: AttendanceRecord, updated: AttendanceRecord, now: datetime) -> AttendanceRecord:
        updated = self._hydrate(replace(updated, updated_at=now, version=previous.version + 1), now)
        return self._attendance.update(updated, expected_version=previous.version)

    def _publish(self, event_type: ChangeEventType, record: AttendanceRecord, payload: dict[str, Any]) -> None:
        self._bus.publish(
            ChangeEvent(
                type=event_type,
                user_id=record.user_id,
                record_id=record.record_id,
                timestamp=self._calendar.now(),
                payload=payload,
                source=getattr(self._bus, "source", None),
            )
        )

    def _canonical(self, value: Optional[datetime], now: datetime) -> datetime:
        return self._calendar.to_local(value) if value is not None else now

    def _future_error(self, moment: datetime, now: datetime) -> Optional[str]:
        if moment > now + self._future_tolerance:
            minutes = int(self._future_tolerance.total_seconds() // 60)
            return f"Cannot clock in more than {minutes} minutes in the future"
        return None

    def _entry_errors(
        self, clock_in: datetime, clock_out: Optional[datetime], breaks: tuple[BreakPeriod, ...]
    ) -> list[str]:
        """Entry rules shared by clock-out and manual correction."""
        errors = []
        if clock_out is not None:
            if clock_out <= clock_in:
                errors.append("Clock out time must be after clock in time")
            elif self._calendar.hours(clock_in, clock_out) > MAX_SHIFT_HOURS:
                errors.append(f"Duration cannot exceed {MAX_SHIFT_HOURS} hours")
        for index, period in enumerate(breaks, start=1):
            if period.start_time is not None and period.start_time < clock_in:
                errors.append(f"Break {index} starts before clock in time")
            if clock_out is None:
                continue
            if period.end_time is not None and period.end_time > clock_out:
                errors.append(f"Break {index} ends after clock out time")
            elif period.is_open and period.start_time >= clock_out:
                errors.append(f"Break {index} starts after clock out time")
        return errors

    def _close(self, record: AttendanceRecord, at: datetime) -> AttendanceRecord:
        """Give an open record a real end: breaks closed by the clock-out rule."""
        return replace(record, clock_out=at, breaks=self._breaks.close_open_breaks(record.breaks, at))

    # -- lifecycle -------------------------------------------------------------

    def clock_in(
        self,
        user_id: str,
        *,
        time: Optional[datetime] = None,
        notes: Optional[str] = None,
        location: Optional[Location] = None,
    ) -> AttendanceRecord:
        user_id = require_non_empty(user_id, "User ID")
        now = self._calendar.now()

        existing = self._attendance.find_active_for_user(user_id)
        if existing is not None:
            logger.warning("Rejected clock-in for %s: record %s still active", user_id, existing.record_id)
            raise ConflictError(f"User {user_id} already has an active time entry ({existing.record_id})")

        clock_in = self._canonical(time, now)
        future_error = self._future_error(clock_in, now)
        if future_error:
            raise ValidationError(future_error)

        record = self._hydrate(
            AttendanceRecord(
                record_id=self._new_id(),
                user_id=user_id,
                clock_in=clock_in,
                status=AttendanceStatus.ACTIVE,
                notes=notes,
                clock_in_location=location,
                created_at=now,
                updated_at=now,
            ),
            now,
        )
        record = self._attendance.add(record)

        logger.info("User %s clocked in at %s (record %s)", user_id, clock_in.isoformat(), record.record_id)
        self._publish(ChangeEventType.CLOCK_IN, record, record_to_dict(record))
        return record

    def clock_out(
        self,
        record_id: str,
        *,
        time: Optional[datetime] = None,
        location: Optional[Location] = None,
    ) -> AttendanceRecord:
        record = self._load(record_id)
        self._require_active(record, "clock out")

        now = self._calendar.now()
        clock_out = self._canonical(time, now)

        errors = self._entry_errors(record.clock_in, clock_out, record.breaks)
        if errors:
            raise ValidationError(errors)

        updated = self._commit(
            record,
            replace(
                self._close(record, clock_out),
                status=AttendanceStatus.COMPLETED,
                clock_out_location=location,
            ),
            now,
        )

        logger.info(
            "User %s clocked out of %s: %.2fh total (%.2fh overtime)",
            updated.user_id,
            updated.record_id,
            updated.total_hours,
            updated.overtime_hours,
        )
        self._publish(ChangeEventType.CLOCK_OUT, updated, record_to_dict(updated))
        return updated

    def add_break(
        self,
        record_id: str,
        break_type: BreakType | str,
        *,
        duration: Optional[int] = None,
    ) -> BreakResult:
        record = self._load(record_id)
        self._require_active(record, "add a break to")

        now = self._calendar.now()
        existing = self._breaks.auto_complete_breaks(record.breaks, now=now)
        candidate = self._breaks.start_break(break_type, duration)

        result = self._breaks.validate_break(candidate, existing, now=now)
        errors = list(result.errors)
        if candidate.start_time < record.clock_in:
            errors.append("Break cannot start before clock in")
        if errors:
            logger.warning("Rejected %s break on %s: %s", candidate.type.value, record_id, "; ".join(errors))
            raise ValidationError(errors, result.warnings)

        updated = self._commit(record, replace(record, breaks=existing + (candidate,)), now)

        logger.info("Started %s break %s on %s", candidate.type.value, candidate.break_id, record_id)
        self._publish(ChangeEventType.ADD_BREAK, updated, break_to_dict(candidate))
        return BreakResult(record=updated, break_period=candidate, warnings=result.warnings)

    def end_break(self, record_id: str, break_id: str, *, time: Optional[datetime] = None) -> BreakResult:
        record = self._load(record_id)
        self._require_active(record, "end a break on")

        period = record.find_break(break_id)
        if period is None:
            raise NotFoundError(f"Break {break_id} not found on record {record_id}")
        if period.end_time is not None:
            raise InvalidStateError(f"Break {break_id} already ended")

        now = self._calendar.now()
        end = self._canonical(time, now)
        if end > now + self._future_tolerance:
            raise ValidationError("Cannot end a break in the future")

        breaks = self._breaks.auto_complete_breaks(record.breaks, now=end)
        target = next(b for b in breaks if b.break_id == break_id)

        warnings: tuple[str, ...]
        if target.auto_completed:
            closed: BreakPeriod = target
            warnings = (f"Break exceeded its maximum and was closed at {target.end_time.isoformat()}",)
        else:
            closed = self._breaks.end_break(target, end)
            others = tuple(b for b in breaks if b.break_id != break_id)
            result = self._breaks.validate_break(closed, others, now=now)
            if not result.is_valid:
                logger.warning("Rejected end of break %s on %s: %s", break_id, record_id, "; ".join(result.errors))
                raise ValidationError(result.errors, result.warnings)
            warnings = result.warnings

        new_breaks = tuple(closed if b.break_id == break_id else b for b in breaks)
        updated = self._commit(record, replace(record, breaks=new_breaks), now)

        logger.info("Ended break %s on %s after %s minutes", break_id, record_id, closed.duration)
        self._publish(ChangeEventType.END_BREAK, updated, break_to_dict(closed))
        return BreakResult(record=updated, break_period=closed, warnings=warnings)

    def update(
        self,
        record_id: str,
        *,
        clock_in: Optional[datetime] = None,
        clock_out: Optional[datetime] = None,
        notes: Optional[str] = None,
        clock_in_location: Optional[Location] = None,
        clock_out_location: Optional[Location] = None,
    ) -> AttendanceRecord:
        """Manual correction of an ACTIVE or COMPLETED record.

        Only the given fields change. The merged record goes through the
        clock-out entry rules and its totals are recomputed. An ACTIVE record
        keeps its open end; closing it is clock_out's job.
        """
        record = self._load(record_id)
        if record.status.is_terminal:
            raise InvalidStateError(f"Cannot update a {record.status.value} attendance record")
        if clock_out is not None and record.is_open:
            raise InvalidStateError("Cannot set clock out time on an active attendance record; clock out instead")

        now = self._calendar.now()
        changes: dict[str, Any] = {}
        if clock_in is not None:
            changes["clock_in"] = self._calendar.to_local(clock_in)
        if clock_out is not None:
            changes["clock_out"] = self._calendar.to_local(clock_out)
        if notes is not None:
            changes["notes"] = notes
        if clock_in_location is not None:
            changes["clock_in_location"] = clock_in_location
        if clock_out_location is not None:
            changes["clock_out_location"] = clock_out_location
        if not changes:
            raise ValidationError("No changes to apply")

        merged = replace(record, **changes)
        errors = []
        future_error = self._future_error(merged.clock_in, now)
        if future_error:
            errors.append(future_error)
        errors.extend(self._entry_errors(merged.clock_in, merged.clock_out, merged.breaks))
        if errors:
            logger.warning("Rejected update of %s: %s", record_id, "; ".join(errors))
            raise ValidationError(errors)

        updated = self._commit(record, merged, now)

        logger.info("Record %s updated (%s)", record_id, ", ".join(sorted(changes)))
        self._publish(ChangeEventType.UPDATE, updated, record_to_dict(updated))
        return updated

    def approve(self, record_id: str, approver_id: str) -> AttendanceRecord:
        approver_id = require_non_empty(approver_id, "Approver ID")
        record = self._load(record_id)
        if record.status.is_terminal:
            raise InvalidStateError(f"Attendance record {record_id} is already {record.status.value}")

        now = self._calendar.now()
        decided = replace(record, status=AttendanceStatus.APPROVED, approved_by=approver_id, approved_at=now)
        if record.is_open:
            decided = self._close(decided, max(now, record.clock_in))
        updated = self._commit(record, decided, now)

        logger.info("Record %s approved by %s", record_id, approver_id)
        self._publish(ChangeEventType.UPDATE, updated, record_to_dict(updated))
        return updated

    def reject(self, record_id: str, approver_id: str, reason: str) -> AttendanceRecord:
        approver_id = require_non_empty(approver_id, "Approver ID")
        reason = require_non_empty(reason, "Rejection reason")
        record = self._load(record_id)
        if record.status.is_terminal:
            raise InvalidStateError(f"Attendance record {record_id} is already {record.status.value}")

        now = self._calendar.now()
        notes = f"{record.notes or ''}\n\nRejected: {reason}".strip()
        decided = replace(
            record,
            status=AttendanceStatus.REJECTED,
            approved_by=approver_id,
            approved_at=now,
            notes=notes,
        )
        if record.is_open:
            decided = self._close(decided, max(now, record.clock_in))
        updated = self._commit(record, decided, now)

        logger.info("Record %s rejected by %s", record_id, approver_id)
        self._publish(ChangeEventType.UPDATE, updated, record_to_dict(updated))
        return updated

    def soft_delete(self, record_id: str) -> AttendanceRecord:
        record = self._load(record_id)
        if record.status == AttendanceStatus.ACTIVE:
            raise InvalidStateError("Cannot delete an active attendance record; clock out first")

        now = self._calendar.now()
        updated = self._commit(record, replace(record, deleted_at=now), now)

        logger.info("Record %s tombstoned", record_id)
        self._publish(ChangeEventType.UPDATE, updated, record_to_dict(updated))
        return updated

    # -- queries ---------------------------------------------------------------

    def find_by_id(self, record_id: str) -> Optional[AttendanceRecord]:
        record = self._attendance.get_by_id(record_id)
        if record is None or record.is_deleted:
            return None
        return self._hydrate(record)

    def find_by_user_id(self, user_id: str, filters: Optional[AttendanceFilters] = None) -> list[AttendanceRecord]:
        filters = filters or AttendanceFilters()
        now = self._calendar.now()
        records = self._attendance.list_for_user(
            user_id,
            start=self._calendar.to_local(filters.start) if filters.start else None,
            end=self._calendar.to_local(filters.end) if filters.end else None,
            status=filters.status,
            limit=filters.limit,
            offset=filters.offset,
        )
        return [self._hydrate(r, now) for r in records]

    def find_active_entry(self, user_id: str) -> Optional[AttendanceRecord]:
        record = self._attendance.find_active_for_user(user_id)
        return self._hydrate(record) if record else None

    def find_pending_entries(self) -> list[AttendanceRecord]:
        """ACTIVE records opened more than 24 hours ago (forgotten clock-outs)."""
        now = self._calendar.now()
        cutoff = now - timedelta(hours=PENDING_ENTRY_HOURS)
        return [self._hydrate(r, now) for r in self._attendance.list_by_status(AttendanceStatus.ACTIVE) if r.clock_in < cutoff]

    def get_statistics(
        self,
        user_id: str,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> AttendanceStatistics:
        now = self._calendar.now()
        records = self._attendance.list_for_user(
            user_id,
            start=self._calendar.to_local(start) if start else None,
            end=self._calendar.to_local(end) if end else None,
        )
        return self._stats.build([self._read_view(r, now) for r in records], now=now)

    def _progress_records(self, user_id: str, start: datetime, end: datetime, now: datetime) -> list[AttendanceRecord]:
        records = [
            r
            for r in self._attendance.list_for_user(user_id, start=start, end=end)
            if r.status != AttendanceStatus.REJECTED
        ]
        active = self._attendance.find_active_for_user(user_id)
        if active is not None and all(r.record_id != active.record_id for r in records):
            records.append(active)
        return [self._read_view(r, now) for r in records]

    def get_today_progress(self, user_id: str) -> Optional[DailyProgress]:
        now = self._calendar.now()
        records = self._progress_records(user_id, self._calendar.start_of_day(now), self._calendar.end_of_day(now), now)
        if not records:
            return None
        return self._stats.summarize_day(now.date(), records, now=now)

    def get_weekly_progress(self, user_id: str) -> WeeklyProgress:
        now = self._calendar.now()
        records = self._progress_records(
            user_id, self._calendar.start_of_week(now), self._calendar.end_of_week(now), now
        )
        return self._stats.build_week(records, now=now)

    def get_projected_completion_time(self, user_id: str) -> Optional[datetime]:
        active = self._attendance.find_active_for_user(user_id)
        if active is None:
            return None
        now = self._calendar.now()
        return self._stats.project_completion(self._read_view(active, now), now=now)
