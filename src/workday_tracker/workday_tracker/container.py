from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Optional

from .attendance.memory_repository import InMemoryAttendanceRepository
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .breaks.service import BreakAccounting
from .core.constants import DEFAULT_CLOCK_IN_FUTURE_TOLERANCE_MINUTES, DEFAULT_UTC_OFFSET
from .database.connection import DBConfig, DatabaseConnection
from .events.bus import EventBus, InMemoryEventBus
from .timekeeping.clock import Clock, SystemClock
from .timekeeping.offset import CanonicalOffset
from .timekeeping.work_calendar import WorkCalendar


@dataclass(frozen=True)
class Container:
    offset: CanonicalOffset
    clock: Clock
    calendar: WorkCalendar
    attendance_repo: AttendanceRepository
    event_bus: EventBus

    break_accounting: BreakAccounting
    attendance_service: AttendanceService


def build_container(
    *,
    storage_backend: str = "memory",
    db_config: Optional[dict] = None,
    utc_offset: str = DEFAULT_UTC_OFFSET,
    holidays: Iterable[date] = (),
    clock_in_future_tolerance_minutes: int = DEFAULT_CLOCK_IN_FUTURE_TOLERANCE_MINUTES,
    clock: Optional[Clock] = None,
    event_bus: Optional[EventBus] = None,
    attendance_repo: Optional[AttendanceRepository] = None,
) -> Container:
    offset = CanonicalOffset.parse(utc_offset)
    clock = clock or SystemClock(offset)
    calendar = WorkCalendar(offset, clock=clock, holidays=holidays)

    if attendance_repo is None:
        if storage_backend == "mysql":
            if not db_config:
                raise ValueError("storage_backend='mysql' requires db_config")
            attendance_repo = MySQLAttendanceRepository(
                DatabaseConnection(DBConfig.from_dict(db_config)), offset=offset
            )
        elif storage_backend == "memory":
            attendance_repo = InMemoryAttendanceRepository(offset=offset)
        else:
            raise ValueError(f"Unknown storage backend: {storage_backend!r}")

    event_bus = event_bus or InMemoryEventBus()
    break_accounting = BreakAccounting(calendar)
    attendance_service = AttendanceService(
        attendance_repo,
        calendar,
        break_accounting,
        event_bus,
        clock_in_future_tolerance=timedelta(minutes=int(clock_in_future_tolerance_minutes)),
    )

    return Container(
        offset=offset,
        clock=clock,
        calendar=calendar,
        attendance_repo=attendance_repo,
        event_bus=event_bus,
        break_accounting=break_accounting,
        attendance_service=attendance_service,
    )
