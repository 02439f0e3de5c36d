from __future__ import annotations

from datetime import date, datetime

import pytest

from src.workday_tracker.workday_tracker.attendance.memory_repository import InMemoryAttendanceRepository
from src.workday_tracker.workday_tracker.attendance.service import AttendanceService
from src.workday_tracker.workday_tracker.breaks.service import BreakAccounting
from src.workday_tracker.workday_tracker.events.bus import RecordingEventBus
from src.workday_tracker.workday_tracker.timekeeping.clock import FixedClock
from src.workday_tracker.workday_tracker.timekeeping.offset import CanonicalOffset
from src.workday_tracker.workday_tracker.timekeeping.work_calendar import WorkCalendar

MANILA = CanonicalOffset(8 * 60)


@pytest.fixture
def offset() -> CanonicalOffset:
    return MANILA


@pytest.fixture
def fixed_now() -> datetime:
    # Monday
    return MANILA.localize(datetime(2025, 3, 3, 9, 0))


@pytest.fixture
def clock(fixed_now) -> FixedClock:
    return FixedClock(fixed_now, MANILA)


@pytest.fixture
def calendar(clock) -> WorkCalendar:
    return WorkCalendar(MANILA, clock=clock, holidays=[date(2025, 12, 25)])


@pytest.fixture
def bus() -> RecordingEventBus:
    return RecordingEventBus(source="test-session")


@pytest.fixture
def repo() -> InMemoryAttendanceRepository:
    return InMemoryAttendanceRepository()


@pytest.fixture
def break_accounting(calendar) -> BreakAccounting:
    counter = iter(range(1, 10_000))
    return BreakAccounting(calendar, id_factory=lambda: f"break_{next(counter)}")


@pytest.fixture
def service(repo, calendar, break_accounting, bus) -> AttendanceService:
    counter = iter(range(1, 10_000))
    return AttendanceService(
        repo,
        calendar,
        break_accounting,
        bus,
        id_factory=lambda: f"time_entry_{next(counter)}",
    )


@pytest.fixture
def at(clock):
    """Move the clock to HH:MM on the fixture day (or another day) and return it."""

    def _at(hour: int, minute: int = 0, *, day: date = date(2025, 3, 3)) -> datetime:
        moment = MANILA.localize(datetime(day.year, day.month, day.day, hour, minute))
        clock.set(moment)
        return moment

    return _at
