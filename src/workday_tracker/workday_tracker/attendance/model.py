from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..breaks.model import BreakPeriod
from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class Location:
    latitude: float
    longitude: float
    address: str = ""


@dataclass(frozen=True)
class AttendanceRecord:
    """One user's single workday session.

    The hour totals and the late/early flags are derived values; the service
    recomputes them on every write and every read, so they are never edited
    by hand.
    """

    record_id: str
    user_id: str
    clock_in: datetime
    status: AttendanceStatus
    clock_out: Optional[datetime] = None
    breaks: tuple[BreakPeriod, ...] = ()
    total_hours: float = 0.0
    regular_hours: float = 0.0
    overtime_hours: float = 0.0
    is_late: bool = False
    is_early_departure: bool = False
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    notes: Optional[str] = None
    clock_in_location: Optional[Location] = None
    clock_out_location: Optional[Location] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None
    version: int = 1

    @property
    def is_open(self) -> bool:
        return self.clock_out is None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def find_break(self, break_id: str) -> Optional[BreakPeriod]:
        for period in self.breaks:
            if period.break_id == break_id:
                return period
        return None


@dataclass(frozen=True)
class AttendanceTotals:
    total_hours: float
    regular_hours: float
    overtime_hours: float
    is_late: bool
    is_early_departure: bool


@dataclass(frozen=True)
class AttendanceFilters:
    """Query filters for a user's records; date bounds apply to clock-in."""

    start: Optional[datetime] = None
    end: Optional[datetime] = None
    status: Optional[AttendanceStatus] = None
    limit: Optional[int] = None
    offset: int = 0


@dataclass(frozen=True)
class BreakResult:
    """Outcome of a break mutation: the saved record plus non-blocking warnings."""

    record: AttendanceRecord
    break_period: BreakPeriod
    warnings: tuple[str, ...] = ()
