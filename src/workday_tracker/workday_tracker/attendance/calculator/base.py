from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import datetime

from ..model import AttendanceRecord, AttendanceTotals


class HoursCalculator(ABC):
    """Calculator interface (Strategy Pattern for attendance totals)."""

    @abstractmethod
    def compute(self, record: AttendanceRecord, *, now: datetime) -> AttendanceTotals:
        raise NotImplementedError

    def apply(self, record: AttendanceRecord, *, now: datetime) -> AttendanceRecord:
        totals = self.compute(record, now=now)
        return replace(
            record,
            total_hours=totals.total_hours,
            regular_hours=totals.regular_hours,
            overtime_hours=totals.overtime_hours,
            is_late=totals.is_late,
            is_early_departure=totals.is_early_departure,
        )
