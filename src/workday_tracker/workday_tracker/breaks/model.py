from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..core.enums import BreakType


@dataclass(frozen=True)
class BreakPeriod:
    """Bounded pause nested inside one attendance record.

    Open while ``end_time`` is None; once closed it is never mutated again.
    """

    break_id: str
    type: BreakType
    start_time: Optional[datetime]
    end_time: Optional[datetime] = None
    duration: Optional[int] = None
    is_paid: bool = False
    planned_duration: Optional[int] = None
    auto_completed: bool = False

    @property
    def is_open(self) -> bool:
        return self.start_time is not None and self.end_time is None


@dataclass(frozen=True)
class BreakTypeConfig:
    type: BreakType
    name: str
    default_duration: int
    is_paid: bool
    min_duration: int
    max_duration: int
    max_per_day: int
    description: str = ""


@dataclass(frozen=True)
class BreakValidationResult:
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    suggested_duration: Optional[int] = None

    @property
    def is_valid(self) -> bool:
        return not self.errors


@dataclass(frozen=True)
class BreakStatistics:
    total_breaks: int = 0
    total_break_minutes: int = 0
    paid_break_minutes: int = 0
    unpaid_break_minutes: int = 0
    average_break_minutes: float = 0.0
    longest_break: Optional[BreakPeriod] = None
    shortest_break: Optional[BreakPeriod] = None
    break_efficiency: float = 100.0
    by_type: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class BreakSuggestions:
    lunch: Optional[datetime] = None
    short_breaks: tuple[datetime, ...] = ()
