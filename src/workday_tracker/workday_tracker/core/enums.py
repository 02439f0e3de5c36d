from __future__ import annotations

from enum import Enum


class AttendanceStatus(str, Enum):
    """Lifecycle state of an attendance record."""

    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"

    @property
    def is_terminal(self) -> bool:
        return self in (AttendanceStatus.APPROVED, AttendanceStatus.REJECTED)


class BreakType(str, Enum):
    LUNCH = "lunch"
    SHORT_BREAK = "short_break"
    EXTENDED_BREAK = "extended_break"


class ChangeEventType(str, Enum):
    """Tags carried on the cross-session change channel."""

    CLOCK_IN = "CLOCK_IN"
    CLOCK_OUT = "CLOCK_OUT"
    ADD_BREAK = "ADD_BREAK"
    END_BREAK = "END_BREAK"
    UPDATE = "UPDATE"


class ProgressStatus(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    EXCEEDED = "exceeded"
