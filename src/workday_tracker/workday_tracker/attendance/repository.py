from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    """CRUD contract for attendance records.

    Implementations enforce the write-time checks: ``add`` refuses a second
    ACTIVE record for a user and ``update`` refuses a stale version; both
    raise ``ConflictError``.
    """

    def get_by_id(self, record_id: str) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def list_for_user(
        self,
        user_id: str,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        status: Optional[AttendanceStatus] = None,
        limit: Optional[int] = None,
        offset: int = 0,
        include_deleted: bool = False,
    ) -> Sequence[AttendanceRecord]:
        """Records newest clock-in first."""

        raise NotImplementedError

    def list_by_status(self, status: AttendanceStatus) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def find_active_for_user(self, user_id: str) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def add(self, record: AttendanceRecord) -> AttendanceRecord:
        raise NotImplementedError

    def update(self, record: AttendanceRecord, *, expected_version: int) -> AttendanceRecord:
        raise NotImplementedError
