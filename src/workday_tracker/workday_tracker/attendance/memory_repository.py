from __future__ import annotations

import json
import logging
import threading
from datetime import datetime
from typing import Any, Iterable, Optional, Sequence

from ..core.enums import AttendanceStatus
from ..core.exceptions import ConflictError, NotFoundError
from ..timekeeping.offset import CanonicalOffset
from .model import AttendanceRecord
from .repository import AttendanceRepository
from .serialization import record_from_dict, record_to_dict

logger = logging.getLogger(__name__)


class InMemoryAttendanceRepository(AttendanceRepository):
    """Process-local store keeping each record as a serialized JSON document.

    Records go through the same ISO-8601 mapping as the database backend, so
    callers never share mutable state with the store, and loaded timestamps are
    expressed in ``offset``. One lock serializes the verify-then-write checks.
    """

    def __init__(
        self,
        documents: Optional[Iterable[dict[str, Any]]] = None,
        *,
        offset: Optional[CanonicalOffset] = None,
    ):
        self._offset = offset
        self._lock = threading.Lock()
        self._rows: dict[str, str] = {}
        if documents:
            self.import_documents(documents)

    # -- full collection ---------------------------------------------------------

    def export_documents(self) -> list[dict[str, Any]]:
        with self._lock:
            return [json.loads(raw) for raw in self._rows.values()]

    def import_documents(self, documents: Iterable[dict[str, Any]]) -> None:
        loaded = {}
        for doc in documents:
            record = record_from_dict(doc, self._offset)
            loaded[record.record_id] = json.dumps(record_to_dict(record))
        with self._lock:
            self._rows = loaded

    # -- reads ---------------------------------------------------------------

    def _all(self) -> list[AttendanceRecord]:
        return [record_from_dict(json.loads(raw), self._offset) for raw in self._rows.values()]

    def get_by_id(self, record_id: str) -> Optional[AttendanceRecord]:
        with self._lock:
            raw = self._rows.get(record_id)
        return record_from_dict(json.loads(raw), self._offset) if raw else None

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
        with self._lock:
            items = [r for r in self._all() if r.user_id == user_id]

        if not include_deleted:
            items = [r for r in items if not r.is_deleted]
        if start is not None:
            items = [r for r in items if r.clock_in >= start]
        if end is not None:
            items = [r for r in items if r.clock_in <= end]
        if status is not None:
            items = [r for r in items if r.status == status]

        items.sort(key=lambda r: r.clock_in, reverse=True)
        if limit is not None:
            return items[offset : offset + limit]
        return items[offset:]

    def list_by_status(self, status: AttendanceStatus) -> Sequence[AttendanceRecord]:
        with self._lock:
            return [r for r in self._all() if r.status == status and not r.is_deleted]

    def find_active_for_user(self, user_id: str) -> Optional[AttendanceRecord]:
        with self._lock:
            return self._active_for_user(user_id)

    def _active_for_user(self, user_id: str) -> Optional[AttendanceRecord]:
        for r in self._all():
            if r.user_id == user_id and r.status == AttendanceStatus.ACTIVE and not r.is_deleted:
                return r
        return None

    # -- writes ----------------------------------------------------------------

    def add(self, record: AttendanceRecord) -> AttendanceRecord:
        raw = json.dumps(record_to_dict(record))
        with self._lock:
            if record.record_id in self._rows:
                raise ConflictError(f"Attendance record {record.record_id} already exists")
            if record.status == AttendanceStatus.ACTIVE:
                active = self._active_for_user(record.user_id)
                if active is not None:
                    raise ConflictError(f"User {record.user_id} already has an active record ({active.record_id})")
            self._rows[record.record_id] = raw
        logger.debug("Stored attendance record %s", record.record_id)
        return record

    def update(self, record: AttendanceRecord, *, expected_version: int) -> AttendanceRecord:
        raw = json.dumps(record_to_dict(record))
        with self._lock:
            current_raw = self._rows.get(record.record_id)
            if current_raw is None:
                raise NotFoundError(f"Attendance record {record.record_id} not found")

            current = record_from_dict(json.loads(current_raw), self._offset)
            if current.version != expected_version:
                raise ConflictError(
                    f"Attendance record {record.record_id} changed concurrently "
                    f"(expected version {expected_version}, found {current.version})"
                )
            if record.status == AttendanceStatus.ACTIVE:
                active = self._active_for_user(record.user_id)
                if active is not None and active.record_id != record.record_id:
                    raise ConflictError(f"User {record.user_id} already has an active record ({active.record_id})")

            self._rows[record.record_id] = raw
        return record
