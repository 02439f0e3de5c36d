from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Optional, Sequence

import mysql.connector

from ..core.enums import AttendanceStatus
from ..core.exceptions import ConflictError, NotFoundError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, load_json_column, to_utc_naive
from ..timekeeping.offset import CanonicalOffset
from .model import AttendanceRecord
from .repository import AttendanceRepository
from .serialization import record_from_dict, record_to_dict

logger = logging.getLogger(__name__)

_COLUMNS = "record_id, user_id, status, clock_in_utc, clock_out_utc, deleted_at_utc, version, document"


class MySQLAttendanceRepository(AttendanceRepository):
    """Stores the full record as a JSON document plus indexed columns.

    The generated ``active_user_id`` column carries a UNIQUE index, so two
    writers racing to clock in the same user cannot both succeed.
    """

    def __init__(self, conn_factory: DatabaseConnection, *, offset: Optional[CanonicalOffset] = None):
        self._conn_factory = conn_factory
        self._offset = offset

    def _to_record(self, row: dict[str, Any]) -> AttendanceRecord:
        return record_from_dict(load_json_column(row["document"]), self._offset)

    @staticmethod
    def _params(record: AttendanceRecord) -> tuple:
        return (
            record.status.value,
            to_utc_naive(record.clock_in),
            to_utc_naive(record.clock_out),
            to_utc_naive(record.deleted_at),
            int(record.version),
            json.dumps(record_to_dict(record)),
        )

    def get_by_id(self, record_id: str) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_records WHERE record_id=%s", (record_id,))
            r = fetchone(cur)
            return self._to_record(r) if r else None

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
        clauses = ["user_id=%s"]
        params: list[object] = [user_id]

        if not include_deleted:
            clauses.append("deleted_at_utc IS NULL")
        if start is not None:
            clauses.append("clock_in_utc >= %s")
            params.append(to_utc_naive(start))
        if end is not None:
            clauses.append("clock_in_utc <= %s")
            params.append(to_utc_naive(end))
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)

        sql = f"SELECT {_COLUMNS} FROM attendance_records WHERE {' AND '.join(clauses)} ORDER BY clock_in_utc DESC"
        if limit is not None:
            sql += " LIMIT %s OFFSET %s"
            params.extend([int(limit), int(offset)])
        elif offset:
            # MySQL has no OFFSET without LIMIT
            sql += " LIMIT 18446744073709551615 OFFSET %s"
            params.append(int(offset))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [self._to_record(r) for r in fetchall(cur)]

    def list_by_status(self, status: AttendanceStatus) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE status=%s AND deleted_at_utc IS NULL
                ORDER BY clock_in_utc ASC
                """,
                (status.value,),
            )
            return [self._to_record(r) for r in fetchall(cur)]

    def find_active_for_user(self, user_id: str) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_records WHERE active_user_id=%s", (user_id,))
            r = fetchone(cur)
            return self._to_record(r) if r else None

    def add(self, record: AttendanceRecord) -> AttendanceRecord:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_records(
                        record_id, user_id, status, clock_in_utc, clock_out_utc, deleted_at_utc, version, document
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (record.record_id, record.user_id) + self._params(record),
                )
        except mysql.connector.errors.IntegrityError as exc:
            logger.warning("Rejected insert of %s for user %s: %s", record.record_id, record.user_id, exc)
            raise ConflictError(f"User {record.user_id} already has an active record") from exc
        return record

    def update(self, record: AttendanceRecord, *, expected_version: int) -> AttendanceRecord:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    UPDATE attendance_records
                    SET status=%s, clock_in_utc=%s, clock_out_utc=%s, deleted_at_utc=%s, version=%s, document=%s
                    WHERE record_id=%s AND version=%s
                    """,
                    self._params(record) + (record.record_id, int(expected_version)),
                )
                if cur.rowcount > 0:
                    return record

                cur.execute("SELECT version FROM attendance_records WHERE record_id=%s", (record.record_id,))
                current = fetchone(cur)
        except mysql.connector.errors.IntegrityError as exc:
            raise ConflictError(f"User {record.user_id} already has an active record") from exc

        if current is None:
            raise NotFoundError(f"Attendance record {record.record_id} not found")
        raise ConflictError(
            f"Attendance record {record.record_id} changed concurrently "
            f"(expected version {expected_version}, found {current['version']})"
        )
