"""Record <-> document mapping shared by every storage backend.

Timestamps serialize as ISO-8601 strings carrying their offset. On load every
timestamp is expressed in the canonical offset; one stored without an offset
is read as canonical wall-clock time.
"""

from __future__ import annotations

from typing import Any, Optional

from ..breaks.model import BreakPeriod
from ..common.datetime_utils import parse_iso_datetime, to_iso
from ..core.constants import DEFAULT_UTC_OFFSET
from ..core.enums import AttendanceStatus, BreakType
from ..timekeeping.offset import CanonicalOffset
from .model import AttendanceRecord, Location

DEFAULT_OFFSET = CanonicalOffset.parse(DEFAULT_UTC_OFFSET)


def location_to_dict(value: Optional[Location]) -> Optional[dict[str, Any]]:
    if value is None:
        return None
    return {"latitude": value.latitude, "longitude": value.longitude, "address": value.address}


def location_from_dict(data: Optional[dict[str, Any]]) -> Optional[Location]:
    if not data:
        return None
    return Location(
        latitude=float(data["latitude"]),
        longitude=float(data["longitude"]),
        address=str(data.get("address") or ""),
    )


def break_to_dict(period: BreakPeriod) -> dict[str, Any]:
    return {
        "id": period.break_id,
        "type": period.type.value,
        "startTime": to_iso(period.start_time),
        "endTime": to_iso(period.end_time),
        "duration": period.duration,
        "isPaid": period.is_paid,
        "plannedDuration": period.planned_duration,
        "autoCompleted": period.auto_completed,
    }


def break_from_dict(data: dict[str, Any], offset: Optional[CanonicalOffset] = None) -> BreakPeriod:
    offset = offset or DEFAULT_OFFSET
    return BreakPeriod(
        break_id=str(data["id"]),
        type=BreakType(data["type"]),
        start_time=parse_iso_datetime(data.get("startTime"), offset),
        end_time=parse_iso_datetime(data.get("endTime"), offset),
        duration=int(data["duration"]) if data.get("duration") is not None else None,
        is_paid=bool(data.get("isPaid", False)),
        planned_duration=int(data["plannedDuration"]) if data.get("plannedDuration") is not None else None,
        auto_completed=bool(data.get("autoCompleted", False)),
    )


def record_to_dict(record: AttendanceRecord) -> dict[str, Any]:
    return {
        "id": record.record_id,
        "userId": record.user_id,
        "clockIn": to_iso(record.clock_in),
        "clockOut": to_iso(record.clock_out),
        "status": record.status.value,
        "breaks": [break_to_dict(b) for b in record.breaks],
        "totalHours": record.total_hours,
        "regularHours": record.regular_hours,
        "overtimeHours": record.overtime_hours,
        "isLate": record.is_late,
        "isEarlyDeparture": record.is_early_departure,
        "approvedBy": record.approved_by,
        "approvedAt": to_iso(record.approved_at),
        "notes": record.notes,
        "clockInLocation": location_to_dict(record.clock_in_location),
        "clockOutLocation": location_to_dict(record.clock_out_location),
        "createdAt": to_iso(record.created_at),
        "updatedAt": to_iso(record.updated_at),
        "deletedAt": to_iso(record.deleted_at),
        "version": record.version,
    }


def record_from_dict(data: dict[str, Any], offset: Optional[CanonicalOffset] = None) -> AttendanceRecord:
    offset = offset or DEFAULT_OFFSET
    clock_in = parse_iso_datetime(data.get("clockIn"), offset)
    if clock_in is None:
        raise ValueError(f"Attendance document {data.get('id')!r} has no clockIn")

    return AttendanceRecord(
        record_id=str(data["id"]),
        user_id=str(data["userId"]),
        clock_in=clock_in,
        clock_out=parse_iso_datetime(data.get("clockOut"), offset),
        status=AttendanceStatus(data["status"]),
        breaks=tuple(break_from_dict(b, offset) for b in data.get("breaks") or []),
        total_hours=float(data.get("totalHours") or 0.0),
        regular_hours=float(data.get("regularHours") or 0.0),
        overtime_hours=float(data.get("overtimeHours") or 0.0),
        is_late=bool(data.get("isLate", False)),
        is_early_departure=bool(data.get("isEarlyDeparture", False)),
        approved_by=data.get("approvedBy"),
        approved_at=parse_iso_datetime(data.get("approvedAt"), offset),
        notes=data.get("notes"),
        clock_in_location=location_from_dict(data.get("clockInLocation")),
        clock_out_location=location_from_dict(data.get("clockOutLocation")),
        created_at=parse_iso_datetime(data.get("createdAt"), offset),
        updated_at=parse_iso_datetime(data.get("updatedAt"), offset),
        deleted_at=parse_iso_datetime(data.get("deletedAt"), offset),
        version=int(data.get("version") or 1),
    )
