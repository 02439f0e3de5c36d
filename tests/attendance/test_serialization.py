from __future__ import annotations

import json
from datetime import datetime, timedelta

import pytest

from src.workday_tracker.workday_tracker.attendance.calculator.standard_calculator import StandardHoursCalculator
from src.workday_tracker.workday_tracker.attendance.model import AttendanceRecord, Location
from src.workday_tracker.workday_tracker.attendance.serialization import record_from_dict, record_to_dict
from src.workday_tracker.workday_tracker.breaks.model import BreakPeriod
from src.workday_tracker.workday_tracker.core.enums import AttendanceStatus, BreakType
from src.workday_tracker.workday_tracker.timekeeping.offset import CanonicalOffset


@pytest.fixture
def record(offset, calendar):
    start = offset.localize(datetime(2025, 3, 3, 9, 0))
    record = AttendanceRecord(
        record_id="time_entry_1",
        user_id="u1",
        clock_in=start,
        clock_out=start + timedelta(hours=9, minutes=20),
        status=AttendanceStatus.COMPLETED,
        breaks=(
            BreakPeriod(
                break_id="break_1",
                type=BreakType.LUNCH,
                start_time=start + timedelta(hours=3),
                end_time=start + timedelta(hours=4),
                duration=60,
                planned_duration=60,
            ),
            BreakPeriod(
                break_id="break_2",
                type=BreakType.SHORT_BREAK,
                start_time=start + timedelta(hours=6),
                end_time=start + timedelta(hours=6, minutes=30),
                duration=30,
                is_paid=True,
                auto_completed=True,
            ),
        ),
        notes="Client visit",
        clock_in_location=Location(14.5995, 120.9842, "Manila office"),
        created_at=start,
        updated_at=start,
        version=3,
    )
    return StandardHoursCalculator(calendar).apply(record, now=start + timedelta(days=1))


def test_document_uses_camel_case_keys_and_iso_timestamps(record):
    doc = record_to_dict(record)

    assert doc["id"] == "time_entry_1"
    assert doc["userId"] == "u1"
    assert doc["clockIn"] == "2025-03-03T09:00:00+08:00"
    assert doc["breaks"][1]["autoCompleted"] is True
    assert doc["clockInLocation"] == {"latitude": 14.5995, "longitude": 120.9842, "address": "Manila office"}
    assert doc["clockOutLocation"] is None
    assert doc["version"] == 3


def test_reloaded_record_equals_original_and_recomputes_the_same_totals(record, calendar):
    reloaded = record_from_dict(json.loads(json.dumps(record_to_dict(record))))

    assert reloaded == record
    assert reloaded.clock_in.utcoffset() == timedelta(hours=8)

    calc = StandardHoursCalculator(calendar)
    now = record.clock_out + timedelta(hours=1)
    assert calc.compute(reloaded, now=now) == calc.compute(record, now=now)
    assert reloaded.total_hours == pytest.approx(9 + 20 / 60 - 1.5)


def test_missing_clock_in_is_rejected():
    with pytest.raises(ValueError):
        record_from_dict({"id": "time_entry_9", "userId": "u1", "status": "ACTIVE"})


def test_optional_fields_default_when_absent():
    record = record_from_dict(
        {"id": "time_entry_9", "userId": "u1", "status": "ACTIVE", "clockIn": "2025-03-03T09:00:00+08:00"}
    )

    assert record.breaks == ()
    assert record.clock_out is None
    assert record.version == 1
    assert record.clock_in_location is None


def test_timestamps_without_offset_load_as_canonical_wall_clock_time(offset):
    record = record_from_dict(
        {
            "id": "time_entry_9",
            "userId": "u1",
            "status": "COMPLETED",
            "clockIn": "2025-03-03T09:00:00",
            "clockOut": "2025-03-03T17:00:00",
            "breaks": [{"id": "break_9", "type": "lunch", "startTime": "2025-03-03T12:00:00"}],
        }
    )

    assert record.clock_in == offset.localize(datetime(2025, 3, 3, 9, 0))
    assert record.clock_in.utcoffset() == timedelta(hours=8)
    assert record.clock_out.utcoffset() == timedelta(hours=8)
    assert record.breaks[0].start_time.utcoffset() == timedelta(hours=8)
    assert record.clock_out - record.clock_in == timedelta(hours=8)


def test_timestamps_with_another_offset_are_converted_on_load():
    record = record_from_dict(
        {"id": "time_entry_9", "userId": "u1", "status": "ACTIVE", "clockIn": "2025-03-03T09:00:00+00:00"}
    )

    assert (record.clock_in.hour, record.clock_in.utcoffset()) == (17, timedelta(hours=8))


def test_explicit_offset_is_used_for_loading():
    utc = CanonicalOffset(0)

    record = record_from_dict(
        {"id": "time_entry_9", "userId": "u1", "status": "ACTIVE", "clockIn": "2025-03-03T09:00:00"}, utc
    )

    assert (record.clock_in.hour, record.clock_in.utcoffset()) == (9, timedelta(0))
