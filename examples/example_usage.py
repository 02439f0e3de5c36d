"""Example: drive one workday through the service layer (in-memory backend, fixed clock)."""

from datetime import datetime, timedelta

from src.workday_tracker.workday_tracker.container import build_container
from src.workday_tracker.workday_tracker.core.enums import BreakType
from src.workday_tracker.workday_tracker.logging_config import configure_logging
from src.workday_tracker.workday_tracker.timekeeping.clock import FixedClock
from src.workday_tracker.workday_tracker.timekeeping.offset import CanonicalOffset


def main():
    configure_logging("INFO")
    clock = FixedClock(datetime(2025, 3, 3, 9, 0), CanonicalOffset.parse("+08:00"))
    container = build_container(clock=clock)
    service = container.attendance_service

    container.event_bus.subscribe(lambda event: print("event:", event.type.value, event.record_id))

    record = service.clock_in("user-1")
    clock.advance(hours=3)
    lunch = service.add_break(record.record_id, BreakType.LUNCH)
    clock.advance(hours=1)
    service.end_break(record.record_id, lunch.break_period.break_id)
    clock.advance(timedelta(hours=5))
    record = service.clock_out(record.record_id)

    print(f"total={record.total_hours:.2f} regular={record.regular_hours:.2f} overtime={record.overtime_hours:.2f}")
    print(service.get_statistics("user-1"))


if __name__ == "__main__":
    main()
