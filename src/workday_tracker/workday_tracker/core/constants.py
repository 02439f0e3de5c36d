"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

WORK_DAY_HOURS = 8
MAX_SHIFT_HOURS = 24
PENDING_ENTRY_HOURS = 24
DEFAULT_CLOCK_IN_FUTURE_TOLERANCE_MINUTES = 5

LATE_AFTER_HOUR = 9
EARLY_DEPARTURE_BEFORE_HOUR = 17

DEFAULT_UTC_OFFSET = "+08:00"
MAX_UTC_OFFSET_MINUTES = 14 * 60

BUSINESS_DAY_START_HOUR = 9
BUSINESS_DAY_END_HOUR = 18
LUNCH_START_HOUR = 12
LUNCH_END_HOUR = 13

# ISO weekday numbers (Monday=1 .. Sunday=7)
WORKING_WEEKDAYS = (1, 2, 3, 4, 5)

# Break planning suggestions
SUGGESTED_FIRST_BREAK_AFTER_MINUTES = 90
SUGGESTED_BREAK_INTERVAL_MINUTES = 120
SUGGESTED_BREAK_CLEARANCE_MINUTES = 30
SUGGESTED_SHORT_BREAKS_MAX = 4
SUGGESTED_BREAKS_UNTIL_HOUR = 17
