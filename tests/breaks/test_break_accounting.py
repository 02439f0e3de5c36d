from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from src.workday_tracker.workday_tracker.breaks.model import BreakPeriod
from src.workday_tracker.workday_tracker.core.enums import BreakType
from src.workday_tracker.workday_tracker.core.exceptions import InvalidStateError, ValidationError


@pytest.fixture
def hm(offset):
    def _hm(hour: int, minute: int = 0, second: int = 0, *, day: int = 3) -> datetime:
        return offset.localize(datetime(2025, 3, day, hour, minute, second))

    return _hm


@pytest.fixture
def make_break(hm):
    counter = iter(range(100, 10_000))

    def _make(break_type, start, end=None, **kwargs) -> BreakPeriod:
        duration = None
        if end is not None:
            duration = round((end - start).total_seconds() / 60)
        return BreakPeriod(
            break_id=f"break_{next(counter)}",
            type=break_type,
            start_time=start,
            end_time=end,
            duration=duration,
            **kwargs,
        )

    return _make


def test_catalog_lists_all_three_types(break_accounting):
    configs = {c.type: c for c in break_accounting.get_all_break_types()}

    assert set(configs) == {BreakType.LUNCH, BreakType.SHORT_BREAK, BreakType.EXTENDED_BREAK}
    assert configs[BreakType.SHORT_BREAK].is_paid
    assert configs[BreakType.LUNCH].max_duration == 120
    assert break_accounting.get_break_type_config("extended_break").max_per_day == 2
    assert break_accounting.get_break_type_config("nap") is None


def test_start_break_opens_period_at_now(break_accounting, clock):
    period = break_accounting.start_break("lunch", planned_duration=45)

    assert period.break_id == "break_1"
    assert period.type == BreakType.LUNCH
    assert period.start_time == clock.now()
    assert period.is_open
    assert not period.is_paid
    assert period.planned_duration == 45


def test_start_break_rejects_unknown_type(break_accounting):
    with pytest.raises(ValidationError) as exc:
        break_accounting.start_break("nap")
    assert exc.value.errors == ["Invalid break type: nap"]


def test_end_break_rounds_minutes_half_up(break_accounting, make_break, hm):
    period = make_break(BreakType.SHORT_BREAK, hm(10, 0))

    assert break_accounting.end_break(period, hm(10, 7, 30)).duration == 8
    assert break_accounting.end_break(period, hm(10, 7, 29)).duration == 7


def test_end_break_refuses_closed_or_unstarted_periods(break_accounting, make_break, hm):
    closed = make_break(BreakType.SHORT_BREAK, hm(10, 0), hm(10, 10))
    with pytest.raises(InvalidStateError):
        break_accounting.end_break(closed, hm(10, 20))

    unstarted = BreakPeriod(break_id="break_x", type=BreakType.SHORT_BREAK, start_time=None)
    with pytest.raises(InvalidStateError):
        break_accounting.end_break(unstarted, hm(10, 20))


def test_touching_intervals_do_not_overlap(break_accounting, make_break, hm):
    a = make_break(BreakType.SHORT_BREAK, hm(10, 0), hm(10, 15))
    b = make_break(BreakType.SHORT_BREAK, hm(10, 15), hm(10, 30))

    assert not break_accounting.are_overlapping(a, b)
    assert not break_accounting.are_overlapping(b, a)


def test_intersecting_intervals_overlap(break_accounting, make_break, hm):
    a = make_break(BreakType.SHORT_BREAK, hm(9, 58), hm(10, 5))
    b = make_break(BreakType.SHORT_BREAK, hm(10, 0), hm(10, 10))

    assert break_accounting.are_overlapping(a, b)


def test_open_break_overlaps_up_to_now(break_accounting, make_break, hm):
    open_break = make_break(BreakType.SHORT_BREAK, hm(10, 0))
    later = make_break(BreakType.SHORT_BREAK, hm(10, 20), hm(10, 25))

    assert break_accounting.are_overlapping(open_break, later, now=hm(10, 30))
    assert not break_accounting.are_overlapping(open_break, later, now=hm(10, 20))


def test_break_of_exactly_max_duration_validates(break_accounting, make_break, hm):
    period = make_break(BreakType.SHORT_BREAK, hm(14, 0), hm(14, 30))

    result = break_accounting.validate_break(period, [], now=hm(15, 0))

    assert result.is_valid
    assert result.suggested_duration == 15


def test_break_one_minute_over_max_fails(break_accounting, make_break, hm):
    period = make_break(BreakType.SHORT_BREAK, hm(14, 0), hm(14, 31))

    result = break_accounting.validate_break(period, [], now=hm(15, 0))

    assert result.errors == ("Break exceeds maximum duration of 30 minutes",)


def test_short_break_below_minimum_only_warns(break_accounting, make_break, hm):
    period = make_break(BreakType.SHORT_BREAK, hm(14, 0), hm(14, 3))

    result = break_accounting.validate_break(period, [], now=hm(15, 0))

    assert result.is_valid
    assert "Break is shorter than recommended minimum of 5 minutes" in result.warnings


def test_end_before_start_is_an_error(break_accounting, make_break, hm):
    period = BreakPeriod(
        break_id="break_x", type=BreakType.SHORT_BREAK, start_time=hm(14, 0), end_time=hm(14, 0), duration=0
    )

    result = break_accounting.validate_break(period, [], now=hm(15, 0))

    assert "Break end time must be after start time" in result.errors


def test_daily_cap_counts_breaks_of_same_type_on_same_local_day(break_accounting, make_break, hm):
    lunch = make_break(BreakType.LUNCH, hm(12, 0), hm(12, 45))
    second = make_break(BreakType.LUNCH, hm(15, 0))

    result = break_accounting.validate_break(second, [lunch], now=hm(15, 0))
    assert "Maximum 1 lunch break allowed per day" in result.errors

    tomorrow = make_break(BreakType.LUNCH, hm(12, 0, day=4))
    assert break_accounting.validate_break(tomorrow, [lunch], now=hm(12, 0, day=4)).is_valid


def test_extended_break_cap_is_plural(break_accounting, make_break, hm):
    existing = [
        make_break(BreakType.EXTENDED_BREAK, hm(9, 30), hm(10, 0)),
        make_break(BreakType.EXTENDED_BREAK, hm(11, 0), hm(11, 30)),
    ]
    third = make_break(BreakType.EXTENDED_BREAK, hm(15, 0))

    result = break_accounting.validate_break(third, existing, now=hm(15, 0))

    assert result.errors == ("Maximum 2 extended breaks allowed per day",)


def test_second_open_break_is_rejected(break_accounting, make_break, hm):
    running = make_break(BreakType.SHORT_BREAK, hm(10, 0))
    candidate = make_break(BreakType.SHORT_BREAK, hm(10, 5))

    result = break_accounting.validate_break(candidate, [running], now=hm(10, 5))

    assert "Another break is still open" in result.errors
    assert not result.is_valid


def test_planned_duration_over_max_is_an_error(break_accounting, make_break, hm):
    period = make_break(BreakType.SHORT_BREAK, hm(10, 0), planned_duration=45)

    result = break_accounting.validate_break(period, [], now=hm(10, 0))

    assert result.errors == ("Break duration exceeds maximum of 30 minutes",)


def test_advisory_warnings_for_odd_hours(break_accounting, make_break, hm):
    early_lunch = make_break(BreakType.LUNCH, hm(10, 0))
    evening = make_break(BreakType.SHORT_BREAK, hm(19, 0))

    lunch_result = break_accounting.validate_break(early_lunch, [], now=hm(10, 0))
    evening_result = break_accounting.validate_break(evening, [], now=hm(19, 0))

    assert lunch_result.is_valid
    assert lunch_result.warnings == ("Lunch break is outside typical lunch hours (12:00 - 13:00)",)
    assert evening_result.warnings == ("Break is outside typical business hours",)


def test_overlong_open_break_is_closed_at_exactly_start_plus_max(break_accounting, make_break, hm):
    period = make_break(BreakType.SHORT_BREAK, hm(14, 0))

    (closed,) = break_accounting.auto_complete_breaks([period], now=hm(14, 45))

    assert closed.end_time == hm(14, 0) + timedelta(minutes=30)
    assert closed.duration == 30
    assert closed.auto_completed


def test_open_break_at_exactly_max_stays_open(break_accounting, make_break, hm):
    period = make_break(BreakType.SHORT_BREAK, hm(14, 0))

    (same,) = break_accounting.auto_complete_breaks([period], now=hm(14, 30))

    assert same.is_open
    assert not same.auto_completed


def test_close_open_breaks_ends_in_bounds_breaks_at_the_given_time(break_accounting, make_break, hm):
    overlong = make_break(BreakType.SHORT_BREAK, hm(13, 0))
    closed_lunch = make_break(BreakType.LUNCH, hm(12, 0), hm(12, 45))
    fresh = make_break(BreakType.EXTENDED_BREAK, hm(14, 0))

    result = break_accounting.close_open_breaks([closed_lunch, overlong, fresh], hm(14, 20))

    assert result[0] == closed_lunch
    assert result[1].end_time == hm(13, 30)
    assert result[2].end_time == hm(14, 20)
    assert result[2].duration == 20
    assert not result[2].auto_completed
    assert not any(b.is_open for b in result)


def test_active_break_helpers(break_accounting, make_break, hm, clock):
    clock.set(hm(10, 12))
    running = make_break(BreakType.SHORT_BREAK, hm(10, 0))
    done = make_break(BreakType.LUNCH, hm(12, 0, day=2), hm(13, 0, day=2))

    assert break_accounting.is_on_break([done, running])
    assert break_accounting.get_active_breaks([done, running]) == [running]
    assert break_accounting.get_current_break_type([done, running]) == BreakType.SHORT_BREAK
    assert break_accounting.get_active_break_duration(running) == 12.0
    assert break_accounting.get_active_break_duration(done) == 0.0
    assert break_accounting.get_current_break_type([done]) is None


def test_break_statistics_split_paid_and_unpaid(break_accounting, make_break, hm):
    lunch = make_break(BreakType.LUNCH, hm(12, 0), hm(13, 0), is_paid=False)
    coffee = make_break(BreakType.SHORT_BREAK, hm(15, 0), hm(15, 15), is_paid=True)
    running = make_break(BreakType.SHORT_BREAK, hm(16, 0))

    stats = break_accounting.calculate_break_statistics([lunch, coffee, running])

    assert stats.total_breaks == 2
    assert stats.total_break_minutes == 75
    assert stats.paid_break_minutes == 15
    assert stats.unpaid_break_minutes == 60
    assert stats.average_break_minutes == 37.5
    assert stats.longest_break == lunch
    assert stats.shortest_break == coffee
    assert stats.break_efficiency == 87.5
    assert stats.by_type == {"lunch": 1, "short_break": 1}


def test_break_statistics_of_nothing_are_empty(break_accounting):
    stats = break_accounting.calculate_break_statistics([])

    assert stats.total_breaks == 0
    assert stats.break_efficiency == 100.0


def test_suggestions_for_a_nine_o_clock_start(break_accounting, hm):
    suggestions = break_accounting.suggest_break_times(hm(9))

    assert suggestions.lunch == hm(12)
    assert suggestions.short_breaks == (hm(10, 30), hm(12, 30), hm(14, 30), hm(16, 30))


def test_suggestions_skip_existing_lunch_and_nearby_breaks(break_accounting, make_break, hm):
    existing = [
        make_break(BreakType.LUNCH, hm(12), hm(12, 30)),
        make_break(BreakType.SHORT_BREAK, hm(12, 45), hm(13)),
    ]

    suggestions = break_accounting.suggest_break_times(hm(9), existing)

    assert suggestions.lunch is None
    assert suggestions.short_breaks == (hm(10, 30), hm(14, 30), hm(16, 30))


def test_suggestions_are_capped_at_four_short_breaks(break_accounting, make_break, hm):
    yesterday_lunch = make_break(BreakType.LUNCH, hm(12, day=2), hm(13, day=2))

    suggestions = break_accounting.suggest_break_times(hm(7), [yesterday_lunch])

    assert suggestions.lunch == hm(12)
    assert suggestions.short_breaks == (hm(8, 30), hm(10, 30), hm(12, 30), hm(14, 30))


def test_suggestions_after_the_afternoon_cutoff_are_empty(break_accounting, hm):
    assert break_accounting.suggest_break_times(hm(16)).short_breaks == ()
