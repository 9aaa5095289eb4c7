"""Tests for calendar period arithmetic."""

from datetime import datetime, time, timedelta, timezone

import pytest

from activity_tracker.analytics.periods import (
    calculate_monthly_average,
    calculate_weekly_average,
    filter_activities_by_date_range,
    generate_date_array,
    get_days_in_range,
    get_month_bounds,
    get_next_period_bounds,
    get_period_bounds,
    get_previous_period_bounds,
    get_week_bounds,
    get_year_bounds,
    group_activities_by_day,
    group_activities_by_month,
    group_activities_by_week,
    group_activities_by_year,
    shift_months,
)
from activity_tracker.models.activity import ActivityFilter
from activity_tracker.models.statistics import DateRange, PeriodType

END_OF_DAY = time(23, 59, 59, 999999)


def test_week_bounds_start_on_monday():
    bounds = get_week_bounds(datetime(2024, 1, 17, 10, 30))

    assert bounds.start == datetime(2024, 1, 15)
    assert bounds.end == datetime.combine(datetime(2024, 1, 21).date(), END_OF_DAY)


def test_sunday_belongs_to_previous_monday():
    bounds = get_week_bounds(datetime(2024, 1, 21, 22, 0))

    assert bounds.start == datetime(2024, 1, 15)


def test_bounds_keep_timezone():
    bounds = get_week_bounds(datetime(2024, 1, 17, 10, 0, tzinfo=timezone.utc))

    assert bounds.start.tzinfo == timezone.utc
    assert bounds.end.tzinfo == timezone.utc


def test_month_bounds_leap_year():
    bounds = get_month_bounds(datetime(2024, 2, 10))

    assert bounds.start == datetime(2024, 2, 1)
    assert bounds.end.date() == datetime(2024, 2, 29).date()
    assert bounds.end.time() == END_OF_DAY


def test_year_bounds():
    bounds = get_year_bounds(datetime(2023, 6, 15))

    assert bounds.start == datetime(2023, 1, 1)
    assert bounds.end.date() == datetime(2023, 12, 31).date()


def test_previous_month_clamps_day():
    bounds = get_previous_period_bounds(PeriodType.MONTH, datetime(2024, 3, 31))

    assert bounds.start == datetime(2024, 2, 1)
    assert bounds.end.date() == datetime(2024, 2, 29).date()


def test_previous_and_next_week():
    previous = get_previous_period_bounds("week", datetime(2024, 1, 17))
    following = get_next_period_bounds("week", datetime(2024, 1, 17))

    assert previous.start == datetime(2024, 1, 8)
    assert following.start == datetime(2024, 1, 22)


def test_previous_and_next_year():
    assert get_previous_period_bounds("year", datetime(2024, 2, 29)).start == datetime(2023, 1, 1)
    assert get_next_period_bounds("year", datetime(2024, 2, 29)).start == datetime(2025, 1, 1)


def test_unaligned_periods_default_to_week():
    date = datetime(2024, 1, 17)

    assert get_previous_period_bounds("custom", date) == get_previous_period_bounds("week", date)
    assert get_next_period_bounds("all", date) == get_next_period_bounds("week", date)
    assert get_period_bounds("custom", date) == get_week_bounds(date)


def test_shift_months_across_year():
    assert shift_months(datetime(2024, 1, 31), -2) == datetime(2023, 11, 30)
    assert shift_months(datetime(2024, 11, 15), 3) == datetime(2025, 2, 15)


def test_filter_is_inclusive(make_activity):
    date_range = DateRange(start=datetime(2024, 1, 15), end=datetime(2024, 1, 21, 12, 0))
    activities = [
        make_activity("start", start=datetime(2024, 1, 15)),
        make_activity("end", start=datetime(2024, 1, 21, 12, 0)),
        make_activity("before", start=datetime(2024, 1, 14, 23, 59)),
        make_activity("after", start=datetime(2024, 1, 21, 12, 1)),
    ]

    filtered = filter_activities_by_date_range(activities, date_range)

    assert [a.id for a in filtered] == ["start", "end"]


def test_filter_mixes_naive_range_and_utc_activities(make_activity):
    date_range = get_week_bounds(datetime(2024, 1, 17))
    activities = [
        make_activity("inside", start=datetime(2024, 1, 21, 23, 0, tzinfo=timezone.utc)),
        make_activity("after", start=datetime(2024, 1, 22, 0, 30, tzinfo=timezone(timedelta(hours=-2)))),
    ]

    assert [a.id for a in filter_activities_by_date_range(activities, date_range)] == ["inside"]


def test_activity_filter_with_utc_timestamps(make_activity):
    activity = make_activity(start=datetime(2024, 1, 17, 7, 0, tzinfo=timezone.utc), distance=8000)

    assert ActivityFilter(start_date=datetime(2024, 1, 17), max_distance=9000).matches(activity)
    assert not ActivityFilter(end_date=datetime(2024, 1, 17, 6, 59)).matches(activity)


def test_group_by_iso_week(make_activity):
    activities = [
        make_activity("a", start=datetime(2024, 1, 1, 9, 0)),
        make_activity("b", start=datetime(2024, 1, 7, 9, 0)),
        make_activity("c", start=datetime(2023, 1, 1, 9, 0)),
    ]

    grouped = group_activities_by_week(activities)

    assert sorted(grouped) == ["2022-W52", "2024-W1"]
    assert [a.id for a in grouped["2024-W1"]] == ["a", "b"]


def test_group_by_month_year_and_day(make_activity):
    activities = [
        make_activity("a", start=datetime(2024, 1, 5, 7, 0)),
        make_activity("b", start=datetime(2024, 1, 5, 18, 0)),
        make_activity("c", start=datetime(2024, 3, 2, 7, 0)),
    ]

    assert sorted(group_activities_by_month(activities)) == ["2024-01", "2024-03"]
    assert list(group_activities_by_year(activities)) == ["2024"]
    assert len(group_activities_by_day(activities)["2024-01-05"]) == 2


def test_weekly_average(make_activity):
    activities = [
        make_activity("a", start=datetime(2024, 1, 15), distance=1000, duration=600),
        make_activity("b", start=datetime(2024, 1, 16), distance=2000, duration=600),
        make_activity("c", start=datetime(2024, 1, 23), distance=3000, duration=1200),
    ]

    assert calculate_weekly_average(activities, "distance") == 3000
    assert calculate_weekly_average(activities, "time") == 1200
    assert calculate_weekly_average(activities, "activities") == 1.5


def test_monthly_average(make_activity):
    activities = [
        make_activity("a", start=datetime(2024, 1, 15), distance=1000),
        make_activity("b", start=datetime(2024, 2, 16), distance=3000),
    ]

    assert calculate_monthly_average(activities, "distance") == 2000
    assert calculate_monthly_average([], "distance") == 0


def test_average_rejects_unknown_metric(make_activity):
    with pytest.raises(ValueError):
        calculate_weekly_average([make_activity()], "calories")


def test_days_in_week():
    bounds = get_week_bounds(datetime(2024, 1, 17))

    assert get_days_in_range(bounds) == 7
    assert len(generate_date_array(bounds)) == 7
    assert generate_date_array(bounds)[0] == datetime(2024, 1, 15)
