"""Tests for period statistics, comparisons and evolution series."""

from datetime import datetime

import pytest

from activity_tracker.analytics.trends import (
    activities_frame,
    calculate_percentage_change,
    calculate_period_stats,
    calculate_trend,
    compare_periods,
    get_activity_heatmap,
    get_evolution_data,
    get_monthly_breakdown,
    get_weekly_breakdown,
    get_yearly_breakdown,
    summary_frame,
)
from activity_tracker.models.activity import Activity
from activity_tracker.models.statistics import (
    DateRange,
    PeriodType,
    TrendDirection,
    TrendPoint,
)


def test_week_stats(sample_activities):
    stats = calculate_period_stats(sample_activities, PeriodType.WEEK, datetime(2024, 1, 3))

    assert stats.date_range.start == datetime(2024, 1, 1)
    assert stats.total_activities == 2
    assert stats.total_distance == 35000
    assert stats.total_time == 5100
    assert stats.total_calories == 600
    assert stats.average_speed == pytest.approx(35000 / 5100)
    assert stats.sport_breakdown["Running"].distance == 5000
    assert stats.sport_breakdown["Cycling"].count == 1


def test_heart_rate_averaged_over_activities_with_data(make_activity, make_trackpoints):
    start = datetime(2024, 1, 17, 8, 0)
    activities = [
        make_activity("hr", start=start, trackpoints=make_trackpoints(start, heart_rates=[120, 140])),
        make_activity("no-hr", start=datetime(2024, 1, 18, 8, 0)),
    ]

    stats = calculate_period_stats(activities, "week", start)

    assert stats.total_activities == 2
    assert stats.average_heart_rate == pytest.approx(130)


def test_empty_period(sample_activities):
    stats = calculate_period_stats(sample_activities, "month", datetime(2024, 2, 10))

    assert stats.total_activities == 0
    assert stats.average_speed == 0
    assert stats.average_heart_rate is None
    assert stats.sport_breakdown == {}


def test_all_period_spans_history(sample_activities):
    stats = calculate_period_stats(sample_activities, PeriodType.ALL)

    assert stats.total_activities == 4
    assert stats.date_range.start == datetime(2024, 1, 2, 7, 0)
    assert stats.date_range.end == datetime(2024, 1, 16, 7, 0)


def test_all_period_without_activities():
    date = datetime(2024, 5, 1)

    stats = calculate_period_stats([], PeriodType.ALL, date)

    assert stats.date_range == DateRange(start=date, end=date)
    assert stats.total_activities == 0


def test_custom_range(sample_activities):
    date_range = DateRange(start=datetime(2024, 1, 3), end=datetime(2024, 1, 10))

    stats = calculate_period_stats(sample_activities, PeriodType.CUSTOM, date_range=date_range)

    assert stats.total_activities == 2
    assert set(stats.sport_breakdown) == {"Running", "Cycling"}


def test_percentage_change():
    assert calculate_percentage_change(10000, 15000) == 50
    assert calculate_percentage_change(0, 5) == 100
    assert calculate_percentage_change(0, 0) == 0
    assert calculate_percentage_change(8, 4) == -50


def test_compare_weeks(sample_activities):
    comparison = compare_periods(sample_activities, PeriodType.WEEK, datetime(2024, 1, 16))

    assert comparison.current.total_distance == 8000
    assert comparison.previous.total_distance == 10000
    assert comparison.changes.distance == pytest.approx(-20)
    assert comparison.changes.activities == 0


def test_compare_against_empty_period(sample_activities):
    comparison = compare_periods(sample_activities, "week", datetime(2024, 1, 2))

    assert comparison.previous.total_activities == 0
    assert comparison.changes.activities == 100
    assert comparison.changes.distance == 100


@pytest.fixture
def utc_activity(make_activity):
    """Activity parsed from an ISO timestamp with a Z suffix."""
    payload = make_activity("utc", distance=12000).model_dump(mode="json")
    payload["start_time"] = "2024-01-17T07:00:00Z"
    return Activity.model_validate(payload)


def test_period_stats_with_utc_timestamps(utc_activity):
    stats = calculate_period_stats([utc_activity], "week", datetime(2024, 1, 17))

    assert stats.total_activities == 1
    assert stats.total_distance == 12000
    assert stats.date_range.start == datetime(2024, 1, 15)


def test_utc_timestamps_with_default_dates(utc_activity):
    stats = calculate_period_stats([utc_activity], "week")
    comparison = compare_periods([utc_activity], "week")
    evolution = get_evolution_data([utc_activity], "distance")

    assert stats.total_activities == 0
    assert comparison.current.total_activities == 0
    assert len(evolution.data) == 12


def test_all_period_with_mixed_timestamps(utc_activity, make_activity):
    naive = make_activity("naive", start=datetime(2024, 1, 20, 7, 0))

    stats = calculate_period_stats([naive, utc_activity], "all")

    assert stats.total_activities == 2
    assert stats.date_range.start == utc_activity.start_time


def test_weekly_evolution(make_activity):
    activities = [
        make_activity("a", start=datetime(2024, 2, 28, 7, 0)),
        make_activity("b", start=datetime(2024, 3, 5, 7, 0)),
    ]

    evolution = get_evolution_data(
        activities, "activities", PeriodType.WEEK, number_of_periods=4,
        reference_date=datetime(2024, 3, 6),
    )

    assert [p.label for p in evolution.data] == ["W7", "W8", "W9", "W10"]
    assert [p.value for p in evolution.data] == [0, 0, 1, 1]
    assert evolution.data[0].date == datetime(2024, 2, 12)
    assert evolution.trend == TrendDirection.UP
    assert evolution.trend_percentage == 100
    assert evolution.unit == ""


def test_monthly_evolution(sample_activities):
    evolution = get_evolution_data(
        sample_activities, "distance", "month", number_of_periods=3,
        reference_date=datetime(2024, 3, 31),
    )

    assert [p.label for p in evolution.data] == ["Jan", "Feb", "Mar"]
    assert evolution.data[0].value == pytest.approx(53)
    assert evolution.unit == "km"
    assert evolution.trend == TrendDirection.DOWN
    assert evolution.trend_percentage == pytest.approx(100)


def _points(values):
    return [TrendPoint(date=datetime(2024, 1, i + 1), value=v) for i, v in enumerate(values)]


def test_small_change_is_stable():
    assert calculate_trend(_points([100, 102])) == (TrendDirection.STABLE, pytest.approx(2))


def test_downward_trend():
    assert calculate_trend(_points([10, 10, 5, 5])) == (TrendDirection.DOWN, pytest.approx(50))


def test_trend_needs_two_points():
    assert calculate_trend(_points([7])) == (TrendDirection.STABLE, 0)


def test_weekly_breakdown(sample_activities):
    weeks = get_weekly_breakdown(sample_activities, 2024)

    assert [w.week_number for w in weeks] == [1, 2, 3]
    assert weeks[0].start_date == datetime(2024, 1, 1)
    assert weeks[0].statistics.total_activities == 2


def test_monthly_and_yearly_breakdown(sample_activities, make_activity):
    activities = sample_activities + [make_activity("old", start=datetime(2023, 6, 1, 7, 0))]

    months = get_monthly_breakdown(activities, 2024)
    years = get_yearly_breakdown(activities)

    assert [m.month for m in months] == [1]
    assert months[0].statistics.total_distance == 53000
    assert [y.year for y in years] == [2024, 2023]
    assert [m.month for m in years[1].monthly_data] == [6]


def test_heatmap(sample_activities):
    date_range = DateRange(start=datetime(2024, 1, 1), end=datetime(2024, 1, 10))

    heatmap = get_activity_heatmap(sample_activities, date_range)

    assert [d.date for d in heatmap] == [
        datetime(2024, 1, 2), datetime(2024, 1, 4), datetime(2024, 1, 9),
    ]
    assert heatmap[1].intensity == 1.0
    assert heatmap[0].intensity == pytest.approx(5000 / 30000)


def test_heatmap_empty():
    date_range = DateRange(start=datetime(2024, 1, 1), end=datetime(2024, 1, 10))

    assert get_activity_heatmap([], date_range) == []


def test_activities_frame(sample_activities):
    df = activities_frame(sample_activities)

    assert df.height == 4
    assert df["distance_km"].to_list() == [5.0, 30.0, 10.0, 8.0]
    assert df["calories"].to_list() == [None, 600, None, 500]


def test_weekly_summary_frame(sample_activities):
    df = summary_frame(sample_activities, "1w")

    assert df.height == 3
    assert df["activities"].to_list() == [2, 1, 1]
    assert df["total_km"][0] == pytest.approx(35)


def test_summary_frame_empty():
    assert summary_frame([]).is_empty()
