"""Period statistics, period comparison and evolution series."""

import logging
from datetime import datetime, time, timedelta
from typing import Optional, Union

import numpy as np
import polars as pl

from activity_tracker.analytics.periods import (
    filter_activities_by_date_range,
    get_month_bounds,
    get_period_bounds,
    get_previous_period_bounds,
    get_week_bounds,
    get_year_bounds,
    group_activities_by_day,
    group_activities_by_month,
    group_activities_by_week,
    group_activities_by_year,
    shift_months,
    shift_years,
)
from activity_tracker.analytics.statistics import calculate_statistics
from activity_tracker.models.activity import Activity, as_naive_utc
from activity_tracker.models.statistics import (
    ComparisonData,
    DateRange,
    EvolutionMetric,
    EvolutionMetricType,
    HeatmapDay,
    MonthlyBreakdown,
    PeriodChanges,
    PeriodStatistics,
    PeriodType,
    SportTotals,
    TrendDirection,
    TrendPoint,
    WeeklyBreakdown,
    YearlyBreakdown,
)

logger = logging.getLogger(__name__)

STABLE_THRESHOLD_PERCENT = 5

METRIC_LABELS = {
    EvolutionMetricType.DISTANCE: "Distance",
    EvolutionMetricType.TIME: "Time",
    EvolutionMetricType.SPEED: "Speed",
    EvolutionMetricType.HEART_RATE: "Heart rate",
    EvolutionMetricType.ACTIVITIES: "Activities",
}

METRIC_UNITS = {
    EvolutionMetricType.DISTANCE: "km",
    EvolutionMetricType.TIME: "h",
    EvolutionMetricType.SPEED: "km/h",
    EvolutionMetricType.HEART_RATE: "bpm",
    EvolutionMetricType.ACTIVITIES: "",
}

MONTH_LABELS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


def calculate_period_stats(
    activities: list[Activity],
    period: Union[PeriodType, str],
    date: Optional[datetime] = None,
    date_range: Optional[DateRange] = None,
) -> PeriodStatistics:
    """Statistics over the period containing a date.

    Args:
        activities: All activities
        period: week, month, year, all or custom
        date: Reference date, defaults to now
        date_range: Explicit range, used as-is for custom periods

    Returns:
        Aggregate over the activities starting within the period
    """
    period = PeriodType(period)
    date = date or datetime.now()

    if date_range is None:
        if period == PeriodType.ALL:
            starts = [a.start_time for a in activities]
            date_range = DateRange(start=min(starts, key=as_naive_utc), end=max(starts, key=as_naive_utc)) if starts else DateRange(start=date, end=date)
        else:
            date_range = get_period_bounds(period, date)

    period_activities = filter_activities_by_date_range(activities, date_range)
    return aggregate_activities(period_activities, period, date_range)


def aggregate_activities(
    activities: list[Activity],
    period: Union[PeriodType, str],
    date_range: DateRange,
) -> PeriodStatistics:
    """Sum and average a set of activities already restricted to a range.

    Heart rate and cadence are averaged over the activities that carry them.
    """
    total_distance = sum(a.distance_meters for a in activities)
    total_time = sum(a.total_time_seconds for a in activities)
    total_calories = sum(a.calories or 0 for a in activities)

    total_elevation_gain = 0.0
    heart_rates = []
    cadences = []
    sport_breakdown: dict[str, SportTotals] = {}

    for activity in activities:
        stats = calculate_statistics(activity)
        total_elevation_gain += stats.elevation_gain or 0.0
        if stats.average_heart_rate:
            heart_rates.append(stats.average_heart_rate)
        if stats.average_cadence:
            cadences.append(stats.average_cadence)

        totals = sport_breakdown.setdefault(activity.sport, SportTotals())
        totals.count += 1
        totals.distance += activity.distance_meters
        totals.time += activity.total_time_seconds

    return PeriodStatistics(
        period=PeriodType(period),
        date_range=date_range,
        total_activities=len(activities),
        total_distance=total_distance,
        total_time=total_time,
        total_calories=total_calories,
        total_elevation_gain=total_elevation_gain,
        average_speed=total_distance / total_time if total_time > 0 else 0.0,
        average_heart_rate=float(np.mean(heart_rates)) if heart_rates else None,
        average_cadence=float(np.mean(cadences)) if cadences else None,
        sport_breakdown=sport_breakdown,
    )


def calculate_percentage_change(old_value: float, new_value: float) -> float:
    """Percent change from old to new; a zero baseline gives 100 on growth, else 0."""
    if old_value == 0:
        return 100.0 if new_value > 0 else 0.0
    return (new_value - old_value) / old_value * 100


def compare_periods(
    activities: list[Activity],
    period: Union[PeriodType, str],
    current_date: Optional[datetime] = None,
) -> ComparisonData:
    """Compare the period containing current_date with the one before it."""
    period = PeriodType(period)
    current_date = current_date or datetime.now()

    current = calculate_period_stats(activities, period, current_date)
    previous_date = get_previous_period_bounds(period, current_date).start
    previous = calculate_period_stats(activities, period, previous_date)

    changes = PeriodChanges(
        distance=calculate_percentage_change(previous.total_distance, current.total_distance),
        time=calculate_percentage_change(previous.total_time, current.total_time),
        activities=calculate_percentage_change(previous.total_activities, current.total_activities),
        speed=calculate_percentage_change(previous.average_speed, current.average_speed),
    )

    return ComparisonData(current=current, previous=previous, changes=changes)


def _shift_back(date: datetime, period: PeriodType, count: int) -> datetime:
    if period == PeriodType.MONTH:
        return shift_months(date, -count)
    if period == PeriodType.YEAR:
        return shift_years(date, -count)
    return date - timedelta(weeks=count)


def _metric_value(stats: PeriodStatistics, metric: EvolutionMetricType) -> float:
    if metric == EvolutionMetricType.DISTANCE:
        return stats.total_distance / 1000
    if metric == EvolutionMetricType.TIME:
        return stats.total_time / 3600
    if metric == EvolutionMetricType.SPEED:
        return stats.average_speed * 3.6
    if metric == EvolutionMetricType.HEART_RATE:
        return stats.average_heart_rate or 0.0
    return float(stats.total_activities)


def format_period_label(date: datetime, period: Union[PeriodType, str]) -> str:
    period = PeriodType(period)
    if period == PeriodType.WEEK:
        return f"W{date.isocalendar()[1]}"
    if period == PeriodType.MONTH:
        return MONTH_LABELS[date.month - 1]
    if period == PeriodType.YEAR:
        return str(date.year)
    return date.date().isoformat()


def get_evolution_data(
    activities: list[Activity],
    metric: Union[EvolutionMetricType, str],
    period: Union[PeriodType, str] = PeriodType.WEEK,
    number_of_periods: int = 12,
    reference_date: Optional[datetime] = None,
) -> EvolutionMetric:
    """Series of one metric over the trailing periods, oldest first.

    Args:
        activities: All activities
        metric: distance (km), time (h), speed (km/h), heartRate (bpm) or activities
        period: week, month or year
        number_of_periods: Number of periods ending with the current one
        reference_date: Date inside the last period, defaults to now

    Returns:
        Evolution series with its trend
    """
    metric = EvolutionMetricType(metric)
    period = PeriodType(period)
    reference_date = reference_date or datetime.now()

    data = []
    for offset in range(number_of_periods - 1, -1, -1):
        period_date = _shift_back(reference_date, period, offset)
        stats = calculate_period_stats(activities, period, period_date)
        data.append(TrendPoint(
            date=stats.date_range.start,
            value=_metric_value(stats, metric),
            label=format_period_label(stats.date_range.start, period),
        ))

    direction, percentage = calculate_trend(data)

    return EvolutionMetric(
        type=metric,
        label=METRIC_LABELS[metric],
        unit=METRIC_UNITS[metric],
        data=data,
        trend=direction,
        trend_percentage=percentage,
    )


def calculate_trend(data: list[TrendPoint]) -> tuple[TrendDirection, float]:
    """Compare the mean of the first half of a series against the second half.

    A change under 5% in magnitude is stable and keeps its sign; otherwise
    the magnitude is returned with an up or down direction.
    """
    if len(data) < 2:
        return TrendDirection.STABLE, 0.0

    middle = len(data) // 2
    first_avg = float(np.mean([point.value for point in data[:middle]]))
    second_avg = float(np.mean([point.value for point in data[middle:]]))

    change = calculate_percentage_change(first_avg, second_avg)

    if abs(change) < STABLE_THRESHOLD_PERCENT:
        return TrendDirection.STABLE, change

    direction = TrendDirection.UP if change > 0 else TrendDirection.DOWN
    return direction, abs(change)


def get_weekly_breakdown(activities: list[Activity], year: int) -> list[WeeklyBreakdown]:
    """Per-week statistics of the ISO weeks belonging to a year."""
    breakdowns = []
    for key, week_activities in group_activities_by_week(activities).items():
        week_year, week_number = (int(part) for part in key.split("-W"))
        if week_year != year:
            continue

        date_range = get_week_bounds(week_activities[0].start_time)
        breakdowns.append(WeeklyBreakdown(
            week_number=week_number,
            year=week_year,
            start_date=date_range.start,
            end_date=date_range.end,
            statistics=aggregate_activities(week_activities, PeriodType.WEEK, date_range),
        ))

    return sorted(breakdowns, key=lambda b: b.week_number)


def get_monthly_breakdown(activities: list[Activity], year: int) -> list[MonthlyBreakdown]:
    breakdowns = []
    for key, month_activities in group_activities_by_month(activities).items():
        month_year, month = (int(part) for part in key.split("-"))
        if month_year != year:
            continue

        date_range = get_month_bounds(month_activities[0].start_time)
        breakdowns.append(MonthlyBreakdown(
            month=month,
            year=month_year,
            statistics=aggregate_activities(month_activities, PeriodType.MONTH, date_range),
        ))

    return sorted(breakdowns, key=lambda b: b.month)


def get_yearly_breakdown(activities: list[Activity]) -> list[YearlyBreakdown]:
    """Per-year statistics with their monthly detail, most recent year first."""
    breakdowns = []
    for key, year_activities in group_activities_by_year(activities).items():
        year = int(key)
        date_range = get_year_bounds(year_activities[0].start_time)
        breakdowns.append(YearlyBreakdown(
            year=year,
            statistics=aggregate_activities(year_activities, PeriodType.YEAR, date_range),
            monthly_data=get_monthly_breakdown(year_activities, year),
        ))

    return sorted(breakdowns, key=lambda b: b.year, reverse=True)


def get_activity_heatmap(activities: list[Activity], date_range: DateRange) -> list[HeatmapDay]:
    """Daily activity count and distance within a range.

    Intensity is the day's distance relative to the busiest day overall.
    """
    grouped = group_activities_by_day(activities)
    if not grouped:
        return []

    daily_distance = {
        day: sum(a.distance_meters for a in day_activities)
        for day, day_activities in grouped.items()
    }
    max_distance = max(daily_distance.values())

    heatmap = []
    for day, day_activities in grouped.items():
        day_date = datetime.fromisoformat(day).date()
        if not date_range.start.date() <= day_date <= date_range.end.date():
            continue

        distance = daily_distance[day]
        heatmap.append(HeatmapDay(
            date=datetime.combine(day_date, time.min),
            count=len(day_activities),
            distance=distance,
            intensity=distance / max_distance if max_distance > 0 else 0.0,
        ))

    return sorted(heatmap, key=lambda d: d.date)


def activities_frame(activities: list[Activity]) -> pl.DataFrame:
    """One row per activity with the summary columns used by reports."""
    rows = []
    for activity in activities:
        stats = calculate_statistics(activity)
        rows.append({
            "id": activity.id,
            "sport": activity.sport,
            "start_time": activity.start_time.replace(tzinfo=None),
            "distance_km": activity.distance_meters / 1000,
            "duration_min": activity.total_time_seconds / 60,
            "average_speed_kmh": stats.average_speed * 3.6,
            "max_speed_kmh": stats.max_speed * 3.6,
            "average_heart_rate": stats.average_heart_rate,
            "elevation_gain": stats.elevation_gain,
            "calories": activity.calories,
        })

    schema = {
        "id": pl.Utf8,
        "sport": pl.Utf8,
        "start_time": pl.Datetime,
        "distance_km": pl.Float64,
        "duration_min": pl.Float64,
        "average_speed_kmh": pl.Float64,
        "max_speed_kmh": pl.Float64,
        "average_heart_rate": pl.Float64,
        "elevation_gain": pl.Float64,
        "calories": pl.Int64,
    }
    return pl.DataFrame(rows, schema=schema)


def summary_frame(activities: list[Activity], every: str = "1w") -> pl.DataFrame:
    """Totals per calendar bucket (e.g. '1w' for weeks, '1mo' for months).

    Args:
        activities: Activities to summarize
        every: Polars duration string used to truncate start times

    Returns:
        DataFrame sorted by period with activity count, distance, time and mean HR
    """
    df = activities_frame(activities)
    if df.is_empty():
        return pl.DataFrame()

    return (
        df.with_columns(pl.col("start_time").dt.truncate(every).alias("period"))
        .group_by("period")
        .agg([
            pl.len().alias("activities"),
            pl.col("distance_km").sum().alias("total_km"),
            (pl.col("duration_min").sum() / 60).alias("total_hours"),
            pl.col("elevation_gain").sum().alias("total_elevation"),
            pl.col("average_heart_rate").mean().alias("avg_hr"),
        ])
        .sort("period")
    )
