"""Calendar period arithmetic and activity grouping."""

import calendar
import logging
from collections import defaultdict
from datetime import datetime, time, timedelta
from typing import Iterable, Union

from activity_tracker.models.activity import Activity, as_naive_utc
from activity_tracker.models.statistics import DateRange, PeriodType

logger = logging.getLogger(__name__)

AVERAGE_METRICS = ("distance", "time", "activities")


def _start_of_day(date: datetime) -> datetime:
    return datetime.combine(date.date(), time.min, tzinfo=date.tzinfo)


def _end_of_day(date: datetime) -> datetime:
    return datetime.combine(date.date(), time.max, tzinfo=date.tzinfo)


def shift_months(date: datetime, months: int) -> datetime:
    """Move a date by whole months, clamping the day to the target month."""
    month_index = date.month - 1 + months
    year = date.year + month_index // 12
    month = month_index % 12 + 1
    day = min(date.day, calendar.monthrange(year, month)[1])
    return date.replace(year=year, month=month, day=day)


def shift_years(date: datetime, years: int) -> datetime:
    return shift_months(date, years * 12)


def get_week_bounds(date: datetime) -> DateRange:
    """Monday 00:00 through Sunday 23:59:59.999999 of the date's week."""
    monday = date - timedelta(days=date.weekday())
    sunday = monday + timedelta(days=6)
    return DateRange(start=_start_of_day(monday), end=_end_of_day(sunday))


def get_month_bounds(date: datetime) -> DateRange:
    last_day = calendar.monthrange(date.year, date.month)[1]
    return DateRange(
        start=_start_of_day(date.replace(day=1)),
        end=_end_of_day(date.replace(day=last_day)),
    )


def get_year_bounds(date: datetime) -> DateRange:
    return DateRange(
        start=_start_of_day(date.replace(month=1, day=1)),
        end=_end_of_day(date.replace(month=12, day=31)),
    )


def get_period_bounds(period: Union[PeriodType, str], date: datetime) -> DateRange:
    """Bounds of the calendar period containing the date.

    Custom and all periods have no calendar alignment and fall back to the week.
    """
    period = PeriodType(period)
    if period == PeriodType.MONTH:
        return get_month_bounds(date)
    if period == PeriodType.YEAR:
        return get_year_bounds(date)
    if period != PeriodType.WEEK:
        logger.debug(f"No calendar bounds for period '{period.value}', using week")
    return get_week_bounds(date)


def get_previous_period_bounds(period: Union[PeriodType, str], current_date: datetime) -> DateRange:
    """Bounds of the period immediately before the one containing current_date."""
    period = PeriodType(period)
    if period == PeriodType.MONTH:
        return get_month_bounds(shift_months(current_date, -1))
    if period == PeriodType.YEAR:
        return get_year_bounds(shift_years(current_date, -1))
    return get_week_bounds(current_date - timedelta(weeks=1))


def get_next_period_bounds(period: Union[PeriodType, str], current_date: datetime) -> DateRange:
    """Bounds of the period immediately after the one containing current_date."""
    period = PeriodType(period)
    if period == PeriodType.MONTH:
        return get_month_bounds(shift_months(current_date, 1))
    if period == PeriodType.YEAR:
        return get_year_bounds(shift_years(current_date, 1))
    return get_week_bounds(current_date + timedelta(weeks=1))


def is_date_in_range(date: datetime, date_range: DateRange) -> bool:
    """Inclusive check, comparing naive and aware datetimes in UTC."""
    return as_naive_utc(date_range.start) <= as_naive_utc(date) <= as_naive_utc(date_range.end)


def filter_activities_by_date_range(
    activities: Iterable[Activity],
    date_range: DateRange,
) -> list[Activity]:
    """Activities whose start time falls within the range, both ends inclusive."""
    return [a for a in activities if is_date_in_range(a.start_time, date_range)]


def week_key(date: datetime) -> str:
    iso_year, iso_week, _ = date.isocalendar()
    return f"{iso_year}-W{iso_week}"


def month_key(date: datetime) -> str:
    return f"{date.year}-{date.month:02d}"


def year_key(date: datetime) -> str:
    return str(date.year)


def day_key(date: datetime) -> str:
    return date.date().isoformat()


def _group(activities: Iterable[Activity], key_func) -> dict[str, list[Activity]]:
    grouped = defaultdict(list)
    for activity in activities:
        grouped[key_func(activity.start_time)].append(activity)
    return dict(grouped)


def group_activities_by_week(activities: Iterable[Activity]) -> dict[str, list[Activity]]:
    """Group by ISO week, keys like '2024-W3'."""
    return _group(activities, week_key)


def group_activities_by_month(activities: Iterable[Activity]) -> dict[str, list[Activity]]:
    """Group by month, keys like '2024-01'."""
    return _group(activities, month_key)


def group_activities_by_year(activities: Iterable[Activity]) -> dict[str, list[Activity]]:
    return _group(activities, year_key)


def group_activities_by_day(activities: Iterable[Activity]) -> dict[str, list[Activity]]:
    """Group by calendar day, ISO date keys."""
    return _group(activities, day_key)


def _average_per_group(groups: dict[str, list[Activity]], metric: str) -> float:
    if metric not in AVERAGE_METRICS:
        raise ValueError(f"Unsupported metric '{metric}', expected one of {AVERAGE_METRICS}")
    if not groups:
        return 0.0

    total = 0.0
    for group in groups.values():
        if metric == "distance":
            total += sum(a.distance_meters for a in group)
        elif metric == "time":
            total += sum(a.total_time_seconds for a in group)
        else:
            total += len(group)

    return total / len(groups)


def calculate_weekly_average(activities: list[Activity], metric: str) -> float:
    """Mean per active week of distance, time or activity count."""
    return _average_per_group(group_activities_by_week(activities), metric)


def calculate_monthly_average(activities: list[Activity], metric: str) -> float:
    """Mean per active month of distance, time or activity count."""
    return _average_per_group(group_activities_by_month(activities), metric)


def get_days_in_range(date_range: DateRange) -> int:
    """Number of calendar days touched by the range."""
    return abs((date_range.end.date() - date_range.start.date()).days) + 1


def generate_date_array(date_range: DateRange) -> list[datetime]:
    """One datetime per day from start while not past end."""
    dates = []
    current = date_range.start
    while current <= date_range.end:
        dates.append(current)
        current = current + timedelta(days=1)
    return dates
