"""Period statistics models."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class PeriodType(str, Enum):
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"
    CUSTOM = "custom"
    ALL = "all"


class EvolutionMetricType(str, Enum):
    DISTANCE = "distance"  # km
    TIME = "time"  # hours
    SPEED = "speed"  # km/h
    HEART_RATE = "heartRate"  # bpm
    ACTIVITIES = "activities"  # count


class TrendDirection(str, Enum):
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


class DateRange(BaseModel):
    """Inclusive datetime range."""

    start: datetime
    end: datetime


class SportTotals(BaseModel):
    count: int = 0
    distance: float = 0.0  # meters
    time: float = 0.0  # seconds


class PeriodStatistics(BaseModel):
    """Aggregate over every activity starting within a date range."""

    period: PeriodType
    date_range: DateRange
    total_activities: int = 0
    total_distance: float = 0.0  # meters
    total_time: float = 0.0  # seconds
    total_calories: int = 0
    total_elevation_gain: float = 0.0  # meters
    average_speed: float = 0.0  # m/s
    average_heart_rate: Optional[float] = None
    average_cadence: Optional[float] = None
    sport_breakdown: dict[str, SportTotals] = Field(default_factory=dict)


class PeriodChanges(BaseModel):
    """Percentage change per metric, previous to current."""

    distance: float = 0.0
    time: float = 0.0
    activities: float = 0.0
    speed: float = 0.0


class ComparisonData(BaseModel):
    current: PeriodStatistics
    previous: PeriodStatistics
    changes: PeriodChanges


class TrendPoint(BaseModel):
    date: datetime
    value: float
    label: Optional[str] = None


class EvolutionMetric(BaseModel):
    """Chronological series of one metric over trailing periods."""

    type: EvolutionMetricType
    label: str
    unit: str
    data: list[TrendPoint] = Field(default_factory=list)
    trend: TrendDirection = TrendDirection.STABLE
    trend_percentage: float = 0.0


class WeeklyBreakdown(BaseModel):
    week_number: int
    year: int
    start_date: datetime
    end_date: datetime
    statistics: PeriodStatistics


class MonthlyBreakdown(BaseModel):
    month: int
    year: int
    statistics: PeriodStatistics


class YearlyBreakdown(BaseModel):
    year: int
    statistics: PeriodStatistics
    monthly_data: list[MonthlyBreakdown] = Field(default_factory=list)


class HeatmapDay(BaseModel):
    date: datetime
    count: int
    distance: float
    intensity: float  # 0-1, relative to the busiest day
