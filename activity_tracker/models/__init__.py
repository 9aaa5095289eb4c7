"""Data models for activities, zones, records and period statistics."""

from .activity import Activity, ActivityFilter, Creator, Lap, Statistics, Trackpoint
from .records import PersonalRecord, RecordCategory, RecordDetectionResult, RecordType
from .statistics import DateRange, PeriodStatistics, PeriodType
from .zones import HeartRateZone, TrainingType, ZoneAnalysis, ZoneMethod, ZoneSettings

__all__ = [
    "Activity",
    "ActivityFilter",
    "Creator",
    "DateRange",
    "HeartRateZone",
    "Lap",
    "PeriodStatistics",
    "PeriodType",
    "PersonalRecord",
    "RecordCategory",
    "RecordDetectionResult",
    "RecordType",
    "Statistics",
    "Trackpoint",
    "TrainingType",
    "ZoneAnalysis",
    "ZoneMethod",
    "ZoneSettings",
]
