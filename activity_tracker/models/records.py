"""Personal record models."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class RecordType(str, Enum):
    """Metric a record is measured on."""
    DISTANCE = "distance"
    SPEED = "speed"
    PACE = "pace"
    TIME = "time"  # best time over a distance band
    ELEVATION = "elevation"
    CALORIES = "calories"
    HEART_RATE = "heartRate"


class RecordCategory(str, Enum):
    """Qualitative bucket of a record."""
    ONE_KM = "1km"
    FIVE_KM = "5km"
    TEN_KM = "10km"
    HALF_MARATHON = "halfMarathon"
    MARATHON = "marathon"
    LONGEST = "longest"
    FASTEST = "fastest"
    HIGHEST = "highest"


# Accepted distance window (meters) per band, in evaluation order
DISTANCE_CATEGORIES = {
    RecordCategory.ONE_KM: (900, 1100, "1 km"),
    RecordCategory.FIVE_KM: (4500, 5500, "5 km"),
    RecordCategory.TEN_KM: (9500, 10500, "10 km"),
    RecordCategory.HALF_MARATHON: (20000, 22000, "Half marathon"),
    RecordCategory.MARATHON: (41000, 43000, "Marathon"),
}

RECORD_UNITS = {
    RecordType.DISTANCE: "m",
    RecordType.SPEED: "m/s",
    RecordType.PACE: "min/km",
    RecordType.TIME: "s",
    RecordType.ELEVATION: "m",
    RecordType.CALORIES: "kcal",
    RecordType.HEART_RATE: "bpm",
}

RECORD_TYPE_LABELS = {
    RecordType.DISTANCE: "Distance",
    RecordType.SPEED: "Speed",
    RecordType.PACE: "Pace",
    RecordType.TIME: "Time",
    RecordType.ELEVATION: "Elevation",
    RecordType.CALORIES: "Calories",
    RecordType.HEART_RATE: "Heart rate",
}

RECORD_CATEGORY_LABELS = {
    RecordCategory.ONE_KM: "1 km",
    RecordCategory.FIVE_KM: "5 km",
    RecordCategory.TEN_KM: "10 km",
    RecordCategory.HALF_MARATHON: "Half marathon",
    RecordCategory.MARATHON: "Marathon",
    RecordCategory.LONGEST: "Longest distance",
    RecordCategory.FASTEST: "Fastest",
    RecordCategory.HIGHEST: "Highest climb",
}

RECORD_CATEGORY_DESCRIPTIONS = {
    RecordCategory.ONE_KM: "Best time over 1 kilometer",
    RecordCategory.FIVE_KM: "Best time over 5 kilometers",
    RecordCategory.TEN_KM: "Best time over 10 kilometers",
    RecordCategory.HALF_MARATHON: "Best half marathon time (21.1 km)",
    RecordCategory.MARATHON: "Best marathon time (42.2 km)",
    RecordCategory.LONGEST: "Longest distance covered",
    RecordCategory.FASTEST: "Highest speed reached",
    RecordCategory.HIGHEST: "Largest positive elevation gain",
}


class PersonalRecord(BaseModel):
    """A single best performance, append-only."""

    id: str
    type: RecordType
    category: RecordCategory
    value: float
    unit: str
    activity_id: str
    activity_date: datetime
    sport: str

    previous_value: Optional[float] = None
    previous_activity_id: Optional[str] = None
    previous_date: Optional[datetime] = None
    improvement: Optional[float] = None

    created_at: datetime = Field(default_factory=datetime.now)
    is_new: bool = False  # UI badge only

    def triple(self) -> tuple[RecordType, RecordCategory, str]:
        return (self.type, self.category, self.sport)


class RecordDetectionResult(BaseModel):
    """Outcome of one detection pass."""

    is_record: bool
    record_type: Optional[RecordType] = None
    category: Optional[RecordCategory] = None
    value: Optional[float] = None
    previous_value: Optional[float] = None
    previous_activity_id: Optional[str] = None
    previous_date: Optional[datetime] = None
    improvement: Optional[float] = None
    message: Optional[str] = None


class RecordComparison(BaseModel):
    """How an activity measures against a stored record."""

    is_better: bool
    difference: float
    percentage_difference: float


class RecordsByCategory(BaseModel):
    category: RecordCategory
    label: str
    description: str
    records: list[PersonalRecord] = Field(default_factory=list)


class RecordStatistics(BaseModel):
    """Summary of the record history."""

    total_records: int = 0
    records_by_sport: dict[str, int] = Field(default_factory=dict)
    records_by_type: dict[RecordType, int] = Field(
        default_factory=lambda: {record_type: 0 for record_type in RecordType}
    )
    recent_records: list[PersonalRecord] = Field(default_factory=list)
    longest_streak: int = 0  # consecutive days with a record
    last_record_date: Optional[datetime] = None
