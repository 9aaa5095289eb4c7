"""Heart rate training zone models."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class ZoneMethod(str, Enum):
    """How zone boundaries are derived."""
    AGE = "age"  # percentage of max HR
    KARVONEN = "karvonen"  # percentage of HR reserve
    MANUAL = "manual"  # caller-supplied zones


class TrainingType(str, Enum):
    """Coarse label summarizing a zone distribution."""
    RECOVERY = "recovery"  # mostly Z1-Z2
    ENDURANCE = "endurance"  # mostly Z2-Z3
    TEMPO = "tempo"  # mostly Z3-Z4
    THRESHOLD = "threshold"  # mostly Z4
    INTERVAL = "interval"  # Z4-Z5 mix
    MIXED = "mixed"
    UNKNOWN = "unknown"  # not enough HR data


ZONE_NUMBERS = (1, 2, 3, 4, 5)

ZONE_COLORS = {
    1: "#3B82F6",  # blue
    2: "#10B981",  # green
    3: "#F59E0B",  # yellow
    4: "#F97316",  # orange
    5: "#EF4444",  # red
}

ZONE_NAMES = {
    1: "Recovery",
    2: "Endurance",
    3: "Tempo",
    4: "Threshold",
    5: "VO2 Max",
}

ZONE_DESCRIPTIONS = {
    1: "Active recovery, easy conversation",
    2: "Base endurance, aerobic development",
    3: "Comfortable tempo, aerobic improvement",
    4: "Lactate threshold, sustained effort",
    5: "Maximal power, short intervals",
}

# Percent of max HR (or HR reserve) per zone
ZONE_PERCENTAGES = {
    1: (50, 60),
    2: (60, 70),
    3: (70, 80),
    4: (80, 90),
    5: (90, 100),
}


class HeartRateZone(BaseModel):
    """One of the five ordered heart rate bands."""

    zone: int = Field(ge=1, le=5)
    name: str
    description: str = ""
    min_hr: int  # bpm
    max_hr: int  # bpm
    min_percent: float
    max_percent: float
    color: str = ""
    benefits: list[str] = Field(default_factory=list)
    recommendations: str = ""


class ZoneSettings(BaseModel):
    """Persisted zone configuration for the user."""

    id: str = "default"
    user_id: Optional[str] = None
    max_heart_rate: int = Field(gt=0)
    resting_heart_rate: Optional[int] = Field(None, gt=0)
    method: ZoneMethod = ZoneMethod.AGE
    age: Optional[int] = Field(None, gt=0)
    custom_zones: Optional[list[HeartRateZone]] = None
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)


class ZoneDistribution(BaseModel):
    """Seconds spent in each zone."""

    zone1: float = 0.0
    zone2: float = 0.0
    zone3: float = 0.0
    zone4: float = 0.0
    zone5: float = 0.0
    unknown: float = 0.0  # time without usable HR

    def total(self) -> float:
        return self.zone1 + self.zone2 + self.zone3 + self.zone4 + self.zone5 + self.unknown

    def zone_time(self, zone: int) -> float:
        return getattr(self, f"zone{zone}")

    def add(self, bucket: str, seconds: float) -> None:
        setattr(self, bucket, getattr(self, bucket) + seconds)


class ZonePercentages(BaseModel):
    """Share of total time per zone, 0-100."""

    zone1: int = 0
    zone2: int = 0
    zone3: int = 0
    zone4: int = 0
    zone5: int = 0
    unknown: int = 0

    def total(self) -> int:
        return self.zone1 + self.zone2 + self.zone3 + self.zone4 + self.zone5 + self.unknown


class ZoneAnalysis(BaseModel):
    """Zone breakdown of one activity."""

    distribution: ZoneDistribution
    percentages: ZonePercentages
    dominant_zone: Optional[int] = None
    time_in_target_zone: Optional[float] = None
    recommendations: list[str] = Field(default_factory=list)
    training_type: TrainingType
    efficiency: int = Field(ge=0, le=100)


class ZoneStatistics(BaseModel):
    """Zone breakdown aggregated over many activities."""

    total_time_by_zone: ZoneDistribution
    average_percentages: ZonePercentages
    training_type_distribution: dict[TrainingType, int]
    average_efficiency: float
