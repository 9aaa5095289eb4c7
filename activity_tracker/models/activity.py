"""Activity data models."""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


def as_naive_utc(value: datetime) -> datetime:
    """UTC wall time of a datetime; naive values are taken as UTC already."""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class Trackpoint(BaseModel):
    """One timestamped sensor sample within a lap."""
    model_config = ConfigDict(extra='ignore')

    time: datetime

    # Position
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    altitude: Optional[float] = None  # meters

    # Distance and speed
    distance: Optional[float] = Field(None, ge=0)  # cumulative meters
    speed: Optional[float] = Field(None, ge=0)  # m/s

    # Sensors
    heart_rate: Optional[int] = Field(None, ge=0, le=255)  # bpm
    cadence: Optional[int] = Field(None, ge=0, le=255)  # rpm
    power: Optional[int] = Field(None, ge=0)  # watts


class Lap(BaseModel):
    """Contiguous segment of an activity."""
    model_config = ConfigDict(extra='ignore')

    start_time: datetime
    total_time_seconds: float = Field(ge=0)
    distance_meters: float = Field(ge=0)

    maximum_speed: Optional[float] = Field(None, ge=0)
    calories: Optional[int] = Field(None, ge=0)
    average_heart_rate: Optional[int] = Field(None, ge=0, le=255)
    maximum_heart_rate: Optional[int] = Field(None, ge=0, le=255)
    intensity: Optional[str] = None  # Active / Resting
    cadence: Optional[int] = Field(None, ge=0, le=255)
    trigger_method: Optional[str] = None

    trackpoints: list[Trackpoint] = Field(default_factory=list)


class Creator(BaseModel):
    """Recording device metadata."""

    name: Optional[str] = None
    version: Optional[str] = None
    unit_id: Optional[str] = None
    product_id: Optional[str] = None


class Activity(BaseModel):
    """Model for a recorded workout."""
    model_config = ConfigDict(str_strip_whitespace=True)

    # Core identifiers
    id: str
    sport: str
    start_time: datetime

    # Duration and distance
    total_time_seconds: float = Field(ge=0)
    distance_meters: float = Field(ge=0)

    # Other metrics
    calories: Optional[int] = Field(None, ge=0)
    notes: Optional[str] = None

    laps: list[Lap] = Field(default_factory=list)
    creator: Optional[Creator] = None

    def trackpoints(self) -> list[Trackpoint]:
        """All trackpoints of all laps, in recorded order."""
        return [tp for lap in self.laps for tp in lap.trackpoints]


class Statistics(BaseModel):
    """Derived statistics for a single activity, recomputed on demand."""

    total_distance: float
    total_time: float
    average_speed: float
    max_speed: float

    # Heart rate
    average_heart_rate: Optional[float] = None
    max_heart_rate: Optional[int] = None
    min_heart_rate: Optional[int] = None

    # Cadence
    average_cadence: Optional[float] = None
    max_cadence: Optional[int] = None

    total_calories: Optional[int] = None

    # Elevation
    elevation_gain: Optional[float] = None
    elevation_loss: Optional[float] = None
    min_altitude: Optional[float] = None
    max_altitude: Optional[float] = None

    # Pace in minutes per kilometer
    average_pace: Optional[float] = None
    max_pace: Optional[float] = None


class ActivityFilter(BaseModel):
    """Criteria for narrowing an activity list."""

    sport: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    min_distance: Optional[float] = None
    max_distance: Optional[float] = None
    min_duration: Optional[float] = None
    max_duration: Optional[float] = None
    search_query: Optional[str] = None

    def matches(self, activity: Activity) -> bool:
        """Check whether an activity satisfies every set criterion."""
        if self.sport and activity.sport != self.sport:
            return False
        if self.start_date and as_naive_utc(activity.start_time) < as_naive_utc(self.start_date):
            return False
        if self.end_date and as_naive_utc(activity.start_time) > as_naive_utc(self.end_date):
            return False
        if self.min_distance is not None and activity.distance_meters < self.min_distance:
            return False
        if self.max_distance is not None and activity.distance_meters > self.max_distance:
            return False
        if self.min_duration is not None and activity.total_time_seconds < self.min_duration:
            return False
        if self.max_duration is not None and activity.total_time_seconds > self.max_duration:
            return False
        if self.search_query:
            query = self.search_query.lower()
            haystack = f"{activity.sport} {activity.notes or ''}".lower()
            if query not in haystack:
                return False
        return True
