"""Per-activity statistics engine."""

import logging
import math
from typing import Optional

import numpy as np

from activity_tracker.models.activity import Activity, Statistics

logger = logging.getLogger(__name__)

EARTH_RADIUS_METERS = 6371000


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up (unlike round())."""
    return math.floor(value + 0.5)


def speed_to_pace(speed: float) -> Optional[float]:
    """Convert m/s to minutes per kilometer."""
    if speed > 0:
        return 1000 / (speed * 60)
    return None


def calculate_statistics(activity: Activity) -> Statistics:
    """Calculate detailed statistics for an activity.

    Every optional series is filtered to the samples that carry it before
    averaging; a series with no samples is omitted from the result.

    Args:
        activity: Activity with laps and trackpoints

    Returns:
        Statistics snapshot
    """
    trackpoints = activity.trackpoints()

    if not trackpoints:
        return Statistics(
            total_distance=activity.distance_meters,
            total_time=activity.total_time_seconds,
            average_speed=_safe_speed(activity.distance_meters, activity.total_time_seconds),
            max_speed=0.0,
            total_calories=activity.calories,
        )

    heart_rates = [tp.heart_rate for tp in trackpoints if tp.heart_rate is not None]
    cadences = [tp.cadence for tp in trackpoints if tp.cadence is not None]
    altitudes = [tp.altitude for tp in trackpoints if tp.altitude is not None]

    # Altitude gaps are bridged between the nearest present samples
    elevation_gain = 0.0
    elevation_loss = 0.0
    if len(altitudes) > 1:
        deltas = np.diff(np.asarray(altitudes, dtype=float))
        elevation_gain = float(deltas[deltas > 0].sum())
        elevation_loss = float(-deltas[deltas < 0].sum())

    speeds = [tp.speed for tp in trackpoints if tp.speed is not None and tp.speed > 0]
    if speeds:
        average_speed = float(np.mean(speeds))
        max_speed = float(max(speeds))
    else:
        logger.debug(f"No speed samples for activity {activity.id}, using distance/time")
        average_speed = _safe_speed(activity.distance_meters, activity.total_time_seconds)
        max_speed = float(max((lap.maximum_speed or 0.0) for lap in activity.laps))

    return Statistics(
        total_distance=activity.distance_meters,
        total_time=activity.total_time_seconds,
        average_speed=average_speed,
        max_speed=max_speed,
        average_heart_rate=float(np.mean(heart_rates)) if heart_rates else None,
        max_heart_rate=max(heart_rates) if heart_rates else None,
        min_heart_rate=min(heart_rates) if heart_rates else None,
        average_cadence=float(np.mean(cadences)) if cadences else None,
        max_cadence=max(cadences) if cadences else None,
        total_calories=activity.calories,
        elevation_gain=elevation_gain if elevation_gain > 0 else None,
        elevation_loss=elevation_loss if elevation_loss > 0 else None,
        min_altitude=min(altitudes) if altitudes else None,
        max_altitude=max(altitudes) if altitudes else None,
        average_pace=speed_to_pace(average_speed),
        max_pace=speed_to_pace(max_speed),
    )


def _safe_speed(distance: float, time: float) -> float:
    return distance / time if time > 0 else 0.0


def calculate_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in meters between two GPS points (haversine)."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    delta_phi = math.radians(lat2 - lat1)
    delta_lambda = math.radians(lon2 - lon1)

    a = (
        math.sin(delta_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(delta_lambda / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_METERS * c


def calculate_calories(
    duration_minutes: float,
    average_heart_rate: Optional[float] = None,
    weight: float = 70,
    age: int = 30,
) -> int:
    """Estimate calories burned.

    Without heart rate the estimate scales 10 kcal/min by body weight; with
    heart rate it uses the HR-based energy expenditure formula.

    Args:
        duration_minutes: Activity duration
        average_heart_rate: Mean heart rate in bpm
        weight: Body weight in kg
        age: Age in years

    Returns:
        Estimated kcal, never negative
    """
    if not average_heart_rate:
        return round_half_up(duration_minutes * 10 * (weight / 70))

    calories = (
        duration_minutes
        * (0.6309 * average_heart_rate + 0.1988 * weight + 0.2017 * age - 55.0969)
    ) / 4.184

    return round_half_up(max(0.0, calories))


def calculate_aggregate_statistics(activities: list[Activity]) -> dict:
    """Calculate totals and averages over several activities.

    Args:
        activities: Activities to aggregate

    Returns:
        Dictionary with totals and per-activity averages
    """
    total_activities = len(activities)
    total_distance = sum(a.distance_meters for a in activities)
    total_time = sum(a.total_time_seconds for a in activities)
    total_calories = sum(a.calories or 0 for a in activities)

    return {
        "total_activities": total_activities,
        "total_distance": total_distance,
        "total_time": total_time,
        "total_calories": total_calories,
        "average_distance": total_distance / total_activities if total_activities else 0.0,
        "average_time": total_time / total_activities if total_activities else 0.0,
        "average_speed": _safe_speed(total_distance, total_time),
    }
