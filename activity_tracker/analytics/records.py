"""Personal record detection."""

import logging
from datetime import datetime
from typing import Iterable, Optional

from activity_tracker.analytics.statistics import calculate_statistics
from activity_tracker.formatting import format_record_time
from activity_tracker.models.activity import Activity, Statistics, as_naive_utc
from activity_tracker.models.records import (
    DISTANCE_CATEGORIES,
    RECORD_UNITS,
    PersonalRecord,
    RecordCategory,
    RecordComparison,
    RecordDetectionResult,
    RecordType,
)

logger = logging.getLogger(__name__)

TEN_KM_SPEED_BAND = (9500, 10500)

RecordTriple = tuple[RecordType, RecordCategory, str]


def _recency_key(record: PersonalRecord) -> tuple:
    return as_naive_utc(record.created_at), as_naive_utc(record.activity_date)


def latest_by_triple(records: Iterable[PersonalRecord]) -> dict[RecordTriple, PersonalRecord]:
    """Current record per (type, category, sport).

    History is append-only and every entry beats the one before it, so the
    current record of a triple is the most recently created entry. Equal
    creation times fall back to the later activity date.
    """
    current: dict[RecordTriple, PersonalRecord] = {}
    for record in records:
        triple = record.triple()
        if triple not in current or _recency_key(record) > _recency_key(current[triple]):
            current[triple] = record
    return current


def _higher_is_better(
    record_type: RecordType,
    category: RecordCategory,
    value: float,
    previous: Optional[PersonalRecord],
    message: str,
) -> Optional[RecordDetectionResult]:
    if previous is not None and value <= previous.value:
        return None

    return RecordDetectionResult(
        is_record=True,
        record_type=record_type,
        category=category,
        value=value,
        previous_value=previous.value if previous else None,
        previous_activity_id=previous.activity_id if previous else None,
        previous_date=previous.activity_date if previous else None,
        improvement=value - previous.value if previous else value,
        message=message,
    )


def detect_distance_records(
    activity: Activity,
    current: dict[RecordTriple, PersonalRecord],
) -> list[RecordDetectionResult]:
    distance = activity.distance_meters
    previous = current.get((RecordType.DISTANCE, RecordCategory.LONGEST, activity.sport))

    result = _higher_is_better(
        RecordType.DISTANCE,
        RecordCategory.LONGEST,
        distance,
        previous,
        f"New longest distance: {distance / 1000:.2f} km",
    )
    return [result] if result else []


def detect_speed_records(
    activity: Activity,
    current: dict[RecordTriple, PersonalRecord],
    stats: Statistics,
) -> list[RecordDetectionResult]:
    results = []

    # 0 means no speed data at all
    if stats.max_speed > 0:
        previous = current.get((RecordType.SPEED, RecordCategory.FASTEST, activity.sport))
        result = _higher_is_better(
            RecordType.SPEED,
            RecordCategory.FASTEST,
            stats.max_speed,
            previous,
            f"New top speed: {stats.max_speed * 3.6:.2f} km/h",
        )
        if result:
            results.append(result)

    low, high = TEN_KM_SPEED_BAND
    if low <= activity.distance_meters <= high:
        previous = current.get((RecordType.SPEED, RecordCategory.TEN_KM, activity.sport))
        result = _higher_is_better(
            RecordType.SPEED,
            RecordCategory.TEN_KM,
            stats.average_speed,
            previous,
            f"New best 10 km average speed: {stats.average_speed * 3.6:.2f} km/h",
        )
        if result:
            results.append(result)

    return results


def detect_time_records(
    activity: Activity,
    current: dict[RecordTriple, PersonalRecord],
) -> list[RecordDetectionResult]:
    """Best time per distance band; lower is better."""
    results = []
    distance = activity.distance_meters
    elapsed = activity.total_time_seconds

    for category, (low, high, label) in DISTANCE_CATEGORIES.items():
        if not low <= distance <= high:
            continue

        previous = current.get((RecordType.TIME, category, activity.sport))
        if previous is not None and elapsed >= previous.value:
            continue

        results.append(RecordDetectionResult(
            is_record=True,
            record_type=RecordType.TIME,
            category=category,
            value=elapsed,
            previous_value=previous.value if previous else None,
            previous_activity_id=previous.activity_id if previous else None,
            previous_date=previous.activity_date if previous else None,
            improvement=previous.value - elapsed if previous else elapsed,
            message=f"New {label} record: {format_record_time(elapsed)}",
        ))

    return results


def detect_elevation_records(
    activity: Activity,
    current: dict[RecordTriple, PersonalRecord],
    stats: Statistics,
) -> list[RecordDetectionResult]:
    if not stats.elevation_gain:
        return []

    previous = current.get((RecordType.ELEVATION, RecordCategory.HIGHEST, activity.sport))
    result = _higher_is_better(
        RecordType.ELEVATION,
        RecordCategory.HIGHEST,
        stats.elevation_gain,
        previous,
        f"New elevation record: {stats.elevation_gain:.0f} m",
    )
    return [result] if result else []


def detect_calorie_records(
    activity: Activity,
    current: dict[RecordTriple, PersonalRecord],
) -> list[RecordDetectionResult]:
    """Calorie records share the 'longest' category bucket."""
    if not activity.calories:
        return []

    previous = current.get((RecordType.CALORIES, RecordCategory.LONGEST, activity.sport))
    result = _higher_is_better(
        RecordType.CALORIES,
        RecordCategory.LONGEST,
        activity.calories,
        previous,
        f"New calorie record: {activity.calories} kcal",
    )
    return [result] if result else []


def detect_records(
    activity: Activity,
    existing_records: Iterable[PersonalRecord],
) -> list[RecordDetectionResult]:
    """Detect which records an activity beats.

    Each pass compares against the current record of its triple for the
    activity's sport.

    Args:
        activity: Newly imported activity
        existing_records: Stored record history

    Returns:
        One result per beaten (type, category)
    """
    current = latest_by_triple(existing_records)
    stats = calculate_statistics(activity)

    results = []
    results.extend(detect_distance_records(activity, current))
    results.extend(detect_speed_records(activity, current, stats))
    results.extend(detect_time_records(activity, current))
    results.extend(detect_elevation_records(activity, current, stats))
    results.extend(detect_calorie_records(activity, current))

    detected = [r for r in results if r.is_record]
    if detected:
        logger.info(f"Activity {activity.id} set {len(detected)} new record(s)")
    return detected


def get_unit_for_record_type(record_type: RecordType) -> str:
    return RECORD_UNITS[RecordType(record_type)]


def create_record_from_detection(
    detection: RecordDetectionResult,
    activity: Activity,
    created_at: Optional[datetime] = None,
) -> PersonalRecord:
    """Materialize a detection as a new record entity."""
    return PersonalRecord(
        id=f"{activity.id}-{detection.record_type.value}-{detection.category.value}",
        type=detection.record_type,
        category=detection.category,
        value=detection.value,
        unit=get_unit_for_record_type(detection.record_type),
        activity_id=activity.id,
        activity_date=activity.start_time,
        sport=activity.sport,
        previous_value=detection.previous_value,
        previous_activity_id=detection.previous_activity_id,
        previous_date=detection.previous_date,
        improvement=detection.improvement,
        created_at=created_at or datetime.now(),
        is_new=True,
    )


def compare_to_record(activity: Activity, record: PersonalRecord) -> RecordComparison:
    """Measure an activity against an existing record of any type."""
    stats = calculate_statistics(activity)

    if record.type == RecordType.DISTANCE:
        current_value = activity.distance_meters
    elif record.type == RecordType.SPEED:
        current_value = stats.max_speed if record.category == RecordCategory.FASTEST else stats.average_speed
    elif record.type == RecordType.TIME:
        current_value = activity.total_time_seconds
    elif record.type == RecordType.ELEVATION:
        current_value = stats.elevation_gain or 0.0
    elif record.type == RecordType.CALORIES:
        current_value = activity.calories or 0
    else:
        current_value = 0.0

    if record.type == RecordType.TIME:
        is_better = current_value < record.value
        difference = record.value - current_value
    else:
        is_better = current_value > record.value
        difference = current_value - record.value

    percentage_difference = abs(difference) / record.value * 100 if record.value else 0.0

    return RecordComparison(
        is_better=is_better,
        difference=difference,
        percentage_difference=percentage_difference,
    )


def get_distance_category(distance_meters: float) -> Optional[RecordCategory]:
    """First distance band containing the distance."""
    for category, (low, high, _) in DISTANCE_CATEGORIES.items():
        if low <= distance_meters <= high:
            return category
    return None


def is_eligible_for_time_record(activity: Activity) -> bool:
    return get_distance_category(activity.distance_meters) is not None


def calculate_improvement(current: float, previous: float, record_type: RecordType) -> float:
    """Relative improvement in percent; a shorter time is an improvement."""
    if not previous:
        return 0.0
    if RecordType(record_type) == RecordType.TIME:
        return (previous - current) / previous * 100
    return (current - previous) / previous * 100
