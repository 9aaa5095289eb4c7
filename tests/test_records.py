"""Tests for personal record detection."""

from datetime import datetime, timezone

import pytest

from activity_tracker.analytics.records import (
    calculate_improvement,
    compare_to_record,
    create_record_from_detection,
    detect_records,
    get_distance_category,
    is_eligible_for_time_record,
    latest_by_triple,
)
from activity_tracker.models.records import RecordCategory, RecordType

JAN_20 = datetime(2024, 1, 20, 8, 0)


def _by_kind(detections):
    return {(d.record_type, d.category): d for d in detections}


def test_longer_distance_sets_single_record(make_activity, make_record):
    existing = [make_record(RecordType.DISTANCE, RecordCategory.LONGEST, 5000)]
    activity = make_activity("new", distance=8000, duration=2400, start=JAN_20)

    detections = detect_records(activity, existing)

    assert len(detections) == 1
    detection = detections[0]
    assert detection.record_type == RecordType.DISTANCE
    assert detection.category == RecordCategory.LONGEST
    assert detection.value == 8000
    assert detection.improvement == 3000
    assert detection.previous_value == 5000
    assert detection.previous_activity_id == "old"


def test_shorter_distance_is_not_a_record(make_activity, make_record):
    existing = [make_record(RecordType.DISTANCE, RecordCategory.LONGEST, 5000)]

    detections = detect_records(make_activity(distance=4000, duration=1200), existing)

    assert (RecordType.DISTANCE, RecordCategory.LONGEST) not in _by_kind(detections)


def test_faster_time_is_a_record(make_activity, make_record):
    existing = [make_record(RecordType.TIME, RecordCategory.FIVE_KM, 1200)]

    detections = _by_kind(detect_records(make_activity(distance=5000, duration=1100), existing))

    detection = detections[(RecordType.TIME, RecordCategory.FIVE_KM)]
    assert detection.value == 1100
    assert detection.improvement == 100


def test_slower_time_is_not_a_record(make_activity, make_record):
    existing = [make_record(RecordType.TIME, RecordCategory.FIVE_KM, 1200)]

    detections = _by_kind(detect_records(make_activity(distance=5000, duration=1300), existing))

    assert (RecordType.TIME, RecordCategory.FIVE_KM) not in detections


def test_first_time_record_improvement_is_its_value(make_activity):
    detections = _by_kind(detect_records(make_activity(distance=5000, duration=1500), []))

    detection = detections[(RecordType.TIME, RecordCategory.FIVE_KM)]
    assert detection.improvement == 1500
    assert detection.previous_value is None
    assert "5 km" in detection.message


def test_ten_km_without_trackpoints(make_activity):
    """No speed samples: no top speed record, but 10 km average speed and time."""
    detections = _by_kind(detect_records(make_activity(distance=10000, duration=3000), []))

    assert set(detections) == {
        (RecordType.DISTANCE, RecordCategory.LONGEST),
        (RecordType.SPEED, RecordCategory.TEN_KM),
        (RecordType.TIME, RecordCategory.TEN_KM),
    }
    assert detections[(RecordType.SPEED, RecordCategory.TEN_KM)].value == pytest.approx(10000 / 3000)


def test_trackpoint_records(heart_rate_activity):
    detections = _by_kind(detect_records(heart_rate_activity, []))

    assert detections[(RecordType.SPEED, RecordCategory.FASTEST)].value == pytest.approx(3.0)
    assert (RecordType.ELEVATION, RecordCategory.HIGHEST) in detections
    # Calories share the longest bucket
    assert detections[(RecordType.CALORIES, RecordCategory.LONGEST)].value == 150


def test_records_are_per_sport(make_activity, make_record):
    existing = [make_record(RecordType.DISTANCE, RecordCategory.LONGEST, 50000, sport="Cycling")]

    detections = _by_kind(detect_records(make_activity(sport="Running", distance=8000), existing))

    detection = detections[(RecordType.DISTANCE, RecordCategory.LONGEST)]
    assert detection.previous_value is None


def test_detection_is_monotonic(heart_rate_activity):
    """Running detection again against its own output finds nothing new."""
    first = detect_records(heart_rate_activity, [])
    records = [create_record_from_detection(d, heart_rate_activity) for d in first]

    assert first
    assert detect_records(heart_rate_activity, records) == []


def test_detection_compares_against_latest_record(make_activity, make_record):
    """Only the current record of a triple counts, not the best in history."""
    existing = [
        make_record(RecordType.DISTANCE, RecordCategory.LONGEST, 9000, activity_id="a",
                    activity_date=datetime(2024, 1, 1)),
        make_record(RecordType.DISTANCE, RecordCategory.LONGEST, 7000, activity_id="b",
                    activity_date=datetime(2024, 1, 5)),
    ]

    detections = _by_kind(detect_records(make_activity(distance=8000, duration=4000), existing))

    assert detections[(RecordType.DISTANCE, RecordCategory.LONGEST)].previous_value == 7000


def test_latest_by_triple(make_record):
    old = make_record(value=5000, activity_id="a", activity_date=datetime(2024, 1, 1))
    new = make_record(value=8000, activity_id="b", activity_date=datetime(2024, 1, 10))
    other_sport = make_record(value=40000, sport="Cycling", activity_id="c")

    current = latest_by_triple([new, old, other_sport])

    assert current[(RecordType.DISTANCE, RecordCategory.LONGEST, "Running")] is new
    assert current[(RecordType.DISTANCE, RecordCategory.LONGEST, "Cycling")] is other_sport
    assert len(current) == 2


def test_latest_by_triple_prefers_most_recently_created(make_record):
    """A record set later by an older activity still replaces the current one."""
    june = make_record(value=5000, activity_id="june", activity_date=datetime(2024, 6, 1),
                       created_at=datetime(2024, 6, 1, 9))
    january = make_record(value=8000, activity_id="january", activity_date=datetime(2024, 1, 1),
                          created_at=datetime(2024, 7, 1, 9))

    current = latest_by_triple([june, january])

    assert current[june.triple()] is january


def test_latest_by_triple_tie_uses_activity_date(make_record):
    created = datetime(2024, 2, 1, 9)
    first = make_record(value=5000, activity_id="a", activity_date=datetime(2024, 1, 1), created_at=created)
    second = make_record(value=5100, activity_id="b", activity_date=datetime(2024, 1, 2), created_at=created)

    current = latest_by_triple([second, first])

    assert current[first.triple()] is second


def test_latest_by_triple_mixes_naive_and_aware_dates(make_record):
    naive = make_record(value=5000, activity_id="a", created_at=datetime(2024, 1, 1, 9))
    aware = make_record(value=6000, activity_id="b", created_at=datetime(2024, 1, 1, 10, tzinfo=timezone.utc))

    assert latest_by_triple([aware, naive])[naive.triple()] is aware


def test_detection_is_monotonic_out_of_order(make_activity, make_record):
    """An older activity that beats a newer record is only reported once."""
    june = make_record(value=5000, activity_id="june", activity_date=datetime(2024, 6, 1),
                       created_at=datetime(2024, 6, 1, 9))
    january = make_activity("january", start=datetime(2024, 1, 1, 8, 0), distance=8000, duration=4000)

    first = detect_records(january, [june])
    records = [june] + [create_record_from_detection(d, january) for d in first]

    assert (RecordType.DISTANCE, RecordCategory.LONGEST) in _by_kind(first)
    assert detect_records(january, records) == []


def test_create_record_from_detection(make_activity):
    activity = make_activity("run42", distance=8000, duration=2400, start=JAN_20)
    detection = detect_records(activity, [])[0]

    record = create_record_from_detection(detection, activity, created_at=datetime(2024, 1, 20, 9, 0))

    assert record.id == "run42-distance-longest"
    assert record.unit == "m"
    assert record.activity_date == JAN_20
    assert record.sport == "Running"
    assert record.is_new is True
    assert record.created_at == datetime(2024, 1, 20, 9, 0)


def test_compare_to_time_record(make_activity, make_record):
    record = make_record(RecordType.TIME, RecordCategory.FIVE_KM, 1200)

    comparison = compare_to_record(make_activity(distance=5000, duration=1100), record)

    assert comparison.is_better is True
    assert comparison.difference == 100
    assert comparison.percentage_difference == pytest.approx(100 / 12)


def test_compare_to_distance_record(make_activity, make_record):
    record = make_record(RecordType.DISTANCE, RecordCategory.LONGEST, 10000)

    comparison = compare_to_record(make_activity(distance=8000), record)

    assert comparison.is_better is False
    assert comparison.difference == -2000
    assert comparison.percentage_difference == pytest.approx(20)


def test_compare_to_zero_record(make_activity, make_record):
    record = make_record(RecordType.ELEVATION, RecordCategory.HIGHEST, 0)

    assert compare_to_record(make_activity(), record).percentage_difference == 0


def test_distance_categories(make_activity):
    assert get_distance_category(1000) == RecordCategory.ONE_KM
    assert get_distance_category(5400) == RecordCategory.FIVE_KM
    assert get_distance_category(21097) == RecordCategory.HALF_MARATHON
    assert get_distance_category(7000) is None
    assert is_eligible_for_time_record(make_activity(distance=42195))
    assert not is_eligible_for_time_record(make_activity(distance=15000))


def test_calculate_improvement():
    assert calculate_improvement(1100, 1200, RecordType.TIME) == pytest.approx(100 / 12)
    assert calculate_improvement(8000, 5000, RecordType.DISTANCE) == pytest.approx(60)
    assert calculate_improvement(8000, 0, RecordType.DISTANCE) == 0
