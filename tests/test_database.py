"""Tests for database manager module."""

from datetime import datetime, timedelta, timezone

import polars as pl
from sqlalchemy import text

from activity_tracker.models.zones import ZoneMethod, ZoneSettings


def test_database_initialization(temp_db):
    """Test database initialization and schema creation."""
    with temp_db.engine.connect() as conn:
        result = conn.execute(text("SELECT name FROM sqlite_master WHERE type='table'"))
        tables = [row[0] for row in result]

    assert "activities" in tables
    assert "personal_records" in tables
    assert "zone_settings" in tables


def test_activity_roundtrip(temp_db, heart_rate_activity):
    temp_db.save_activity(heart_rate_activity)

    loaded = temp_db.get_activity("hr-run")

    assert loaded == heart_rate_activity
    assert len(loaded.trackpoints()) == 600
    assert temp_db.get_activity("missing") is None


def test_save_activity_replaces(temp_db, make_activity):
    temp_db.save_activity(make_activity(distance=5000))
    temp_db.save_activity(make_activity(distance=6000))

    activities = temp_db.list_activities()

    assert len(activities) == 1
    assert activities[0].distance_meters == 6000


def test_list_activities_oldest_first(temp_db, sample_activities):
    for activity in reversed(sample_activities):
        temp_db.save_activity(activity)

    assert [a.id for a in temp_db.list_activities()] == ["run1", "ride1", "run2", "run3"]


def test_get_activities(temp_db, sample_activities):
    """Test retrieving activities from database."""
    for activity in sample_activities:
        temp_db.save_activity(activity)

    activities = temp_db.get_activities()
    assert [a.id for a in activities] == ["run3", "run2", "ride1", "run1"]

    activities = temp_db.get_activities(sport="Cycling")
    assert [a.id for a in activities] == ["ride1"]

    activities = temp_db.get_activities(limit=2)
    assert len(activities) == 2


def test_get_activities_date_filter(temp_db, sample_activities):
    for activity in sample_activities:
        temp_db.save_activity(activity)

    # A midnight end date covers the whole day
    activities = temp_db.get_activities(start_date=datetime(2024, 1, 4), end_date=datetime(2024, 1, 9))

    assert [a.id for a in activities] == ["run2", "ride1"]


def test_aware_start_times_are_ordered_in_utc(temp_db, make_activity):
    paris = timezone(timedelta(hours=1))
    temp_db.save_activity(make_activity("early", start=datetime(2024, 1, 17, 8, 30, tzinfo=paris)))
    temp_db.save_activity(make_activity("late", start=datetime(2024, 1, 17, 8, 0, tzinfo=timezone.utc)))

    assert [a.id for a in temp_db.list_activities()] == ["early", "late"]


def test_delete_activity_cascades_to_records(temp_db, make_activity, make_record):
    temp_db.save_activity(make_activity("run"))
    temp_db.save_record(make_record(activity_id="run"))
    temp_db.save_record(make_record(activity_id="other"))

    assert temp_db.delete_activity("run") is True
    assert temp_db.delete_activity("run") is False
    assert [r.activity_id for r in temp_db.list_records()] == ["other"]


def test_record_storage(temp_db, make_record):
    record = make_record(value=5000)
    temp_db.save_record(record)
    temp_db.save_record(record.model_copy(update={"is_new": False}))

    assert len(temp_db.list_records()) == 1
    assert temp_db.get_record(record.id).is_new is False

    assert temp_db.delete_records_by_activity("old") == 1
    assert temp_db.delete_record(record.id) is False


def test_clear_records(temp_db, make_record):
    temp_db.save_record(make_record(activity_id="a"))
    temp_db.save_record(make_record(activity_id="b"))

    temp_db.clear_records()

    assert temp_db.list_records() == []


def test_settings_storage(temp_db):
    settings = ZoneSettings(max_heart_rate=185, resting_heart_rate=55, method=ZoneMethod.KARVONEN)

    temp_db.save_settings(settings)

    assert temp_db.load_settings("default") == settings

    temp_db.delete_settings("default")
    assert temp_db.load_settings("default") is None


def test_activities_frame(temp_db, sample_activities):
    for activity in sample_activities:
        temp_db.save_activity(activity)

    df = temp_db.activities_frame()

    assert df.height == 4
    assert df["start_time"].dtype == pl.Datetime
    assert df["start_time"][0] == datetime(2024, 1, 2, 7, 0)
    assert df["calories"].to_list() == [None, 600, None, 500]


def test_activities_frame_empty(temp_db):
    assert temp_db.activities_frame().is_empty()


def test_summary_stats(temp_db, sample_activities, make_record):
    """Test getting summary statistics."""
    for activity in sample_activities:
        temp_db.save_activity(activity)
    temp_db.save_record(make_record())

    stats = temp_db.get_summary_stats()

    assert stats["total_activities"] == 4
    assert stats["activities_by_sport"] == {"Running": 3, "Cycling": 1}
    assert stats["total_distance"] == 53000
    assert stats["total_time"] == 10500
    assert stats["total_records"] == 1
    assert stats["earliest_activity"].startswith("2024-01-02")


def test_summary_stats_empty(temp_db):
    stats = temp_db.get_summary_stats()

    assert stats["total_activities"] == 0
    assert stats["earliest_activity"] is None
    assert stats["total_distance"] == 0
