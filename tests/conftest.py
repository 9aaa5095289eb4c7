"""Pytest configuration and fixtures."""

import tempfile
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from activity_tracker.models.activity import Activity, Lap, Trackpoint
from activity_tracker.models.records import PersonalRecord, RecordCategory, RecordType
from activity_tracker.storage.database.manager import DatabaseManager
from activity_tracker.storage.ports import InMemoryStore


def build_trackpoints(start, heart_rates=None, speeds=None, altitudes=None, step_seconds=1, count=None):
    """Trackpoints spaced step_seconds apart; series entries may be None."""
    count = count or max(len(heart_rates or []), len(speeds or []), len(altitudes or []))
    trackpoints = []
    for i in range(count):
        trackpoints.append(Trackpoint(
            time=start + timedelta(seconds=i * step_seconds),
            heart_rate=heart_rates[i] if heart_rates else None,
            speed=speeds[i] if speeds else None,
            altitude=altitudes[i] if altitudes else None,
        ))
    return trackpoints


def build_activity(
    activity_id="act1",
    sport="Running",
    start=datetime(2024, 1, 17, 8, 0),
    distance=10000.0,
    duration=3000.0,
    calories=None,
    trackpoints=None,
    laps=None,
):
    """Single-lap activity unless explicit laps are given."""
    if laps is None:
        laps = [Lap(
            start_time=start,
            total_time_seconds=duration,
            distance_meters=distance,
            trackpoints=trackpoints or [],
        )]
    return Activity(
        id=activity_id,
        sport=sport,
        start_time=start,
        total_time_seconds=duration,
        distance_meters=distance,
        calories=calories,
        laps=laps,
    )


def build_record(
    record_type=RecordType.DISTANCE,
    category=RecordCategory.LONGEST,
    value=5000.0,
    sport="Running",
    activity_id="old",
    activity_date=datetime(2024, 1, 1, 8, 0),
    created_at=None,
):
    return PersonalRecord(
        id=f"{activity_id}-{RecordType(record_type).value}-{RecordCategory(category).value}",
        type=record_type,
        category=category,
        value=value,
        unit="m",
        activity_id=activity_id,
        activity_date=activity_date,
        sport=sport,
        created_at=created_at or activity_date,
    )


@pytest.fixture
def make_activity():
    return build_activity


@pytest.fixture
def make_trackpoints():
    return build_trackpoints


@pytest.fixture
def make_record():
    return build_record


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as tmp:
        db_path = tmp.name

    db = DatabaseManager(db_path=db_path)
    yield db

    db.engine.dispose()
    for suffix in ("", "-wal", "-shm"):
        Path(db_path + suffix).unlink(missing_ok=True)


@pytest.fixture
def heart_rate_activity():
    """Ten minutes of running at a steady 125 bpm, one sample per second."""
    start = datetime(2024, 1, 17, 7, 0)
    trackpoints = build_trackpoints(
        start,
        heart_rates=[125] * 600,
        speeds=[3.0] * 600,
        altitudes=[100 + (i % 20) for i in range(600)],
    )
    return build_activity(
        activity_id="hr-run",
        start=start,
        distance=1800.0,
        duration=600.0,
        calories=150,
        trackpoints=trackpoints,
    )


@pytest.fixture
def sample_activities():
    """A small history spread over three weeks and two sports."""
    return [
        build_activity("run1", "Running", datetime(2024, 1, 2, 7, 0), 5000, 1500),
        build_activity("ride1", "Cycling", datetime(2024, 1, 4, 18, 0), 30000, 3600, calories=600),
        build_activity("run2", "Running", datetime(2024, 1, 9, 7, 0), 10000, 3000),
        build_activity("run3", "Running", datetime(2024, 1, 16, 7, 0), 8000, 2400, calories=500),
    ]
