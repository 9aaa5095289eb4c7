"""SQLite database manager for the activity tracker."""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

import polars as pl
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine

from activity_tracker.config import DATABASE_PATH
from activity_tracker.models.activity import Activity, as_naive_utc
from activity_tracker.models.records import PersonalRecord
from activity_tracker.models.zones import ZoneSettings
from activity_tracker.storage.ports import ActivityStore, RecordStore, SettingsStore

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S.%f"


def _timestamp(value: datetime) -> str:
    """Sortable UTC text form of a datetime; naive values are kept as-is."""
    return as_naive_utc(value).strftime(TIMESTAMP_FORMAT)


class DatabaseManager(ActivityStore, RecordStore, SettingsStore):
    """Manage SQLite database operations.

    Entities are stored as pydantic JSON payloads next to the columns used
    for filtering and ordering.
    """

    def __init__(self, db_path: str = None):
        """Initialize database manager.

        Args:
            db_path: Path to SQLite database file (uses config default if None)
        """
        self.db_path = Path(db_path if db_path else DATABASE_PATH)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self.engine = self._create_engine()

        self._initialize_database()

    def _create_engine(self) -> Engine:
        """Create SQLAlchemy engine with optimized settings."""
        engine = create_engine(
            f"sqlite:///{self.db_path}",
            connect_args={
                "check_same_thread": False,
                "timeout": 30,
            },
            pool_pre_ping=True,
            echo=False,
        )

        with engine.connect() as conn:
            conn.execute(text("PRAGMA journal_mode=WAL"))
            conn.execute(text("PRAGMA synchronous=NORMAL"))
            conn.execute(text("PRAGMA cache_size=10000"))
            conn.execute(text("PRAGMA temp_store=MEMORY"))
            conn.commit()

        return engine

    def _initialize_database(self):
        """Initialize database schema."""
        with self.engine.connect() as conn:
            conn.execute(text("""
                CREATE TABLE IF NOT EXISTS activities (
                    id TEXT PRIMARY KEY,
                    sport TEXT NOT NULL,
                    start_time TIMESTAMP NOT NULL,
                    distance_meters REAL,
                    total_time_seconds REAL,
                    calories INTEGER,
                    payload JSON NOT NULL,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """))
            conn.execute(text("CREATE INDEX IF NOT EXISTS idx_activities_sport ON activities(sport)"))
            conn.execute(text("CREATE INDEX IF NOT EXISTS idx_activities_start ON activities(start_time)"))

            conn.execute(text("""
                CREATE TABLE IF NOT EXISTS personal_records (
                    id TEXT PRIMARY KEY,
                    type TEXT NOT NULL,
                    category TEXT NOT NULL,
                    sport TEXT NOT NULL,
                    value REAL NOT NULL,
                    activity_id TEXT NOT NULL,
                    activity_date TIMESTAMP NOT NULL,
                    payload JSON NOT NULL,
                    created_at TIMESTAMP
                )
            """))
            conn.execute(text("CREATE INDEX IF NOT EXISTS idx_records_type ON personal_records(type)"))
            conn.execute(text("CREATE INDEX IF NOT EXISTS idx_records_category ON personal_records(category)"))
            conn.execute(text("CREATE INDEX IF NOT EXISTS idx_records_sport ON personal_records(sport)"))
            conn.execute(text("CREATE INDEX IF NOT EXISTS idx_records_activity ON personal_records(activity_id)"))

            conn.execute(text("""
                CREATE TABLE IF NOT EXISTS zone_settings (
                    id TEXT PRIMARY KEY,
                    payload JSON NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """))

            conn.commit()

        logger.info(f"Database initialized at {self.db_path}")

    # Activities

    def save_activity(self, activity: Activity) -> None:
        with self.engine.connect() as conn:
            conn.execute(text("""
                INSERT OR REPLACE INTO activities
                (id, sport, start_time, distance_meters, total_time_seconds,
                 calories, payload, updated_at)
                VALUES (:id, :sport, :start_time, :distance_meters, :total_time_seconds,
                        :calories, :payload, :updated_at)
            """), {
                "id": activity.id,
                "sport": activity.sport,
                "start_time": _timestamp(activity.start_time),
                "distance_meters": activity.distance_meters,
                "total_time_seconds": activity.total_time_seconds,
                "calories": activity.calories,
                "payload": activity.model_dump_json(),
                "updated_at": datetime.now().isoformat(),
            })
            conn.commit()

        logger.debug(f"Saved activity {activity.id}")

    def get_activity(self, activity_id: str) -> Optional[Activity]:
        with self.engine.connect() as conn:
            row = conn.execute(
                text("SELECT payload FROM activities WHERE id = :id"),
                {"id": activity_id},
            ).first()

        return Activity.model_validate_json(row[0]) if row else None

    def list_activities(self) -> list[Activity]:
        with self.engine.connect() as conn:
            result = conn.execute(text("SELECT payload FROM activities ORDER BY start_time"))
            return [Activity.model_validate_json(row[0]) for row in result]

    def get_activities(
        self,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        sport: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[Activity]:
        """Retrieve activities from database.

        Args:
            start_date: Filter by start date
            end_date: Filter by end date, a midnight value includes the whole day
            sport: Filter by sport
            limit: Maximum number of activities

        Returns:
            Activities, most recent first
        """
        query = "SELECT payload FROM activities WHERE 1=1"
        params = {}

        if start_date:
            query += " AND start_time >= :start_date"
            params["start_date"] = _timestamp(start_date)

        if end_date:
            query += " AND start_time <= :end_date"
            if end_date.hour == 0 and end_date.minute == 0 and end_date.second == 0:
                end_date = end_date.replace(hour=23, minute=59, second=59, microsecond=999999)
            params["end_date"] = _timestamp(end_date)

        if sport:
            query += " AND sport = :sport"
            params["sport"] = sport

        query += " ORDER BY start_time DESC"

        if limit:
            query += " LIMIT :limit"
            params["limit"] = int(limit)

        logger.debug(f"Query: {query}")
        logger.debug(f"Params: {params}")

        with self.engine.connect() as conn:
            result = conn.execute(text(query), params)
            activities = [Activity.model_validate_json(row[0]) for row in result]

        logger.info(f"Retrieved {len(activities)} activities from database")
        return activities

    def delete_activity(self, activity_id: str) -> bool:
        """Delete an activity together with the records it set."""
        with self.engine.connect() as conn:
            removed = conn.execute(
                text("DELETE FROM activities WHERE id = :id"),
                {"id": activity_id},
            ).rowcount
            records = conn.execute(
                text("DELETE FROM personal_records WHERE activity_id = :id"),
                {"id": activity_id},
            ).rowcount
            conn.commit()

        if removed:
            logger.info(f"Deleted activity {activity_id} and {records} record(s)")
        return bool(removed)

    def activities_frame(self) -> pl.DataFrame:
        """Summary columns of every stored activity as a DataFrame."""
        with self.engine.connect() as conn:
            df = pl.read_database(
                query="""
                    SELECT id, sport, start_time, distance_meters, total_time_seconds, calories
                    FROM activities ORDER BY start_time
                """,
                connection=conn,
                schema_overrides={
                    "distance_meters": pl.Float64,
                    "total_time_seconds": pl.Float64,
                    "calories": pl.Int64,
                },
            )

        if df.is_empty():
            return df

        return df.with_columns(
            pl.col("start_time").str.to_datetime("%Y-%m-%d %H:%M:%S%.f")
        )

    # Records

    def save_record(self, record: PersonalRecord) -> None:
        with self.engine.connect() as conn:
            conn.execute(text("""
                INSERT OR REPLACE INTO personal_records
                (id, type, category, sport, value, activity_id, activity_date, payload, created_at)
                VALUES (:id, :type, :category, :sport, :value, :activity_id, :activity_date,
                        :payload, :created_at)
            """), {
                "id": record.id,
                "type": record.type.value,
                "category": record.category.value,
                "sport": record.sport,
                "value": record.value,
                "activity_id": record.activity_id,
                "activity_date": _timestamp(record.activity_date),
                "payload": record.model_dump_json(),
                "created_at": _timestamp(record.created_at),
            })
            conn.commit()

    def get_record(self, record_id: str) -> Optional[PersonalRecord]:
        with self.engine.connect() as conn:
            row = conn.execute(
                text("SELECT payload FROM personal_records WHERE id = :id"),
                {"id": record_id},
            ).first()

        return PersonalRecord.model_validate_json(row[0]) if row else None

    def list_records(self) -> list[PersonalRecord]:
        with self.engine.connect() as conn:
            result = conn.execute(text("SELECT payload FROM personal_records"))
            return [PersonalRecord.model_validate_json(row[0]) for row in result]

    def delete_record(self, record_id: str) -> bool:
        with self.engine.connect() as conn:
            removed = conn.execute(
                text("DELETE FROM personal_records WHERE id = :id"),
                {"id": record_id},
            ).rowcount
            conn.commit()
        return bool(removed)

    def delete_records_by_activity(self, activity_id: str) -> int:
        with self.engine.connect() as conn:
            removed = conn.execute(
                text("DELETE FROM personal_records WHERE activity_id = :id"),
                {"id": activity_id},
            ).rowcount
            conn.commit()
        return removed

    def clear_records(self) -> None:
        with self.engine.connect() as conn:
            conn.execute(text("DELETE FROM personal_records"))
            conn.commit()

    # Zone settings

    def load_settings(self, settings_id: str) -> Optional[ZoneSettings]:
        with self.engine.connect() as conn:
            row = conn.execute(
                text("SELECT payload FROM zone_settings WHERE id = :id"),
                {"id": settings_id},
            ).first()

        return ZoneSettings.model_validate_json(row[0]) if row else None

    def save_settings(self, settings: ZoneSettings) -> None:
        with self.engine.connect() as conn:
            conn.execute(text("""
                INSERT OR REPLACE INTO zone_settings (id, payload, updated_at)
                VALUES (:id, :payload, :updated_at)
            """), {
                "id": settings.id,
                "payload": settings.model_dump_json(),
                "updated_at": datetime.now().isoformat(),
            })
            conn.commit()

    def delete_settings(self, settings_id: str) -> None:
        with self.engine.connect() as conn:
            conn.execute(text("DELETE FROM zone_settings WHERE id = :id"), {"id": settings_id})
            conn.commit()

    def get_summary_stats(self) -> dict:
        """Get summary statistics from database.

        Returns:
            Dictionary with summary statistics
        """
        with self.engine.connect() as conn:
            stats = {}

            result = conn.execute(text("SELECT COUNT(*) FROM activities"))
            stats["total_activities"] = result.scalar()

            result = conn.execute(text("""
                SELECT MIN(start_time), MAX(start_time)
                FROM activities
            """))
            row = result.first()
            stats["earliest_activity"] = row[0] if row else None
            stats["latest_activity"] = row[1] if row else None

            result = conn.execute(text("""
                SELECT sport, COUNT(*)
                FROM activities
                GROUP BY sport
            """))
            stats["activities_by_sport"] = dict(result.fetchall())

            result = conn.execute(text("""
                SELECT SUM(distance_meters), SUM(total_time_seconds)
                FROM activities
            """))
            row = result.first()
            stats["total_distance"] = (row[0] or 0.0) if row else 0.0
            stats["total_time"] = (row[1] or 0.0) if row else 0.0

            result = conn.execute(text("SELECT COUNT(*) FROM personal_records"))
            stats["total_records"] = result.scalar()

        return stats
