"""Storage interfaces used by the services, and an in-memory implementation."""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from activity_tracker.models.activity import Activity, as_naive_utc
from activity_tracker.models.records import PersonalRecord
from activity_tracker.models.zones import ZoneSettings

logger = logging.getLogger(__name__)


class ActivityStore(ABC):
    """Keyed store of activities."""

    @abstractmethod
    def save_activity(self, activity: Activity) -> None:
        """Insert or replace an activity by id."""

    @abstractmethod
    def get_activity(self, activity_id: str) -> Optional[Activity]:
        ...

    @abstractmethod
    def list_activities(self) -> list[Activity]:
        """All activities, oldest first."""

    @abstractmethod
    def delete_activity(self, activity_id: str) -> bool:
        """Delete an activity and its records; False if it did not exist."""


class RecordStore(ABC):
    """Append-only personal record history."""

    @abstractmethod
    def save_record(self, record: PersonalRecord) -> None:
        """Insert or replace a record by id."""

    @abstractmethod
    def get_record(self, record_id: str) -> Optional[PersonalRecord]:
        ...

    @abstractmethod
    def list_records(self) -> list[PersonalRecord]:
        ...

    @abstractmethod
    def delete_record(self, record_id: str) -> bool:
        ...

    @abstractmethod
    def delete_records_by_activity(self, activity_id: str) -> int:
        """Delete every record set by an activity, returning how many."""

    @abstractmethod
    def clear_records(self) -> None:
        ...


class SettingsStore(ABC):
    """Persisted zone settings."""

    @abstractmethod
    def load_settings(self, settings_id: str) -> Optional[ZoneSettings]:
        ...

    @abstractmethod
    def save_settings(self, settings: ZoneSettings) -> None:
        ...

    @abstractmethod
    def delete_settings(self, settings_id: str) -> None:
        ...


class InMemoryStore(ActivityStore, RecordStore, SettingsStore):
    """Dictionary-backed store, used in tests and for one-off analyses."""

    def __init__(self):
        self.activities: dict[str, Activity] = {}
        self.records: dict[str, PersonalRecord] = {}
        self.settings: dict[str, ZoneSettings] = {}

    def save_activity(self, activity: Activity) -> None:
        self.activities[activity.id] = activity.model_copy(deep=True)

    def get_activity(self, activity_id: str) -> Optional[Activity]:
        activity = self.activities.get(activity_id)
        return activity.model_copy(deep=True) if activity else None

    def list_activities(self) -> list[Activity]:
        activities = sorted(self.activities.values(), key=lambda a: as_naive_utc(a.start_time))
        return [a.model_copy(deep=True) for a in activities]

    def delete_activity(self, activity_id: str) -> bool:
        if self.activities.pop(activity_id, None) is None:
            return False
        removed = self.delete_records_by_activity(activity_id)
        logger.debug(f"Deleted activity {activity_id} and {removed} record(s)")
        return True

    def save_record(self, record: PersonalRecord) -> None:
        self.records[record.id] = record.model_copy()

    def get_record(self, record_id: str) -> Optional[PersonalRecord]:
        record = self.records.get(record_id)
        return record.model_copy() if record else None

    def list_records(self) -> list[PersonalRecord]:
        return [r.model_copy() for r in self.records.values()]

    def delete_record(self, record_id: str) -> bool:
        return self.records.pop(record_id, None) is not None

    def delete_records_by_activity(self, activity_id: str) -> int:
        ids = [r.id for r in self.records.values() if r.activity_id == activity_id]
        for record_id in ids:
            del self.records[record_id]
        return len(ids)

    def clear_records(self) -> None:
        self.records.clear()

    def load_settings(self, settings_id: str) -> Optional[ZoneSettings]:
        settings = self.settings.get(settings_id)
        return settings.model_copy(deep=True) if settings else None

    def save_settings(self, settings: ZoneSettings) -> None:
        self.settings[settings.id] = settings.model_copy(deep=True)

    def delete_settings(self, settings_id: str) -> None:
        self.settings.pop(settings_id, None)
