"""Personal record persistence and queries."""

import logging
from collections import Counter, defaultdict
from datetime import timedelta
from typing import Optional, Union

from pydantic import TypeAdapter

from activity_tracker.analytics.records import (
    compare_to_record,
    create_record_from_detection,
    detect_records,
    get_distance_category,
    latest_by_triple,
)
from activity_tracker.config import RECENT_RECORDS_LIMIT
from activity_tracker.models.activity import Activity, as_naive_utc
from activity_tracker.models.records import (
    RECORD_CATEGORY_DESCRIPTIONS,
    RECORD_CATEGORY_LABELS,
    PersonalRecord,
    RecordCategory,
    RecordComparison,
    RecordsByCategory,
    RecordStatistics,
    RecordType,
)
from activity_tracker.storage.ports import RecordStore

logger = logging.getLogger(__name__)

RECORD_LIST = TypeAdapter(list[PersonalRecord])


def longest_streak(records: list[PersonalRecord]) -> int:
    """Longest run of consecutive calendar days on which a record was set."""
    days = sorted({record.activity_date.date() for record in records})
    if not days:
        return 0

    longest = current = 1
    for previous, day in zip(days, days[1:]):
        if day - previous == timedelta(days=1):
            current += 1
            longest = max(longest, current)
        else:
            current = 1
    return longest


class PersonalRecordsService:
    """Detect, store and query personal records.

    History is append-only; the current best per (type, category, sport) is
    derived with latest_by_triple.
    """

    def __init__(self, store: RecordStore):
        self.store = store

    def detect_and_save_records(self, activity: Activity) -> list[PersonalRecord]:
        """Detect the records an activity sets and append them to the history.

        Args:
            activity: Newly imported activity

        Returns:
            The records that were created
        """
        try:
            existing = [r for r in self.store.list_records() if r.sport == activity.sport]
            detections = detect_records(activity, existing)

            new_records = []
            for detection in detections:
                record = create_record_from_detection(detection, activity)
                self.store.save_record(record)
                new_records.append(record)
        except Exception as e:
            logger.error(f"Record detection failed for activity {activity.id}: {e}")
            raise

        if new_records:
            logger.info(f"Saved {len(new_records)} new record(s) for activity {activity.id}")
        return new_records

    def get_all_records(self) -> list[PersonalRecord]:
        """Every record, most recent activity first."""
        return sorted(self.store.list_records(), key=lambda r: as_naive_utc(r.activity_date), reverse=True)

    def get_records_by_sport(self, sport: str) -> list[PersonalRecord]:
        return [r for r in self.get_all_records() if r.sport == sport]

    def get_records_by_type(self, record_type: Union[RecordType, str]) -> list[PersonalRecord]:
        record_type = RecordType(record_type)
        return [r for r in self.get_all_records() if r.type == record_type]

    def get_records_by_category(self, category: Union[RecordCategory, str]) -> list[PersonalRecord]:
        category = RecordCategory(category)
        return [r for r in self.get_all_records() if r.category == category]

    def get_record(self, record_id: str) -> Optional[PersonalRecord]:
        return self.store.get_record(record_id)

    def get_current_records(self, sport: Optional[str] = None) -> list[PersonalRecord]:
        """Current best per (type, category, sport), optionally for one sport."""
        current = latest_by_triple(self.store.list_records()).values()
        if sport:
            current = [r for r in current if r.sport == sport]
        return sorted(current, key=lambda r: (r.sport, r.type.value, r.category.value))

    def delete_record(self, record_id: str) -> bool:
        try:
            deleted = self.store.delete_record(record_id)
        except Exception as e:
            logger.error(f"Failed to delete record {record_id}: {e}")
            raise

        if deleted:
            logger.info(f"Deleted record {record_id}")
        return deleted

    def delete_records_by_activity(self, activity_id: str) -> int:
        try:
            removed = self.store.delete_records_by_activity(activity_id)
        except Exception as e:
            logger.error(f"Failed to delete records of activity {activity_id}: {e}")
            raise

        logger.info(f"Deleted {removed} record(s) of activity {activity_id}")
        return removed

    def mark_records_as_seen(self, record_ids: list[str]) -> int:
        """Clear the new badge; unknown ids are ignored."""
        updated = 0
        for record_id in record_ids:
            record = self.store.get_record(record_id)
            if record is None:
                continue
            self.store.save_record(record.model_copy(update={"is_new": False}))
            updated += 1
        return updated

    def get_new_records(self) -> list[PersonalRecord]:
        return [r for r in self.get_all_records() if r.is_new]

    def get_records_grouped_by_category(self) -> list[RecordsByCategory]:
        """Records per category, biggest category first."""
        grouped: dict[RecordCategory, list[PersonalRecord]] = defaultdict(list)
        for record in self.get_all_records():
            grouped[record.category].append(record)

        result = [
            RecordsByCategory(
                category=category,
                label=RECORD_CATEGORY_LABELS[category],
                description=RECORD_CATEGORY_DESCRIPTIONS[category],
                records=records,
            )
            for category, records in grouped.items()
        ]
        return sorted(result, key=lambda group: len(group.records), reverse=True)

    def get_record_statistics(self) -> RecordStatistics:
        records = self.get_all_records()
        if not records:
            return RecordStatistics()

        by_type = {record_type: 0 for record_type in RecordType}
        by_type.update(Counter(r.type for r in records))

        recent = sorted(records, key=lambda r: as_naive_utc(r.created_at), reverse=True)

        return RecordStatistics(
            total_records=len(records),
            records_by_sport=dict(Counter(r.sport for r in records)),
            records_by_type=by_type,
            recent_records=recent[:RECENT_RECORDS_LIMIT],
            longest_streak=longest_streak(records),
            last_record_date=recent[0].created_at,
        )

    def compare_activity_to_records(self, activity: Activity) -> dict:
        """Compare an activity with the current time record of its distance band.

        Returns:
            Dictionary with the band category, the record and the comparison,
            each None when not applicable
        """
        result: dict = {"category": None, "record": None, "comparison": None}

        category = get_distance_category(activity.distance_meters)
        if category is None:
            return result
        result["category"] = category

        current = latest_by_triple(self.store.list_records())
        record = current.get((RecordType.TIME, category, activity.sport))
        if record is None:
            return result

        comparison: RecordComparison = compare_to_record(activity, record)
        result["record"] = record
        result["comparison"] = comparison
        return result

    def recalculate_all_records(self, activities: list[Activity]) -> int:
        """Rebuild the record history by replaying activities in chronological order.

        Returns:
            Number of records created
        """
        try:
            self.store.clear_records()
            created = 0
            for activity in sorted(activities, key=lambda a: as_naive_utc(a.start_time)):
                created += len(self.detect_and_save_records(activity))
        except Exception as e:
            logger.error(f"Record recalculation failed: {e}")
            raise

        logger.info(f"Recalculated {created} record(s) from {len(activities)} activities")
        return created

    def export_records(self) -> str:
        """All records as an indented JSON array."""
        return RECORD_LIST.dump_json(self.get_all_records(), indent=2).decode()

    def import_records(self, json_data: Union[str, bytes]) -> int:
        """Insert or replace records from a JSON array.

        Raises:
            ValueError: If the data is not a valid JSON array of records
        """
        try:
            records = RECORD_LIST.validate_json(json_data)
        except ValueError as e:
            logger.error(f"Invalid records JSON: {e}")
            raise

        for record in records:
            self.store.save_record(record)

        logger.info(f"Imported {len(records)} record(s)")
        return len(records)
