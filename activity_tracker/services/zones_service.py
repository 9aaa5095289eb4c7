"""Training zone settings and multi-activity zone analysis."""

import logging
from collections import Counter
from datetime import datetime
from typing import Optional

from activity_tracker.analytics import zones as zone_analytics
from activity_tracker.config import DEFAULT_AGE, DEFAULT_SETTINGS_ID
from activity_tracker.models.activity import Activity
from activity_tracker.models.zones import (
    ZONE_NUMBERS,
    HeartRateZone,
    TrainingType,
    ZoneAnalysis,
    ZoneDistribution,
    ZoneMethod,
    ZoneSettings,
    ZoneStatistics,
)
from activity_tracker.storage.ports import SettingsStore

logger = logging.getLogger(__name__)


class TrainingZonesService:
    """Load, configure and apply heart rate zone settings.

    Settings are read from and written to the injected store; every analysis
    is delegated to the pure functions of the zone classifier.
    """

    def __init__(self, store: SettingsStore, settings_id: str = DEFAULT_SETTINGS_ID):
        self.store = store
        self.settings_id = settings_id

    def get_settings(self) -> Optional[ZoneSettings]:
        return self.store.load_settings(self.settings_id)

    def save_settings(self, settings: ZoneSettings) -> ZoneSettings:
        settings = settings.model_copy(update={"id": self.settings_id, "updated_at": datetime.now()})
        self.store.save_settings(settings)
        logger.info(f"Saved zone settings ({settings.method.value}, max HR {settings.max_heart_rate})")
        return settings

    def get_zones(self) -> list[HeartRateZone]:
        """Zones from the stored settings, or age-based defaults when unconfigured."""
        settings = self.get_settings()

        if settings is None:
            logger.debug(f"No zone settings stored, using defaults for age {DEFAULT_AGE}")
            return zone_analytics.define_zones(zone_analytics.calculate_max_hr_from_age(DEFAULT_AGE))

        if settings.custom_zones:
            return list(settings.custom_zones)

        return zone_analytics.define_zones(
            settings.max_heart_rate,
            settings.resting_heart_rate,
            settings.method,
        )

    def _previous_created_at(self) -> datetime:
        settings = self.get_settings()
        return settings.created_at if settings else datetime.now()

    def configure_by_age(self, age: int) -> ZoneSettings:
        return self.save_settings(ZoneSettings(
            max_heart_rate=zone_analytics.calculate_max_hr_from_age(age),
            method=ZoneMethod.AGE,
            age=age,
            created_at=self._previous_created_at(),
        ))

    def configure_by_karvonen(
        self,
        max_heart_rate: int,
        resting_heart_rate: int,
        age: Optional[int] = None,
    ) -> ZoneSettings:
        return self.save_settings(ZoneSettings(
            max_heart_rate=max_heart_rate,
            resting_heart_rate=resting_heart_rate,
            method=ZoneMethod.KARVONEN,
            age=age,
            created_at=self._previous_created_at(),
        ))

    def configure_manually(self, custom_zones: list[HeartRateZone], max_heart_rate: int) -> ZoneSettings:
        return self.save_settings(ZoneSettings(
            max_heart_rate=max_heart_rate,
            method=ZoneMethod.MANUAL,
            custom_zones=list(custom_zones),
            created_at=self._previous_created_at(),
        ))

    def reset_to_defaults(self) -> None:
        self.store.delete_settings(self.settings_id)
        logger.info("Zone settings reset to defaults")

    def analyze_activity(self, activity: Activity, target_zone: Optional[int] = None) -> ZoneAnalysis:
        return zone_analytics.analyze_activity(activity, self.get_zones(), target_zone)

    def get_zone_statistics(self, activities: list[Activity]) -> ZoneStatistics:
        """Zone time and training types summed over several activities.

        Efficiency is averaged over the activities whose type is known.
        """
        zones = self.get_zones()
        total = ZoneDistribution()
        type_counts: Counter = Counter()
        efficiencies = []

        for activity in activities:
            analysis = zone_analytics.analyze_activity(activity, zones)
            for zone in ZONE_NUMBERS:
                total.add(f"zone{zone}", analysis.distribution.zone_time(zone))
            total.add("unknown", analysis.distribution.unknown)

            type_counts[analysis.training_type] += 1
            if analysis.training_type != TrainingType.UNKNOWN:
                efficiencies.append(analysis.efficiency)

        return ZoneStatistics(
            total_time_by_zone=total,
            average_percentages=zone_analytics.calculate_zone_percentages(total),
            training_type_distribution={t: type_counts.get(t, 0) for t in TrainingType},
            average_efficiency=sum(efficiencies) / len(efficiencies) if efficiencies else 0.0,
        )

    def get_training_recommendations(self, activities: list[Activity]) -> list[str]:
        """Advice on the overall intensity balance of past training."""
        stats = self.get_zone_statistics(activities)
        percentages = stats.average_percentages
        recommendations = []

        if percentages.zone2 < 50:
            recommendations.append("Increase your Zone 2 volume (base endurance)")

        if percentages.zone5 > 15:
            recommendations.append("Too much time in Zone 5, risk of overtraining")
            recommendations.append("Keep 70-80% of your training in Zones 2-3")

        if percentages.zone1 > 40:
            recommendations.append("Your sessions are very easy, add some harder efforts")

        total_activities = sum(stats.training_type_distribution.values())
        if total_activities > 0:
            types = stats.training_type_distribution
            endurance_percent = types[TrainingType.ENDURANCE] / total_activities * 100
            interval_percent = types[TrainingType.INTERVAL] / total_activities * 100

            if endurance_percent < 60:
                recommendations.append("Raise the share of endurance sessions to 60-70% of the total")

            if interval_percent > 20:
                recommendations.append("Too many intense sessions, risk of fatigue")

            if interval_percent == 0 and total_activities > 5:
                recommendations.append("Add 1-2 interval sessions per week to keep progressing")

        if stats.average_efficiency < 60:
            recommendations.append("Work on holding a steady effort within each zone")

        return recommendations
