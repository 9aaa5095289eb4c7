"""Heart rate zone definition and per-activity zone classification."""

import logging
from typing import Callable, Optional, Union

from activity_tracker.analytics.statistics import round_half_up
from activity_tracker.models.activity import Activity
from activity_tracker.models.zones import (
    ZONE_COLORS,
    ZONE_DESCRIPTIONS,
    ZONE_NAMES,
    ZONE_NUMBERS,
    ZONE_PERCENTAGES,
    HeartRateZone,
    TrainingType,
    ZoneAnalysis,
    ZoneDistribution,
    ZoneMethod,
    ZonePercentages,
)

logger = logging.getLogger(__name__)

ZONE_BENEFITS = {
    1: [
        "Active recovery",
        "Improved circulation",
        "Preparation for harder efforts",
    ],
    2: [
        "Base endurance development",
        "Better fat metabolism",
        "Cardiovascular strengthening",
    ],
    3: [
        "Improved aerobic efficiency",
        "Higher lactate capacity",
        "Endurance development",
    ],
    4: [
        "Higher lactate threshold",
        "Faster race pace",
        "Power development",
    ],
    5: [
        "Higher VO2 max",
        "Maximal power development",
        "Improved top speed",
    ],
}

ZONE_RECOMMENDATIONS = {
    1: "Ideal for recovery between hard sessions. Duration: 20-60 minutes.",
    2: "Foundation of training, 70-80% of total volume. Duration: 45-120 minutes.",
    3: "Tempo sessions 1-2 times a week. Duration: 20-60 minutes.",
    4: "Threshold intervals once a week. Duration: 10-30 cumulative minutes.",
    5: "Short, intense intervals at most 1-2 times a week. Duration: 5-15 cumulative minutes.",
}

# Evaluated top to bottom, first match wins
TRAINING_TYPE_RULES: list[tuple[Callable[[ZonePercentages], bool], TrainingType]] = [
    (lambda p: p.zone1 + p.zone2 > 60 and p.zone1 > p.zone2, TrainingType.RECOVERY),
    (lambda p: p.zone2 + p.zone3 > 70 and p.zone2 > p.zone3, TrainingType.ENDURANCE),
    (lambda p: p.zone3 + p.zone4 > 50 and p.zone3 > p.zone4, TrainingType.TEMPO),
    (lambda p: p.zone4 > 40, TrainingType.THRESHOLD),
    (lambda p: p.zone5 > 20 or (p.zone4 + p.zone5 > 50 and p.zone5 > 15), TrainingType.INTERVAL),
    (lambda p: p.unknown < 50, TrainingType.MIXED),
]

IDEAL_DISTRIBUTIONS = {
    TrainingType.RECOVERY: {"zone1": 60, "zone2": 40},
    TrainingType.ENDURANCE: {"zone2": 70, "zone3": 20, "zone1": 10},
    TrainingType.TEMPO: {"zone3": 60, "zone2": 25, "zone4": 15},
    TrainingType.THRESHOLD: {"zone4": 60, "zone3": 30, "zone2": 10},
    TrainingType.INTERVAL: {"zone5": 40, "zone4": 40, "zone3": 20},
    TrainingType.MIXED: {"zone2": 30, "zone3": 30, "zone4": 20, "zone5": 10, "zone1": 10},
    TrainingType.UNKNOWN: {},
}

NEUTRAL_EFFICIENCY = 50


def calculate_max_hr_from_age(age: int) -> int:
    """Age-predicted maximum heart rate (220 - age)."""
    return round_half_up(220 - age)


def calculate_hr_reserve(max_hr: int, resting_hr: int) -> int:
    return max_hr - resting_hr


def calculate_target_hr_karvonen(max_hr: int, resting_hr: int, intensity_percent: float) -> int:
    """Target heart rate at an intensity of the heart rate reserve."""
    reserve = calculate_hr_reserve(max_hr, resting_hr)
    return round_half_up(reserve * (intensity_percent / 100) + resting_hr)


def define_zones(
    max_hr: int,
    resting_hr: Optional[int] = None,
    method: Union[ZoneMethod, str] = ZoneMethod.AGE,
    custom_zones: Optional[list[HeartRateZone]] = None,
) -> list[HeartRateZone]:
    """Build the five training zones.

    Args:
        max_hr: Maximum heart rate in bpm
        resting_hr: Resting heart rate, required by the Karvonen method
        method: age, karvonen or manual
        custom_zones: Zones returned as-is for the manual method

    Returns:
        Zones 1 to 5 in order
    """
    method = ZoneMethod(method)

    if method == ZoneMethod.MANUAL and custom_zones:
        return list(custom_zones)

    use_karvonen = method == ZoneMethod.KARVONEN and bool(resting_hr)
    if method == ZoneMethod.KARVONEN and not use_karvonen:
        logger.warning("Karvonen zones requested without resting heart rate, using max HR percentages")
    elif method == ZoneMethod.MANUAL:
        logger.debug("Manual zones requested without custom zones, using max HR percentages")

    zones = []
    for zone in ZONE_NUMBERS:
        min_percent, max_percent = ZONE_PERCENTAGES[zone]

        if use_karvonen:
            min_hr = calculate_target_hr_karvonen(max_hr, resting_hr, min_percent)
            zone_max_hr = calculate_target_hr_karvonen(max_hr, resting_hr, max_percent)
        else:
            min_hr = round_half_up(max_hr * (min_percent / 100))
            zone_max_hr = round_half_up(max_hr * (max_percent / 100))

        zones.append(HeartRateZone(
            zone=zone,
            name=ZONE_NAMES[zone],
            description=ZONE_DESCRIPTIONS[zone],
            min_hr=min_hr,
            max_hr=zone_max_hr,
            min_percent=min_percent,
            max_percent=max_percent,
            color=ZONE_COLORS[zone],
            benefits=list(ZONE_BENEFITS[zone]),
            recommendations=ZONE_RECOMMENDATIONS[zone],
        ))

    return zones


def _zone_numbered(zones: list[HeartRateZone], number: int, fallback: HeartRateZone) -> HeartRateZone:
    return next((z for z in zones if z.zone == number), fallback)


def get_zone_for_heart_rate(heart_rate: float, zones: list[HeartRateZone]) -> Optional[int]:
    """Zone containing a heart rate.

    Values above zone 5 clamp to 5 and below zone 1 clamp to 1. A value that
    falls in a gap between non-contiguous zones has no zone.
    """
    if not zones:
        return None

    for zone in zones:
        if zone.min_hr <= heart_rate <= zone.max_hr:
            return zone.zone

    if heart_rate > _zone_numbered(zones, 5, zones[-1]).max_hr:
        return 5

    if heart_rate < _zone_numbered(zones, 1, zones[0]).min_hr:
        return 1

    return None


def calculate_time_in_zones(activity: Activity, zones: list[HeartRateZone]) -> ZoneDistribution:
    """Seconds spent in each zone.

    Each interval between consecutive trackpoints of the same lap is credited
    to the zone of its first sample. Intervals never span two laps.
    """
    distribution = ZoneDistribution()

    for lap in activity.laps:
        for current, following in zip(lap.trackpoints, lap.trackpoints[1:]):
            duration = (following.time - current.time).total_seconds()

            # 0 bpm is a sensor dropout
            if not current.heart_rate:
                distribution.add("unknown", duration)
                continue

            zone = get_zone_for_heart_rate(current.heart_rate, zones)
            if zone is None:
                distribution.add("unknown", duration)
            else:
                distribution.add(f"zone{zone}", duration)

    return distribution


def calculate_zone_percentages(distribution: ZoneDistribution) -> ZonePercentages:
    """Independently rounded share of each bucket, not renormalized to 100."""
    total = distribution.total()
    if total == 0:
        return ZonePercentages()

    return ZonePercentages(
        zone1=round_half_up(distribution.zone1 / total * 100),
        zone2=round_half_up(distribution.zone2 / total * 100),
        zone3=round_half_up(distribution.zone3 / total * 100),
        zone4=round_half_up(distribution.zone4 / total * 100),
        zone5=round_half_up(distribution.zone5 / total * 100),
        unknown=round_half_up(distribution.unknown / total * 100),
    )


def get_dominant_zone(distribution: ZoneDistribution) -> Optional[int]:
    """Zone with the most time, lowest number on ties, None if no zone time."""
    dominant = 1
    for zone in ZONE_NUMBERS[1:]:
        if distribution.zone_time(zone) > distribution.zone_time(dominant):
            dominant = zone

    return dominant if distribution.zone_time(dominant) > 0 else None


def determine_training_type(percentages: ZonePercentages) -> TrainingType:
    for predicate, training_type in TRAINING_TYPE_RULES:
        if predicate(percentages):
            return training_type
    return TrainingType.UNKNOWN


def calculate_training_efficiency(percentages: ZonePercentages, training_type: TrainingType) -> int:
    """Score 0-100 of how close the distribution is to the type's ideal."""
    ideal = IDEAL_DISTRIBUTIONS[TrainingType(training_type)]
    if not ideal:
        return NEUTRAL_EFFICIENCY

    total_diff = sum(
        abs(getattr(percentages, zone) - ideal_percent)
        for zone, ideal_percent in ideal.items()
    )
    average_diff = total_diff / len(ideal)

    return round_half_up(max(0.0, 100 - average_diff))


def generate_recommendations(
    percentages: ZonePercentages,
    training_type: TrainingType,
    efficiency: int,
) -> list[str]:
    """Coaching hints for a single analyzed activity."""
    recommendations = []

    if training_type == TrainingType.RECOVERY:
        recommendations.append("Excellent recovery session")
        if percentages.zone3 + percentages.zone4 + percentages.zone5 > 20:
            recommendations.append("Intensity a bit high for a recovery session")
    elif training_type == TrainingType.ENDURANCE:
        recommendations.append("Good base endurance session")
        if percentages.zone2 < 60:
            recommendations.append("Try to stay longer in Zone 2")
    elif training_type == TrainingType.TEMPO:
        recommendations.append("Well executed tempo session")
        if percentages.zone3 < 50:
            recommendations.append("Spend more time in Zone 3 for a more effective tempo")
    elif training_type == TrainingType.THRESHOLD:
        recommendations.append("Lactate threshold work")
        if percentages.zone5 > 15:
            recommendations.append("Be careful not to drift into Zone 5")
    elif training_type == TrainingType.INTERVAL:
        recommendations.append("Intense interval session")
        recommendations.append("Plan proper recovery after this session")
    elif training_type == TrainingType.MIXED:
        recommendations.append("Varied session across several intensities")
    elif percentages.unknown > 50:
        recommendations.append("Not enough heart rate data")

    if efficiency >= 80:
        recommendations.append("Excellent zone distribution")
    elif efficiency >= 60:
        recommendations.append("Good zone distribution")
    elif efficiency >= 40:
        recommendations.append("Zone distribution could be improved")
    else:
        recommendations.append("Zone distribution needs rework")

    if percentages.zone5 > 30:
        recommendations.append("A lot of time in Zone 5, risk of overtraining")

    if percentages.zone1 > 70 and training_type != TrainingType.RECOVERY:
        recommendations.append("Very low intensity, pick up the pace")

    if percentages.zone2 > 80 and training_type == TrainingType.ENDURANCE:
        recommendations.append("Perfect for building base endurance")

    return recommendations


def analyze_activity(
    activity: Activity,
    zones: list[HeartRateZone],
    target_zone: Optional[int] = None,
) -> ZoneAnalysis:
    """Full zone analysis of one activity against the given zones.

    Args:
        activity: Activity with sampled heart rate
        zones: Zone table to classify against
        target_zone: Zone the session aimed for, 1-5

    Returns:
        Analysis; time_in_target_zone is set only when a target is given
    """
    if target_zone is not None and target_zone not in ZONE_NUMBERS:
        raise ValueError(f"Target zone must be one of {ZONE_NUMBERS}, got {target_zone}")

    distribution = calculate_time_in_zones(activity, zones)
    percentages = calculate_zone_percentages(distribution)
    training_type = determine_training_type(percentages)
    efficiency = calculate_training_efficiency(percentages, training_type)

    return ZoneAnalysis(
        distribution=distribution,
        percentages=percentages,
        dominant_zone=get_dominant_zone(distribution),
        time_in_target_zone=distribution.zone_time(target_zone) if target_zone is not None else None,
        recommendations=generate_recommendations(percentages, training_type, efficiency),
        training_type=training_type,
        efficiency=efficiency,
    )
