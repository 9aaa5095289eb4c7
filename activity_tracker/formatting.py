"""Human-readable formatting of durations, distances, speeds and paces."""

import math


def format_duration(seconds: float) -> str:
    """Format seconds as '1h 05m 09s' or '5m 09s'."""
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = int(seconds % 60)

    if hours > 0:
        return f"{hours}h {minutes:02d}m {secs:02d}s"
    return f"{minutes}m {secs:02d}s"


def format_record_time(seconds: float) -> str:
    """Compact record time, e.g. '1h 5min 9s', '5min 9s' or '42s'."""
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = int(seconds % 60)

    if hours > 0:
        return f"{hours}h {minutes}min {secs}s"
    if minutes > 0:
        return f"{minutes}min {secs}s"
    return f"{secs}s"


def format_distance(meters: float) -> str:
    return f"{meters / 1000:.2f} km"


def format_speed(meters_per_second: float) -> str:
    return f"{meters_per_second * 3.6:.2f} km/h"


def format_pace(minutes_per_km: float) -> str:
    """Format a pace in minutes per km as 'm:ss min/km'."""
    minutes = math.floor(minutes_per_km)
    seconds = math.floor((minutes_per_km - minutes) * 60 + 0.5)
    if seconds == 60:
        minutes += 1
        seconds = 0
    return f"{minutes}:{seconds:02d} min/km"
