"""Centralized configuration for the activity tracker."""

import os
from pathlib import Path

# Base paths
PROJECT_ROOT = Path(__file__).parent.parent
DATA_DIR = PROJECT_ROOT / "data"

# Database configuration
DATABASE_PATH = os.environ.get(
    "TRACKER_DB_PATH",
    str(DATA_DIR / "activity_tracker.db")
)

# Report paths
EXPORT_DIR = Path(os.environ.get("TRACKER_EXPORT_DIR", str(PROJECT_ROOT / "reports")))

# Logging
LOG_LEVEL = os.environ.get("TRACKER_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"

# Training zones
DEFAULT_AGE = int(os.environ.get("TRACKER_DEFAULT_AGE", "30"))
DEFAULT_SETTINGS_ID = "default"

# Reporting
EVOLUTION_PERIODS = 12
RECENT_RECORDS_LIMIT = 5
