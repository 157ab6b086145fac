"""Shared constants for the workout session core."""

from __future__ import annotations

from pathlib import Path

# Defaults applied when a program template leaves a field empty
DEFAULT_PLANNED_SETS = 3
DEFAULT_PLANNED_REPS = 10
DEFAULT_REST_DURATION = 90

# Seconds between recurring timer updates
TICK_INTERVAL = 1.0

# Rough calorie estimate used when a workout is finished
CALORIES_PER_MINUTE = 5

DATA_DIR = Path(__file__).resolve().parent.parent / "data"

# Path to the SQLite database holding programs and finished sessions
DEFAULT_DB_PATH = DATA_DIR / "workout.db"

# Base name of the recovery files for the in-progress session.  Two copies
# are written (``_1.json`` and ``_2.json``) so a torn write of one file
# still leaves a readable snapshot.
RECOVERY_BASE = DATA_DIR / "session_recovery"

__all__ = [
    "DEFAULT_PLANNED_SETS",
    "DEFAULT_PLANNED_REPS",
    "DEFAULT_REST_DURATION",
    "TICK_INTERVAL",
    "CALORIES_PER_MINUTE",
    "DATA_DIR",
    "DEFAULT_DB_PATH",
    "RECOVERY_BASE",
]
