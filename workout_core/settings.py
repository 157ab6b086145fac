from __future__ import annotations

"""Loading and saving of user settings that tune the workout flow.

The settings are stored as a list of dictionaries to preserve order.
Each dictionary contains ``key``, ``value`` and ``type`` entries.
"""

from pathlib import Path
import json
import logging
from typing import Any, List, Dict

from workout_core import (
    CALORIES_PER_MINUTE,
    DATA_DIR,
    DEFAULT_REST_DURATION,
)

# Path to the JSON file where settings are persisted.
SETTINGS_PATH = DATA_DIR / "settings.json"

# Default settings to initialize the file on first run.
DEFAULT_SETTINGS: List[Dict[str, Any]] = [
    {"key": "auto_start_rest", "value": True, "type": "bool"},
    {"key": "rest_duration", "value": DEFAULT_REST_DURATION, "type": "int"},
    {"key": "calories_per_minute", "value": CALORIES_PER_MINUTE, "type": "int"},
]

# Internal cache so settings are only read from disk once.
_settings_cache: List[Dict[str, Any]] | None = None


def load_settings(path: Path | None = None) -> List[Dict[str, Any]]:
    """Load settings from ``path`` (default :data:`SETTINGS_PATH`) or create defaults."""
    path = Path(path or SETTINGS_PATH)
    if path.exists():
        try:
            with path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
            if isinstance(data, list):
                return data
            logging.warning("Ignoring malformed settings file %s", path)
        except (OSError, ValueError):
            logging.exception("Settings file %s could not be read", path)
    defaults = [dict(item) for item in DEFAULT_SETTINGS]
    save_settings(defaults, path)
    return defaults


def save_settings(settings: List[Dict[str, Any]], path: Path | None = None) -> None:
    """Persist ``settings`` to ``path`` (default :data:`SETTINGS_PATH`)."""
    path = Path(path or SETTINGS_PATH)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as fh:
        json.dump(settings, fh)


def get_settings() -> List[Dict[str, Any]]:
    """Return the cached settings list, loading from disk if needed."""
    global _settings_cache
    if _settings_cache is None:
        _settings_cache = load_settings()
    return _settings_cache


def get_value(key: str, default: Any = None) -> Any:
    """Fetch the value associated with ``key``.

    Keys missing from the stored file fall back to :data:`DEFAULT_SETTINGS`
    and then to ``default``.
    """
    for item in get_settings():
        if item.get("key") == key:
            return item.get("value")
    for item in DEFAULT_SETTINGS:
        if item["key"] == key:
            return item["value"]
    return default


def set_value(key: str, value: Any) -> None:
    """Update ``key`` with ``value`` and persist the change."""
    settings = get_settings()
    for item in settings:
        if item.get("key") == key:
            item["value"] = value
            break
    else:
        settings.append({"key": key, "value": value, "type": type(value).__name__})
    save_settings(settings)
