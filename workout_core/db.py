"""Database creation helpers."""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

from workout_core import DEFAULT_DB_PATH

# Schema shipped alongside the package
SCHEMA_PATH = Path(__file__).resolve().parent / "schema.sql"


def init_db(db_path: Path = DEFAULT_DB_PATH) -> Path:
    """Create the workout tables in ``db_path`` if they do not exist yet."""

    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    script = SCHEMA_PATH.read_text(encoding="utf-8")
    with sqlite3.connect(str(db_path)) as conn:
        conn.executescript(script)
    logging.info("Workout database ready at %s", db_path)
    return db_path
