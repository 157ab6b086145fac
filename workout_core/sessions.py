"""Persistence of workout sessions.

The session state machine only reaches the database at two points: when a
workout starts (:func:`create_session`) and when it is finished
(:func:`finalize_session` plus one :func:`record_exercise_result` per
exercise).  Read helpers for the history views live here as well.
"""

from __future__ import annotations

import logging
import sqlite3
import time
from pathlib import Path
from typing import Iterable

from workout_core import DEFAULT_DB_PATH
from workout_core.models import CompletedSet


def create_session(
    program_id,
    training_type: str,
    started_at: float | None = None,
    db_path: Path = DEFAULT_DB_PATH,
) -> int:
    """Insert an open session row and return its id."""

    with sqlite3.connect(str(db_path)) as conn:
        cursor = conn.cursor()
        cursor.execute(
            """
            INSERT INTO training_sessions (program_id, training_type, session_date, completed)
            VALUES (?, ?, ?, 0)
            """,
            (program_id, training_type, started_at or time.time()),
        )
        session_id = cursor.lastrowid
    logging.info("Created session %s for program %s", session_id, program_id)
    return session_id


def _finalize(cursor, session_id, duration_minutes: int, calories: int) -> None:
    cursor.execute(
        "SELECT id FROM training_sessions WHERE id = ? AND deleted = 0",
        (session_id,),
    )
    if cursor.fetchone() is None:
        raise ValueError(f"Session '{session_id}' not found")
    cursor.execute(
        """
        UPDATE training_sessions
           SET duration = ?, calories = ?, completed = 1
         WHERE id = ?
        """,
        (duration_minutes, calories, session_id),
    )


def _record_exercise(
    cursor,
    session_id,
    exercise_name: str,
    total_sets: int,
    average_reps: int,
    average_weight: float,
    completed_sets: Iterable,
    notes: str = "",
) -> int:
    cursor.execute(
        """
        INSERT INTO session_exercises (session_id, exercise_name, sets, reps, weight, notes)
        VALUES (?, ?, ?, ?, ?, ?)
        """,
        (session_id, exercise_name, total_sets, average_reps, average_weight, notes or None),
    )
    exercise_row_id = cursor.lastrowid
    for done in completed_sets:
        if isinstance(done, dict):
            done = CompletedSet.from_dict(done)
        cursor.execute(
            """
            INSERT INTO session_exercise_sets
                (session_exercise_id, set_number, reps, weight, rest_time, timestamp)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                exercise_row_id,
                done.set_number,
                done.reps,
                done.weight,
                done.rest_time or 0,
                done.timestamp,
            ),
        )
    return exercise_row_id


def finalize_session(
    session_id,
    duration_minutes: int,
    calories: int,
    db_path: Path = DEFAULT_DB_PATH,
) -> None:
    """Mark ``session_id`` completed with its duration and calories."""

    with sqlite3.connect(str(db_path)) as conn:
        _finalize(conn.cursor(), session_id, duration_minutes, calories)
    logging.info("Finalized session %s (%s min)", session_id, duration_minutes)


def record_exercise_result(
    session_id,
    exercise_name: str,
    total_sets: int,
    average_reps: int,
    average_weight: float,
    completed_sets: Iterable,
    notes: str = "",
    db_path: Path = DEFAULT_DB_PATH,
) -> int:
    """Store the outcome of one exercise and its individual sets.

    ``completed_sets`` may contain :class:`CompletedSet` objects or their
    dict form.  Returns the id of the new ``session_exercises`` row.
    """

    with sqlite3.connect(str(db_path)) as conn:
        return _record_exercise(
            conn.cursor(),
            session_id,
            exercise_name,
            total_sets,
            average_reps,
            average_weight,
            completed_sets,
            notes,
        )


def save_summary(summary: dict, db_path: Path = DEFAULT_DB_PATH) -> None:
    """Write a finished workout ``summary`` in a single transaction.

    Either the session row and every exercise result are stored, or
    nothing is.
    """

    with sqlite3.connect(str(db_path)) as conn:
        cursor = conn.cursor()
        _finalize(
            cursor,
            summary["session_id"],
            summary["duration_minutes"],
            summary["estimated_calories"],
        )
        for result in summary["exercises"]:
            _record_exercise(
                cursor,
                summary["session_id"],
                result["exercise_name"],
                result["total_sets"],
                result["average_reps"],
                result["average_weight"],
                result["completed_sets"],
                result.get("notes", ""),
            )
    logging.info(
        "Saved session %s with %d exercise results",
        summary["session_id"],
        len(summary["exercises"]),
    )


def get_session_history(limit: int | None = None, db_path: Path = DEFAULT_DB_PATH) -> list[dict]:
    """Return completed workout sessions, most recent first."""

    with sqlite3.connect(str(db_path)) as conn:
        cursor = conn.cursor()
        query = (
            "SELECT s.id, s.program_id, p.name, s.training_type, s.session_date, "
            "s.duration, s.calories "
            "FROM training_sessions s "
            "LEFT JOIN training_programs p ON p.id = s.program_id "
            "WHERE s.deleted = 0 AND s.completed = 1 "
            "ORDER BY s.session_date DESC, s.id DESC"
        )
        if limit is not None:
            cursor.execute(query + " LIMIT ?", (limit,))
        else:
            cursor.execute(query)
        rows = cursor.fetchall()
    return [
        {
            "id": sid,
            "program_id": pid,
            "program_name": pname,
            "training_type": ttype,
            "started_at": started,
            "duration": duration,
            "calories": calories,
        }
        for sid, pid, pname, ttype, started, duration, calories in rows
    ]


def get_session_details(session_id, db_path: Path = DEFAULT_DB_PATH) -> dict:
    """Return the stored session ``session_id`` with its exercises and sets.

    An empty dict is returned when the session does not exist.
    """

    with sqlite3.connect(str(db_path)) as conn:
        cur = conn.cursor()
        cur.execute(
            """
            SELECT id, program_id, training_type, session_date, duration, calories, completed
            FROM training_sessions
            WHERE id = ? AND deleted = 0
            """,
            (session_id,),
        )
        row = cur.fetchone()
        if row is None:
            return {}
        sid, program_id, training_type, started, duration, calories, completed = row

        cur.execute(
            """
            SELECT id, exercise_name, sets, reps, weight, notes
            FROM session_exercises
            WHERE session_id = ?
            ORDER BY id
            """,
            (sid,),
        )
        exercises: list[dict] = []
        for ex_id, name, sets, reps, weight, notes in cur.fetchall():
            cur.execute(
                """
                SELECT set_number, reps, weight, rest_time, timestamp
                FROM session_exercise_sets
                WHERE session_exercise_id = ?
                ORDER BY set_number
                """,
                (ex_id,),
            )
            set_rows = [
                {
                    "set_number": num,
                    "reps": s_reps,
                    "weight": s_weight,
                    "rest_time": rest,
                    "timestamp": ts,
                }
                for num, s_reps, s_weight, rest, ts in cur.fetchall()
            ]
            exercises.append(
                {
                    "exercise_name": name,
                    "sets": sets,
                    "reps": reps,
                    "weight": weight,
                    "notes": notes or "",
                    "completed_sets": set_rows,
                }
            )

    return {
        "id": sid,
        "program_id": program_id,
        "training_type": training_type,
        "started_at": started,
        "duration": duration,
        "calories": calories,
        "completed": bool(completed),
        "exercises": exercises,
    }
