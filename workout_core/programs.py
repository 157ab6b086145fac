"""Read training programs from the database as session templates."""

from __future__ import annotations

import sqlite3
from pathlib import Path

from workout_core import DEFAULT_DB_PATH


def get_all_programs(db_path: Path = DEFAULT_DB_PATH) -> list[dict]:
    """Return ``id``, ``name`` and ``training_type`` of every program."""

    with sqlite3.connect(str(db_path)) as conn:
        cursor = conn.cursor()
        cursor.execute(
            "SELECT id, name, training_type FROM training_programs "
            "WHERE deleted = 0 ORDER BY id"
        )
        rows = cursor.fetchall()
    return [
        {"id": pid, "name": name, "training_type": ttype}
        for pid, name, ttype in rows
    ]


def load_program(program_id: int, db_path: Path = DEFAULT_DB_PATH) -> dict:
    """Return program ``program_id`` with its ordered exercise templates.

    Each exercise dict carries the planned values of the program together
    with the ``last_*`` performance hints stored on the exercise library
    entry, ready to be passed to :meth:`WorkoutSession.initialize`.
    """

    with sqlite3.connect(str(db_path)) as conn:
        cursor = conn.cursor()
        cursor.execute(
            "SELECT id, name, training_type FROM training_programs "
            "WHERE id = ? AND deleted = 0",
            (program_id,),
        )
        row = cursor.fetchone()
        if not row:
            raise ValueError(f"Program '{program_id}' not found")
        pid, name, training_type = row

        cursor.execute(
            """
            SELECT pe.exercise_id,
                   pe.exercise_name,
                   pe.sets,
                   pe.reps,
                   pe.weight,
                   pe.duration,
                   pe.rest_time,
                   e.last_series,
                   e.last_repetitions,
                   e.last_weight
              FROM program_exercises pe
              LEFT JOIN exercises e
                     ON e.id = pe.exercise_id AND e.deleted = 0
             WHERE pe.program_id = ? AND pe.deleted = 0
             ORDER BY pe.order_index, pe.id
            """,
            (pid,),
        )
        exercises = [
            {
                "exercise_id": ex_id,
                "name": ex_name,
                "sets": sets,
                "reps": reps,
                "weight": weight,
                "duration": duration,
                "rest_time": rest,
                "last_series": last_series,
                "last_repetitions": last_reps,
                "last_weight": last_weight,
            }
            for (
                ex_id,
                ex_name,
                sets,
                reps,
                weight,
                duration,
                rest,
                last_series,
                last_reps,
                last_weight,
            ) in cursor.fetchall()
        ]

    return {
        "id": pid,
        "name": name,
        "training_type": training_type,
        "exercises": exercises,
    }
