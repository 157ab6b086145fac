"""Workout flow built on top of :class:`WorkoutSession`.

The session machine accepts any command it is given; the rules a user
actually experiences (a set needs weight or reps, an exercise needs a set
before it can be completed, rest starts automatically between planned
sets, finishing writes to the database) are applied here.
"""

from __future__ import annotations

import logging
import math
import time
from pathlib import Path

from workout_core import CALORIES_PER_MINUTE, DEFAULT_DB_PATH, DEFAULT_REST_DURATION
from workout_core import sessions, settings
from workout_core.models import SessionState
from workout_core.workout_session import WorkoutSession


def _has_rest(exercise: dict) -> bool:
    return any(
        exercise.get(key) is not None for key in ("rest_duration", "rest_time", "rest")
    )


def start_workout(
    session: WorkoutSession, program: dict, db_path: Path = DEFAULT_DB_PATH
) -> int:
    """Create the session row for ``program`` and initialise ``session``.

    ``program`` is a dict as returned by :func:`workout_core.programs.load_program`.
    Exercises without a rest time of their own rest for the
    ``rest_duration`` setting.
    """

    default_rest = settings.get_value("rest_duration", DEFAULT_REST_DURATION)
    exercises = [
        ex if _has_rest(ex) else {**ex, "rest_duration": default_rest}
        for ex in program.get("exercises", [])
    ]
    started_at = time.time()
    session_id = sessions.create_session(
        program["id"], program.get("training_type", ""), started_at, db_path=db_path
    )
    session.initialize(
        program["id"],
        program.get("name", ""),
        program.get("training_type", ""),
        exercises,
        session_id,
    )
    return session_id


def log_set(session: WorkoutSession, weight: float, reps: int) -> None:
    """Record a set on the current exercise.

    The rest time is the number of whole seconds since the previous set of
    the same exercise.  While fewer sets than planned have been logged the
    rest countdown is started with the exercise's rest duration, unless the
    ``auto_start_rest`` setting is off.
    """

    exercise = session.current_exercise()
    if exercise is None:
        raise ValueError("No exercise in progress")
    if not weight and not reps:
        raise ValueError("Enter a weight or a number of reps")

    rest = 0
    if exercise.completed_sets:
        last = exercise.completed_sets[-1]
        rest = max(0, math.floor(time.time() - last.timestamp))
    session.add_set(weight, reps, rest)

    if len(exercise.completed_sets) < exercise.planned_sets and settings.get_value(
        "auto_start_rest", True
    ):
        session.start_rest_timer(exercise.rest_duration)


def complete_exercise(session: WorkoutSession) -> None:
    """Complete the current exercise and move on to the next one."""

    exercise = session.current_exercise()
    if exercise is None:
        raise ValueError("No exercise in progress")
    if not exercise.completed_sets:
        raise ValueError(
            "Please complete at least one set before finishing this exercise"
        )
    session.complete_current_exercise()
    session.next_exercise()


def skip_exercise(session: WorkoutSession) -> None:
    """Skip the current exercise and move on to the next one."""

    if session.current_exercise() is None:
        raise ValueError("No exercise in progress")
    session.skip_current_exercise()
    session.next_exercise()


def summarize(state: SessionState, calories_per_minute: int | None = None) -> dict:
    """Return the figures stored when ``state`` is finished.

    Only exercises that were completed (not skipped) with at least one set
    produce an exercise result.
    """

    if calories_per_minute is None:
        calories_per_minute = settings.get_value(
            "calories_per_minute", CALORIES_PER_MINUTE
        )
    duration_minutes = state.elapsed_time // 60
    results = []
    for exercise in state.exercises:
        if not exercise.completed or exercise.skipped or not exercise.completed_sets:
            continue
        total_sets = len(exercise.completed_sets)
        total_reps = sum(s.reps for s in exercise.completed_sets)
        total_weight = sum(s.weight for s in exercise.completed_sets)
        results.append(
            {
                "exercise_name": exercise.name,
                "total_sets": total_sets,
                "average_reps": total_reps // total_sets,
                "average_weight": total_weight / total_sets,
                "notes": exercise.notes,
                "completed_sets": list(exercise.completed_sets),
            }
        )
    return {
        "session_id": state.session_id,
        "duration_minutes": duration_minutes,
        "estimated_calories": int(duration_minutes * calories_per_minute),
        "exercises": results,
        "exercises_completed": sum(
            1
            for idx in state.completed_exercises
            if 0 <= idx < len(state.exercises) and not state.exercises[idx].skipped
        ),
        "total_exercises": len(state.exercises),
    }


def finish_workout(session: WorkoutSession, db_path: Path = DEFAULT_DB_PATH) -> dict:
    """Store the finished workout and reset ``session``.

    When writing fails the error propagates and ``session`` is left active
    so the finish can be retried without losing any progress.
    """

    if session.state.session_id is None:
        raise ValueError("Session has not been started")
    session.accrue_elapsed_time()
    summary = summarize(session.state)
    sessions.save_summary(summary, db_path=db_path)
    session.reset()
    logging.info("Workout %s finished", summary["session_id"])
    return summary


def cancel_workout(session: WorkoutSession) -> None:
    """Abandon the workout without saving it."""

    session.reset()
