import sqlite3

import pytest

from workout_core import flow, programs, sessions, settings
from workout_core.workout_session import WorkoutSession


@pytest.fixture
def workout(sample_db, recovery_base, clock):
    session = WorkoutSession(recovery_base=recovery_base)
    flow.start_workout(session, programs.load_program(1, sample_db), db_path=sample_db)
    return session


def test_start_workout_creates_session_row(workout, sample_db):
    assert workout.state.is_active
    assert workout.state.program_name == "Push Day"
    conn = sqlite3.connect(sample_db)
    row = conn.execute(
        "SELECT program_id, completed FROM training_sessions WHERE id = ?",
        (workout.state.session_id,),
    ).fetchone()
    conn.close()
    assert row == (1, 0)


def test_log_set_computes_rest_and_starts_timer(workout, clock):
    flow.log_set(workout, 60, 8)
    assert workout.current_exercise().completed_sets[0].rest_time == 0
    timer = workout.state.rest_timer
    assert timer.is_active and timer.duration == 120

    clock.advance(95.6)
    flow.log_set(workout, 60, 7)
    assert workout.current_exercise().completed_sets[1].rest_time == 95
    assert workout.state.rest_timer.start_time == clock.now

    # last planned set: no automatic rest
    workout.stop_rest_timer()
    flow.log_set(workout, 60, 6)
    assert not workout.state.rest_timer.is_active


def test_log_set_respects_auto_start_setting(workout):
    settings.set_value("auto_start_rest", False)
    flow.log_set(workout, 60, 8)
    assert not workout.state.rest_timer.is_active


def test_rest_duration_setting_fills_missing_rest(sample_db, recovery_base, clock):
    settings.set_value("rest_duration", 30)
    session = WorkoutSession(recovery_base=recovery_base)
    flow.start_workout(session, programs.load_program(1, sample_db), db_path=sample_db)
    bench, push_ups = session.state.exercises
    assert bench.rest_duration == 120
    assert push_ups.rest_duration == 30

    flow.skip_exercise(session)
    flow.log_set(session, 0, 15)
    timer = session.state.rest_timer
    assert timer.is_active and timer.duration == 30


def test_log_set_rejects_empty_set(workout):
    with pytest.raises(ValueError):
        flow.log_set(workout, 0, 0)
    assert workout.current_exercise().completed_sets == []


def test_complete_exercise_requires_a_set(workout):
    with pytest.raises(ValueError):
        flow.complete_exercise(workout)
    assert workout.state.completed_exercises == []


def test_complete_and_skip_advance(workout):
    flow.log_set(workout, 60, 8)
    flow.complete_exercise(workout)
    assert workout.state.completed_exercises == [0]
    assert workout.state.current_exercise_index == 1

    flow.skip_exercise(workout)
    # already on the last exercise: no further movement
    assert workout.state.current_exercise_index == 1
    assert workout.state.exercises[1].skipped
    assert workout.progress_percent() == 100


def test_summarize_counts_only_performed_exercises(workout, clock):
    flow.log_set(workout, 60, 8)
    flow.log_set(workout, 65, 7)
    flow.log_set(workout, 70, 5)
    workout.update_current_exercise(notes="PR attempt")
    flow.complete_exercise(workout)
    flow.log_set(workout, 0, 15)
    flow.skip_exercise(workout)
    clock.advance(12 * 60 + 59)
    workout.accrue_elapsed_time()

    summary = flow.summarize(workout.state)
    assert summary["duration_minutes"] == 12
    assert summary["estimated_calories"] == 60
    assert summary["exercises_completed"] == 1
    assert summary["total_exercises"] == 2
    (bench,) = summary["exercises"]
    assert bench["exercise_name"] == "Bench Press"
    assert bench["total_sets"] == 3
    assert bench["average_reps"] == 6
    assert bench["average_weight"] == pytest.approx(65.0)
    assert bench["notes"] == "PR attempt"


def test_finish_workout_saves_and_resets(workout, sample_db, recovery_base, clock):
    session_id = workout.state.session_id
    flow.log_set(workout, 60, 8)
    flow.complete_exercise(workout)
    clock.advance(30 * 60)

    summary = flow.finish_workout(workout, db_path=sample_db)
    assert summary["duration_minutes"] == 30
    assert summary["estimated_calories"] == 150
    assert not workout.state.is_active
    assert WorkoutSession(recovery_base=recovery_base).restore() is False

    details = sessions.get_session_details(session_id, db_path=sample_db)
    assert details["completed"] is True
    assert details["duration"] == 30
    assert [e["exercise_name"] for e in details["exercises"]] == ["Bench Press"]


def test_failed_finish_keeps_session(workout, recovery_base, tmp_path):
    flow.log_set(workout, 60, 8)
    flow.complete_exercise(workout)
    empty_db = tmp_path / "empty.db"
    sqlite3.connect(empty_db).close()

    with pytest.raises(sqlite3.OperationalError):
        flow.finish_workout(workout, db_path=empty_db)
    assert workout.state.is_active
    assert workout.state.completed_exercises == [0]
    assert WorkoutSession(recovery_base=recovery_base).restore() is True


def test_finish_requires_started_session(session):
    with pytest.raises(ValueError):
        flow.finish_workout(session)


def test_cancel_workout_discards_snapshot(workout, recovery_base):
    flow.log_set(workout, 60, 8)
    flow.cancel_workout(workout)
    assert not workout.state.is_active
    assert WorkoutSession(recovery_base=recovery_base).restore() is False
