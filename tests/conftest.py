import sqlite3
import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from workout_core import settings
from workout_core import workout_session
from workout_core.db import init_db
from workout_core.workout_session import WorkoutSession


class FakeClock:
    """Stand-in for ``time.time`` that only moves when told to."""

    def __init__(self, start: float = 1_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeEvent:
    def __init__(self, clock, callback, interval):
        self.clock = clock
        self.callback = callback
        self.interval = interval
        self.cancelled = False

    def cancel(self):
        self.cancelled = True
        if self in self.clock.events:
            self.clock.events.remove(self)


class FakeKivyClock:
    """Minimal replacement for :data:`kivy.clock.Clock`."""

    def __init__(self):
        self.events: list[FakeEvent] = []

    def schedule_interval(self, callback, interval):
        event = FakeEvent(self, callback, interval)
        self.events.append(event)
        return event

    def run_once(self):
        """Fire every scheduled event a single time."""
        for event in list(self.events):
            if event.cancelled:
                continue
            if event.callback(event.interval) is False:
                event.cancel()


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Keep user settings inside the test's temporary directory."""
    monkeypatch.setattr(settings, "SETTINGS_PATH", tmp_path / "settings.json")
    monkeypatch.setattr(settings, "_settings_cache", None)


@pytest.fixture
def clock(monkeypatch) -> FakeClock:
    fake = FakeClock()
    monkeypatch.setattr(workout_session.time, "time", fake)
    return fake


@pytest.fixture
def recovery_base(tmp_path) -> Path:
    return tmp_path / "session_recovery"


@pytest.fixture
def session(recovery_base) -> WorkoutSession:
    return WorkoutSession(recovery_base=recovery_base)


@pytest.fixture
def kivy_clock() -> FakeKivyClock:
    return FakeKivyClock()


TEMPLATES = [
    {
        "name": "Bench Press",
        "sets": 3,
        "reps": 8,
        "weight": 60,
        "rest_time": 120,
        "last_weight": 57.5,
        "last_repetitions": 8,
        "last_series": 3,
    },
    {"name": "Push-ups", "sets": 2, "reps": 15, "weight": 0},
]


@pytest.fixture
def started(session, clock) -> WorkoutSession:
    """A session initialised with two exercises planned for 3 and 2 sets."""
    session.initialize(1, "Push Day", "strength", TEMPLATES, session_id=42)
    return session


@pytest.fixture
def sample_db(tmp_path: Path) -> Path:
    """Create a temporary database with a 'Push Day' program."""
    db_path = init_db(tmp_path / "workout.db")

    conn = sqlite3.connect(db_path)
    conn.execute(
        "INSERT INTO exercises (name, description, last_weight, last_repetitions, last_series)"
        " VALUES ('Bench Press', 'Chest exercise', 57.5, 8, 3)"
    )
    conn.execute(
        "INSERT INTO exercises (name, description) VALUES ('Push-ups', 'Bodyweight push exercise')"
    )
    bench_id = conn.execute("SELECT id FROM exercises WHERE name='Bench Press'").fetchone()[0]
    push_id = conn.execute("SELECT id FROM exercises WHERE name='Push-ups'").fetchone()[0]

    conn.execute(
        "INSERT INTO training_programs (name, training_type) VALUES ('Push Day', 'strength')"
    )
    program_id = conn.execute(
        "SELECT id FROM training_programs WHERE name='Push Day'"
    ).fetchone()[0]
    conn.executemany(
        """
        INSERT INTO program_exercises
            (program_id, exercise_id, exercise_name, order_index, sets, reps, weight, rest_time)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """,
        [
            (program_id, push_id, "Push-ups", 1, 2, 15, 0, None),
            (program_id, bench_id, "Bench Press", 0, 3, 8, 60, 120),
        ],
    )
    conn.commit()
    conn.close()
    return db_path
