"""Data model of an in-progress workout.

Program templates are turned into :class:`ExerciseRuntime` records when a
session starts.  The whole :class:`SessionState` can be flattened with
:meth:`SessionState.to_dict` and rebuilt with :meth:`SessionState.from_dict`
so it survives an app restart through the recovery files.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, List, Optional

from workout_core import (
    DEFAULT_PLANNED_REPS,
    DEFAULT_PLANNED_SETS,
    DEFAULT_REST_DURATION,
)


def _first(data: dict, keys: tuple, default: Any = None) -> Any:
    """Return the first value in ``data`` under ``keys`` that is not ``None``."""

    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return default


@dataclass
class ExerciseTemplate:
    """Planned exercise taken from a training program."""

    name: str
    planned_sets: int = DEFAULT_PLANNED_SETS
    planned_reps: int = DEFAULT_PLANNED_REPS
    planned_weight: float = 0
    planned_duration: Optional[int] = None
    rest_duration: int = DEFAULT_REST_DURATION
    previous_sets: Optional[int] = None
    previous_reps: Optional[int] = None
    previous_weight: Optional[float] = None
    exercise_id: Any = None

    @classmethod
    def from_dict(cls, data: dict) -> "ExerciseTemplate":
        """Build a template from a program row or a stored template dict."""

        return cls(
            name=_first(data, ("name", "exercise_name"), ""),
            planned_sets=_first(data, ("planned_sets", "sets"), DEFAULT_PLANNED_SETS),
            planned_reps=_first(data, ("planned_reps", "reps"), DEFAULT_PLANNED_REPS),
            planned_weight=_first(data, ("planned_weight", "weight"), 0),
            planned_duration=_first(data, ("planned_duration", "duration")),
            rest_duration=_first(
                data, ("rest_duration", "rest_time", "rest"), DEFAULT_REST_DURATION
            ),
            previous_sets=_first(data, ("previous_sets", "last_series")),
            previous_reps=_first(data, ("previous_reps", "last_repetitions")),
            previous_weight=_first(data, ("previous_weight", "last_weight")),
            exercise_id=_first(data, ("exercise_id", "id")),
        )


@dataclass
class CompletedSet:
    set_number: int
    reps: int
    weight: float
    rest_time: int = 0
    timestamp: float = 0.0

    @classmethod
    def from_dict(cls, data: dict) -> "CompletedSet":
        return cls(
            set_number=data["set_number"],
            reps=data["reps"],
            weight=data["weight"],
            rest_time=data.get("rest_time", 0),
            timestamp=data.get("timestamp", 0.0),
        )


@dataclass
class ExerciseRuntime(ExerciseTemplate):
    """Mutable, in-session record of one planned exercise."""

    order: int = 0
    completed: bool = False
    skipped: bool = False
    notes: str = ""
    completed_sets: List[CompletedSet] = field(default_factory=list)
    # caller supplied fields without a dedicated attribute
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_template(cls, template: ExerciseTemplate, order: int) -> "ExerciseRuntime":
        planned = {f.name: getattr(template, f.name) for f in fields(ExerciseTemplate)}
        return cls(**planned, order=order)

    def update(self, values: dict) -> None:
        """Merge ``values`` into this exercise, last write wins."""

        known = {f.name for f in fields(self)}
        for key, value in values.items():
            if key in known:
                setattr(self, key, value)
            else:
                self.extra[key] = value

    @classmethod
    def from_dict(cls, data: dict) -> "ExerciseRuntime":
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        values["completed_sets"] = [
            CompletedSet.from_dict(s) for s in data.get("completed_sets", [])
        ]
        values["extra"] = dict(data.get("extra") or {})
        return cls(**values)


@dataclass
class RestTimerState:
    is_active: bool = False
    duration: int = DEFAULT_REST_DURATION
    remaining: int = DEFAULT_REST_DURATION
    start_time: Optional[float] = None

    @classmethod
    def from_dict(cls, data: dict) -> "RestTimerState":
        return cls(
            is_active=data.get("is_active", False),
            duration=data.get("duration", DEFAULT_REST_DURATION),
            remaining=data.get("remaining", DEFAULT_REST_DURATION),
            start_time=data.get("start_time"),
        )


@dataclass
class SessionState:
    """Root aggregate describing one workout attempt."""

    session_id: Any = None
    program_id: Any = None
    program_name: str = ""
    training_type: str = ""
    exercises: List[ExerciseRuntime] = field(default_factory=list)
    current_exercise_index: int = 0
    start_time: Optional[float] = None
    elapsed_time: int = 0
    is_active: bool = False
    completed_exercises: List[int] = field(default_factory=list)
    rest_timer: RestTimerState = field(default_factory=RestTimerState)

    def to_dict(self) -> dict:
        """Return a JSON-serialisable representation of the state."""

        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "SessionState":
        """Reconstruct a :class:`SessionState` from ``data``."""

        return cls(
            session_id=data.get("session_id"),
            program_id=data.get("program_id"),
            program_name=data.get("program_name", ""),
            training_type=data.get("training_type", ""),
            exercises=[ExerciseRuntime.from_dict(e) for e in data.get("exercises", [])],
            current_exercise_index=data.get("current_exercise_index", 0),
            start_time=data.get("start_time"),
            elapsed_time=data.get("elapsed_time", 0),
            is_active=data.get("is_active", False),
            completed_exercises=list(data.get("completed_exercises", [])),
            rest_timer=RestTimerState.from_dict(data.get("rest_timer") or {}),
        )


def initial_state() -> SessionState:
    """Return a fresh, pristine (uninitialised) session state."""

    return SessionState()
