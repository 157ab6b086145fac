"""Session state machine for one workout in progress.

Every command mutates :attr:`WorkoutSession.state` synchronously, writes the
recovery files and notifies listeners.  The same files let a session be
restored after the app is killed.
"""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Callable, Iterable

from workout_core import RECOVERY_BASE
from workout_core import rest_timer
from workout_core.models import (
    CompletedSet,
    ExerciseRuntime,
    ExerciseTemplate,
    SessionState,
    initial_state,
)
from workout_core.utils import format_clock


# Command names accepted by :meth:`WorkoutSession.dispatch` mapped to the
# method implementing them.
COMMANDS = {
    "initialize": "initialize",
    "next_exercise": "next_exercise",
    "previous_exercise": "previous_exercise",
    "update_exercise": "update_current_exercise",
    "add_set": "add_set",
    "edit_set": "edit_set",
    "delete_set": "delete_set",
    "complete_exercise": "complete_current_exercise",
    "skip_exercise": "skip_current_exercise",
    "start_rest_timer": "start_rest_timer",
    "tick": "tick",
    "stop_rest_timer": "stop_rest_timer",
    "add_rest_time": "add_rest_time",
    "accrue_elapsed_time": "accrue_elapsed_time",
    "reset": "reset",
}


class WorkoutSession:
    """In-memory state machine for one workout.

    All commands run synchronously and only touch :attr:`state`.  Commands
    that cannot apply (an unknown set number, navigating past either end,
    adding rest time while no rest is running) leave the state untouched
    instead of raising.  After every command the state is written to the
    recovery files while the session is active and has an id, and every
    registered listener is called with the session.
    """

    def __init__(self, recovery_base: Path = RECOVERY_BASE):
        self.recovery_base = Path(recovery_base)
        self.state: SessionState = initial_state()
        self._listeners: list[Callable[["WorkoutSession"], None]] = []

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def add_listener(self, callback: Callable[["WorkoutSession"], None]) -> None:
        """Call ``callback(session)`` after every command."""
        self._listeners.append(callback)

    def remove_listener(self, callback: Callable[["WorkoutSession"], None]) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _commit(self) -> None:
        if self.state.is_active and self.state.session_id is not None:
            self.save_recovery_state()
        for callback in list(self._listeners):
            callback(self)

    def _find_set(self, set_number: int):
        exercise = self.current_exercise()
        if exercise is None:
            return None, None
        for idx, done in enumerate(exercise.completed_sets):
            if done.set_number == set_number:
                return exercise, idx
        return exercise, None

    def _finish_current(self, skipped: bool) -> None:
        exercise = self.current_exercise()
        if exercise is None:
            return
        exercise.completed = True
        if skipped:
            exercise.skipped = True
        self.state.completed_exercises.append(self.state.current_exercise_index)
        self.state.rest_timer = rest_timer.default_rest_timer()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def initialize(
        self,
        program_id,
        program_name: str,
        training_type: str,
        exercises: Iterable,
        session_id,
    ) -> None:
        """Start a new session from the program ``exercises``.

        ``exercises`` may hold :class:`ExerciseTemplate` objects or plain
        dicts as returned by :func:`workout_core.programs.load_program`.
        Template values are taken as given.
        """

        if self.state.is_active:
            logging.warning(
                "Replacing active session %s with session %s",
                self.state.session_id,
                session_id,
            )
        templates = [
            ex if isinstance(ex, ExerciseTemplate) else ExerciseTemplate.from_dict(ex)
            for ex in exercises
        ]
        state = initial_state()
        state.session_id = session_id
        state.program_id = program_id
        state.program_name = program_name
        state.training_type = training_type
        state.exercises = [
            ExerciseRuntime.from_template(tpl, order)
            for order, tpl in enumerate(templates)
        ]
        state.start_time = time.time()
        state.is_active = True
        self.state = state
        logging.info(
            "Session %s started with %d exercises", session_id, len(state.exercises)
        )
        self._commit()

    def next_exercise(self) -> None:
        """Move to the following exercise unless already on the last one."""
        if self.state.current_exercise_index < len(self.state.exercises) - 1:
            self.state.current_exercise_index += 1
            self.state.rest_timer = rest_timer.default_rest_timer()
        self._commit()

    def previous_exercise(self) -> None:
        """Move to the preceding exercise unless already on the first one."""
        if self.state.current_exercise_index > 0:
            self.state.current_exercise_index -= 1
            self.state.rest_timer = rest_timer.default_rest_timer()
        self._commit()

    def update_current_exercise(self, **values) -> None:
        """Merge ``values`` (usually ``notes``) into the current exercise."""
        exercise = self.current_exercise()
        if exercise is not None:
            exercise.update(values)
        self._commit()

    def add_set(self, weight: float, reps: int, rest_time: int = 0) -> None:
        """Append a completed set to the current exercise."""
        exercise = self.current_exercise()
        if exercise is not None:
            exercise.completed_sets.append(
                CompletedSet(
                    set_number=len(exercise.completed_sets) + 1,
                    reps=reps,
                    weight=weight,
                    rest_time=rest_time or 0,
                    timestamp=time.time(),
                )
            )
        self._commit()

    def edit_set(self, set_number: int, weight: float, reps: int) -> None:
        """Replace weight and reps of ``set_number``; timing is preserved."""
        exercise, idx = self._find_set(set_number)
        if idx is not None:
            done = exercise.completed_sets[idx]
            done.weight = weight
            done.reps = reps
        self._commit()

    def delete_set(self, set_number: int) -> None:
        """Remove ``set_number`` and renumber the remaining sets from 1."""
        exercise, idx = self._find_set(set_number)
        if idx is not None:
            del exercise.completed_sets[idx]
            for number, done in enumerate(exercise.completed_sets, 1):
                done.set_number = number
        self._commit()

    def complete_current_exercise(self) -> None:
        self._finish_current(skipped=False)
        self._commit()

    def skip_current_exercise(self) -> None:
        self._finish_current(skipped=True)
        self._commit()

    def start_rest_timer(self, duration: int | None = None) -> None:
        """Start the rest countdown, reusing the last duration when omitted."""
        self.state.rest_timer = rest_timer.start(self.state.rest_timer, duration)
        self._commit()

    def tick(self) -> None:
        """Refresh the rest countdown from the wall clock."""
        self.state.rest_timer = rest_timer.recompute(self.state.rest_timer)
        self._commit()

    def stop_rest_timer(self) -> None:
        self.state.rest_timer = rest_timer.stop(self.state.rest_timer)
        self._commit()

    def add_rest_time(self, seconds: int) -> None:
        """Restart a running rest period with ``seconds`` added to its duration."""
        self.state.rest_timer = rest_timer.extend(self.state.rest_timer, seconds)
        self._commit()

    def accrue_elapsed_time(self) -> None:
        """Recompute the whole seconds elapsed since the session started."""
        if self.state.start_time is not None:
            self.state.elapsed_time = max(
                0, int(time.time() - self.state.start_time)
            )
        self._commit()

    def reset(self) -> None:
        """Discard the session and its recovery files."""
        session_id = self.state.session_id
        self.clear_recovery_state(self.recovery_base)
        self.state = initial_state()
        logging.info("Session %s reset", session_id)
        self._commit()

    def dispatch(self, command: str, **payload) -> None:
        """Run the command called ``command`` with ``payload`` as arguments."""
        try:
            method = COMMANDS[command]
        except KeyError:
            raise KeyError(f"Unknown session command '{command}'") from None
        getattr(self, method)(**payload)

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    def current_exercise(self) -> ExerciseRuntime | None:
        exercises = self.state.exercises
        idx = self.state.current_exercise_index
        if 0 <= idx < len(exercises):
            return exercises[idx]
        return None

    def progress_percent(self) -> int:
        """Return the share of finished exercises as a whole percentage."""
        total = len(self.state.exercises)
        if total == 0:
            return 0
        return 100 * len(self.state.completed_exercises) // total

    def formatted_elapsed(self) -> str:
        return format_clock(self.state.elapsed_time)

    def formatted_rest_remaining(self) -> str:
        return format_clock(self.state.rest_timer.remaining)

    def suggested_weight(self) -> float:
        """Weight to offer for the next set.

        The last set of the current exercise wins, then the weight used
        last time the exercise was done, then the planned weight.
        """
        exercise = self.current_exercise()
        if exercise is None:
            return 0
        if exercise.completed_sets:
            return exercise.completed_sets[-1].weight
        return exercise.previous_weight or exercise.planned_weight or 0

    def suggested_reps(self) -> int:
        """Reps to offer for the next set, same precedence as the weight."""
        exercise = self.current_exercise()
        if exercise is None:
            return 0
        if exercise.completed_sets:
            return exercise.completed_sets[-1].reps
        return exercise.previous_reps or exercise.planned_reps or 0

    # --------------------------------------------------------------
    # Persistence helpers
    # --------------------------------------------------------------

    @staticmethod
    def recovery_files(base: Path) -> tuple[Path, Path]:
        base = Path(base)
        return (
            base.with_name(base.name + "_1.json"),
            base.with_name(base.name + "_2.json"),
        )

    def export_state(self) -> dict:
        """Return the JSON-serialisable snapshot of the session."""
        return self.state.to_dict()

    @classmethod
    def from_state(
        cls, data: dict, recovery_base: Path = RECOVERY_BASE
    ) -> "WorkoutSession":
        """Build a session around the snapshot ``data``."""
        obj = cls(recovery_base=recovery_base)
        obj.state = SessionState.from_dict(data)
        return obj

    def save_recovery_state(self) -> None:
        """Write the current state to both recovery files."""

        payload = json.dumps(self.export_state())
        try:
            for path in self.recovery_files(self.recovery_base):
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_text(payload)
        except OSError:
            logging.exception("Could not write session recovery files")

    @classmethod
    def clear_recovery_state(cls, base: Path = RECOVERY_BASE) -> None:
        """Remove any existing recovery files."""

        for path in cls.recovery_files(base):
            try:
                path.unlink()
            except FileNotFoundError:
                pass

    @classmethod
    def load_recovery_state(cls, base: Path = RECOVERY_BASE) -> dict | None:
        """Return the stored snapshot, or ``None`` if none is readable."""

        for path in cls.recovery_files(base):
            try:
                if not path.exists():
                    continue
                text = path.read_text().strip()
                if not text:
                    continue
                data = json.loads(text)
                if isinstance(data, dict):
                    return data
            except (OSError, ValueError):
                logging.exception("Ignoring unreadable recovery file %s", path)
        return None

    def restore(self) -> bool:
        """Replace the state with the stored snapshot.

        Returns ``False`` when no usable snapshot exists; the files are left
        in place either way.
        """

        data = self.load_recovery_state(self.recovery_base)
        if data is None:
            return False
        try:
            state = SessionState.from_dict(data)
        except (AttributeError, KeyError, TypeError, ValueError):
            logging.exception("Recovery snapshot could not be restored")
            return False
        self.state = state
        logging.info("Session %s restored from recovery files", state.session_id)
        for callback in list(self._listeners):
            callback(self)
        return True
