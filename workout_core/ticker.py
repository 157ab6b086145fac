"""Recurring updates for the session stopwatch and the rest countdown."""

from __future__ import annotations

import logging
from typing import Callable

from workout_core import TICK_INTERVAL
from workout_core.workout_session import WorkoutSession


class SessionTicker:
    """Keep the clock-driven parts of a :class:`WorkoutSession` current.

    Two interval events are managed on the Kivy clock: one accrues the
    elapsed workout time while the session is active, the other refreshes
    the rest countdown while it is running.  The ticker listens to the
    session, so each event is cancelled as soon as its condition turns
    false and scheduled again when it turns true (for instance after
    ``start_rest_timer``).  ``on_rest_finished`` is called once each time a
    countdown runs out.
    """

    def __init__(
        self,
        session: WorkoutSession,
        interval: float = TICK_INTERVAL,
        clock=None,
        on_rest_finished: Callable[[WorkoutSession], None] | None = None,
    ) -> None:
        if clock is None:
            from kivy.clock import Clock

            clock = Clock
        self.session = session
        self.interval = interval
        self.clock = clock
        self.on_rest_finished = on_rest_finished
        self._elapsed_event = None
        self._rest_event = None
        self._running = False

    def start(self) -> None:
        """Begin following the session."""
        if self._running:
            return
        self._running = True
        self.session.add_listener(self.sync)
        self.sync(self.session)

    def stop(self) -> None:
        """Cancel both events and stop following the session."""
        self._running = False
        self.session.remove_listener(self.sync)
        self._cancel_elapsed()
        self._cancel_rest()

    @property
    def elapsed_scheduled(self) -> bool:
        return self._elapsed_event is not None

    @property
    def rest_scheduled(self) -> bool:
        return self._rest_event is not None

    def sync(self, session: WorkoutSession) -> None:
        """Schedule or cancel each event to match the session state."""
        state = session.state
        if state.is_active and state.start_time is not None:
            if self._elapsed_event is None:
                self._elapsed_event = self.clock.schedule_interval(
                    self._update_elapsed, self.interval
                )
        else:
            self._cancel_elapsed()

        if state.rest_timer.is_active:
            if self._rest_event is None:
                self._rest_event = self.clock.schedule_interval(
                    self._update_rest, self.interval
                )
        else:
            self._cancel_rest()

    def _cancel_elapsed(self) -> None:
        if self._elapsed_event is not None:
            self._elapsed_event.cancel()
            self._elapsed_event = None

    def _cancel_rest(self) -> None:
        if self._rest_event is not None:
            self._rest_event.cancel()
            self._rest_event = None

    def _update_elapsed(self, dt):
        self.session.accrue_elapsed_time()

    def _update_rest(self, dt):
        was_active = self.session.state.rest_timer.is_active
        self.session.tick()
        if was_active and not self.session.state.rest_timer.is_active:
            logging.info("Rest period finished")
            if self.on_rest_finished:
                self.on_rest_finished(self.session)
            return False
        return None
