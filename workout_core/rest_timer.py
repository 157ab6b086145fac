"""Countdown helpers for the rest period between sets.

The remaining time is always derived from ``start_time``, ``duration`` and
the current clock reading.  Nothing here decrements a counter, so missed
or late ticks (for instance while the app is in the background) never make
the countdown drift.
"""

from __future__ import annotations

import math
import time

from workout_core import DEFAULT_REST_DURATION
from workout_core.models import RestTimerState


def default_rest_timer() -> RestTimerState:
    """Return an inactive timer with the default duration."""

    return RestTimerState(
        is_active=False,
        duration=DEFAULT_REST_DURATION,
        remaining=DEFAULT_REST_DURATION,
        start_time=None,
    )


def remaining_seconds(timer: RestTimerState, now: float | None = None) -> int:
    """Return whole seconds left on ``timer`` at ``now``."""

    if timer.start_time is None:
        return timer.remaining
    now = time.time() if now is None else now
    elapsed = max(0, math.floor(now - timer.start_time))
    return max(0, timer.duration - elapsed)


def start(
    timer: RestTimerState, duration: int | None = None, now: float | None = None
) -> RestTimerState:
    """Return a running timer; ``duration`` defaults to the previous one."""

    length = timer.duration if duration is None else duration
    return RestTimerState(
        is_active=True,
        duration=length,
        remaining=length,
        start_time=time.time() if now is None else now,
    )


def recompute(timer: RestTimerState, now: float | None = None) -> RestTimerState:
    """Return ``timer`` with ``remaining`` refreshed from the wall clock."""

    if not timer.is_active or timer.start_time is None:
        return timer
    remaining = remaining_seconds(timer, now)
    return RestTimerState(
        is_active=remaining > 0,
        duration=timer.duration,
        remaining=remaining,
        start_time=timer.start_time,
    )


def stop(timer: RestTimerState) -> RestTimerState:
    """Return ``timer`` deactivated, keeping its duration and remaining time."""

    return RestTimerState(
        is_active=False,
        duration=timer.duration,
        remaining=timer.remaining,
        start_time=timer.start_time,
    )


def extend(
    timer: RestTimerState, seconds: int, now: float | None = None
) -> RestTimerState:
    """Restart a running ``timer`` with ``seconds`` added to its duration.

    The countdown starts again from ``now`` with the whole new duration.
    An inactive timer is returned as is.
    """

    if not timer.is_active:
        return timer
    return start(timer, timer.duration + seconds, now)
