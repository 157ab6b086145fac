from workout_core.ticker import SessionTicker


def test_elapsed_event_follows_session_activity(session, clock, kivy_clock):
    ticker = SessionTicker(session, clock=kivy_clock)
    ticker.start()
    assert not ticker.elapsed_scheduled

    session.initialize(1, "Push Day", "strength", [{"name": "Squat"}], session_id=7)
    assert ticker.elapsed_scheduled
    assert not ticker.rest_scheduled

    clock.advance(3)
    kivy_clock.run_once()
    assert session.state.elapsed_time == 3

    session.reset()
    assert not ticker.elapsed_scheduled
    assert kivy_clock.events == []


def test_rest_event_runs_until_countdown_ends(started, clock, kivy_clock):
    finished = []
    ticker = SessionTicker(
        started, clock=kivy_clock, on_rest_finished=lambda s: finished.append(s)
    )
    ticker.start()
    started.start_rest_timer(2)
    assert ticker.rest_scheduled

    clock.advance(1)
    kivy_clock.run_once()
    assert started.state.rest_timer.remaining == 1
    assert ticker.rest_scheduled

    clock.advance(1)
    kivy_clock.run_once()
    assert not started.state.rest_timer.is_active
    assert not ticker.rest_scheduled
    assert finished == [started]

    # restarting the rest period schedules the event again
    started.start_rest_timer()
    assert ticker.rest_scheduled


def test_stop_rest_cancels_event_without_callback(started, kivy_clock):
    finished = []
    ticker = SessionTicker(
        started, clock=kivy_clock, on_rest_finished=lambda s: finished.append(s)
    )
    ticker.start()
    started.start_rest_timer(60)
    started.stop_rest_timer()
    assert not ticker.rest_scheduled
    assert finished == []


def test_stop_cancels_everything(started, kivy_clock):
    ticker = SessionTicker(started, clock=kivy_clock, interval=0.5)
    ticker.start()
    started.start_rest_timer(60)
    assert {e.interval for e in kivy_clock.events} == {0.5}
    ticker.stop()
    assert kivy_clock.events == []
    started.start_rest_timer(60)
    assert kivy_clock.events == []
