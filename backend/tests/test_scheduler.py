"""
Tests for the timer schedulers.
"""

import pytest

from whackamole.services.games.scheduler import ManualScheduler, SocketIOScheduler


class FakeSocketIO:
    """Records background tasks instead of starting them."""

    def __init__(self):
        self.tasks = []
        self.sleeps = []

    def start_background_task(self, target, *args, **kwargs):
        self.tasks.append((target, args, kwargs))

    def sleep(self, seconds):
        self.sleeps.append(seconds)

    def run_all(self):
        tasks, self.tasks = self.tasks, []
        for target, args, kwargs in tasks:
            target(*args, **kwargs)


def test_manual_call_later_fires_once_at_due_time():
    scheduler = ManualScheduler()
    seen = []
    scheduler.call_later(0.5, lambda: seen.append(scheduler.now()))

    assert scheduler.advance(0.4) == 0
    assert seen == []
    assert scheduler.advance(0.2) == 1
    assert seen == [pytest.approx(0.5)]
    assert scheduler.now() == pytest.approx(0.6)
    assert scheduler.advance(5.0) == 0
    assert scheduler.pending() == 0


def test_manual_cancel_is_idempotent():
    scheduler = ManualScheduler()
    seen = []
    handle = scheduler.call_later(0.5, lambda: seen.append(1))
    handle.cancel()
    handle.cancel()
    scheduler.advance(1.0)
    assert seen == []
    assert scheduler.pending() == 0


def test_manual_call_every_does_not_drift():
    scheduler = ManualScheduler()
    seen = []
    scheduler.call_every(0.1, lambda: seen.append(scheduler.now()))

    for _ in range(10):
        scheduler.advance(0.1)
    assert len(seen) == 10
    assert seen[-1] == pytest.approx(1.0)

    scheduler.advance(1.0)
    assert len(seen) == 20


def test_manual_call_every_cancelled_from_callback():
    scheduler = ManualScheduler()
    seen = []
    handles = []

    def _tick():
        seen.append(scheduler.now())
        if len(seen) == 3:
            handles[0].cancel()

    handles.append(scheduler.call_every(0.25, _tick))
    scheduler.advance(5.0)
    assert len(seen) == 3
    assert scheduler.pending() == 0


def test_manual_ties_fire_in_scheduling_order():
    scheduler = ManualScheduler()
    order = []
    scheduler.call_later(1.0, lambda: order.append('a'))
    scheduler.call_later(1.0, lambda: order.append('b'))
    scheduler.call_later(0.5, lambda: order.append('c'))
    scheduler.advance(1.0)
    assert order == ['c', 'a', 'b']


def test_manual_timer_scheduled_from_callback():
    scheduler = ManualScheduler()
    seen = []

    def _again():
        seen.append(scheduler.now())
        if len(seen) < 3:
            scheduler.call_later(0.3, _again)

    scheduler.call_later(0.3, _again)
    scheduler.advance(2.0)
    assert seen == [pytest.approx(0.3), pytest.approx(0.6), pytest.approx(0.9)]


def test_manual_rejects_non_positive_interval():
    with pytest.raises(ValueError):
        ManualScheduler().call_every(0, lambda: None)


def test_socketio_call_later_sleeps_then_fires():
    sio = FakeSocketIO()
    scheduler = SocketIOScheduler(sio, clock=lambda: 0.0)
    seen = []
    scheduler.call_later(0.75, lambda: seen.append(1))

    assert seen == []
    sio.run_all()
    assert sio.sleeps == [0.75]
    assert seen == [1]


def test_socketio_cancelled_timer_never_fires():
    sio = FakeSocketIO()
    scheduler = SocketIOScheduler(sio, clock=lambda: 0.0)
    seen = []
    handle = scheduler.call_later(0.75, lambda: seen.append(1))
    handle.cancel()
    sio.run_all()
    assert seen == []


class RecordingLock:
    def __init__(self):
        self.held = False

    def __enter__(self):
        self.held = True
        return self

    def __exit__(self, *exc):
        self.held = False


def test_socketio_call_every_runs_under_lock_until_cancelled():
    sio = FakeSocketIO()
    lock = RecordingLock()
    scheduler = SocketIOScheduler(sio, lock=lock, clock=lambda: 0.0)
    seen = []
    handles = []

    def _tick():
        seen.append(lock.held)
        if len(seen) == 3:
            handles[0].cancel()

    handles.append(scheduler.call_every(0.1, _tick))
    sio.run_all()
    assert seen == [True, True, True]
    assert not lock.held
    assert sio.sleeps == [pytest.approx(0.1), pytest.approx(0.2), pytest.approx(0.3)]


class RecordingLogger:
    def __init__(self):
        self.errors = []

    def exception(self, message):
        self.errors.append(message)


def test_socketio_call_every_keeps_firing_after_callback_error():
    sio = FakeSocketIO()
    logger = RecordingLogger()
    scheduler = SocketIOScheduler(sio, clock=lambda: 0.0, logger=logger)
    seen = []
    handles = []

    def _tick():
        seen.append(len(seen))
        if len(seen) == 1:
            raise RuntimeError('boom')
        if len(seen) == 3:
            handles[0].cancel()

    handles.append(scheduler.call_every(0.1, _tick))
    sio.run_all()
    assert seen == [0, 1, 2]
    assert len(logger.errors) == 1
    assert '[timer-error]' in logger.errors[0]


def test_socketio_call_later_error_is_logged_not_raised():
    sio = FakeSocketIO()
    logger = RecordingLogger()
    scheduler = SocketIOScheduler(sio, clock=lambda: 0.0, logger=logger)

    def _fail():
        raise ValueError('nope')

    handle = scheduler.call_later(0.2, _fail)
    sio.run_all()
    assert handle.cancelled
    assert len(logger.errors) == 1
