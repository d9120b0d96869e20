import heapq
import itertools
import logging
import threading
import time
from typing import Callable, List, Optional, Tuple


class TimerHandle:
    """Cancellable reference to a scheduled callback.

    Cancelling is idempotent. Once ``cancel`` returns the callback will not
    fire again, provided the caller holds the same lock the scheduler fires
    under (the live host does; the manual scheduler is single-threaded).
    """

    def __init__(self) -> None:
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class Scheduler:
    """Timer source for the game engine."""

    def now(self) -> float:
        raise NotImplementedError

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        raise NotImplementedError

    def call_every(self, interval: float, callback: Callable[[], None]) -> TimerHandle:
        raise NotImplementedError


class SocketIOScheduler(Scheduler):
    """Runs timers as Socket.IO background tasks.

    - Sleeps with ``socketio.sleep`` so it cooperates with eventlet/gevent
    - Every firing runs under ``lock`` and re-checks cancellation there
    - Periodic firings are anchored to their origin so the period does not drift
    """

    def __init__(self, socketio, lock=None, clock: Callable[[], float] = time.monotonic, logger=None):
        self._socketio = socketio
        self._lock = lock if lock is not None else threading.RLock()
        self._clock = clock
        self.logger = logger or logging.getLogger(__name__)

    def _fire(self, callback: Callable[[], None]) -> None:
        # A failing callback must not kill the worker and freeze the game
        try:
            callback()
        except Exception:
            self.logger.exception(f"[timer-error] callback={callback!r}")

    def now(self) -> float:
        return self._clock()

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle()

        def _worker():
            self._socketio.sleep(max(0.0, delay))
            with self._lock:
                if handle.cancelled:
                    return
                handle.cancel()
                self._fire(callback)

        self._socketio.start_background_task(_worker)
        return handle

    def call_every(self, interval: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle()
        origin = self._clock()

        def _worker():
            fired = 0
            while not handle.cancelled:
                fired += 1
                self._socketio.sleep(max(0.0, origin + fired * interval - self._clock()))
                with self._lock:
                    if handle.cancelled:
                        return
                    self._fire(callback)

        self._socketio.start_background_task(_worker)
        return handle


class ManualScheduler(Scheduler):
    """Virtual-clock scheduler driven explicitly with ``advance``.

    Used when the app runs in TESTING mode and for deterministic replays:
    nothing fires until the caller moves the clock forward.
    """

    # Tolerance for float drift when a timer is due exactly at the target
    EPSILON = 1e-9

    def __init__(self, start: float = 0.0):
        self._now = float(start)
        self._queue: List[Tuple[float, int, TimerHandle, Callable[[], None], Optional[float], float, int]] = []
        self._seq = itertools.count()

    def now(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle()
        due = self._now + max(0.0, delay)
        heapq.heappush(self._queue, (due, next(self._seq), handle, callback, None, due, 0))
        return handle

    def call_every(self, interval: float, callback: Callable[[], None]) -> TimerHandle:
        if interval <= 0:
            raise ValueError('interval must be positive')
        handle = TimerHandle()
        origin = self._now
        heapq.heappush(self._queue, (origin + interval, next(self._seq), handle, callback, interval, origin, 1))
        return handle

    def advance(self, seconds: float) -> int:
        """Move the clock forward, firing every timer that falls due.

        Returns the number of callbacks that fired.
        """
        target = self._now + max(0.0, seconds)
        fired = 0
        while self._queue and self._queue[0][0] <= target + self.EPSILON:
            due, _, handle, callback, interval, origin, count = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self._now = max(self._now, due)
            if interval is None:
                handle.cancel()
            callback()
            fired += 1
            if interval is not None and not handle.cancelled:
                count += 1
                heapq.heappush(
                    self._queue,
                    (origin + count * interval, next(self._seq), handle, callback, interval, origin, count),
                )
        self._now = max(self._now, target)
        return fired

    def pending(self) -> int:
        return sum(1 for entry in self._queue if not entry[2].cancelled)
