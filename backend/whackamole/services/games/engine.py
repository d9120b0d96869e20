"""Whack-a-mole session engine.

The engine owns the hole grid, score, countdown and difficulty ramp. It is
driven by two timers taken from an injected scheduler: a fixed-period tick
and a spawn timer that re-samples its own delay on every firing. Rendering,
storage and feedback stay with the host, which subscribes to snapshots and
receives explicit callbacks.
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from .scheduler import Scheduler, TimerHandle


GRID_SIZE = 3
TOTAL_HOLES = GRID_SIZE * GRID_SIZE
INITIAL_COUNTDOWN_SEC = 60
TICK_INTERVAL_SEC = 0.1
BASE_SPAWN_INTERVAL: Tuple[float, float] = (0.5, 1.2)
BASE_MOLE_LIFETIME: Tuple[float, float] = (0.9, 1.6)
RAMP_PERIOD_SEC = 15
RAMP_DECAY = 0.08
MIN_DIFFICULTY_FACTOR = 0.7
DEFAULT_MOLE_LIFETIME = 1.2

NEVER = float('-inf')

FEEDBACK_HIT = 'hit'
FEEDBACK_GAME_OVER = 'game_over'

STATE_IDLE = 'idle'
STATE_RUNNING = 'running'
STATE_PAUSED = 'paused'
STATE_GAME_OVER = 'game_over'

Snapshot = Dict[str, Any]


def difficulty_factor(elapsed: float) -> float:
    """Range multiplier for the given amount of active play.

    One ramp step per RAMP_PERIOD_SEC, each shaving RAMP_DECAY off the
    baseline, never below MIN_DIFFICULTY_FACTOR.
    """
    ramp = int(elapsed // RAMP_PERIOD_SEC)
    return max(MIN_DIFFICULTY_FACTOR, 1.0 - ramp * RAMP_DECAY)


def scale_range(base: Tuple[float, float], factor: float) -> Tuple[float, float]:
    return (base[0] * factor, base[1] * factor)


@dataclass
class Hole:
    index: int
    is_up: bool = False
    appear_at: float = NEVER
    lifetime: float = DEFAULT_MOLE_LIFETIME

    def is_expired(self, now: float) -> bool:
        return self.is_up and now - self.appear_at >= self.lifetime

    def to_dict(self) -> Dict[str, Any]:
        return {'index': self.index, 'is_up': self.is_up}


class GameEngine:
    """Single whack-a-mole session.

    Not thread-safe: callers that drive the engine from several threads
    must serialize access (the host does this with its session lock).

    Args:
        scheduler: timer source for the tick and spawn loops
        high_score: previously stored best score
        rng: random source for spawn delays, hole picks and lifetimes
        feedback: called with FEEDBACK_HIT / FEEDBACK_GAME_OVER
        on_high_score: called with the new value when a game beats high_score
        logger: defaults to this module's logger
    """

    def __init__(
        self,
        scheduler: Scheduler,
        high_score: int = 0,
        rng: Optional[random.Random] = None,
        feedback: Optional[Callable[[str], None]] = None,
        on_high_score: Optional[Callable[[int], None]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.scheduler = scheduler
        self.rng = rng if rng is not None else random.Random()
        self.high_score = max(0, int(high_score or 0))
        self.logger = logger or logging.getLogger(__name__)
        self._feedback = feedback
        self._on_high_score = on_high_score
        self._listeners: List[Callable[[Snapshot], None]] = []
        self._last_published: Optional[Snapshot] = None
        self._tick_handle: Optional[TimerHandle] = None
        self._spawn_handle: Optional[TimerHandle] = None
        self.is_running = False
        self._clear_session()

    def _clear_session(self) -> None:
        self.holes = [Hole(index=i) for i in range(TOTAL_HOLES)]
        self.score = 0
        self.is_game_over = False
        self._ticks = 0
        self._started = False
        self.spawn_interval_range = BASE_SPAWN_INTERVAL
        self.mole_lifetime_range = BASE_MOLE_LIFETIME

    # ---- Derived state ----

    @property
    def elapsed(self) -> float:
        # Quantized to the tick so 150 ticks read as exactly 15.0s
        return round(self._ticks * TICK_INTERVAL_SEC, 6)

    @property
    def remaining(self) -> float:
        return max(0.0, round(INITIAL_COUNTDOWN_SEC - self.elapsed, 6))

    @property
    def time_remaining(self) -> int:
        return int(math.ceil(self.remaining))

    @property
    def state(self) -> str:
        if self.is_game_over:
            return STATE_GAME_OVER
        if self.is_running:
            return STATE_RUNNING
        if self._started:
            return STATE_PAUSED
        return STATE_IDLE

    def up_holes(self) -> List[int]:
        return [h.index for h in self.holes if h.is_up]

    def to_dict(self) -> Snapshot:
        return {
            'state': self.state,
            'score': self.score,
            'time_remaining': self.time_remaining,
            'is_running': self.is_running,
            'is_game_over': self.is_game_over,
            'high_score': self.high_score,
            'holes': [h.to_dict() for h in self.holes],
        }

    # ---- Observers ----

    def subscribe(self, listener: Callable[[Snapshot], None]) -> Callable[[], None]:
        """Register a snapshot listener; returns a callable that removes it."""
        self._listeners.append(listener)

        def _unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _publish(self) -> None:
        snapshot = self.to_dict()
        if snapshot == self._last_published:
            return
        self._last_published = snapshot
        for listener in list(self._listeners):
            listener(snapshot)

    def _emit_feedback(self, kind: str) -> None:
        if self._feedback is not None:
            self._feedback(kind)

    # ---- Commands ----

    def start(self) -> None:
        if self.is_running:
            return
        if self.is_game_over:
            self.reset()
        self.is_running = True
        self._started = True
        self._cancel_timers()
        self._tick_handle = self.scheduler.call_every(TICK_INTERVAL_SEC, self._on_tick)
        self._schedule_spawn()
        self.logger.info(f"[engine-start] elapsed={self.elapsed:.1f}s score={self.score}")
        self._publish()

    def pause(self) -> None:
        was_running = self.is_running
        self.is_running = False
        self._cancel_timers()
        if was_running:
            self.logger.info(f"[engine-pause] elapsed={self.elapsed:.1f}s score={self.score}")
        self._publish()

    def reset(self) -> None:
        """Return to idle values. Stops the drivers; high_score is kept."""
        self.is_running = False
        self._cancel_timers()
        self._clear_session()
        self.logger.info("[engine-reset]")
        self._publish()

    def whack(self, hole_index: int) -> bool:
        """Hit the mole in ``hole_index``. Returns False for any miss."""
        if not self.is_running:
            return False
        if isinstance(hole_index, bool) or not isinstance(hole_index, int):
            return False
        if not 0 <= hole_index < len(self.holes):
            return False
        hole = self.holes[hole_index]
        if not hole.is_up:
            return False
        hole.is_up = False
        self.score += 1
        self._emit_feedback(FEEDBACK_HIT)
        self._publish()
        return True

    def spawn_one(self) -> Optional[int]:
        """Raise a mole in a random empty hole, if there is one."""
        empty = [h for h in self.holes if not h.is_up]
        if not empty:
            return None
        hole = self.rng.choice(empty)
        hole.is_up = True
        hole.appear_at = self.scheduler.now()
        hole.lifetime = self.rng.uniform(*self.mole_lifetime_range)
        self._publish()
        return hole.index

    # ---- Drivers ----

    def _cancel_timers(self) -> None:
        if self._tick_handle is not None:
            self._tick_handle.cancel()
            self._tick_handle = None
        if self._spawn_handle is not None:
            self._spawn_handle.cancel()
            self._spawn_handle = None

    def _schedule_spawn(self) -> None:
        delay = self.rng.uniform(*self.spawn_interval_range)
        self._spawn_handle = self.scheduler.call_later(delay, self._on_spawn)

    def _on_spawn(self) -> None:
        if not self.is_running:
            return
        self.spawn_one()
        self._schedule_spawn()

    def _on_tick(self) -> None:
        if not self.is_running:
            return
        self._ticks += 1

        now = self.scheduler.now()
        for hole in self.holes:
            if hole.is_expired(now):
                hole.is_up = False

        factor = difficulty_factor(self.elapsed)
        self.spawn_interval_range = scale_range(BASE_SPAWN_INTERVAL, factor)
        self.mole_lifetime_range = scale_range(BASE_MOLE_LIFETIME, factor)

        if self.time_remaining <= 0:
            self._finish()
        self._publish()

    def _finish(self) -> None:
        self.is_running = False
        self.is_game_over = True
        self._cancel_timers()
        self.logger.info(f"[engine-finish] score={self.score} high_score={self.high_score}")
        if self.score > self.high_score:
            self.high_score = self.score
            if self._on_high_score is not None:
                self._on_high_score(self.high_score)
        self._emit_feedback(FEEDBACK_GAME_OVER)
