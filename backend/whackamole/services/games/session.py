"""Binds one GameEngine to the Flask app.

The session owns the lock that serializes HTTP handlers, socket handlers
and timer firings, and wires the engine's callbacks to Socket.IO
broadcasts and high-score storage.
"""

import random
import threading
from typing import Any, Dict, Optional

from flask import current_app

from whackamole import socketio
from .engine import (
    BASE_MOLE_LIFETIME,
    BASE_SPAWN_INTERVAL,
    GRID_SIZE,
    INITIAL_COUNTDOWN_SEC,
    MIN_DIFFICULTY_FACTOR,
    RAMP_DECAY,
    RAMP_PERIOD_SEC,
    TICK_INTERVAL_SEC,
    GameEngine,
)
from .scheduler import ManualScheduler, Scheduler, SocketIOScheduler
from .scoring import load_high_score, record_high_score


WS_NAMESPACE = '/ws'
EXTENSION_KEY = 'whackamole.session'

_create_lock = threading.Lock()


def game_settings() -> Dict[str, Any]:
    return {
        'grid_size': GRID_SIZE,
        'countdown_sec': INITIAL_COUNTDOWN_SEC,
        'tick_interval_sec': TICK_INTERVAL_SEC,
        'spawn_interval_sec': list(BASE_SPAWN_INTERVAL),
        'mole_lifetime_sec': list(BASE_MOLE_LIFETIME),
        'ramp_period_sec': RAMP_PERIOD_SEC,
        'ramp_decay': RAMP_DECAY,
        'min_factor': MIN_DIFFICULTY_FACTOR,
    }


def broadcast(app, event: str, payload: Dict[str, Any]) -> None:
    # Called from timer workers as well as requests, so use socketio.emit
    try:
        socketio.emit(event, payload, namespace=WS_NAMESPACE)
    except Exception as exc:
        app.logger.warning(f"[broadcast-drop] event={event}: {exc}")


class GameSession:
    def __init__(self, app, engine: GameEngine, scheduler: Scheduler, lock, high_score_key: str):
        self.app = app
        self.engine = engine
        self.scheduler = scheduler
        self.lock = lock
        self.high_score_key = high_score_key

    def snapshot(self) -> Dict[str, Any]:
        with self.lock:
            return self.engine.to_dict()

    def start(self) -> Dict[str, Any]:
        with self.lock:
            self.engine.start()
            return self.engine.to_dict()

    def pause(self) -> Dict[str, Any]:
        with self.lock:
            self.engine.pause()
            return self.engine.to_dict()

    def reset(self) -> Dict[str, Any]:
        with self.lock:
            self.engine.reset()
            return self.engine.to_dict()

    def whack(self, hole_index: int) -> Dict[str, Any]:
        with self.lock:
            hit = self.engine.whack(hole_index)
            payload = self.engine.to_dict()
        payload['hit'] = hit
        return payload


def _make_scheduler(app, lock) -> Scheduler:
    if app.config.get('TESTING') and not app.config.get('ENABLE_SCHEDULER_IN_TESTS'):
        return ManualScheduler()
    return SocketIOScheduler(socketio, lock=lock, logger=app.logger)


def _make_rng(app) -> random.Random:
    seed = app.config.get('ENGINE_SEED')
    if seed in (None, ''):
        return random.Random()
    try:
        return random.Random(int(seed))
    except (TypeError, ValueError):
        app.logger.warning(f"[engine-seed] ignoring non-integer ENGINE_SEED={seed!r}")
        return random.Random()


def create_session(app) -> GameSession:
    lock = threading.RLock()
    scheduler = _make_scheduler(app, lock)
    key = app.config.get('HIGH_SCORE_KEY', 'HighScore')

    with app.app_context():
        prior = load_high_score(key)

    def _persist(value: int) -> None:
        try:
            with app.app_context():
                record_high_score(key, value)
        except Exception as exc:
            app.logger.warning(f"[high-score] persist failed key={key} value={value}: {exc}")
        broadcast(app, 'high_score', {'value': value})

    def _feedback(kind: str) -> None:
        broadcast(app, 'feedback', {'kind': kind})

    engine = GameEngine(
        scheduler,
        high_score=prior,
        rng=_make_rng(app),
        feedback=_feedback,
        on_high_score=_persist,
        logger=app.logger,
    )
    engine.subscribe(lambda snapshot: broadcast(app, 'state_update', snapshot))
    app.logger.info(f"[session-create] key={key} high_score={prior} scheduler={type(scheduler).__name__}")
    return GameSession(app, engine, scheduler, lock, key)


def get_session(app=None) -> GameSession:
    """Return the app's game session, creating it on first use."""
    app = app or current_app._get_current_object()
    session: Optional[GameSession] = app.extensions.get(EXTENSION_KEY)
    if session is None:
        with _create_lock:
            session = app.extensions.get(EXTENSION_KEY)
            if session is None:
                session = create_session(app)
                app.extensions[EXTENSION_KEY] = session
    return session
