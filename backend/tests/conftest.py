import os
import sys
import pytest

# Ensure the backend root (containing the `whackamole` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from whackamole import create_app, db, socketio


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    HIGH_SCORE_KEY = 'HighScore'
    ENGINE_SEED = 7


class StubRandom:
    """Deterministic stand-in for random.Random.

    ``uniform`` always returns the upper bound and ``choice`` the first
    candidate, so spawns land on the lowest empty hole at the slowest pace.
    """

    def uniform(self, a, b):
        return b

    def choice(self, seq):
        return seq[0]


@pytest.fixture()
def stub_random():
    return StubRandom()


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import whackamole.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def session(flask_app):
    from whackamole.services.games.session import get_session
    return get_session(flask_app)


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass
