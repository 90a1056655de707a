import os
import random
import sys
import pytest

# Ensure the backend root (containing the `app` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from app import create_app, socketio
from app.services.games import GameTable
from app.services.games.scoring import get_policy


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    MAX_ROUNDS = 10
    ROUND_COOLDOWN_SEC = 0
    SCORING_POLICY = 'parity'
    AUTO_START_NEXT_ROUND = False
    GUESS_BY_NAME_FALLBACK = False
    TIMER_HEARTBEAT_SEC = 0


class Recorder:
    """Stands in for the Socket.IO notifier; keeps (event, payload, recipient ids)."""

    def __init__(self):
        self.sent = []

    def __call__(self, event, payload, recipients):
        self.sent.append((event, payload, [p.id for p in recipients]))

    def events(self, name=None, to=None):
        return [
            (event, payload, ids) for event, payload, ids in self.sent
            if (name is None or event == name) and (to is None or to in ids)
        ]

    def names(self):
        return [event for event, _, _ in self.sent]

    def clear(self):
        self.sent = []


class ManualScheduler:
    """Holds cooldown callbacks until the test fires them."""

    def __init__(self):
        self.pending = []

    def __call__(self, delay, callback, label=''):
        self.pending.append((delay, callback, label))

    def fire_all(self):
        pending, self.pending = self.pending, []
        for _, callback, _ in pending:
            callback()


@pytest.fixture()
def recorder():
    return Recorder()


@pytest.fixture()
def make_table(recorder):
    def _make(policy='parity', seed=7, **kwargs):
        return GameTable(get_policy(policy), recorder, rng=random.Random(seed), **kwargs)
    return _make


@pytest.fixture()
def table(make_table):
    return make_table()


@pytest.fixture()
def seated_table(table):
    """A table with A, B, C, D joined in order and promoted into a game."""
    for sid, name in (('a', 'A'), ('b', 'B'), ('c', 'C'), ('d', 'D')):
        table.connect(sid)
        table.join(sid, name)
    return table


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


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


@pytest.fixture()
def sio_clients(flask_app):
    """Factory for extra Socket.IO clients on /ws, all disconnected at teardown."""
    made = []

    def _make():
        c = socketio.test_client(flask_app, namespace='/ws')
        made.append(c)
        return c

    yield _make
    for c in made:
        try:
            if c.is_connected('/ws'):
                c.disconnect(namespace='/ws')
        except Exception:
            pass
