import os
import random
import sys
import pytest

# Ensure the backend root (containing the `wordparty` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from wordparty import create_app, socketio
from wordparty.services.rooms.registry import RoomRegistry
from wordparty.services.rooms.scheduler import DeferredScheduler
from wordparty.services.rooms.state_machine import RoomStateMachine
from wordparty.services.rooms.words import WordSource


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    CORS_ALLOWED_ORIGINS = '*'
    SOCKETIO_NAMESPACE = '/'
    WORDLIST_DIR = os.path.join(BACKEND_ROOT, 'shared')
    ROUND_DURATION_SEC = 300
    EXTEND_TIME_SEC = 300
    TIMER_TICK_SEC = 1
    END_GRACE_SEC = 2
    PRESENCE_SWEEP_SEC = 3


class RecordingChannel:
    """In-memory stand-in for RoomChannel that remembers everything published."""

    def __init__(self):
        self.sent = []
        self.members = {}
        self.closed = []

    def emit(self, event, payload=None, to=None):
        self.sent.append((event, payload, to))

    def subscribe(self, connection_id, code):
        self.members.setdefault(code, set()).add(connection_id)

    def unsubscribe(self, connection_id, code):
        self.members.get(code, set()).discard(connection_id)

    def close(self, code):
        self.closed.append(code)
        self.members.pop(code, None)

    def events(self, name, to=None):
        return [p for e, p, t in self.sent if e == name and (to is None or t == to)]

    def clear(self):
        self.sent = []


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_factory(flask_app):
    clients = []

    def _make():
        test_client = socketio.test_client(flask_app, flask_test_client=flask_app.test_client())
        clients.append(test_client)
        return test_client

    yield _make
    for c in clients:
        try:
            if c.is_connected():
                c.disconnect()
        except Exception:
            pass


@pytest.fixture()
def scheduler(flask_app):
    return flask_app.extensions['wordparty_scheduler']


@pytest.fixture()
def registry():
    return RoomRegistry(rng=random.Random(7))


@pytest.fixture()
def channel():
    return RecordingChannel()


@pytest.fixture()
def words():
    return WordSource({
        'standard': ['apple', 'banana'],
        'easy': ['cat'],
        'difficult': ['labyrinth'],
    }, rng=random.Random(3))


@pytest.fixture()
def machine(registry, words, channel):
    return RoomStateMachine(
        registry, words, channel, DeferredScheduler(),
        round_seconds=300, extend_seconds=300, tick_seconds=1, end_grace_seconds=2,
        rng=random.Random(11),
    )


@pytest.fixture()
def lobby(machine):
    """A room 'AB12' hosted by alice (sid-a) with bob (sid-b) joined."""
    room = machine.create('sid-a', 'Alice', 'ab12')
    machine.join(room, 'sid-b', 'Bob')
    return room


@pytest.fixture()
def round_room(machine, lobby, channel):
    """Bob guessing, Alice explaining 'hello world', round running."""
    machine.assign_role(lobby, 'sid-a', 'Bob', 'guesser')
    machine.start(lobby, 'sid-a')
    machine.choose_custom_word(lobby, 'sid-a', 'hello world')
    channel.clear()
    return lobby
