import os
import random
import sys

import pytest

# Ensure the backend root (containing the `wordbomb` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from wordbomb.config import Config
from wordbomb.game.models import Player
from wordbomb.game.service import GameService
from wordbomb.server import create_app
from wordbomb.words.oracle import WordOracle


WORDS = [
    'running', 'runner', 'rerun', 'run', 'interesting', 'interest', 'sing',
    'singing', 'string', 'strong', 'action', 'nation', 'station', 'happily',
    'quickly', 'question', 'quiet', 'international', 'banana', 'zebra',
]


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = 'test-secret'
    TIMER_TICKS = False
    POWER_UP_CHANCE = 0.0
    DATAMUSE_URL = ''
    REMOTE_WORD_CHECK = False


class FakeTimers:
    """Stand-in for TurnTimers: records armed clocks and fires them on demand."""

    def __init__(self):
        self.armed = {}
        self.started = []
        self.cancelled = []

    def start(self, room_id, duration_sec, on_expire, on_tick=None):
        self.armed[room_id] = (duration_sec, on_expire)
        self.started.append((room_id, duration_sec))
        return float(duration_sec)

    def cancel(self, room_id):
        self.cancelled.append(room_id)
        return self.armed.pop(room_id, None) is not None

    def active(self, room_id):
        return room_id in self.armed

    def remaining(self, room_id):
        armed = self.armed.get(room_id)
        return float(armed[0]) if armed else None

    def fire(self, room_id):
        _, on_expire = self.armed.pop(room_id)
        on_expire()


class RecordingSink:
    def __init__(self):
        self.events = []

    def to_room(self, room_id, event, payload):
        self.events.append(('room', room_id, None, event, payload))

    def to_player(self, room_id, player_id, event, payload):
        self.events.append(('player', room_id, player_id, event, payload))

    def named(self, event):
        return [e for e in self.events if e[3] == event]

    def last(self, event):
        found = self.named(event)
        return found[-1][4] if found else None

    def clear(self):
        self.events.clear()


class StubOracle(WordOracle):
    """Static-list oracle that never touches the network."""

    def __init__(self, words=WORDS, definitions=None):
        super().__init__(words=words, blocked=['banana'])
        self.definitions = definitions or {}
        self.checked = []

    def lookup_definition(self, word):
        return self.definitions.get(word)

    def check(self, word):
        self.checked.append(word)
        return super().check(word)


def make_player(pid, name=None):
    return Player(id=pid, name=name or pid.upper(), color='#fff', avatar='')


@pytest.fixture()
def sink():
    return RecordingSink()


@pytest.fixture()
def timers():
    return FakeTimers()


@pytest.fixture()
def oracle():
    return StubOracle()


@pytest.fixture()
def service(sink, timers, oracle):
    return GameService(
        sink=sink,
        oracle=oracle,
        start_background_task=lambda fn, *args, **kwargs: None,
        sleep=lambda seconds: None,
        config=TestingConfig,
        inline=True,
        timers=timers,
        rng=random.Random(7),
    )


@pytest.fixture()
def engine(service):
    return service.engine


@pytest.fixture()
def started_room(service):
    """Room 'R1' with A (host), B and C playing an online game."""
    service.join('R1', make_player('a'), as_host=True)
    service.join('R1', make_player('b'))
    service.join('R1', make_player('c'))
    service.start_game('R1', 'a', 'online')
    return service.repository.get('R1')


@pytest.fixture()
def flask_app(timers, oracle):
    application, socketio = create_app(TestingConfig, oracle=oracle, timers=timers, rng=random.Random(3))
    application.extensions['test_socketio'] = socketio
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def socketio(flask_app):
    return flask_app.extensions['test_socketio']


@pytest.fixture()
def sio_factory(flask_app, socketio):
    clients = []

    def _make():
        c = socketio.test_client(flask_app, flask_test_client=flask_app.test_client())
        clients.append(c)
        return c

    yield _make
    for c in clients:
        try:
            if c.is_connected():
                c.disconnect()
        except Exception:
            pass
