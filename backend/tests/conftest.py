import logging
import os
import sys
import pytest

# Ensure the backend root (containing the `keynes` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from keynes import create_app, get_registry, socketio
from keynes.services.games import GameSettings, RoundScheduler, SessionRegistry


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    CORS_ALLOWED_ORIGINS = ['http://localhost:3000']
    INPUT_DURATION_SEC = 60
    RESULTS_DURATION_SEC = 15
    DEFAULT_CHOICE = 50.0
    TARGET_MULTIPLIER = 0.8
    INITIAL_ROUND_AVERAGE = 50.0
    ROOM_CODE_LENGTH = 5


class ManualTasks:
    """Stands in for socketio.start_background_task: queues instead of running."""

    def __init__(self):
        self.tasks = []
        self.slept = []

    def start_background_task(self, target, *args, **kwargs):
        self.tasks.append((target, args, kwargs))

    def sleep(self, seconds):
        self.slept.append(seconds)

    def run_all(self):
        while self.tasks:
            target, args, kwargs = self.tasks.pop(0)
            target(*args, **kwargs)


class RecordingBroadcaster:
    def __init__(self):
        self.events = []
        self.direct = []
        self.members = {}

    def broadcast(self, room_code, event, payload):
        self.events.append((room_code, event, payload))

    def send(self, connection_id, event, payload):
        self.direct.append((connection_id, event, payload))

    def join(self, connection_id, room_code):
        self.members.setdefault(room_code, set()).add(connection_id)

    def leave(self, connection_id, room_code):
        self.members.get(room_code, set()).discard(connection_id)

    def named(self, event, room_code=None):
        return [p for r, e, p in self.events if e == event and (room_code is None or r == room_code)]

    def last(self, event, room_code=None):
        found = self.named(event, room_code)
        return found[-1] if found else None


@pytest.fixture()
def settings():
    return GameSettings()


@pytest.fixture()
def tasks():
    return ManualTasks()


@pytest.fixture()
def scheduler(tasks):
    return RoundScheduler(tasks.start_background_task, tasks.sleep, logger=logging.getLogger('tests.scheduler'))


@pytest.fixture()
def broadcaster():
    return RecordingBroadcaster()


@pytest.fixture()
def registry(settings, scheduler, broadcaster):
    return SessionRegistry(settings, scheduler, broadcaster, logger=logging.getLogger('tests.registry'))


@pytest.fixture()
def flask_app(scheduler):
    application = create_app(TestConfig, scheduler=scheduler)
    with application.app_context():
        yield application


@pytest.fixture()
def app_registry(flask_app):
    return get_registry(flask_app)


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
