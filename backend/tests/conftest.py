import os
import sys
import pytest

# Ensure the backend root (containing the `feud` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from feud import create_app, socketio
from feud.errors import JudgeUnavailable

HOST_PASSWORD = 'letmein'

FRUIT = {
    'question': 'Name a fruit',
    'answers': [{'text': 'Apple', 'points': 40}, {'text': 'Banana', 'points': 30}],
}


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    HOST_PASSWORD = HOST_PASSWORD
    BCRYPT_LOG_ROUNDS = 4
    CORS_ORIGINS = '*'
    ROOM_RETENTION_SEC = 3600
    ROOM_SWEEP_INTERVAL_SEC = 3600
    QUESTIONS_CSV = ''
    OPENAI_API_KEY = None
    DEFAULT_TIMER_SEC = 30


class FakeJudge:
    """Judge stand-in; answers with queued verdicts or raises queued errors."""

    def __init__(self):
        self.calls = []
        self.replies = []

    def reply(self, verdict):
        self.replies.append(verdict)

    def fail(self, message='Answer judge unreachable'):
        self.replies.append(JudgeUnavailable(message))

    def __call__(self, question, board, player_answer):
        self.calls.append((question, list(board), player_answer))
        reply = self.replies.pop(0) if self.replies else {'match': False, 'matchedAnswer': ''}
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            return reply(question, board, player_answer)
        return reply


@pytest.fixture()
def judge():
    return FakeJudge()


@pytest.fixture()
def flask_app(judge):
    application = create_app(TestConfig, judge=judge)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def rooms(flask_app):
    return flask_app.extensions['rooms']


@pytest.fixture()
def connect(flask_app):
    """Factory for Socket.IO test clients; all are disconnected on teardown."""
    made = []

    def _connect():
        test_client = socketio.test_client(flask_app, flask_test_client=flask_app.test_client())
        test_client.get_received()  # flush the connect greeting
        made.append(test_client)
        return test_client

    yield _connect
    for test_client in made:
        try:
            if test_client.is_connected():
                test_client.disconnect()
        except Exception:
            pass


def events(sio, name):
    """Payloads of every ``name`` event received since the last call."""
    return [pkt['args'][0] if pkt['args'] else None for pkt in sio.get_received() if pkt['name'] == name]


def drain(sio):
    """Received events grouped by name."""
    grouped = {}
    for pkt in sio.get_received():
        grouped.setdefault(pkt['name'], []).append(pkt['args'][0] if pkt['args'] else None)
    return grouped


@pytest.fixture()
def room_code(client):
    return client.post('/api/rooms').get_json()['roomCode']


@pytest.fixture()
def host(connect, room_code):
    sio = connect()
    sio.emit('host:authenticate', {'roomCode': room_code, 'password': HOST_PASSWORD})
    result = events(sio, 'host:authResult')
    assert result and result[0]['success']
    return sio


@pytest.fixture()
def display(connect, room_code):
    sio = connect()
    sio.emit('display:join', {'roomCode': room_code})
    assert events(sio, 'display:joined')
    return sio
