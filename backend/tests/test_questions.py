import os
import random

import pytest

from conftest import HOST_PASSWORD, TestConfig, events
from feud import create_app, socketio
from feud.services.questions import QuestionBank, parse_row

CSV = '''Question,Answer 1,Points 1,Answer 2,Points 2,Answer 3,Points 3
Name a fruit,Banana,30,Apple,40,,
"Something you say, politely",Please,50,Thank you,45,Sorry,oops
,Orphan,10,,
Nothing here,Blank,x,,
'''


@pytest.fixture()
def csv_path(tmp_path):
    path = tmp_path / 'questions.csv'
    path.write_text(CSV, encoding='utf-8')
    return str(path)


def test_parse_row_sorts_and_skips_bad_answers():
    q = parse_row(['Name a fruit', 'Banana', '30', 'Apple', '40', 'Kiwi', 'x'])
    assert [(a.text, a.points) for a in q.answers] == [('Apple', 40), ('Banana', 30)]
    assert parse_row(['', 'A', '1']) is None
    assert parse_row(['Q', 'A', 'nope']) is None


def test_bank_loads_csv(csv_path):
    bank = QuestionBank.from_csv(csv_path)
    assert len(bank) == 2
    assert bank.get(1).question == 'Something you say, politely'
    assert [a.text for a in bank.get(1).answers] == ['Please', 'Thank you']


def test_draw_avoids_used_then_starts_over(csv_path):
    bank = QuestionBank.from_csv(csv_path)
    rng = random.Random(7)
    index, _, exhausted = bank.draw([0], rng=rng)
    assert index == 1 and not exhausted
    index, _, exhausted = bank.draw([0, 1], rng=rng)
    assert exhausted
    assert index in (0, 1)
    # Copies, not shared objects
    assert bank.get(0) is not bank.get(0)


def test_host_draws_from_bank(csv_path, judge):
    class BankConfig(TestConfig):
        QUESTIONS_CSV = csv_path

    app = create_app(BankConfig, judge=judge)
    with app.app_context():
        code = app.test_client().post('/api/rooms').get_json()['roomCode']
        host = socketio.test_client(app)
        host.emit('host:authenticate', {'roomCode': code, 'password': HOST_PASSWORD})
        host.emit('startGame', {'totalRounds': 5})
        host.emit('newQuestion', {})
        host.emit('newQuestion', {'incrementRound': True})
        loaded = events(host, 'question:loaded')
        assert len(loaded) == 2
        assert {q['question']['question'] for q in loaded} == {'Name a fruit', 'Something you say, politely'}
        state = app.extensions['rooms'].get_room(code).state
        assert sorted(state.used_question_indices) == [0, 1]
        # Pool exhausted: the used list starts over
        host.emit('newQuestion', {'incrementRound': True})
        assert len(state.used_question_indices) == 1
        host.disconnect()


def test_questions_check_command(csv_path, judge):
    app = create_app(TestConfig, judge=judge)
    result = app.test_cli_runner().invoke(args=['questions-check', '--path', csv_path])
    assert result.exit_code == 0
    assert '2 questions loaded' in result.output


def test_default_bank_ships_with_package():
    from feud.config import Config

    assert os.path.isabs(Config.QUESTIONS_CSV)
    assert os.path.exists(Config.QUESTIONS_CSV)
    assert len(QuestionBank.from_csv(Config.QUESTIONS_CSV)) > 0
