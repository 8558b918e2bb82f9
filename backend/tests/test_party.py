import pytest

from conftest import FRUIT, drain, events
from feud.party import PartyState


def test_battle_pairs_cycle_through_each_team():
    party = PartyState()
    a = party.add_player('Ann')
    b = party.add_player('Ben')
    c = party.add_player('Cat')
    assert [p.team for p in (a, b, c)] == [1, 2, 1]
    party.start()
    assert party.current_battle() == (a, b)
    party.next_battle()
    assert party.current_battle() == (c, b)
    assert party.face_off_active is True


def test_turn_rules():
    party = PartyState()
    a = party.add_player('Ann')
    b = party.add_player('Ben')
    c = party.add_player('Cat')
    assert party.can_answer(a.id) is False  # not started
    party.start()
    assert party.can_answer(a.id) and party.can_answer(b.id)
    assert not party.can_answer(c.id)
    party.set_turn(b.id)
    assert not party.can_answer(a.id)
    assert party.can_answer(b.id)
    with pytest.raises(KeyError):
        party.set_turn(c.id)


def join(connect, code, name):
    sio = connect()
    sio.emit('player:join', {'roomCode': code, 'playerName': name})
    joined = events(sio, 'player:joined')[0]
    return sio, joined


def test_player_join_and_roster_updates(connect, host, display, room_code):
    alice, joined = join(connect, room_code, 'Alice')
    assert joined['playerName'] == 'Alice'
    assert joined['team'] == 1
    roster = events(display, 'players:updated')[-1]['players']
    assert [p['name'] for p in roster] == ['Alice']

    alice.disconnect()
    assert events(display, 'players:updated')[-1]['players'] == []


def test_player_join_errors(connect, room_code):
    sio = connect()
    sio.emit('player:join', {'roomCode': room_code, 'playerName': '   '})
    assert events(sio, 'player:error')[0]['message'].endswith('Please enter your name')
    sio.emit('player:join', {'roomCode': 'ZZZZZZ', 'playerName': 'Zed'})
    assert events(sio, 'player:error') == [{'message': 'Room not found'}]


def test_party_game_face_off_and_turns(connect, host, judge, rooms, room_code):
    alice, a = join(connect, room_code, 'Alice')
    bob, b = join(connect, room_code, 'Bob')
    carol, c = join(connect, room_code, 'Carol')
    drain(host)

    host.emit('partyGame:start', {'team1Name': 'Red', 'team2Name': 'Blue', 'totalRounds': 2})
    battle = events(alice, 'battle:started')[-1]
    assert battle['team1Player']['id'] == a['playerId']
    assert battle['team2Player']['id'] == b['playerId']
    assert battle['faceOffActive'] is True

    host.emit('newQuestion', {'question': FRUIT})
    loaded = events(bob, 'question:loaded')[-1]
    assert 'text' not in loaded['question']['answers'][0]

    # Carol is not in the current battle
    carol.emit('player:submitAnswer', {'playerAnswer': 'apple'})
    assert events(carol, 'player:notYourTurn')
    assert judge.calls == []

    # Face-off: Bob answers correctly and takes the turn
    judge.reply({'match': True, 'matchedAnswer': 'Apple', 'reason': 'exact'})
    bob.emit('player:submitAnswer', {'playerAnswer': 'Apple'})
    got = drain(bob)
    assert got['player:answerResult'][0]['match'] is True
    assert got['turn:changed'][-1]['currentTurnPlayer'] == b['playerId']
    assert 'answer:result' not in got
    assert events(host, 'answer:result')[0]['playerAnswer'] == 'Apple'

    room = rooms.get_room(room_code)
    assert room.state.round_points_earned == 40
    assert room.party.face_off_active is False

    alice.emit('player:submitAnswer', {'playerAnswer': 'banana'})
    assert events(alice, 'player:notYourTurn')

    host.emit('partyGame:setTurn', {'playerId': a['playerId']})
    assert events(alice, 'turn:changed')[-1]['playerName'] == 'Alice'

    host.emit('partyGame:nextBattle')
    battle = events(carol, 'battle:started')[-1]
    assert battle['team1Player']['id'] == c['playerId']


def test_assign_team(connect, host, display, room_code):
    alice, a = join(connect, room_code, 'Alice')
    drain(display)
    host.emit('partyGame:assignTeam', {'playerId': a['playerId'], 'team': 2})
    teams = events(display, 'teams:updated')[0]['players']
    assert teams[0]['team'] == 2
    host.emit('partyGame:assignTeam', {'playerId': 'nobody', 'team': 1})
    assert events(host, 'error')[-1]['code'] == 'validation_error'


def test_players_cannot_drive_the_game(connect, room_code, rooms):
    alice, _ = join(connect, room_code, 'Alice')
    alice.emit('startGame', {'team1Name': 'A', 'team2Name': 'B', 'totalRounds': 2})
    alice.emit('partyGame:nextBattle')
    assert rooms.get_room(room_code).state.screen == 'qr'
    assert drain(alice) == {}
