from functools import wraps

from flask import current_app, request
from flask_socketio import emit, join_room, leave_room

from feud import protocol, socketio
from feud.errors import FeudError, HostConflict, RoomNotFound, Unauthorized, ValidationError
from feud.schemas import (
    AssignTeam,
    AwardPoints,
    CheckAnswer,
    DisplayJoin,
    EndRound,
    HostAuth,
    Navigate,
    NewQuestion,
    PlayerJoin,
    RevealAnswer,
    SetTurn,
    StartGame,
    TimerSet,
    TimerUpdate,
    parse,
)
from feud.services.games.checker import submit_answer_check
from feud.sessions import DISPLAY, HOST, PLAYER, current_sessions
from feud.store import current_rooms


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _announce_departure(session, room) -> None:
    """Tell a room that one of its bound connections went away."""
    if room is None:
        return
    if session.role == HOST:
        protocol.broadcast(room, protocol.HOST_DISCONNECTED, {'reason': 'Host disconnected'})
    elif session.role == DISPLAY:
        protocol.broadcast(room, protocol.DISPLAY_DISCONNECTED, {'roomCode': room.code})
    elif session.role == PLAYER:
        protocol.broadcast(room, protocol.PLAYERS_UPDATED, {'players': room.party.roster()})


def _detach_previous(previous) -> None:
    """Leave the room an earlier binding of this connection pointed at."""
    if previous is None:
        return
    room = current_rooms().get_room(previous.room_code)
    if room is None:
        return
    leave_room(room.channel)
    if not previous.held:
        return
    with room.lock:
        _announce_departure(previous, room)


def host_command(handler):
    """Run ``handler(room, data)`` only for the bound host of a room.

    Commands from anybody else are dropped without a reply. The handler runs
    under the room lock; FeudErrors are reported back to the host.
    """
    @wraps(handler)
    def wrapper(data=None):
        sid = _get_sid()
        try:
            room = current_sessions().require_host(sid)
        except Unauthorized:
            current_app.logger.debug(f"[drop] {handler.__name__} from non-host sid={sid}")
            return
        with room.lock:
            try:
                handler(room, data)
            except FeudError as exc:
                current_app.logger.info(f"[reject] room={room.code} {handler.__name__}: {exc.message}")
                protocol.send(sid, protocol.ERROR, exc.to_dict())
    return wrapper


# ---- Connection lifecycle ----

def handle_connect(auth=None):
    emit('connected', {'sid': _get_sid()})


def handle_disconnect(reason=None):
    sid = _get_sid()
    session, room = current_sessions().disconnect(sid)
    if session is None:
        return
    current_app.logger.info(f"[disconnect] sid={sid} role={session.role} room={session.room_code}")
    if room is not None:
        with room.lock:
            _announce_departure(session, room)


# ---- Joining ----

def handle_display_join(data=None):
    sid = _get_sid()
    try:
        cmd = parse(DisplayJoin, data)
        room, previous = current_sessions().join_display(sid, cmd.room_code)
    except FeudError as exc:
        protocol.send(sid, protocol.ERROR, exc.to_dict())
        return
    _detach_previous(previous)
    join_room(room.channel)
    current_app.logger.info(f"[display-join] room={room.code} sid={sid}")
    with room.lock:
        protocol.send(sid, protocol.DISPLAY_JOINED, {
            'roomCode': room.code,
            'gameState': protocol.state_for(room, sid),
        })


def _auth_failure(sid, exc):
    payload = {'success': False, 'error': exc.message}
    if isinstance(exc, HostConflict):
        payload['canTakeOver'] = True
    protocol.send(sid, protocol.HOST_AUTH_RESULT, payload)


def _host_bound(sid, room):
    join_room(room.channel)
    with room.lock:
        protocol.send(sid, protocol.HOST_AUTH_RESULT, {
            'success': True,
            'roomCode': room.code,
            'gameState': protocol.state_for(room, sid),
        })
        protocol.broadcast(room, protocol.HOST_CONNECTED, {'roomCode': room.code})


def handle_host_authenticate(data=None):
    sid = _get_sid()
    try:
        cmd = parse(HostAuth, data)
        room, previous = current_sessions().authenticate_host(sid, cmd.room_code, cmd.password)
    except FeudError as exc:
        current_app.logger.info(f"[host-auth] sid={sid} failed: {exc.code}")
        _auth_failure(sid, exc)
        return
    _detach_previous(previous)
    current_app.logger.info(f"[host-auth] room={room.code} sid={sid} bound as host")
    _host_bound(sid, room)


def handle_host_take_over(data=None):
    sid = _get_sid()
    try:
        cmd = parse(HostAuth, data)
        room, evicted, previous = current_sessions().take_over_host(sid, cmd.room_code, cmd.password)
    except FeudError as exc:
        current_app.logger.info(f"[host-takeover] sid={sid} failed: {exc.code}")
        _auth_failure(sid, exc)
        return
    if evicted is not None:
        protocol.send(evicted, protocol.HOST_DISCONNECTED, {'reason': 'Another host took over'})
        leave_room(room.channel, sid=evicted, namespace=protocol.NAMESPACE)
    _detach_previous(previous)
    _host_bound(sid, room)


def handle_player_join(data=None):
    sid = _get_sid()
    try:
        cmd = parse(PlayerJoin, data)
        room, player, previous = current_sessions().join_player(sid, cmd.room_code, cmd.player_name)
    except FeudError as exc:
        protocol.send(sid, protocol.PLAYER_ERROR, {'message': exc.message})
        return
    _detach_previous(previous)
    join_room(room.channel)
    current_app.logger.info(f"[player-join] room={room.code} player={player.id} name={player.name!r} team={player.team}")
    with room.lock:
        protocol.send(sid, protocol.PLAYER_JOINED, {
            'playerId': player.id,
            'playerName': player.name,
            'team': player.team,
            'roomCode': room.code,
        })
        protocol.broadcast(room, protocol.PLAYERS_UPDATED, {'players': room.party.roster()})
        if room.party.active:
            protocol.send(sid, protocol.BATTLE_STARTED, room.party.battle_dict())


def handle_request_state(data=None):
    sid = _get_sid()
    try:
        room, _ = current_sessions().require_member(sid)
    except Unauthorized:
        return
    with room.lock:
        protocol.send(sid, protocol.GAME_STATE_FULL, protocol.state_for(room, sid))


# ---- Game flow ----

@host_command
def handle_start_game(room, data):
    cmd = parse(StartGame, data)
    room.state.start_game(cmd.team1_name, cmd.team2_name, cmd.total_rounds)
    room.party.stop()
    current_app.logger.info(f"[start] room={room.code} {cmd.team1_name} vs {cmd.team2_name} rounds={cmd.total_rounds}")
    protocol.broadcast_state(room, protocol.GAME_STARTED)


@host_command
def handle_party_start(room, data):
    cmd = parse(StartGame, data)
    room.state.start_game(cmd.team1_name, cmd.team2_name, cmd.total_rounds)
    room.party.start()
    current_app.logger.info(f"[party-start] room={room.code} players={len(room.party.players)} rounds={cmd.total_rounds}")
    protocol.broadcast_state(room, protocol.PARTY_STARTED)
    protocol.broadcast(room, protocol.BATTLE_STARTED, room.party.battle_dict())


@host_command
def handle_new_question(room, data):
    cmd = parse(NewQuestion, data)
    state = room.state
    if cmd.question is not None:
        question, index = cmd.question.to_question(), cmd.question_index
    else:
        bank = current_app.extensions['questions']
        if not len(bank):
            raise ValidationError('No questions loaded')
        index, question, exhausted = bank.draw(state.used_question_indices)
        if exhausted:
            state.clear_used_questions()
    state.load_question(question, cmd.increment_round, index)
    current_app.logger.info(
        f"[question] room={room.code} round={state.current_round}/{state.total_rounds} index={index}"
    )
    protocol.broadcast_question(room)


@host_command
def handle_reveal_answer(room, data):
    cmd = parse(RevealAnswer, data)
    question = room.state.current_question
    if question is None:
        return
    if cmd.index >= len(question.answers):
        raise ValidationError('index: answer index out of range')
    if room.state.reveal_answer(cmd.index):
        answer = question.answers[cmd.index]
        protocol.broadcast(room, protocol.ANSWER_REVEALED, {
            'index': cmd.index, 'text': answer.text, 'points': answer.points,
        })


@host_command
def handle_add_strike(room, data):
    protocol.broadcast(room, protocol.STRIKE_UPDATED, {'strikes': room.state.add_strike()})


@host_command
def handle_remove_strike(room, data):
    protocol.broadcast(room, protocol.STRIKE_UPDATED, {'strikes': room.state.remove_strike()})


@host_command
def handle_award_points(room, data):
    cmd = parse(AwardPoints, data)
    room.state.award_points(cmd.team, cmd.points)
    protocol.broadcast(room, protocol.POINTS_UPDATED, room.state.scores())


@host_command
def handle_end_round(room, data):
    cmd = parse(EndRound, data)
    guesses = [g.model_dump() for g in cmd.correct_guesses] if cmd.correct_guesses else None
    summary = room.state.end_round(cmd.team, cmd.points, guesses)
    current_app.logger.info(f"[round-end] room={room.code} round={summary['roundNumber']} team={cmd.team} points={cmd.points}")
    protocol.broadcast(room, protocol.ROUND_SUMMARY, summary)


@host_command
def handle_show_round_summary(room, data):
    protocol.broadcast(room, protocol.ROUND_SUMMARY, room.state.round_summary())


@host_command
def handle_continue_from_summary(room, data):
    state = room.state
    if state.continue_from_summary():
        current_app.logger.info(f"[finish] room={room.code} finished at round={state.current_round}")
        protocol.broadcast(room, protocol.GAME_ENDED, state.final_scores())
    else:
        protocol.broadcast(room, protocol.ROUND_CONTINUE, {
            'currentRound': state.current_round, 'totalRounds': state.total_rounds,
        })


def handle_check_answer(data=None):
    sid = _get_sid()
    try:
        room = current_sessions().require_host(sid)
    except Unauthorized:
        return
    try:
        cmd = parse(CheckAnswer, data)
    except ValidationError as exc:
        protocol.send(sid, protocol.ERROR, exc.to_dict())
        return
    submit_answer_check(current_app._get_current_object(), room, cmd.player_answer, sid)


@host_command
def handle_reset_round(room, data):
    room.state.reset_round()
    protocol.broadcast(room, protocol.ROUND_RESET, {})


@host_command
def handle_reset_game(room, data):
    room.state.reset_game()
    room.party.stop()
    current_app.logger.info(f"[reset] room={room.code}")
    protocol.broadcast_state(room, protocol.GAME_RESET)


@host_command
def handle_end_game(room, data):
    room.state.end_game()
    current_app.logger.info(f"[finish] room={room.code} ended by host")
    protocol.broadcast(room, protocol.GAME_ENDED, room.state.final_scores())


@host_command
def handle_clear_entry_log(room, data):
    room.state.clear_entry_log()
    protocol.broadcast(room, protocol.ENTRY_LOG_CLEARED, {})


@host_command
def handle_navigate(room, data):
    cmd = parse(Navigate, data)
    room.state.navigate(cmd.screen)
    protocol.broadcast(room, protocol.GAME_STATE_UPDATE, {'screen': cmd.screen})


# ---- Timer (ticks are relayed from the host's clock) ----

def _timer_seconds(cmd):
    if cmd.seconds is None:
        return int(current_app.config.get('DEFAULT_TIMER_SEC', 30))
    return cmd.seconds


@host_command
def handle_timer_start(room, data):
    seconds = _timer_seconds(parse(TimerSet, data))
    room.state.timer.start(seconds)
    protocol.broadcast(room, protocol.TIMER_STARTED, {'seconds': seconds})


@host_command
def handle_timer_pause(room, data):
    room.state.timer.pause()
    protocol.broadcast(room, protocol.TIMER_PAUSED, {'seconds': room.state.timer.current_seconds})


@host_command
def handle_timer_reset(room, data):
    seconds = _timer_seconds(parse(TimerSet, data))
    room.state.timer.reset(seconds)
    protocol.broadcast(room, protocol.TIMER_RESET, {'seconds': seconds})


@host_command
def handle_timer_update(room, data):
    cmd = parse(TimerUpdate, data)
    room.state.timer.tick(cmd.seconds)
    protocol.broadcast(room, protocol.TIMER_TICK, {'seconds': room.state.timer.current_seconds})


@host_command
def handle_timer_finished(room, data):
    if room.state.timer.finish():
        protocol.broadcast(room, protocol.TIMER_TIMES_UP, {})


# ---- Party mode ----

@host_command
def handle_assign_team(room, data):
    cmd = parse(AssignTeam, data)
    try:
        room.party.assign_team(cmd.player_id, cmd.team)
    except KeyError:
        raise ValidationError('playerId: unknown player')
    protocol.broadcast(room, protocol.TEAMS_UPDATED, {'players': room.party.roster()})


@host_command
def handle_next_battle(room, data):
    if not room.party.active:
        raise ValidationError('Party game has not started')
    room.party.next_battle()
    protocol.broadcast(room, protocol.BATTLE_STARTED, room.party.battle_dict())


@host_command
def handle_set_turn(room, data):
    cmd = parse(SetTurn, data)
    try:
        room.party.set_turn(cmd.player_id)
    except KeyError:
        raise ValidationError('playerId: player is not in the current battle')
    protocol.broadcast(room, protocol.TURN_CHANGED, room.party.turn_dict())


def handle_player_submit_answer(data=None):
    sid = _get_sid()
    try:
        room, player = current_sessions().require_player(sid)
    except Unauthorized:
        return
    try:
        cmd = parse(CheckAnswer, data)
    except ValidationError as exc:
        protocol.send(sid, protocol.PLAYER_ERROR, {'message': exc.message})
        return
    with room.lock:
        if not room.party.can_answer(player.id):
            protocol.send(sid, protocol.PLAYER_NOT_YOUR_TURN, {'message': "It's not your turn to answer yet!"})
            return
    check = submit_answer_check(current_app._get_current_object(), room, cmd.player_answer, sid, player.id)
    if check is None:
        protocol.send(sid, protocol.PLAYER_ERROR, {'message': 'No question loaded'})


EVENT_HANDLERS = {
    'connect': handle_connect,
    'disconnect': handle_disconnect,
    'display:join': handle_display_join,
    'host:authenticate': handle_host_authenticate,
    'host:takeOver': handle_host_take_over,
    'player:join': handle_player_join,
    'requestState': handle_request_state,
    'startGame': handle_start_game,
    'newQuestion': handle_new_question,
    'revealAnswer': handle_reveal_answer,
    'addStrike': handle_add_strike,
    'removeStrike': handle_remove_strike,
    'awardPoints': handle_award_points,
    'endRound': handle_end_round,
    'showRoundSummary': handle_show_round_summary,
    'continueFromSummary': handle_continue_from_summary,
    'checkAnswer': handle_check_answer,
    'resetRound': handle_reset_round,
    'resetGame': handle_reset_game,
    'endGame': handle_end_game,
    'clearEntryLog': handle_clear_entry_log,
    'navigate': handle_navigate,
    'timer:start': handle_timer_start,
    'timer:pause': handle_timer_pause,
    'timer:reset': handle_timer_reset,
    'timer:update': handle_timer_update,
    'timer:finished': handle_timer_finished,
    'partyGame:start': handle_party_start,
    'partyGame:assignTeam': handle_assign_team,
    'partyGame:nextBattle': handle_next_battle,
    'partyGame:setTurn': handle_set_turn,
    'player:submitAnswer': handle_player_submit_answer,
}


def register_socketio_handlers() -> None:
    """Register Socket.IO event handlers on the game namespace."""
    for event, handler in EVENT_HANDLERS.items():
        socketio.on_event(event, handler, namespace=protocol.NAMESPACE)
