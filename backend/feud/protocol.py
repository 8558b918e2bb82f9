"""Outbound event names and fan-out helpers.

Every room-wide event goes to the Socket.IO room ``room:<CODE>``. Events that
carry the board are sent in two shapes: the full board to the bound host and
a redacted board (unrevealed answers hidden) to everybody else.
"""
from typing import Any, Dict, Optional

from feud import socketio
from feud.store import Room

NAMESPACE = '/'

# Join / session
DISPLAY_JOINED = 'display:joined'
DISPLAY_DISCONNECTED = 'display:disconnected'
HOST_AUTH_RESULT = 'host:authResult'
HOST_CONNECTED = 'host:connected'
HOST_DISCONNECTED = 'host:disconnected'
PLAYER_JOINED = 'player:joined'
PLAYER_ERROR = 'player:error'
PLAYERS_UPDATED = 'players:updated'
TEAMS_UPDATED = 'teams:updated'
ERROR = 'error'

# State
GAME_STATE_FULL = 'gameState:full'
GAME_STATE_UPDATE = 'gameState:update'
GAME_STARTED = 'game:started'
GAME_RESET = 'game:reset'
GAME_ENDED = 'game:ended'
QUESTION_LOADED = 'question:loaded'
ANSWER_REVEALED = 'answer:revealed'
STRIKE_UPDATED = 'strike:updated'
POINTS_UPDATED = 'points:updated'
ROUND_SUMMARY = 'round:summary'
ROUND_CONTINUE = 'round:continue'
ROUND_RESET = 'round:reset'
ENTRY_LOG_UPDATED = 'entryLog:updated'
ENTRY_LOG_CLEARED = 'entryLog:cleared'

# Answer checks
ANSWER_RESULT = 'answer:result'
ANSWER_CORRECT = 'answer:correct'
ANSWER_INCORRECT = 'answer:incorrect'
ANSWER_ERROR = 'answer:error'

# Timer
TIMER_STARTED = 'timer:started'
TIMER_PAUSED = 'timer:paused'
TIMER_RESET = 'timer:reset'
TIMER_TICK = 'timer:tick'
TIMER_TIMES_UP = 'timer:timesUp'

# Party mode
PARTY_STARTED = 'partyGame:started'
BATTLE_STARTED = 'battle:started'
TURN_CHANGED = 'turn:changed'
PLAYER_ANSWER_RESULT = 'player:answerResult'
PLAYER_NOT_YOUR_TURN = 'player:notYourTurn'


def send(sid: str, event: str, payload: Optional[Dict[str, Any]] = None) -> None:
    socketio.emit(event, payload if payload is not None else {}, to=sid, namespace=NAMESPACE)


def broadcast(room: Room, event: str, payload: Optional[Dict[str, Any]] = None,
              skip_sid: Optional[str] = None) -> None:
    socketio.emit(event, payload if payload is not None else {}, to=room.channel,
                  skip_sid=skip_sid, namespace=NAMESPACE)


def state_for(room: Room, sid: Optional[str]) -> Dict[str, Any]:
    """Full state as seen by ``sid``; only the bound host sees the whole board."""
    data = room.state.to_dict(include_answers=sid is not None and sid == room.host_sid)
    data['roomCode'] = room.code
    data['party'] = room.party.to_dict()
    return data


def broadcast_state(room: Room, event: str) -> None:
    if room.host_sid:
        send(room.host_sid, event, state_for(room, room.host_sid))
    broadcast(room, event, state_for(room, None), skip_sid=room.host_sid)


def broadcast_question(room: Room) -> None:
    state = room.state
    counters = {'currentRound': state.current_round, 'totalRounds': state.total_rounds}
    if room.host_sid:
        send(room.host_sid, QUESTION_LOADED, dict(counters, question=state.current_question.to_dict()))
    public = state.current_question.to_public_dict(state.revealed_answers)
    broadcast(room, QUESTION_LOADED, dict(counters, question=public), skip_sid=room.host_sid)


def broadcast_entry_log(room: Room) -> None:
    broadcast(room, ENTRY_LOG_UPDATED, {'entryLog': list(room.state.entry_log)})
