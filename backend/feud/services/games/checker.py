"""Answer-check orchestration.

A check runs ``idle -> checking -> resolved | errored``. The judge call is
made outside the room lock so a slow judge never holds up the room (or any
other room); its verdict is then applied under the lock, but only if the
board it was asked about is still the live one.
"""
from typing import Optional

from feud import protocol, socketio
from feud.errors import JudgeUnavailable
from feud.models import CheckOutcome
from feud.schemas import Verdict
from feud.services.games.judge import current_judge, parse_verdict
from feud.store import Room


class AnswerCheck:
    IDLE = 'idle'
    CHECKING = 'checking'
    RESOLVED = 'resolved'
    ERRORED = 'errored'

    def __init__(self, app, room: Room, player_answer: str, requester_sid: str,
                 player_id: Optional[str] = None):
        self.app = app
        self.room = room
        self.player_answer = player_answer
        self.requester_sid = requester_sid
        self.player_id = player_id
        self.status = self.IDLE
        self.question_serial = None
        self.question = None
        self.board = []
        self.verdict: Optional[Verdict] = None
        self.outcome: Optional[CheckOutcome] = None
        self.error: Optional[str] = None

    def begin(self) -> bool:
        """Snapshot the board. Must be called under the room lock."""
        state = self.room.state
        if state.current_question is None:
            return False
        self.question_serial = state.question_serial
        self.question = state.current_question.question
        self.board = state.current_question.answer_texts()
        self.status = self.CHECKING
        return True

    def is_stale(self) -> bool:
        rooms = self.app.extensions['rooms']
        state = self.room.state
        return (
            rooms.get_room(self.room.code) is not self.room
            or state.current_question is None
            or state.question_serial != self.question_serial
            or state.screen == 'end'
        )

    def run(self) -> None:
        with self.app.app_context():
            logger = self.app.logger
            try:
                try:
                    raw = current_judge(self.app)(self.question, self.board, self.player_answer)
                except JudgeUnavailable:
                    raise
                except Exception as exc:
                    logger.exception(f"[check-error] room={self.room.code} judge raised")
                    raise JudgeUnavailable() from exc
                verdict = parse_verdict(raw)
            except JudgeUnavailable as exc:
                self.status = self.ERRORED
                self.error = exc.message
                logger.warning(f"[check-error] room={self.room.code} answer={self.player_answer!r} error={exc.message}")
                self._emit_error()
                return

            with self.room.lock:
                if self.is_stale():
                    self.status = self.ERRORED
                    self.error = 'Question changed before the answer was judged'
                    logger.info(f"[check-discard] room={self.room.code} answer={self.player_answer!r} stale board")
                    return
                self.verdict = verdict
                self.outcome = self.room.state.apply_verdict(
                    self.player_answer, verdict.match, verdict.matched_answer)
                self.status = self.RESOLVED
                logger.info(
                    f"[check-done] room={self.room.code} answer={self.player_answer!r} "
                    f"correct={self.outcome.correct} index={self.outcome.index}"
                )
                self._emit_outcome()

    def _emit_error(self) -> None:
        payload = {'error': self.error, 'playerAnswer': self.player_answer}
        if self.room.host_sid:
            protocol.send(self.room.host_sid, protocol.ANSWER_ERROR, payload)
        if self.player_id and self.requester_sid != self.room.host_sid:
            protocol.send(self.requester_sid, protocol.PLAYER_ERROR, {'message': self.error})

    def _emit_outcome(self) -> None:
        room = self.room
        state = room.state
        outcome = self.outcome
        result = self.verdict.to_wire()
        result.update({'playerAnswer': self.player_answer, 'index': outcome.index})
        if room.host_sid:
            protocol.send(room.host_sid, protocol.ANSWER_RESULT, result)

        if outcome.correct:
            answer = state.current_question.answers[outcome.index]
            protocol.broadcast(room, protocol.ANSWER_CORRECT, {
                'index': outcome.index,
                'answerText': answer.text,
                'points': answer.points,
                'roundPointsEarned': state.round_points_earned,
                'alreadyRevealed': outcome.already_revealed,
            })
        else:
            protocol.broadcast(room, protocol.ANSWER_INCORRECT, {
                'strikes': state.strikes,
                'playerAnswer': self.player_answer,
            })
        protocol.broadcast_entry_log(room)

        if self.player_id:
            protocol.send(self.requester_sid, protocol.PLAYER_ANSWER_RESULT, {
                'match': outcome.correct,
                'matchedAnswer': state.current_question.answers[outcome.index].text if outcome.correct else None,
                'reason': self.verdict.reason,
            })
            party = room.party
            if outcome.correct and party.face_off_active and party.in_battle(self.player_id):
                party.set_turn(self.player_id)
                protocol.broadcast(room, protocol.TURN_CHANGED, party.turn_dict())


def submit_answer_check(app, room: Room, player_answer: str, requester_sid: str,
                        player_id: Optional[str] = None) -> Optional[AnswerCheck]:
    """Start a check; returns None when no question is loaded."""
    check = AnswerCheck(app, room, player_answer, requester_sid, player_id)
    with room.lock:
        if not check.begin():
            return None
    app.logger.info(f"[check-start] room={room.code} answer={player_answer!r} player={player_id}")
    if app.config.get('TESTING'):
        check.run()
    else:
        socketio.start_background_task(check.run)
    return check
