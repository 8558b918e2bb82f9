from flask import Blueprint, current_app, jsonify, request

from feud.errors import JudgeUnavailable, ValidationError
from feud.schemas import CheckAnswerRequest, parse
from feud.services.games.judge import current_judge, parse_verdict
from feud.store import current_rooms

rooms_api = Blueprint('rooms_api', __name__)


@rooms_api.route('/rooms', methods=['POST'])
def create_room():
    room = current_rooms().create_room()
    current_app.logger.info(f"[room-create] room={room.code} via http")
    return jsonify({'roomCode': room.code, 'createdAt': room.created_at}), 201


@rooms_api.route('/rooms/<string:room_code>', methods=['GET'])
def get_room(room_code):
    room = current_rooms().get_room(room_code)
    if room is None:
        return jsonify({'error': 'Room not found'}), 404
    return jsonify(room.to_summary())


@rooms_api.route('/check-answer', methods=['POST'])
def check_answer():
    """Stateless judge call; does not touch any room."""
    try:
        body = parse(CheckAnswerRequest, request.get_json(silent=True))
    except ValidationError as exc:
        return jsonify({'error': 'Missing required fields', 'detail': exc.message}), 400
    try:
        verdict = parse_verdict(current_judge(current_app)(body.question, body.answers, body.player_answer))
    except JudgeUnavailable as exc:
        current_app.logger.warning(f"[check-answer] judge failed: {exc.message}")
        return jsonify({'error': exc.message}), 502
    return jsonify(verdict.to_wire())
