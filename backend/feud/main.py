from flask import Blueprint, jsonify

from feud.store import current_rooms

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the feud game server!'})


@main.route('/health')
def health():
    return jsonify({'status': 'ok', 'rooms': len(current_rooms())})
