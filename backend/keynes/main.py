from flask import Blueprint, jsonify
from keynes import get_registry

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the Keynes beauty contest server!'})

@main.route('/api/rooms/<string:room_code>', methods=['GET'])
def get_room_state(room_code):
    """Returns the same snapshot clients receive as ``gameUpdate``."""
    session = get_registry().get(room_code)
    if session is None:
        return jsonify({'error': 'Room not found'}), 404
    return jsonify(session.snapshot()), 200
