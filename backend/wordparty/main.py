from flask import Blueprint, current_app, jsonify

main = Blueprint('main', __name__)


def _services():
    return current_app.extensions['wordparty']


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the word party game server!'})


@main.route('/api/rooms/<string:code>', methods=['GET'])
def get_room(code):
    room = _services().registry.find_by_code(code)
    if room is None:
        return jsonify({'error': 'Room not found'}), 404
    with room.lock:
        return jsonify(room.to_dict())


@main.route('/api/words', methods=['GET'])
def get_word_pools():
    return jsonify(_services().words.sizes())
