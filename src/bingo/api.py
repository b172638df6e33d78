"""
HTTP API routes for the bingo server.

Read-only views of the live rooms, for lobby listings and monitoring.  All
state changes go through the WebSocket handlers.
"""

from flask import Blueprint, current_app, jsonify

from .room_store import is_valid_room_id

api_bp = Blueprint('api', __name__, url_prefix='/api')


def _store():
    return current_app.extensions['room_store']


@api_bp.route('/health', methods=['GET'])
def health():
    return jsonify({
        'success': True,
        'data': {
            'status': 'ok',
            'rooms': len(_store().list_rooms())
        }
    }), 200


@api_bp.route('/rooms', methods=['GET'])
def list_rooms():
    """Get the public state of every live room."""
    rooms = [room.to_dict() for room in _store().list_rooms()]
    return jsonify({
        'success': True,
        'data': {
            'rooms': rooms,
            'total_rooms': len(rooms)
        }
    }), 200


@api_bp.route('/rooms/<room_id>', methods=['GET'])
def get_room(room_id):
    """Get the public state of a specific room."""
    if not is_valid_room_id(room_id):
        return jsonify({'success': False, 'error': 'Invalid room ID format'}), 400

    room = _store().get(room_id)
    if room is None:
        return jsonify({'success': False, 'error': 'Room not found'}), 404

    return jsonify({'success': True, 'data': room.to_dict()}), 200
