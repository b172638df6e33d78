"""
WebSocket event handlers for real-time bingo rooms.

This module implements the room lifecycle over Socket.IO: creating and
joining rooms, starting games, marking cells, calling and challenging bingo,
drawing numbers from the built-in generator, and cleaning up after
disconnects.  Every rejected intent is reported to the requesting session
only and leaves all state untouched.
"""

import random
from contextlib import nullcontext
from functools import wraps

from flask import request
from flask_socketio import emit, join_room
from loguru import logger

from .bingo_game import draw_number, generate_board, pool_for_mode, validate_call
from .bingo_state import (
    BOARD_SIZE, BingoError, GameMode, GameState, InvalidRequestError,
    NotHostError, NumberGenerator, GameStateError, Player,
    PlayerNotFoundError, Room, RoomNotFoundError, utc_now,
)
from .room_store import is_valid_room_id

CHALLENGE_REASON = 'Bingo call challenged by host'


def _payload(data):
    return data if isinstance(data, dict) else {}


def _is_int(value):
    return isinstance(value, int) and not isinstance(value, bool)


def _reply_error(message):
    emit('error', {'message': message})


def _reply_join_failed(message):
    emit('room_joined', {'room': None, 'success': False, 'message': message})


def reports_errors(failure_message, reply=_reply_error, lock=None):
    """Decorator that isolates a handler's failures to the calling session.

    BingoError messages are sent back as they are; anything else is logged
    with its traceback and reported with failure_message.  When a lock is
    given the whole handler runs while holding it.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            try:
                with lock or nullcontext():
                    return f(*args, **kwargs)
            except BingoError as e:
                logger.warning(f"{f.__name__} rejected for session {request.sid}: {e.message}")
                reply(e.message)
            except Exception:
                logger.exception(f"{f.__name__} failed for session {request.sid}")
                reply(failure_message)
        return decorated_function
    return decorator


def init_socketio_handlers(socketio, store, rng=None, default_game_mode=GameMode.CLASSIC,
                           default_number_generator=NumberGenerator.EXTERNAL):
    """Initialize WebSocket event handlers.

    Parameters
    ----------
    socketio : SocketIO
        The server the handlers are registered on
    store : RoomStore
        Owner of all room state
    rng : random.Random, optional
        Random source for boards and number draws
    default_game_mode, default_number_generator
        Used when create_room omits them
    """
    rng = rng or random.Random()

    def _require_room(payload):
        room_id = payload.get('roomId')
        if not room_id:
            raise InvalidRequestError('Room ID is required')
        room = store.get(room_id)
        if room is None:
            raise RoomNotFoundError(room_id)
        return room

    def _require_host(room, message):
        if not room.is_host(request.sid):
            raise NotHostError(message)

    def _require_started(room):
        if room.game_state != GameState.STARTED:
            raise GameStateError('Game not in progress')

    def _require_member(room, session_id):
        player = room.find_player(session_id)
        if player is None:
            raise PlayerNotFoundError(session_id)
        return player

    def _parse_enum(enum_cls, value, default, label):
        if value is None:
            return default
        try:
            return enum_cls(value)
        except ValueError:
            raise InvalidRequestError(f"Invalid {label}: {value}")

    def _player_name(payload):
        name = payload.get('playerName')
        if not isinstance(name, str) or not name.strip():
            return None
        return name.strip()

    @socketio.on('create_room')
    @reports_errors('Failed to create room', lock=store.lock)
    def handle_create_room(data=None):
        """Create a room with the caller as its only player and host."""
        payload = _payload(data)
        name = _player_name(payload)
        if name is None:
            raise InvalidRequestError('Player name is required')

        game_mode = _parse_enum(GameMode, payload.get('gameMode'), default_game_mode, 'game mode')
        number_generator = _parse_enum(NumberGenerator, payload.get('numberGenerator'),
                                       default_number_generator, 'number generator')

        room = Room(
            id=store.new_room_id(),
            host_id=request.sid,
            players=[Player(session_id=request.sid, name=name)],
            game_mode=game_mode,
            number_generator=number_generator,
        )
        store.create(room)
        join_room(room.id)

        emit('room_created', {'roomId': room.id, 'room': room.to_dict()})
        logger.info(f"Room '{room.id}' created by '{name}' ({game_mode.value}, {number_generator.value})")

    @socketio.on('join_room')
    @reports_errors('Failed to join room', reply=_reply_join_failed, lock=store.lock)
    def handle_join_room(data=None):
        """Add the caller to a waiting room."""
        payload = _payload(data)
        room_id = payload.get('roomId')
        name = _player_name(payload)
        if not room_id or name is None:
            raise InvalidRequestError('Room ID and player name are required')

        if not is_valid_room_id(room_id):
            raise InvalidRequestError('Invalid room ID format')

        room = store.get(room_id)
        if room is None:
            raise RoomNotFoundError(room_id)

        if room.game_state != GameState.WAITING:
            raise GameStateError('Game already started')

        if room.has_player(request.sid):
            join_room(room_id)
            emit('room_joined', {'room': room.to_dict(), 'success': True})
            return

        room.add_player(Player(session_id=request.sid, name=name))
        store.save(room)
        join_room(room_id)

        emit('room_joined', {'room': room.to_dict(), 'success': True})
        socketio.emit('player_joined', {'room': room.to_dict()}, to=room_id)
        logger.info(f"Player '{name}' joined room '{room_id}' ({len(room.players)} players)")

    @socketio.on('start_game')
    @reports_errors('Failed to start game', lock=store.lock)
    def handle_start_game(data=None):
        """Start the game.  Only the host may do this."""
        room = _require_room(_payload(data))
        _require_host(room, 'Only the host can start the game')
        if len(room.players) < 1:
            raise GameStateError('Need at least 1 player to start')

        # Reference board only; every client renders its own board.
        board = generate_board(room.game_mode, rng=rng)

        room.game_state = GameState.STARTED
        store.save(room)
        store.set_board(room.id, board)

        socketio.emit('game_started', {'room': room.to_dict()}, to=room.id)
        logger.info(f"Game started in room '{room.id}' with {len(room.players)} players")

    @socketio.on('mark_cell')
    @reports_errors('Failed to mark cell', lock=store.lock)
    def handle_mark_cell(data=None):
        """Toggle one cell of the caller's marked set."""
        payload = _payload(data)
        room = _require_room(payload)
        _require_started(room)
        _require_member(room, request.sid)

        cell_index = payload.get('cellIndex')
        if not _is_int(cell_index) or not 0 <= cell_index < BOARD_SIZE:
            raise InvalidRequestError('Invalid cell index')

        marked = store.toggle_mark(room.id, request.sid, cell_index)
        socketio.emit('game_state_update', {
            'room': room.to_dict(),
            'markedCell': {
                'playerId': request.sid,
                'cellIndex': cell_index,
                'marked': marked,
            },
        }, to=room.id)

    @socketio.on('call_bingo')
    @reports_errors('Failed to call bingo', lock=store.lock)
    def handle_call_bingo(data=None):
        """Validate a bingo call and announce the verdict to the room."""
        payload = _payload(data)
        room = _require_room(payload)
        _require_started(room)
        player = _require_member(room, request.sid)

        marked_cells = payload.get('markedCells')
        if marked_cells is None:
            marked_cells = []
        if not isinstance(marked_cells, list) or not all(_is_int(i) for i in marked_cells):
            raise InvalidRequestError('Invalid marked cells')

        result = validate_call(marked_cells)
        socketio.emit('bingo_validation', {
            'playerId': request.sid,
            'playerName': player.name,
            'markedCells': marked_cells,
            'isValid': result.is_valid,
            'winningLines': result.winning_lines,
        }, to=room.id)
        logger.info(f"Bingo called by '{player.name}' in room '{room.id}' - valid: {result.is_valid}")

    @socketio.on('get_next_number')
    @reports_errors('Failed to generate number', lock=store.lock)
    def handle_get_next_number(data=None):
        """Draw the next value for rooms using the built-in generator."""
        room = _require_room(_payload(data))
        _require_host(room, 'Only the host can generate numbers')
        _require_started(room)
        if room.number_generator != NumberGenerator.BUILTIN:
            raise GameStateError('This room is not using built-in number generator')

        drawn = store.drawn_numbers(room.id)
        number = draw_number(room.game_mode, drawn, rng=rng)
        store.record_draw(room.id, number)

        remaining = len(pool_for_mode(room.game_mode)) - len(drawn) - 1
        socketio.emit('number_generated', {
            'number': number.value,
            'timestamp': utc_now(),
            'remaining': remaining,
        }, to=room.id)
        logger.info(f"Number generated in room '{room.id}': {number.value} ({remaining} left)")

    @socketio.on('challenge_bingo')
    @reports_errors('Failed to challenge bingo', lock=store.lock)
    def handle_challenge_bingo(data=None):
        """Let the host publicly challenge a player's call."""
        payload = _payload(data)
        room = _require_room(payload)
        _require_host(room, 'Only the host can challenge bingo calls')
        challenged = _require_member(room, payload.get('playerId'))

        socketio.emit('bingo_challenged', {
            'playerId': challenged.session_id,
            'playerName': challenged.name,
            'reason': CHALLENGE_REASON,
            'timestamp': utc_now(),
        }, to=room.id)
        logger.info(f"Bingo challenged by host in room '{room.id}': {challenged.name}")

    @socketio.on('disconnect')
    def handle_disconnect(reason=None):
        """Remove the session from its rooms, deleting rooms left empty."""
        session_id = request.sid
        with store.lock:
            for room in store.rooms_for_session(session_id):
                try:
                    host_changed = room.remove_player(session_id)

                    if not room.players:
                        store.delete(room.id)
                        logger.info(f"Room '{room.id}' removed (no players)")
                        continue

                    store.forget_player(room.id, session_id)
                    store.save(room)
                    if host_changed:
                        logger.info(f"Host of room '{room.id}' transferred to {room.host_id}")
                    socketio.emit('player_joined', {'room': room.to_dict()}, to=room.id)
                except Exception:
                    logger.exception(f"Error handling disconnect of {session_id} from room '{room.id}'")

        logger.info(f"Session disconnected: {session_id}")
