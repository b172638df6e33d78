"""Contains the basic data structures that represent rooms, players and boards

The game logic (board generation, win detection and number draws) lives in
bingo_game.py, and the storage of rooms lives in room_store.py.

"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional


BOARD_SIZE = 25
FREE_INDEX = 12
FREE_LABEL = "FREE"


def utc_now() -> str:
    """Current time as an ISO 8601 string."""
    return datetime.now(timezone.utc).isoformat()


class GameState(str, Enum):
    WAITING = 'waiting'
    STARTED = 'started'
    # No transition leads here yet.
    FINISHED = 'finished'


class GameMode(str, Enum):
    CLASSIC = 'CLASSIC'
    BUSINESS = 'BUSINESS'


class NumberGenerator(str, Enum):
    EXTERNAL = 'EXTERNAL'
    BUILTIN = 'BUILTIN'


class BingoError(Exception):
    """Base class for errors caused by a rejected client intent.

    Attributes
    ----------
    message : str
        Human-readable description that is sent back to the client
    """

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class InvalidRequestError(BingoError):
    """Raised when a payload field is missing or malformed."""


class RoomNotFoundError(BingoError):
    """Raised when a room id does not refer to a live room."""

    def __init__(self, room_id: Optional[str] = None):
        self.room_id = room_id
        super().__init__("Room not found")


class PlayerNotFoundError(BingoError):
    """Raised when a session is not a member of the room."""

    def __init__(self, session_id: Optional[str] = None):
        self.session_id = session_id
        super().__init__("Player not found in room")


class NotHostError(BingoError):
    """Raised when a non-host attempts a host-only action."""


class GameStateError(BingoError):
    """Raised when an action does not fit the room's current game state."""


class NumberPoolExhaustedError(BingoError):
    """Raised when every value of the built-in number pool has been drawn."""


@dataclass
class Player(object):
    """A participant in a room.

    Attributes
    ----------
    session_id : str
        Transport session id, the only key identifying the player
    name : str
        Display name, already trimmed
    joined_at : str
        ISO timestamp of when the player entered the room
    """
    session_id: str
    name: str
    joined_at: str = field(default_factory=utc_now)

    def to_dict(self) -> dict:
        # Clients read the session id under both names.
        return {
            'id': self.session_id,
            'socketId': self.session_id,
            'name': self.name,
            'joinedAt': self.joined_at,
        }


@dataclass
class Room(object):
    """A bingo room and its members.

    The model here is:
    - Players are kept in join order.
    - The host is whichever player currently holds host_id, which is not
      necessarily players[0].
    - The room is deleted as soon as its last player leaves, so players is
      never empty while the room exists.

    """
    id: str
    host_id: str
    players: List[Player] = field(default_factory=list)
    game_state: GameState = GameState.WAITING
    game_mode: GameMode = GameMode.CLASSIC
    number_generator: NumberGenerator = NumberGenerator.EXTERNAL
    created_at: str = field(default_factory=utc_now)

    def find_player(self, session_id: str) -> Optional[Player]:
        for player in self.players:
            if player.session_id == session_id:
                return player
        return None

    def has_player(self, session_id: str) -> bool:
        return self.find_player(session_id) is not None

    def is_host(self, session_id: str) -> bool:
        return self.host_id == session_id

    def add_player(self, player: Player) -> bool:
        """Appends a player unless the session is already a member.

        Returns True if the player was added.

        """
        if self.has_player(player.session_id):
            return False
        self.players.append(player)
        return True

    def remove_player(self, session_id: str) -> bool:
        """Removes the given session from the room.

        If the departing player was the host, the host role moves to the
        first remaining player.  Returns True if the host changed.

        """
        self.players = [p for p in self.players if p.session_id != session_id]
        if self.host_id == session_id and self.players:
            self.host_id = self.players[0].session_id
            return True
        return False

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'hostId': self.host_id,
            'players': [p.to_dict() for p in self.players],
            'gameState': self.game_state.value,
            'gameMode': self.game_mode.value,
            'numberGenerator': self.number_generator.value,
            'createdAt': self.created_at,
        }


@dataclass
class BingoCell(object):
    """A single square of a bingo board.

    Attributes
    ----------
    id : str
        Positional id, 'cell-0' through 'cell-24'
    content : str
        The number or phrase printed on the square, or FREE_LABEL
    marked : bool
        Whether the square is marked; always True for the free square
    is_free : bool
        True only for the center square
    """
    id: str
    content: str
    marked: bool = False
    is_free: bool = False

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'content': self.content,
            'marked': self.marked,
            'isFree': self.is_free,
        }


# Exactly BOARD_SIZE cells in row-major order over a 5x5 grid.
BingoBoard = List[BingoCell]


@dataclass
class WinResult(object):
    """Outcome of the strict line check."""
    has_bingo: bool
    winning_indices: List[int]


@dataclass
class CallResult(object):
    """Outcome of validating a bingo call."""
    is_valid: bool
    winning_lines: List[List[int]]


@dataclass
class DrawnNumber(object):
    """A value drawn by the built-in number generator.

    Both game modes record the drawn value together with its index in the
    mode's pool, and repeats are detected by pool index.

    """
    value: str
    pool_index: int
