import random
import re
import string
from threading import RLock
from typing import Dict, List, Optional, Set

from .bingo_state import BingoBoard, DrawnNumber, Room

ROOM_ID_LENGTH = 6
ROOM_ID_ALPHABET = string.ascii_uppercase + string.digits
ROOM_ID_PATTERN = re.compile(r'[A-Z0-9]{6}')


def generate_room_id(rng: Optional[random.Random] = None) -> str:
    """Returns 6 random characters from A-Z and 0-9."""
    rng = rng or random
    return ''.join(rng.choice(ROOM_ID_ALPHABET) for _ in range(ROOM_ID_LENGTH))


def is_valid_room_id(room_id) -> bool:
    return isinstance(room_id, str) and ROOM_ID_PATTERN.fullmatch(room_id) is not None


class RoomStore(object):
    """Represents the in-memory state of every live room.

    The model here is:
    - There is a set of rooms, each with a unique 6-character ID.
    - For each room, each player has a set of marked cell indices.
    - For each room using the built-in number generator, there is the list
      of values drawn so far.
    - For each started room, there is the reference board generated at
      start.

    All four maps are keyed by room ID and are purged together when a room
    is deleted.

    Every method holds `lock`.  Callers that read and then write a room hold
    it across the whole sequence; it is reentrant.

    """
    def __init__(self, rng: Optional[random.Random] = None):
        """Initialize the RoomStore with empty state."""
        self.rng = rng or random.Random()
        self.lock = RLock()
        self.rooms: Dict[str, Room] = {}
        self.marked: Dict[str, Dict[str, Set[int]]] = {}  # room_id -> session_id -> indices
        self.drawn: Dict[str, List[DrawnNumber]] = {}
        self.boards: Dict[str, BingoBoard] = {}

    def new_room_id(self) -> str:
        """Generates room IDs until one is not used by a live room."""
        with self.lock:
            room_id = generate_room_id(self.rng)
            while room_id in self.rooms:
                room_id = generate_room_id(self.rng)
            return room_id

    def create(self, room: Room):
        """Adds a new room.  Raises a RuntimeError if the ID is taken.

        """
        with self.lock:
            if room.id in self.rooms:
                raise RuntimeError(f"Room '{room.id}' already exists")
            self.rooms[room.id] = room

    def get(self, room_id: str) -> Optional[Room]:
        with self.lock:
            return self.rooms.get(room_id)

    def save(self, room: Room):
        with self.lock:
            self.rooms[room.id] = room

    def delete(self, room_id: str):
        """Remove the given room and everything tracked for it.

        """
        with self.lock:
            self.rooms.pop(room_id, None)
            self.marked.pop(room_id, None)
            self.drawn.pop(room_id, None)
            self.boards.pop(room_id, None)

    def list_rooms(self) -> List[Room]:
        with self.lock:
            return list(self.rooms.values())

    def rooms_for_session(self, session_id: str) -> List[Room]:
        """Lists the rooms the given session is a member of."""
        with self.lock:
            return [room for room in self.rooms.values() if room.has_player(session_id)]

    def toggle_mark(self, room_id: str, session_id: str, index: int) -> bool:
        """Toggles a cell for a player.  Returns True if it is now marked.

        """
        with self.lock:
            cells = self.marked.setdefault(room_id, {}).setdefault(session_id, set())
            if index in cells:
                cells.discard(index)
                return False
            cells.add(index)
            return True

    def marked_cells(self, room_id: str, session_id: str) -> Set[int]:
        with self.lock:
            return set(self.marked.get(room_id, {}).get(session_id, set()))

    def forget_player(self, room_id: str, session_id: str):
        """Drops the marked cells of a player who left the room."""
        with self.lock:
            room_marks = self.marked.get(room_id)
            if room_marks is not None:
                room_marks.pop(session_id, None)

    def drawn_numbers(self, room_id: str) -> List[DrawnNumber]:
        with self.lock:
            return list(self.drawn.get(room_id, []))

    def record_draw(self, room_id: str, drawn: DrawnNumber):
        with self.lock:
            self.drawn.setdefault(room_id, []).append(drawn)

    def set_board(self, room_id: str, board: BingoBoard):
        with self.lock:
            self.boards[room_id] = board

    def get_board(self, room_id: str) -> Optional[BingoBoard]:
        with self.lock:
            return self.boards.get(room_id)
