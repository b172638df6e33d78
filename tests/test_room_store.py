"""
Unit tests for the RoomStore class.
"""

import random
import re
import threading

import pytest
from src.bingo.bingo_game import generate_board
from src.bingo.bingo_state import DrawnNumber, GameMode, Player, Room
from src.bingo.room_store import RoomStore, generate_room_id, is_valid_room_id


def make_room(room_id='ABC123', host='sid-1'):
    return Room(id=room_id, host_id=host, players=[Player(session_id=host, name='Alice')])


class TestRoomIds:
    """Test cases for room id generation and validation."""

    def test_generated_ids_match_format(self):
        rng = random.Random(0)
        for _ in range(200):
            room_id = generate_room_id(rng)
            assert re.fullmatch(r'[A-Z0-9]{6}', room_id)
            assert is_valid_room_id(room_id)

    @pytest.mark.parametrize('room_id', ['abc123', 'ABC12', 'ABC1234', 'ABC 12', '', None, 123456])
    def test_invalid_ids(self, room_id):
        assert not is_valid_room_id(room_id)

    def test_new_room_id_retries_on_collision(self):
        store = RoomStore(rng=random.Random(5))
        taken = generate_room_id(random.Random(5))
        store.create(make_room(taken))

        store.rng = random.Random(5)
        room_id = store.new_room_id()
        assert room_id != taken
        assert is_valid_room_id(room_id)

    def test_live_rooms_never_share_an_id(self):
        store = RoomStore(rng=random.Random(11))
        for i in range(300):
            store.create(make_room(store.new_room_id(), host=f"sid-{i}"))
        assert len(store.list_rooms()) == 300


class TestRoomStore:
    """Test cases for RoomStore class methods."""

    def setup_method(self):
        """Set up a fresh RoomStore instance for each test."""
        self.store = RoomStore()

    def test_list_rooms_empty_initially(self):
        assert self.store.list_rooms() == []

    def test_create_and_get(self):
        room = make_room()
        self.store.create(room)
        assert self.store.get('ABC123') is room

    def test_create_duplicate_raises_error(self):
        self.store.create(make_room())
        with pytest.raises(RuntimeError):
            self.store.create(make_room())

    def test_get_missing(self):
        assert self.store.get('ZZZZZZ') is None

    def test_save_upserts(self):
        room = make_room()
        self.store.save(room)
        assert self.store.get('ABC123') is room

        replacement = make_room(host='sid-9')
        self.store.save(replacement)
        assert self.store.get('ABC123').host_id == 'sid-9'

    def test_delete_purges_everything(self):
        self.store.create(make_room())
        self.store.toggle_mark('ABC123', 'sid-1', 3)
        self.store.record_draw('ABC123', DrawnNumber(value='7', pool_index=6))
        self.store.set_board('ABC123', generate_board(GameMode.CLASSIC))

        self.store.delete('ABC123')

        assert self.store.get('ABC123') is None
        assert self.store.marked_cells('ABC123', 'sid-1') == set()
        assert self.store.drawn_numbers('ABC123') == []
        assert self.store.get_board('ABC123') is None
        assert self.store.marked == {}
        assert self.store.drawn == {}
        assert self.store.boards == {}

    def test_delete_nonexistent_room(self):
        self.store.delete('ZZZZZZ')

    def test_rooms_for_session(self):
        first = make_room('AAAAAA', host='sid-1')
        second = make_room('BBBBBB', host='sid-2')
        second.add_player(Player(session_id='sid-1', name='Alice'))
        self.store.create(first)
        self.store.create(second)
        self.store.create(make_room('CCCCCC', host='sid-3'))

        ids = sorted(room.id for room in self.store.rooms_for_session('sid-1'))
        assert ids == ['AAAAAA', 'BBBBBB']
        assert self.store.rooms_for_session('sid-4') == []

    def test_toggle_mark(self):
        assert self.store.toggle_mark('ABC123', 'sid-1', 5) is True
        assert self.store.toggle_mark('ABC123', 'sid-1', 6) is True
        assert self.store.marked_cells('ABC123', 'sid-1') == {5, 6}
        assert self.store.toggle_mark('ABC123', 'sid-1', 5) is False
        assert self.store.marked_cells('ABC123', 'sid-1') == {6}
        # Other players are independent
        assert self.store.marked_cells('ABC123', 'sid-2') == set()

    def test_marked_cells_returns_copy(self):
        self.store.toggle_mark('ABC123', 'sid-1', 5)
        self.store.marked_cells('ABC123', 'sid-1').add(9)
        assert self.store.marked_cells('ABC123', 'sid-1') == {5}

    def test_forget_player(self):
        self.store.toggle_mark('ABC123', 'sid-1', 5)
        self.store.toggle_mark('ABC123', 'sid-2', 5)
        self.store.forget_player('ABC123', 'sid-1')
        assert self.store.marked_cells('ABC123', 'sid-1') == set()
        assert self.store.marked_cells('ABC123', 'sid-2') == {5}
        self.store.forget_player('ZZZZZZ', 'sid-1')

    def test_record_draw(self):
        self.store.record_draw('ABC123', DrawnNumber(value='7', pool_index=6))
        self.store.record_draw('ABC123', DrawnNumber(value='70', pool_index=69))
        assert [d.value for d in self.store.drawn_numbers('ABC123')] == ['7', '70']


class TestRoomStoreThreads:
    """Test cases for concurrent use of a RoomStore."""

    def test_concurrent_creates_never_collide(self):
        store = RoomStore(rng=random.Random(3))
        errors = []

        def create_many(worker):
            for i in range(50):
                try:
                    with store.lock:
                        store.create(make_room(store.new_room_id(), host=f"sid-{worker}-{i}"))
                except RuntimeError as e:
                    errors.append(e)

        threads = [threading.Thread(target=create_many, args=(w,)) for w in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert len(store.list_rooms()) == 400

    def test_lock_is_reentrant(self):
        store = RoomStore()
        with store.lock:
            store.create(make_room())
            assert store.get('ABC123') is not None
