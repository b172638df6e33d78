#!/usr/bin/env python3
"""
Socket.IO console client for the bingo server.

This client connects to the Flask-SocketIO server and allows playing a room
from the command line.  Like the browser client, it generates its own board
locally once the game starts and keeps its own marks.

Usage:
    python bingo_client.py http://localhost:5000

Commands:
    create NAME [CLASSIC|BUSINESS] [EXTERNAL|BUILTIN] - Create a room
    join ROOM_ID NAME - Join a waiting room
    list - List live rooms
    start - Start the game (host only)
    mark INDEX - Toggle a cell (0-24, row-major)
    bingo - Call bingo with the current marks
    next - Draw the next number (host only, built-in generator)
    challenge PLAYER_ID - Challenge a bingo call (host only)
    board - Print the board
    quit - Exit the program
"""

import os
import sys
import threading
from typing import Optional

import requests
import socketio

# Add the src directory to Python path so we can import bingo modules
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(__file__)), 'src'))

from bingo.bingo_game import check_lines, generate_board
from bingo.bingo_state import BingoBoard, GameMode


class BingoSocketIOClient:
    """Socket.IO client for the bingo server."""

    def __init__(self, server_url: str):
        self.server_url = server_url.rstrip('/')
        self.sio = socketio.Client()
        self.room: Optional[dict] = None
        self.board: Optional[BingoBoard] = None
        self.lock = threading.Lock()
        self.setup_socketio_handlers()

    def setup_socketio_handlers(self):
        """Set up Socket.IO event handlers."""

        @self.sio.on('room_created')
        def on_room_created(data):
            self.room = data['room']
            print(f"\n✓ Room created: {data['roomId']}")

        @self.sio.on('room_joined')
        def on_room_joined(data):
            if data.get('success'):
                self.room = data['room']
                print(f"\n✓ Joined room {self.room['id']}")
            else:
                print(f"\n✗ Could not join: {data.get('message', 'Unknown error')}")

        @self.sio.on('player_joined')
        def on_player_joined(data):
            self.room = data['room']
            self.display_room()

        @self.sio.on('game_started')
        def on_game_started(data):
            self.room = data['room']
            with self.lock:
                self.board = generate_board(GameMode(self.room['gameMode']))
            print("\n🎲 Game started!")
            self.display_board()

        @self.sio.on('game_state_update')
        def on_game_state_update(data):
            marked = data.get('markedCell')
            if marked and marked['playerId'] == self.sio.sid:
                with self.lock:
                    if self.board is not None:
                        self.board[marked['cellIndex']].marked = marked['marked']
                self.display_board()

        @self.sio.on('bingo_validation')
        def on_bingo_validation(data):
            verdict = "valid" if data['isValid'] else "NOT valid"
            print(f"\n📣 {data['playerName']} called bingo: {verdict} {data['winningLines']}")

        @self.sio.on('number_generated')
        def on_number_generated(data):
            print(f"\n🎯 Number drawn: {data['number']} ({data.get('remaining', '?')} left)")

        @self.sio.on('bingo_challenged')
        def on_bingo_challenged(data):
            print(f"\n⚠ {data['playerName']}: {data['reason']}")

        @self.sio.on('error')
        def on_error(data):
            print(f"\n❌ Server error: {data.get('message', 'Unknown error')}")

        @self.sio.on('disconnect')
        def on_disconnect():
            print("🔌 Socket.IO disconnected")

    def display_room(self):
        if not self.room:
            print("Not in a room")
            return
        print(f"\nRoom {self.room['id']} ({self.room['gameState']}, "
              f"{self.room['gameMode']}, {self.room['numberGenerator']})")
        for player in self.room['players']:
            host = " (host)" if player['socketId'] == self.room['hostId'] else ""
            print(f"  - {player['name']} [{player['socketId']}]{host}")

    def display_board(self):
        with self.lock:
            if self.board is None:
                print("No board yet")
                return
            result = check_lines(self.board)
            print()
            for row in range(5):
                cells = []
                for cell in self.board[row * 5:(row + 1) * 5]:
                    label = cell.content[:10]
                    cells.append(f"[{label:^10}]" if cell.marked else f" {label:^10} ")
                print(" ".join(cells))
            if result.has_bingo:
                print(f"🎉 BINGO on cells {result.winning_indices}")

    def marked_indices(self):
        with self.lock:
            if self.board is None:
                return []
            return [i for i, cell in enumerate(self.board) if cell.marked and not cell.is_free]

    def list_rooms(self):
        try:
            response = requests.get(f"{self.server_url}/api/rooms")
            result = response.json()
        except Exception as e:
            print(f"✗ List rooms error: {e}")
            return

        rooms = result['data']['rooms']
        if not rooms:
            print("No rooms on server")
        for room in rooms:
            print(f"{room['id']}: {room['gameState']}, {len(room['players'])} players")

    def handle_command(self, parts):
        """Sends the event for one command line.  Returns False to quit."""
        command, args = parts[0].lower(), parts[1:]
        room_id = self.room['id'] if self.room else None

        if command == 'quit':
            return False
        elif command == 'create' and args:
            payload = {'playerName': args[0]}
            if len(args) > 1:
                payload['gameMode'] = args[1].upper()
            if len(args) > 2:
                payload['numberGenerator'] = args[2].upper()
            self.sio.emit('create_room', payload)
        elif command == 'join' and len(args) == 2:
            self.sio.emit('join_room', {'roomId': args[0].upper(), 'playerName': args[1]})
        elif command == 'list':
            self.list_rooms()
        elif command == 'start':
            self.sio.emit('start_game', {'roomId': room_id})
        elif command == 'mark' and len(args) == 1 and args[0].isdigit():
            self.sio.emit('mark_cell', {'roomId': room_id, 'cellIndex': int(args[0])})
        elif command == 'bingo':
            self.sio.emit('call_bingo', {'roomId': room_id, 'markedCells': self.marked_indices()})
        elif command == 'next':
            self.sio.emit('get_next_number', {'roomId': room_id})
        elif command == 'challenge' and len(args) == 1:
            self.sio.emit('challenge_bingo', {'roomId': room_id, 'playerId': args[0]})
        elif command == 'board':
            self.display_board()
        elif command == 'room':
            self.display_room()
        else:
            print(__doc__)
        return True


def main():
    """Main function."""
    if len(sys.argv) != 2:
        print("Usage: python bingo_client.py SERVER_URL")
        print("Example: python bingo_client.py http://localhost:5000")
        sys.exit(1)

    client = BingoSocketIOClient(sys.argv[1])
    try:
        client.sio.connect(client.server_url)
    except Exception as e:
        print(f"✗ Socket.IO connection failed: {e}")
        sys.exit(1)

    print(__doc__)
    try:
        while True:
            line = input("> ").strip()
            if not line:
                continue
            if not client.handle_command(line.split()):
                break
    except (EOFError, KeyboardInterrupt):
        pass
    finally:
        if client.sio.connected:
            client.sio.disconnect()


if __name__ == '__main__':
    main()
