import random
import threading
import time
from typing import Dict, List, Optional

from flask import current_app

from feud.errors import RoomNotFound
from feud.models import GameState
from feud.party import PartyState

# No 0/O or 1/I look-alikes
ROOM_CODE_ALPHABET = 'ABCDEFGHJKLMNPQRSTUVWXYZ23456789'
ROOM_CODE_LENGTH = 6


def normalize_code(code) -> str:
    return str(code or '').strip().upper()


class Room:
    def __init__(self, code: str, default_timer_sec: int = 30):
        self.code = code
        self.created_at = time.time()
        self.display_sid: Optional[str] = None
        self.host_sid: Optional[str] = None
        self.state = GameState(default_timer_sec)
        self.party = PartyState()
        # Serializes every transition on this room
        self.lock = threading.RLock()

    @property
    def channel(self) -> str:
        return f"room:{self.code}"

    def is_attached(self) -> bool:
        return self.display_sid is not None or self.host_sid is not None

    def to_summary(self):
        return {
            'roomCode': self.code,
            'createdAt': self.created_at,
            'screen': self.state.screen,
            'hasHost': self.host_sid is not None,
            'hasDisplay': self.display_sid is not None,
            'playerCount': len(self.party.players),
            'currentRound': self.state.current_round,
            'totalRounds': self.state.total_rounds,
        }


class RoomStore:
    """In-memory registry of rooms keyed by their short code."""

    def __init__(self, default_timer_sec: int = 30, rng=None):
        self._rooms: Dict[str, Room] = {}
        self._lock = threading.Lock()
        self._default_timer_sec = default_timer_sec
        self._rng = rng or random.SystemRandom()

    def __len__(self):
        return len(self._rooms)

    def __contains__(self, code):
        return normalize_code(code) in self._rooms

    def generate_code(self) -> str:
        """Generate a unique, short room code."""
        while True:
            code = ''.join(self._rng.choice(ROOM_CODE_ALPHABET) for _ in range(ROOM_CODE_LENGTH))
            if code not in self._rooms:
                return code

    def create_room(self) -> Room:
        with self._lock:
            room = Room(self.generate_code(), self._default_timer_sec)
            self._rooms[room.code] = room
        return room

    def get_room(self, code) -> Optional[Room]:
        return self._rooms.get(normalize_code(code))

    def require_room(self, code) -> Room:
        room = self.get_room(code)
        if room is None:
            raise RoomNotFound()
        return room

    def remove_room(self, code) -> Optional[Room]:
        with self._lock:
            return self._rooms.pop(normalize_code(code), None)

    def codes(self) -> List[str]:
        return list(self._rooms)

    def sweep_expired(self, retention_sec: float, now: Optional[float] = None) -> List[str]:
        """Drop rooms past retention that have neither display nor host."""
        now = time.time() if now is None else now
        removed = []
        with self._lock:
            for code, room in list(self._rooms.items()):
                if room.is_attached():
                    continue
                if now - room.created_at > retention_sec:
                    del self._rooms[code]
                    removed.append(code)
        return removed


def current_rooms() -> RoomStore:
    return current_app.extensions['rooms']
