from typing import Callable, Dict, Optional, Tuple

from flask import current_app

from feud.errors import HostConflict, InvalidCredentials, Unauthorized
from feud.party import Player
from feud.store import Room, RoomStore

DISPLAY = 'display'
HOST = 'host'
PLAYER = 'player'


class Session:
    """What one connection is bound to."""

    def __init__(self, sid: str, room_code: str, role: str, player_id: Optional[str] = None):
        self.sid = sid
        self.room_code = room_code
        self.role = role
        self.player_id = player_id
        # False once another connection had already replaced this binding
        self.held = True

    def __repr__(self):
        return f"<Session {self.sid} {self.role}@{self.room_code}>"


class SessionManager:
    """Binds connections to ``(room, role)`` and guards the host role.

    Exactly one connection may hold the host role of a room. Role checks are
    resolved here so the state machine never sees unauthorized commands.
    """

    def __init__(self, rooms: RoomStore, check_password: Callable[[str], bool]):
        self.rooms = rooms
        self._check_password = check_password
        self._sessions: Dict[str, Session] = {}

    def get(self, sid: str) -> Optional[Session]:
        return self._sessions.get(sid)

    def _bind(self, sid: str, room: Room, role: str, player_id: Optional[str] = None) -> Optional[Session]:
        """Bind ``sid`` to ``room``; returns the binding it replaced, if any."""
        previous = self._sessions.get(sid)
        if previous is not None and (previous.room_code != room.code or previous.role != role):
            self._release(previous)
        else:
            previous = None
        self._sessions[sid] = Session(sid, room.code, role, player_id)
        return previous

    def _release(self, session: Session) -> Optional[Room]:
        """Drop the room binding ``session`` holds; None when it held nothing."""
        room = self.rooms.get_room(session.room_code)
        if room is None:
            session.held = False
            return None
        if session.role == HOST and room.host_sid == session.sid:
            room.host_sid = None
        elif session.role == DISPLAY and room.display_sid == session.sid:
            room.display_sid = None
        elif session.role == PLAYER and session.player_id:
            room.party.remove_player(session.player_id)
        else:
            session.held = False
            return None
        return room

    def join_display(self, sid: str, room_code: Optional[str] = None) -> Tuple[Room, Optional[Session]]:
        if room_code:
            room = self.rooms.require_room(room_code)
        else:
            room = self.rooms.create_room()
            current_app.logger.info(f"[room-create] room={room.code} by display sid={sid}")
        with room.lock:
            previous = self._bind(sid, room, DISPLAY)
            room.display_sid = sid
        return room, previous

    def _verify(self, password: str) -> None:
        if not self._check_password(password or ''):
            raise InvalidCredentials()

    def authenticate_host(self, sid: str, room_code: str, password: str) -> Tuple[Room, Optional[Session]]:
        room = self.rooms.require_room(room_code)
        self._verify(password)
        with room.lock:
            if room.host_sid is not None and room.host_sid != sid:
                raise HostConflict()
            previous = self._bind(sid, room, HOST)
            room.host_sid = sid
        return room, previous

    def take_over_host(self, sid: str, room_code: str, password: str) -> Tuple[Room, Optional[str], Optional[Session]]:
        """Force-bind ``sid`` as host; returns the evicted host sid, if any."""
        room = self.rooms.require_room(room_code)
        self._verify(password)
        with room.lock:
            evicted = room.host_sid if room.host_sid != sid else None
            if evicted is not None:
                self._sessions.pop(evicted, None)
                room.host_sid = None
                current_app.logger.info(f"[host-takeover] room={room.code} evicted sid={evicted} by sid={sid}")
            previous = self._bind(sid, room, HOST)
            room.host_sid = sid
        return room, evicted, previous

    def join_player(self, sid: str, room_code: str, player_name: str) -> Tuple[Room, Player, Optional[Session]]:
        room = self.rooms.require_room(room_code)
        existing = self._sessions.get(sid)
        if existing is not None and existing.role == PLAYER and existing.room_code == room.code:
            player = room.party.players.get(existing.player_id)
            if player is not None:
                return room, player, None
        player = room.party.add_player(player_name)
        previous = self._bind(sid, room, PLAYER, player.id)
        return room, player, previous

    def disconnect(self, sid: str) -> Tuple[Optional[Session], Optional[Room]]:
        session = self._sessions.pop(sid, None)
        if session is None:
            return None, None
        room = self.rooms.get_room(session.room_code)
        if room is None:
            return session, None
        with room.lock:
            return session, self._release(session)

    # ---- Guards ----

    def require_host(self, sid: str) -> Room:
        session = self._sessions.get(sid)
        if session is None or session.role != HOST:
            raise Unauthorized()
        room = self.rooms.get_room(session.room_code)
        if room is None or room.host_sid != sid:
            raise Unauthorized()
        return room

    def require_player(self, sid: str) -> Tuple[Room, Player]:
        session = self._sessions.get(sid)
        if session is None or session.role != PLAYER:
            raise Unauthorized()
        room = self.rooms.get_room(session.room_code)
        player = room.party.players.get(session.player_id) if room else None
        if player is None:
            raise Unauthorized()
        return room, player

    def require_member(self, sid: str) -> Tuple[Room, Session]:
        session = self._sessions.get(sid)
        room = self.rooms.get_room(session.room_code) if session else None
        if room is None:
            raise Unauthorized()
        return room, session


def current_sessions() -> SessionManager:
    return current_app.extensions['sessions']
