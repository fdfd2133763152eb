import logging
import random
import string
import threading
from typing import Callable, Dict, Optional

from .errors import InvalidGameOptions, RoomNotJoinable
from .scheduler import RoundScheduler
from .session import LOBBY, Session
from .settings import GameSettings


ROOM_CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_room_code(length=5):
    return ''.join(random.choices(ROOM_CODE_ALPHABET, k=length))


def _clean_name(player_name) -> str:
    return player_name.strip() if isinstance(player_name, str) else ''


def _parse_rounds(total_rounds) -> int:
    if isinstance(total_rounds, bool) or (isinstance(total_rounds, float) and not total_rounds.is_integer()):
        raise InvalidGameOptions('Number of rounds must be a positive integer.')
    try:
        rounds = int(total_rounds)
    except (TypeError, ValueError):
        raise InvalidGameOptions('Number of rounds must be a positive integer.')
    if rounds < 1:
        raise InvalidGameOptions('Number of rounds must be a positive integer.')
    return rounds


class SessionRegistry:
    """Live sessions keyed by room code, plus which room each connection sits in.

    Owned by the app (see ``create_app``) rather than living at module level,
    so tests can build as many isolated registries as they like.

    The registry lock only guards the two tables. Session state is always
    mutated under the session's own lock, and the registry lock is never held
    while waiting on a session lock.
    """

    def __init__(self, settings: GameSettings, scheduler: RoundScheduler, broadcaster,
                 logger: Optional[logging.Logger] = None,
                 code_factory: Optional[Callable[[int], str]] = None):
        self.settings = settings
        self.scheduler = scheduler
        self.broadcaster = broadcaster
        self.logger = logger or logging.getLogger(__name__)
        self._code_factory = code_factory or generate_room_code
        self._sessions: Dict[str, Session] = {}
        self._connections: Dict[str, str] = {}
        self._lock = threading.Lock()

    def _unique_code(self) -> str:
        # Caller holds self._lock
        while True:
            code = self._code_factory(self.settings.room_code_length).upper()
            if code not in self._sessions:
                return code
            self.logger.info(f"[room-code-collision] code={code} retrying")

    def create(self, connection_id: str, player_name: str, total_rounds) -> Session:
        name = _clean_name(player_name)
        if not name:
            raise InvalidGameOptions('Player name is required.')
        rounds = _parse_rounds(total_rounds)

        self.remove(connection_id)
        with self._lock:
            code = self._unique_code()
            session = Session(code, rounds, self.settings, self.scheduler, self.broadcaster, self.logger)
            self._sessions[code] = session
            self._connections[connection_id] = code
        self.broadcaster.join(connection_id, code)
        session.add_player(connection_id, name, is_host=True)
        self.logger.info(f"[room-create] room={code} host={connection_id} name={name} rounds={rounds}")
        return session

    def join(self, connection_id: str, player_name: str, room_code) -> Session:
        name = _clean_name(player_name)
        session = self.get(room_code)
        if session is None or not name or session.closed or session.state != LOBBY:
            raise RoomNotJoinable()
        code = session.room_code
        if connection_id in session.roster:
            return session

        # Leave any previous room before taking the target's lock; sessions
        # are never locked two at a time.
        self.remove(connection_id)
        with session.lock:
            if session.closed or session.state != LOBBY:
                raise RoomNotJoinable()
            with self._lock:
                self._connections[connection_id] = code
            self.broadcaster.join(connection_id, code)
            session.add_player(connection_id, name)
        self.logger.info(f"[room-join] room={code} player={connection_id} name={name}")
        return session

    def remove(self, connection_id: str) -> Optional[Session]:
        """Take a connection out of its room. Returns the room it left, if any."""
        with self._lock:
            code = self._connections.pop(connection_id, None)
            session = self._sessions.get(code) if code else None
        if session is None:
            return None

        emptied = session.remove_player(connection_id)
        self.broadcaster.leave(connection_id, code)
        if emptied:
            with self._lock:
                if self._sessions.get(code) is session:
                    del self._sessions[code]
            self.logger.info(f"[room-destroy] room={code} empty")
        return session

    def get(self, room_code) -> Optional[Session]:
        if not isinstance(room_code, str):
            return None
        with self._lock:
            return self._sessions.get(room_code.strip().upper())

    def session_for(self, connection_id: str) -> Optional[Session]:
        with self._lock:
            code = self._connections.get(connection_id)
            return self._sessions.get(code) if code else None

    def __contains__(self, room_code) -> bool:
        return self.get(room_code) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
