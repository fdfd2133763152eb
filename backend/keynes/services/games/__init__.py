"""Game domain services: rooms, rounds, scoring and timers.

This package holds the per-room state machine and the pieces it is built
from. Socket handlers and HTTP routes import from here, keeping transport
concerns separated from core game mechanics.
"""

from .errors import GameError, InvalidGameOptions, RoomNotJoinable
from .registry import SessionRegistry
from .scheduler import INPUT_PHASE, RESULTS_PHASE, RoundScheduler
from .session import END, IN_GAME, LOBBY, RESULTS, Session
from .settings import GameSettings
