import logging
import math
import threading
from typing import Dict, Optional

from .roster import Player, PlayerRoster
from .scheduler import INPUT_PHASE, RESULTS_PHASE, RoundScheduler, TimerHandle
from .scoring import RoundOutcome, final_standings, score_round
from .settings import GameSettings


LOBBY = 'lobby'
IN_GAME = 'in-game'
RESULTS = 'results'
END = 'end'


def coerce_choice(number) -> Optional[float]:
    """Parse a submitted number, returning None for anything unusable."""
    if isinstance(number, bool) or number is None:
        return None
    try:
        value = float(number)
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(value):
        return None
    return value


class Session:
    """State machine for one room.

    lobby -> in-game -> results -> (in-game | end)

    Every public method takes ``self.lock`` for its whole duration,
    broadcasts included. Timer callbacks come back in through the scheduler,
    which takes the same lock, so a player action and a deadline never
    interleave on the same room.
    """

    def __init__(self, room_code: str, total_rounds: int, settings: GameSettings,
                 scheduler: RoundScheduler, broadcaster, logger: Optional[logging.Logger] = None):
        self.room_code = room_code
        self.total_rounds = total_rounds
        self.current_round = 0
        self.last_round_average = settings.initial_average
        self.state = LOBBY
        self.roster = PlayerRoster()
        self.timers: Dict[str, TimerHandle] = {}
        self.lock = threading.RLock()
        self.closed = False
        self.last_outcome: Optional[RoundOutcome] = None

        self.settings = settings
        self.scheduler = scheduler
        self.broadcaster = broadcaster
        self.logger = logger or logging.getLogger(__name__)

    # ---- roster ----

    def add_player(self, connection_id: str, name: str, is_host: bool = False) -> Player:
        with self.lock:
            player = self.roster.add(connection_id, name, is_host=is_host)
            self.publish()
            return player

    def remove_player(self, connection_id: str) -> bool:
        """Drop a player. Returns True when the room is left empty.

        An empty room is closed here (timers cancelled); unregistering it is
        the registry's job.
        """
        with self.lock:
            if self.roster.remove(connection_id) is None:
                return False
            self.logger.info(f"[player-leave] room={self.room_code} player={connection_id}")
            if len(self.roster) == 0:
                self.close()
                return True
            promoted = self.roster.ensure_host()
            if promoted is not None:
                self.logger.info(f"[host-migrate] room={self.room_code} host={promoted.id}")
            if self.state == IN_GAME and self.roster.all_chosen():
                self.resolve_round()
            else:
                self.publish()
            return False

    def close(self) -> None:
        with self.lock:
            self.closed = True
            self.scheduler.cancel_all(self)

    # ---- actions ----

    def start(self, connection_id: str) -> bool:
        with self.lock:
            player = self.roster.get(connection_id)
            if self.closed or player is None or not player.is_host or self.state != LOBBY:
                return False
            self.logger.info(f"[game-start] room={self.room_code} rounds={self.total_rounds}")
            self._start_next_round()
            return True

    def submit(self, connection_id: str, number) -> bool:
        with self.lock:
            player = self.roster.get(connection_id)
            if self.closed or player is None or self.state != IN_GAME:
                return False
            choice = coerce_choice(number)
            if choice is None:
                self.logger.warning(f"[submit-ignored] room={self.room_code} player={connection_id} number={number!r}")
                return False
            player.last_choice = choice
            self.logger.info(f"[submit] room={self.room_code} player={player.name} round={self.current_round}")
            if self.roster.all_chosen():
                self.resolve_round()
            else:
                self.publish()
            return True

    # ---- transitions ----

    def _start_next_round(self) -> None:
        self.scheduler.cancel(self, RESULTS_PHASE)
        self.scheduler.cancel(self, INPUT_PHASE)
        self.current_round += 1
        self.state = IN_GAME
        self.roster.reset_choices()
        self.last_outcome = None
        self.logger.info(f"[round-start] room={self.room_code} round={self.current_round}/{self.total_rounds}")
        self.publish()
        self.broadcaster.broadcast(self.room_code, 'startRound', {
            'round': self.current_round,
            'time': self.settings.input_duration,
        })
        self.scheduler.arm(self, INPUT_PHASE, self.settings.input_duration, self._on_input_deadline)

    def _on_input_deadline(self) -> None:
        self.logger.info(f"[input-deadline] room={self.room_code} round={self.current_round}")
        self.resolve_round()

    def resolve_round(self) -> Optional[RoundOutcome]:
        """in-game -> results. Runs at most once per round."""
        with self.lock:
            if self.closed or self.state != IN_GAME:
                return None
            for p in self.roster:
                if p.last_choice is None:
                    p.last_choice = self.settings.default_choice

            # Score before leaving in-game: if this raises, the input timer
            # is still armed and the room is not stranded in results.
            outcome = score_round(self.roster, self.settings.target_multiplier)
            self.scheduler.cancel(self, INPUT_PHASE)
            self.state = RESULTS
            for winner_id in outcome.winner_ids:
                self.roster.get(winner_id).score += 1
            self.last_round_average = outcome.average
            self.last_outcome = outcome
            self.logger.info(
                f"[round-results] room={self.room_code} round={self.current_round} average={outcome.average} "
                f"target={outcome.target} winners={outcome.winner_ids}"
            )

            self.broadcaster.broadcast(self.room_code, 'roundResults', outcome.to_payload())
            self.publish()
            self.scheduler.arm(self, RESULTS_PHASE, self.settings.results_duration, self._on_results_deadline)
            return outcome

    def _on_results_deadline(self) -> None:
        if self.closed or self.state != RESULTS:
            return
        if self.current_round >= self.total_rounds:
            self._end_game()
        else:
            self._start_next_round()

    def _end_game(self) -> None:
        self.scheduler.cancel_all(self)
        self.state = END
        ranked, winners = final_standings(self.roster)
        self.logger.info(f"[game-over] room={self.room_code} winners={[w.id for w in winners]}")
        self.broadcaster.broadcast(self.room_code, 'gameOver', {
            'sortedPlayers': [p.to_dict() for p in ranked],
            'finalWinners': [{'id': w.id, 'name': w.name} for w in winners],
        })
        self.publish()

    # ---- views ----

    def snapshot(self):
        with self.lock:
            reveal = self.state != IN_GAME
            return {
                'roomCode': self.room_code,
                'totalRounds': self.total_rounds,
                'currentRound': self.current_round,
                'lastRoundAverage': self.last_round_average,
                'state': self.state,
                'players': [p.to_dict(reveal_choice=reveal) for p in self.roster],
            }

    def publish(self) -> None:
        self.broadcaster.broadcast(self.room_code, 'gameUpdate', self.snapshot())
