import logging
import time
from typing import Callable, Optional


INPUT_PHASE = 'input'
RESULTS_PHASE = 'results'


class TimerHandle:
    """One-shot deadline for a single phase of a single room."""

    def __init__(self, room_code: str, phase: str, duration: float, callback: Callable[[], None]):
        self.room_code = room_code
        self.phase = phase
        self.duration = duration
        self.callback = callback
        self.deadline = time.time() + duration
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def __repr__(self):
        return f"<TimerHandle room={self.room_code} phase={self.phase} duration={self.duration}s cancelled={self.cancelled}>"


class RoundScheduler:
    """Arms and cancels phase deadlines for sessions.

    The background runner and sleep function are injected. The app passes
    Flask-SocketIO's ``start_background_task`` and ``sleep`` so timers
    cooperate with whichever async mode the server runs in.

    A handle is stored on ``session.timers`` keyed by phase. When the
    deadline elapses the callback runs under the session lock, and only if
    that same handle is still the one stored for its phase.
    """

    def __init__(self, start_background_task: Callable, sleep: Callable[[float], None],
                 logger: Optional[logging.Logger] = None):
        self._start_background_task = start_background_task
        self._sleep = sleep
        self.logger = logger or logging.getLogger(__name__)

    def arm(self, session, phase: str, duration: float, on_fire: Callable[[], None]) -> TimerHandle:
        self.cancel(session, phase)
        handle = TimerHandle(session.room_code, phase, duration, on_fire)
        session.timers[phase] = handle
        self.logger.info(
            f"[timer-set] room={session.room_code} phase={phase} round={session.current_round} "
            f"duration={duration}s deadline={handle.deadline}"
        )
        self._start_background_task(self._worker, session, handle)
        return handle

    def cancel(self, session, phase: str) -> None:
        handle = session.timers.pop(phase, None)
        if handle is not None:
            handle.cancel()
            self.logger.info(f"[timer-cancel] room={session.room_code} phase={phase}")

    def cancel_all(self, session) -> None:
        for phase in list(session.timers):
            self.cancel(session, phase)

    def _worker(self, session, handle: TimerHandle) -> None:
        self._sleep(handle.duration)
        self.fire(session, handle)

    def fire(self, session, handle: TimerHandle) -> bool:
        """Run the handle's callback if it is still current. Returns whether it ran."""
        with session.lock:
            current = session.timers.get(handle.phase)
            if handle.cancelled or current is not handle:
                self.logger.info(
                    f"[timer-abort] room={handle.room_code} phase={handle.phase} stale or cancelled"
                )
                return False
            del session.timers[handle.phase]
            self.logger.info(
                f"[timer-fire] room={handle.room_code} phase={handle.phase} state={session.state} "
                f"round={session.current_round}"
            )
            handle.callback()
            return True
