import logging
import threading
from dataclasses import dataclass

from chime import ring
from clock import SystemClock
from config import DEFAULT_DURATION_MINUTES, TICK_INTERVAL_SECONDS
from scheduler import ThreadingScheduler

logger = logging.getLogger(__name__)

DEFAULT_DURATION = DEFAULT_DURATION_MINUTES * 60


def format_time(seconds):
    """MM:SS, minutes are not wrapped at the hour."""
    seconds = max(0, int(seconds))
    return f"{seconds // 60:02d}:{seconds % 60:02d}"


@dataclass(frozen=True)
class TimerSnapshot:
    remaining: int
    total_duration: int
    is_running: bool

    @property
    def progress(self):
        """0.0 when the stick is fresh, 1.0 once it has burned down."""
        if self.total_duration <= 0:
            return 0.0
        return 1 - self.remaining / self.total_duration

    @property
    def display(self):
        return format_time(self.remaining)


class IncenseTimer:
    """
    Countdown state machine for a single stick.

    Idle/Paused <-> Running. While running, a cadence from the injected
    scheduler calls tick() once per interval. The cadence is cancelled on
    every exit from Running, and a cancelled cadence never touches state.
    """

    def __init__(self, scheduler=None, total_duration=DEFAULT_DURATION,
                 chime=None, interval=TICK_INTERVAL_SECONDS, clock=None):
        self._check_duration(total_duration)
        self.scheduler = scheduler or ThreadingScheduler()
        self.interval = interval
        self.chime = chime
        self.clock = clock or SystemClock()

        self.total_duration = total_duration
        self.remaining = total_duration
        self.is_running = False

        self._session_duration = None
        self._cadence = None
        self._listeners = []
        self._lock = threading.RLock()

    @staticmethod
    def _check_duration(value):
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            raise ValueError(f"Duration must be a positive number of seconds, got {value!r}.")

    # --- Listeners ---

    def on_complete(self, callback):
        """Registers callback(duration) for every completed session."""
        if callback not in self._listeners:
            self._listeners.append(callback)
        return callback

    # --- Cadence ---

    def _arm_cadence(self):
        if self._cadence is not None:
            return
        self._cadence = self.scheduler.every(self.interval, self._on_cadence)

    def _stop_cadence(self):
        cadence, self._cadence = self._cadence, None
        if cadence is not None:
            cadence.cancel()

    def _on_cadence(self, handle):
        with self._lock:
            # A cancelled or superseded cadence must not tick.
            if handle is not self._cadence or handle.cancelled:
                return
            self.tick()

    # --- Transitions ---

    def start(self):
        with self._lock:
            if self.is_running:
                return
            if self.remaining <= 0:
                self.remaining = self.total_duration
            self._session_duration = self.total_duration
            self.is_running = True
            self._arm_cadence()
            logger.debug("Timer started with %ds remaining", self.remaining)

    def pause(self):
        with self._lock:
            self._stop_cadence()
            self.is_running = False

    def reset(self):
        with self._lock:
            self._stop_cadence()
            self.is_running = False
            self.remaining = self.total_duration

    def set_duration(self, seconds):
        """Always halts an in-progress session."""
        self._check_duration(seconds)
        with self._lock:
            self._stop_cadence()
            self.is_running = False
            self.total_duration = seconds
            self.remaining = seconds

    def tick(self):
        with self._lock:
            if not self.is_running:
                return
            self.remaining -= 1
            if self.remaining > 0:
                return

            self.remaining = 0
            self.is_running = False
            self._stop_cadence()
            duration = self._session_duration or self.total_duration
            self._session_duration = None
            logger.info("Session of %ds complete", duration)
            self._complete(duration)

    def _complete(self, duration):
        for listener in list(self._listeners):
            try:
                listener(duration)
            except Exception:
                logger.exception("Completion listener failed")
        ring(self.chime)

    def close(self):
        """Tears the cadence down; used when the owner goes away."""
        with self._lock:
            self._stop_cadence()
            self.is_running = False

    # --- Views ---

    def snapshot(self):
        with self._lock:
            return TimerSnapshot(
                remaining=self.remaining,
                total_duration=self.total_duration,
                is_running=self.is_running,
            )

    def get_timer_state_details(self):
        snap = self.snapshot()
        return {
            'remaining': snap.remaining,
            'display': snap.display,
            'progress': round(snap.progress, 4),
            'total_duration': snap.total_duration,
            'duration_minutes': max(1, round(snap.total_duration / 60)),
            'is_running': snap.is_running,
            'server_time_of_day': self.clock.now().strftime("%H:%M:%S"),
        }
