import logging
import threading

from config import HISTORY_LIMIT
from history import SessionRecord, normalize_history

logger = logging.getLogger(__name__)


def build_session_record(duration, ended_at, taken_ids=()):
    """
    Record for a session that ended at `ended_at` (ms).
    The id is the end timestamp, suffixed when that id is already taken.
    """
    record_id = str(ended_at)
    suffix = 1
    while record_id in taken_ids:
        record_id = f"{ended_at}-{suffix}"
        suffix += 1
    return SessionRecord(
        id=record_id,
        started_at=ended_at - duration * 1000,
        ended_at=ended_at,
        duration=duration,
    )


class SessionRecorder:
    """Owns the in-memory history and writes it through to the store."""

    def __init__(self, store, clock, limit=HISTORY_LIMIT):
        self.store = store
        self.clock = clock
        self.limit = limit
        self._history = []
        self._lock = threading.Lock()

    def load(self):
        with self._lock:
            self._history = normalize_history(self.store.load(), self.limit)
            self.store.save(self._history)
            logger.info("Loaded %d session(s) from history", len(self._history))
            return list(self._history)

    def record(self, duration):
        """Completion handler: prepend, cap, persist."""
        with self._lock:
            ended_at = self.clock.now_ms()
            taken = {r.id for r in self._history}
            record = build_session_record(duration, ended_at, taken)
            self._history = [record] + self._history[:self.limit - 1]
            self.store.save(self._history)
            return record

    def clear(self):
        with self._lock:
            self._history = []
            self.store.clear()

    @property
    def history(self):
        with self._lock:
            return list(self._history)

    def attach(self, timer):
        timer.on_complete(self.record)
        return self
