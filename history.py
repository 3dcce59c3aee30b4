import json
import logging
import math
import os
import tempfile
from dataclasses import dataclass

from config import HISTORY_LIMIT, STORAGE_KEY

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionRecord:
    id: str
    started_at: int  # ms
    ended_at: int  # ms
    duration: int  # seconds

    def to_dict(self):
        return {
            'id': self.id,
            'startedAt': self.started_at,
            'endedAt': self.ended_at,
            'duration': self.duration,
        }


# 9999-12-31T23:59:59.999Z, the last instant datetime can represent
MAX_TIMESTAMP_MS = 253_402_300_799_999


def _is_number(value):
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    # json.loads lets NaN, Infinity and 1e400 through
    return math.isfinite(value)


def _is_timestamp(value):
    return 0 <= value <= MAX_TIMESTAMP_MS


def record_from_dict(entry):
    """Returns a SessionRecord, or None when the entry is malformed."""
    if not isinstance(entry, dict):
        return None
    ended_at = entry.get('endedAt')
    duration = entry.get('duration')
    if not _is_number(ended_at) or not _is_number(duration):
        return None

    ended_at = int(ended_at)
    duration = int(duration)
    started_at = entry.get('startedAt')
    if not _is_number(started_at):
        started_at = ended_at - duration * 1000
    started_at = int(started_at)
    if not _is_timestamp(ended_at) or not _is_timestamp(started_at):
        return None
    record_id = entry.get('id')
    if not isinstance(record_id, str) or not record_id:
        record_id = str(ended_at)

    return SessionRecord(id=record_id, started_at=started_at,
                         ended_at=ended_at, duration=duration)


def normalize_history(records, limit=HISTORY_LIMIT):
    """Newest first, unique ids, capped."""
    ordered = sorted(records, key=lambda r: r.ended_at, reverse=True)
    seen = set()
    result = []
    for record in ordered:
        if record.id in seen:
            continue
        seen.add(record.id)
        result.append(record)
    return result[:limit]


# --- Backends ---

class MemoryBackend:
    """Key-value backend that lives as long as the process."""

    def __init__(self, initial=None):
        self.data = dict(initial or {})

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value):
        self.data[key] = value

    def delete(self, key):
        self.data.pop(key, None)


class JsonFileBackend:
    """
    Key-value backend over one JSON document on disk.
    Values are stored as raw strings under their key.
    """

    def __init__(self, path):
        self.path = path

    def _read_all(self):
        if not os.path.exists(self.path):
            return {}
        with open(self.path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} does not hold a JSON object")
        return data

    def _write_all(self, data):
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)
        # write-then-rename so a crash never leaves a half-written file
        fd, tmp_path = tempfile.mkstemp(dir=directory, suffix='.tmp')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def get(self, key):
        return self._read_all().get(key)

    def set(self, key, value):
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def delete(self, key):
        data = self._read_all()
        if key in data:
            del data[key]
            self._write_all(data)


# --- Store ---

class HistoryStore:
    """Loads and saves the session history under a single namespaced key."""

    def __init__(self, backend=None, key=STORAGE_KEY, limit=HISTORY_LIMIT):
        self.backend = backend
        self.key = key
        self.limit = limit

    def load(self):
        if self.backend is None:
            return []
        try:
            raw = self.backend.get(self.key)
            if not raw:
                return []
            parsed = json.loads(raw)
            if not isinstance(parsed, list):
                raise ValueError("history is not a JSON array")
        except Exception:
            logger.exception("Failed to parse history under %r", self.key)
            return []

        records = []
        for entry in parsed:
            record = record_from_dict(entry)
            if record is None:
                logger.debug("Dropping malformed history entry: %r", entry)
                continue
            records.append(record)
        return normalize_history(records, self.limit)

    def save(self, history):
        if self.backend is None:
            return
        try:
            payload = json.dumps([r.to_dict() for r in history])
            self.backend.set(self.key, payload)
        except Exception:
            logger.exception("Failed to persist history under %r", self.key)

    def clear(self):
        if self.backend is None:
            return
        try:
            self.backend.delete(self.key)
        except Exception:
            logger.exception("Failed to clear history under %r", self.key)


def build_store(path):
    """File-backed store, or a no-op store when no path is configured."""
    if not path:
        return HistoryStore(backend=None)
    return HistoryStore(backend=JsonFileBackend(path))
