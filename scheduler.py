import logging
import threading

logger = logging.getLogger(__name__)


class CadenceHandle:
    """A repeating trigger. Once cancelled it never fires again."""

    def __init__(self, interval, callback):
        self.interval = interval
        self.callback = callback
        self._cancelled = threading.Event()
        self._timer = None
        self._lock = threading.Lock()

    @property
    def cancelled(self):
        return self._cancelled.is_set()

    def _arm(self):
        with self._lock:
            if self.cancelled:
                return
            self._timer = threading.Timer(self.interval, self._fire)
            self._timer.daemon = True
            self._timer.start()

    def _fire(self):
        if self.cancelled:
            return
        try:
            self.callback(self)
        except Exception:
            logger.exception("Cadence callback failed")
        self._arm()

    def cancel(self):
        self._cancelled.set()
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None


class ThreadingScheduler:
    """Runs each cadence on its own daemon timer thread."""

    def every(self, interval, callback):
        """
        Calls callback(handle) every `interval` seconds until the handle
        is cancelled. The callback receives its own handle so it can check
        whether it is still the live cadence.
        """
        handle = CadenceHandle(interval, callback)
        handle._arm()
        return handle
