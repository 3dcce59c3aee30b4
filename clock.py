import time
from datetime import datetime

import pytz


class SystemClock:
    """Wall-clock source for timestamps and the current calendar day."""

    def __init__(self, timezone=None):
        # None keeps the process's local timezone
        self.timezone = pytz.timezone(timezone) if timezone else None

    def now_ms(self):
        return int(time.time() * 1000)

    def now(self):
        if self.timezone is None:
            return datetime.now()
        return datetime.now(self.timezone)

    def today(self):
        return self.now().date()
