# File: src/parkflow/infrastructure/clock.py
"""
Clock implementations used for ticket timestamps
"""

from datetime import datetime, timedelta
from typing import Optional
import threading


class SystemClock:
    """Wall-clock time"""

    def now(self) -> datetime:
        return datetime.now()


class ManualClock:
    """
    Clock that only moves when told to.
    Used by the demo and by tests to simulate the passing of time.
    """

    def __init__(self, start: Optional[datetime] = None):
        self._now = start or datetime.now()
        self._lock = threading.Lock()

    def now(self) -> datetime:
        with self._lock:
            return self._now

    def advance(self, delta: Optional[timedelta] = None, **kwargs) -> datetime:
        """Move the clock forward, e.g. advance(minutes=10)"""
        step = delta if delta is not None else timedelta(**kwargs)
        if step < timedelta(0):
            raise ValueError("Clock cannot move backwards")
        with self._lock:
            self._now += step
            return self._now

    def set(self, moment: datetime) -> None:
        with self._lock:
            self._now = moment
