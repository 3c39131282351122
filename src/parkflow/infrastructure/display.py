# File: src/parkflow/infrastructure/display.py
"""
Display boards showing free spots by size.

Boards are pushed fresh counts by the floors and the lot after every
park/unpark; they never poll.
"""

from typing import Dict, List, Tuple
import logging
import threading

from ..domain.models import SpotSize


def format_counts(counts: Dict[SpotSize, int]) -> str:
    return ", ".join(f"{size.value}: {counts.get(size, 0)}" for size in SpotSize)


class LoggingDisplayBoard:
    """Writes every update to the log"""

    def __init__(self, name: str = "main"):
        self.name = name
        self._logger = logging.getLogger(self.__class__.__name__)

    def update(self, counts: Dict[SpotSize, int], scope: str) -> None:
        self._logger.info(f"[{self.name}] {scope} available -> {format_counts(counts)}")


class RecordingDisplayBoard:
    """Keeps every update it receives, latest last"""

    def __init__(self):
        self._history: List[Tuple[str, Dict[SpotSize, int]]] = []
        self._lock = threading.Lock()

    def update(self, counts: Dict[SpotSize, int], scope: str) -> None:
        with self._lock:
            self._history.append((scope, dict(counts)))

    @property
    def history(self) -> List[Tuple[str, Dict[SpotSize, int]]]:
        with self._lock:
            return list(self._history)

    def latest(self, scope: str) -> Dict[SpotSize, int]:
        """
        Most recent counts pushed for a scope
        Raises: KeyError if the scope was never updated
        """
        with self._lock:
            for recorded_scope, counts in reversed(self._history):
                if recorded_scope == scope:
                    return dict(counts)
        raise KeyError(scope)
