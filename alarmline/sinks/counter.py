from __future__ import annotations

import threading
from collections import Counter
from typing import Dict, List

from alarmline.domain.models import AlarmRecord


class AlarmCounterSink:
    """
    Sink that only keeps how many alarms are active.

    Attributes are read from other threads (e.g. a UI poll), so updates are
    guarded by a lock and readers get copies.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._total = 0
        self._by_class: Dict[str, int] = {}
        self._updates = 0

    def __call__(self, alarms: List[AlarmRecord]) -> None:
        by_class = Counter(a.payload.alarm_class_name for a in alarms)
        with self._lock:
            self._total = len(alarms)
            self._by_class = dict(by_class)
            self._updates += 1

    @property
    def total(self) -> int:
        with self._lock:
            return self._total

    @property
    def by_class(self) -> Dict[str, int]:
        """Active alarm count per alarm class name."""
        with self._lock:
            return dict(self._by_class)

    @property
    def updates(self) -> int:
        """Number of snapshots received."""
        with self._lock:
            return self._updates
