"""
Shared test doubles for unit tests.

- ManualTimerService: deterministic timer service driven by ``advance(ms)``
- RecordingSink: sink capturing every delivered snapshot
- make_alarm: AlarmRecord factory with readable defaults
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Tuple

import pytest

from alarmline.domain.models import AlarmPayload, AlarmRecord, NotificationReason

T0 = datetime(2026, 1, 1, 10, 0, 0)


class ManualTimerService:
    """
    Fake clock: timers fire only when the test advances time.
    """

    def __init__(self) -> None:
        self.now_ms = 0
        self._next_id = 1
        self._timers: Dict[int, Tuple[int, Callable[[], None]]] = {}
        self.cleared: List[int] = []

    def set_timeout(self, callback: Callable[[], None], delay_ms: int) -> int:
        handle = self._next_id
        self._next_id += 1
        self._timers[handle] = (self.now_ms + delay_ms, callback)
        return handle

    def clear_timeout(self, handle: int) -> None:
        self.cleared.append(handle)
        self._timers.pop(handle, None)

    @property
    def pending(self) -> int:
        return len(self._timers)

    def advance(self, ms: int) -> None:
        """Move the clock forward, firing due timers in due-time order."""
        target = self.now_ms + ms
        while True:
            due = [(t, h) for h, (t, _) in self._timers.items() if t <= target]
            if not due:
                break
            t, handle = min(due)
            _, callback = self._timers.pop(handle)
            self.now_ms = t
            callback()
        self.now_ms = target


@dataclass
class RecordingSink:
    """Sink capturing every snapshot it receives."""

    calls: List[List[AlarmRecord]] = field(default_factory=list)

    def __call__(self, alarms: List[AlarmRecord]) -> None:
        self.calls.append(list(alarms))

    @property
    def last(self) -> List[AlarmRecord]:
        return self.calls[-1]

    def names(self, index: int = -1) -> List[str]:
        return [a.name for a in self.calls[index]]


def make_alarm(
    name: str = "A",
    instance_id: str = "1",
    reason: int = NotificationReason.RAISED,
    minute: int = 0,
    text: str = "",
    **payload_fields,
) -> AlarmRecord:
    """
    Build an AlarmRecord with modification time ``T0 + minute``.
    """
    return AlarmRecord(
        name=name,
        instance_id=instance_id,
        notification_reason=reason,
        modification_time=T0 + timedelta(minutes=minute),
        payload=AlarmPayload(event_text=text or f"{name} text", **payload_fields),
    )


@pytest.fixture
def timers() -> ManualTimerService:
    return ManualTimerService()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture(name="make_alarm")
def make_alarm_fixture() -> Callable[..., AlarmRecord]:
    return make_alarm
