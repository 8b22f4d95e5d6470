"""
Collaborator contracts consumed by the alarm engine.

The engine never talks to a concrete alarm runtime, timer or display. It
depends on the protocols below so hosts (and tests) can plug in their own
implementations:

- :class:`AlarmSource` creates subscriptions delivering alarm batches
- :class:`TimerService` schedules one-shot callbacks
- :data:`AlarmSink` receives ordered snapshots
"""

from __future__ import annotations

from typing import Any, Callable, List, Optional, Protocol, Sequence

from alarmline.domain.models import AlarmRecord

AlarmHandler = Callable[[Optional[Exception], Optional[str], Sequence[AlarmRecord]], None]
AlarmSink = Callable[[List[AlarmRecord]], None]


class AlarmSubscription(Protocol):
    """
    One live alarm subscription.

    Attributes
    ----------
    language
        Language code (LCID) the alarm texts are requested in.
    filter
        Source-side filter expression. Empty means no filtering.
    on_alarm
        Handler called as ``on_alarm(err, system_id, alarms)`` for each batch.
    """

    language: int
    filter: str
    on_alarm: Optional[AlarmHandler]

    def start(self) -> None:
        """Begin delivering batches to ``on_alarm``."""
        ...

    def stop(self) -> None:
        """Stop delivering batches."""
        ...


class AlarmSource(Protocol):
    """Factory for alarm subscriptions."""

    def create_subscription(self) -> AlarmSubscription:
        ...


class TimerService(Protocol):
    """
    One-shot timer contract.

    Methods
    -------
    set_timeout(callback, delay_ms)
        Run ``callback`` once after ``delay_ms`` milliseconds; returns a handle.
    clear_timeout(handle)
        Cancel a timer that has not fired yet. Unknown or fired handles are ignored.
    """

    def set_timeout(self, callback: Callable[[], None], delay_ms: int) -> Any:
        ...

    def clear_timeout(self, handle: Any) -> None:
        ...
