from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from alarmline.core.config.engine_config import DEFAULT_LANGUAGE
from alarmline.domain.models import AlarmRecord
from alarmline.domain.ports import AlarmHandler


@dataclass
class InMemorySubscription:
    """
    Subscription fed by in-process producers.

    Batches published while the subscription is not started are dropped,
    like a real alarm runtime that only reports while subscribed.

    Attributes
    ----------
    language
        Requested language code.
    filter
        Requested filter expression (recorded, not evaluated).
    on_alarm
        Handler called for each published batch.
    system_id
        System identifier passed to the handler.
    """

    language: int = DEFAULT_LANGUAGE
    filter: str = ""
    on_alarm: Optional[AlarmHandler] = None
    system_id: str = "local"
    started: bool = False
    stopped: bool = False

    def start(self) -> None:
        self.started = True

    def stop(self) -> None:
        self.started = False
        self.stopped = True

    def publish(self, alarms: Sequence[AlarmRecord], err: Optional[Exception] = None) -> bool:
        """
        Deliver one batch to the handler.

        Parameters
        ----------
        alarms
            Notifications in delivery order.
        err
            Optional error reported with the batch.

        Returns
        -------
        bool
            True if the batch was handed to a handler.
        """
        handler = self.on_alarm
        if not self.started or handler is None:
            return False
        handler(err, self.system_id, list(alarms))
        return True


@dataclass
class InMemoryAlarmSource:
    """
    Alarm source creating :class:`InMemorySubscription` objects.

    ``publish`` fans a batch out to every started subscription. Publishing is
    serialized so producers on several threads never interleave two batches.
    """

    subscriptions: List[InMemorySubscription] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)
    _publish_lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def create_subscription(self) -> InMemorySubscription:
        sub = InMemorySubscription()
        with self._lock:
            # Stopped subscriptions never receive again.
            self.subscriptions = [s for s in self.subscriptions if not s.stopped]
            self.subscriptions.append(sub)
        return sub

    @property
    def latest(self) -> Optional[InMemorySubscription]:
        """Most recently created subscription, if any."""
        with self._lock:
            return self.subscriptions[-1] if self.subscriptions else None

    def publish(self, alarms: Sequence[AlarmRecord], err: Optional[Exception] = None) -> int:
        """
        Publish a batch to all started subscriptions.

        Returns
        -------
        int
            Number of subscriptions that received the batch.
        """
        with self._lock:
            subs = list(self.subscriptions)
        # Handlers run outside `_lock`: they take the manager lock, and the
        # manager calls create_subscription() while holding it.
        with self._publish_lock:
            return sum(1 for s in subs if s.publish(alarms, err))
