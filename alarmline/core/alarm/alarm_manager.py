"""
Alarm aggregation engine.

This module wires the two core components into one subscription lifecycle:

- `AlarmStore` applies every incoming notification to the active set
- `UpdateThrottle` limits how often the ordered snapshot is pushed to the sink

The manager does not know where alarms come from or where snapshots go. Both
are injected (`AlarmSource`, `EngineConfig.callback`), as is the timer service
that times the throttle window.
"""

from __future__ import annotations

import threading
from dataclasses import replace
from typing import List, Optional, Sequence

from alarmline.core.config.engine_config import EngineConfig
from alarmline.core.state.alarm_store import AlarmStore
from alarmline.core.throttle.update_throttle import UpdateThrottle
from alarmline.domain.errors import AlreadyStarted
from alarmline.domain.models import AlarmRecord
from alarmline.domain.ports import AlarmSource, AlarmSubscription, TimerService


class AlarmManager:
    """
    Keep a throttled, sorted view of the active alarms of one alarm feed.

    Lifecycle
    ---------
    - ``start()`` opens a subscription and delivers an empty snapshot.
    - Each notification batch is applied to the store; if it changed
      anything, the throttle is triggered.
    - ``set_sort_order()`` re-delivers right away with the new order.
    - ``stop()`` closes the subscription and discards all state.

    Concurrency Model
    -----------------
    Subscription batches and timer callbacks may arrive on different threads.
    All access to the store and the throttle goes through one re-entrant lock,
    and deliveries run while holding it, so the sink never sees a
    half-applied batch.

    Parameters
    ----------
    config
        Engine options (language, filter, sort order, sink, delay).
    source
        Factory of alarm subscriptions.
    timers
        Timer service used by the throttle.
    """

    def __init__(self, config: EngineConfig, source: AlarmSource, timers: TimerService):
        self._config = config
        self._source = source
        self._lock = threading.RLock()
        self._store = AlarmStore()
        self._throttle = UpdateThrottle(
            deliver=self._send_update,
            timers=timers,
            interval_ms=config.delay_in_milliseconds,
            lock=self._lock,
        )
        self._subscription: Optional[AlarmSubscription] = None

    @property
    def config(self) -> EngineConfig:
        return self._config

    @property
    def is_started(self) -> bool:
        with self._lock:
            return self._subscription is not None

    def start(self) -> None:
        """
        Start the alarm subscription.

        Raises
        ------
        AlreadyStarted
            If a subscription is already active.

        Errors raised by the sink or by the subscription while starting
        propagate, and the manager is left stopped.
        """
        with self._lock:
            if self._subscription is not None:
                raise AlreadyStarted()

            subscription = self._source.create_subscription()
            subscription.language = self._config.language
            subscription.filter = self._config.filter
            subscription.on_alarm = self._on_alarm
            self._subscription = subscription

            try:
                self._store.clear()
                # Clear the consumer view before the first batch arrives.
                self._send_update()

                subscription.start()
            except Exception:
                # Roll back to stopped.
                self._subscription = None
                subscription.on_alarm = None
                raise

    def set_sort_order(self, sort_order_descending: bool) -> None:
        """
        Change the sort order and deliver the re-sorted snapshot immediately.

        Parameters
        ----------
        sort_order_descending
            True for newest modification first, False for oldest first.
        """
        with self._lock:
            self._config = replace(self._config, sort_order_descending=sort_order_descending)
            self._send_update()

    def stop(self) -> None:
        """
        Stop the alarm subscription.

        Does nothing when not started. Any pending trailing delivery is cancelled.
        """
        with self._lock:
            if self._subscription is None:
                return

            subscription = self._subscription
            self._subscription = None
            subscription.on_alarm = None
            subscription.stop()

            self._store.clear()
            self._throttle.reset()

    def snapshot(self) -> List[AlarmRecord]:
        """
        Return the current ordered snapshot without delivering it.

        Returns
        -------
        list of AlarmRecord
            Active alarms in configured order, trimmed to ``max_alarms``.
        """
        with self._lock:
            return self._store.snapshot(self._config.sort_order_descending, self._config.max_alarms)

    def _on_alarm(
        self,
        err: Optional[Exception],
        system_id: Optional[str],
        alarms: Sequence[AlarmRecord],
    ) -> None:
        """
        Subscription handler: apply one batch of notifications in order.

        Parameters
        ----------
        err
            Error reported by the source for this batch, if any. The batch is
            still applied.
        system_id
            Identifier of the system that produced the batch.
        alarms
            Notifications in delivery order.
        """
        if err is not None:
            print(f"[ALARMLINE][MANAGER] subscription reported error from {system_id}: {err!r}")

        with self._lock:
            # Batch delivered after stop() raced with it.
            if self._subscription is None:
                return

            changed = False
            for alarm in alarms:
                if self._store.apply(alarm.notification_reason, alarm):
                    changed = True

            if changed:
                self._throttle.trigger()

    def _send_update(self) -> None:
        """
        Push the current snapshot to the configured callback.
        """
        self._config.callback(self.snapshot())
