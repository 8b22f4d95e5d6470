"""
Periodic alarm update task.

The host runtime calls :meth:`AlarmUpdateTask.run_once` on a fixed cycle.
The task owns at most one `AlarmManager`:

- once the runtime reports it is running, the manager is created and started,
- on later cycles the current sort order is pushed to the manager when the
  operator changed it.

The task holds its manager as an attribute; hosts that want one feed per
process simply keep one task instance.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Optional

from alarmline.core.alarm.alarm_manager import AlarmManager
from alarmline.core.config.alarm_filter import DEFAULT_ALARMLINE_FILTER, DEFAULT_TASK_LANGUAGE
from alarmline.core.config.engine_config import DEFAULT_DELAY_MS, EngineConfig
from alarmline.domain.ports import AlarmSink, AlarmSource, TimerService

# Value of the runtime activation state when the runtime is fully running.
RUNTIME_RUNNING = 2


@dataclass
class AlarmUpdateTask:
    """
    Start and maintain one alarm manager from a periodic task.

    Parameters
    ----------
    source
        Alarm source handed to the manager.
    timers
        Timer service handed to the manager.
    sink
        Snapshot consumer.
    read_activation_state
        Returns the current runtime activation state.
    read_sort_order
        Returns True when the operator selected "newest first".
    language, filter, delay_in_milliseconds, max_alarms
        Engine options of the created manager.
    """

    source: AlarmSource
    timers: TimerService
    sink: AlarmSink
    read_activation_state: Callable[[], int]
    read_sort_order: Callable[[], bool]
    language: int = DEFAULT_TASK_LANGUAGE
    filter: str = DEFAULT_ALARMLINE_FILTER
    delay_in_milliseconds: int = DEFAULT_DELAY_MS
    max_alarms: Optional[int] = None

    _manager: Optional[AlarmManager] = field(default=None, init=False, repr=False)
    _sort_descending: Optional[bool] = field(default=None, init=False, repr=False)

    @property
    def manager(self) -> Optional[AlarmManager]:
        return self._manager

    def run_once(self) -> None:
        """
        Execute one task cycle.
        """
        if self.read_activation_state() != RUNTIME_RUNNING:
            return

        sort_descending = bool(self.read_sort_order())

        if self._manager is None:
            manager = AlarmManager(
                EngineConfig(
                    language=self.language,
                    filter=self.filter,
                    sort_order_descending=sort_descending,
                    callback=self.sink,
                    delay_in_milliseconds=self.delay_in_milliseconds,
                    max_alarms=self.max_alarms,
                ),
                source=self.source,
                timers=self.timers,
            )
            manager.start()
            self._manager = manager
            self._sort_descending = sort_descending
            return

        if sort_descending != self._sort_descending:
            self._manager.set_sort_order(sort_descending)
            self._sort_descending = sort_descending

    def shutdown(self) -> None:
        """
        Stop and release the owned manager, if any.
        """
        if self._manager is not None:
            self._manager.stop()
            self._manager = None
            self._sort_descending = None
