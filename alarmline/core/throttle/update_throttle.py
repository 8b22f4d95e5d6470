"""
Leading-edge throttle with a trailing-update guarantee.

`UpdateThrottle` rate-limits a ``deliver()`` action:

- the first trigger after a quiet period delivers immediately (leading edge),
- triggers arriving while the window is open are collapsed into a single
  pending flag,
- when the window closes and something is pending, one more delivery happens
  (trailing edge) and a new window opens.

``deliver()`` reads live state when it runs, so the trailing delivery always
carries the latest data, never the data of the trigger that set the flag.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from alarmline.domain.ports import TimerService


class ThrottlePhase(str, Enum):
    """
    Phase of the throttle state machine.

    Members
    -------
    IDLE : str
        No timer running; the next trigger delivers immediately.
    COOLING : str
        Timer running; triggers only mark a pending change.
    """

    IDLE = "IDLE"
    COOLING = "COOLING"


@dataclass
class ThrottleState:
    """
    Mutable state of one throttle.

    Parameters
    ----------
    timer_active
        True while a window timer is running.
    pending
        True if a trigger arrived during the current window.
    generation
        Bumped on every reset; timer callbacks from an older generation are dropped.
    timer_handle
        Handle returned by the timer service for the running timer.
    """

    timer_active: bool = False
    pending: bool = False
    generation: int = 0
    timer_handle: Any = None


class UpdateThrottle:
    """
    Throttle a delivery action to at most one call per interval.

    Parameters
    ----------
    deliver
        Action producing and pushing a snapshot. Called synchronously.
    timers
        Timer service used to time the cooling window.
    interval_ms
        Window length in milliseconds.
    lock
        Lock serializing triggers and timer callbacks. Pass the lock guarding
        the data ``deliver`` reads so both are protected by the same boundary.
    """

    def __init__(
        self,
        deliver: Callable[[], None],
        timers: TimerService,
        interval_ms: int,
        lock: Optional[threading.RLock] = None,
    ):
        self._deliver = deliver
        self._timers = timers
        self._interval_ms = interval_ms
        self._lock = lock or threading.RLock()
        self._state = ThrottleState()

    @property
    def interval_ms(self) -> int:
        return self._interval_ms

    @property
    def phase(self) -> ThrottlePhase:
        with self._lock:
            return ThrottlePhase.COOLING if self._state.timer_active else ThrottlePhase.IDLE

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._state.pending

    def trigger(self) -> None:
        """
        Signal a change.

        Delivers immediately when idle, otherwise marks the change as pending
        so it is delivered when the current window closes.
        """
        with self._lock:
            st = self._state
            if st.timer_active:
                st.pending = True
                return

            self._deliver()

            st.timer_active = True
            generation = st.generation
            st.timer_handle = self._timers.set_timeout(
                lambda: self._on_timer(generation),
                self._interval_ms,
            )

    def reset(self) -> None:
        """
        Cancel the running window and forget any pending change.

        After a reset no trailing delivery from the previous window can fire,
        even if its timer callback is already in flight.
        """
        with self._lock:
            st = self._state
            if st.timer_handle is not None:
                self._timers.clear_timeout(st.timer_handle)
            st.generation += 1
            st.timer_active = False
            st.pending = False
            st.timer_handle = None

    def _on_timer(self, generation: int) -> None:
        """
        Close the cooling window and flush a pending change.

        Parameters
        ----------
        generation
            Generation the timer was started in.
        """
        with self._lock:
            st = self._state
            if generation != st.generation:
                return

            st.timer_active = False
            st.timer_handle = None

            if st.pending:
                st.pending = False
                self.trigger()
