from __future__ import annotations

import threading
import traceback
from typing import Callable


class PeriodicTaskThread:
    """
    Worker thread running a task on a fixed cycle.

    Concurrency Model
    -----------------
    - The thread waits on the stop event between cycles, so ``stop()``
      takes effect without waiting for a full period.
    - Exceptions raised by the task are caught and logged to avoid killing the thread.

    Parameters
    ----------
    task
        Callable executed once per cycle.
    period_s
        Cycle time in seconds.
    stop_event
        Thread stop signal. When set, the worker exits its loop.
    name
        Thread name.
    """

    def __init__(
        self,
        task: Callable[[], None],
        period_s: float,
        stop_event: threading.Event,
        name: str = "alarmline-task",
    ):
        if period_s <= 0:
            raise ValueError(f"period_s must be > 0, got {period_s}")
        self._task = task
        self._period_s = period_s
        self._stop = stop_event
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)

    def start(self) -> None:
        """
        Start the worker thread if it is not already running.
        """
        if not self._thread.is_alive():
            self._thread.start()

    def stop(self) -> None:
        """
        Signal the worker thread to stop.
        """
        self._stop.set()

    def join(self, timeout: float | None = 2.0) -> None:
        self._thread.join(timeout=timeout)

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                self._task()
            except Exception as e:
                print(f"[ALARMLINE][TASK] task cycle failed: {e!r}")
                traceback.print_exc()
            self._stop.wait(self._period_s)
