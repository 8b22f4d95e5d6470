from __future__ import annotations

import traceback
from dataclasses import dataclass
from typing import Callable

from PySide6.QtCore import QObject, QTimer, Signal


@dataclass
class QtTimeout:
    """Handle returned by :meth:`QtTimerService.set_timeout`."""
    callback: Callable[[], None]
    delay_ms: int
    cancelled: bool = False


class QtTimerService(QObject):
    """
    Timer service running callbacks on the Qt event loop.

    Use this when the manager lives in a Qt application. ``set_timeout`` may be
    called from any thread (e.g. the thread publishing alarm batches); the
    timer itself is started on the thread owning this object, so callbacks
    always run there.

    Parameters
    ----------
    parent
        Optional QObject owning the service.
    """

    _requested = Signal(object)

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._requested.connect(self._start_timer)

    def set_timeout(self, callback: Callable[[], None], delay_ms: int) -> QtTimeout:
        handle = QtTimeout(callback=callback, delay_ms=int(delay_ms))
        self._requested.emit(handle)
        return handle

    def clear_timeout(self, handle: QtTimeout) -> None:
        handle.cancelled = True

    def _start_timer(self, handle: QtTimeout) -> None:
        if handle.cancelled:
            return
        QTimer.singleShot(handle.delay_ms, self, lambda: self._fire(handle))

    def _fire(self, handle: QtTimeout) -> None:
        if handle.cancelled:
            return
        try:
            handle.callback()
        except Exception as e:
            print(f"[ALARMLINE][QT-TIMER] callback failed: {e!r}")
            traceback.print_exc()
