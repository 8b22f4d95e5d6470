from __future__ import annotations

import threading
import traceback
from typing import Callable


class ThreadingTimerService:
    """
    Timer service backed by :class:`threading.Timer`.

    Each ``set_timeout`` starts one daemon timer thread. Exceptions raised by
    a callback are caught and logged so a failing sink cannot kill the timer
    thread silently.

    Notes
    -----
    ``clear_timeout`` cannot stop a callback that already started running;
    callers that need that guarantee must check their own state inside the
    callback (the throttle does this with its generation counter).
    """

    def set_timeout(self, callback: Callable[[], None], delay_ms: int) -> threading.Timer:
        """
        Run ``callback`` once after ``delay_ms`` milliseconds.

        Parameters
        ----------
        callback
            Function to call on the timer thread.
        delay_ms
            Delay in milliseconds.

        Returns
        -------
        threading.Timer
            Handle accepted by :meth:`clear_timeout`.
        """
        timer = threading.Timer(delay_ms / 1000.0, self._run, args=(callback,))
        timer.name = "alarmline-timer"
        timer.daemon = True
        timer.start()
        return timer

    def clear_timeout(self, handle: threading.Timer) -> None:
        handle.cancel()

    @staticmethod
    def _run(callback: Callable[[], None]) -> None:
        try:
            callback()
        except Exception as e:
            print(f"[ALARMLINE][TIMER] callback failed: {e!r}")
            traceback.print_exc()
