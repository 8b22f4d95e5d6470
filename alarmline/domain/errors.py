from __future__ import annotations


class AlarmlineError(RuntimeError):
    """Base class for errors raised by the alarm engine."""


class AlreadyStarted(AlarmlineError):
    """
    Raised by :meth:`AlarmManager.start` while a subscription is active.

    Callers must ``stop()`` the manager before starting it again.
    """

    def __init__(self, message: str = "Subscription already started") -> None:
        super().__init__(message)
