from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional

from alarmline.domain.models import AlarmRecord

# 127 is the "unspecified" language code
DEFAULT_LANGUAGE = 127
DEFAULT_DELAY_MS = 250
MIN_DELAY_MS = 250


def _discard(alarms: List[AlarmRecord]) -> None:
    return None


@dataclass(frozen=True)
class EngineConfig:
    """
    Construction options of an :class:`~alarmline.core.alarm.alarm_manager.AlarmManager`.

    Parameters
    ----------
    language
        Language code (LCID) of the alarm texts.
    filter
        Alarm filter expression forwarded to the subscription. Empty means all alarms.
    sort_order_descending
        Initial sort order of the modification time.
    callback
        Sink receiving each ordered snapshot.
    delay_in_milliseconds
        Minimum time between two throttled deliveries. Values below
        ``MIN_DELAY_MS`` are raised to it.
    max_alarms
        Optional cap on the number of alarms in a snapshot. None means no limit.

    Notes
    -----
    The config is frozen; the manager keeps the sort order as its own mutable
    field so ``set_sort_order`` does not need to touch this object.
    """

    language: int = DEFAULT_LANGUAGE
    filter: str = ""
    sort_order_descending: bool = False
    callback: Callable[[List[AlarmRecord]], None] = field(default=_discard, compare=False)
    delay_in_milliseconds: int = DEFAULT_DELAY_MS
    max_alarms: Optional[int] = None

    def __post_init__(self) -> None:
        if self.delay_in_milliseconds < MIN_DELAY_MS:
            object.__setattr__(self, "delay_in_milliseconds", MIN_DELAY_MS)
        if self.max_alarms is not None and self.max_alarms < 0:
            raise ValueError(f"max_alarms must be >= 0, got {self.max_alarms}")
