"""
Domain models and enums.

This module defines the core domain-level types used across the system:
- Notification reasons carried by incoming alarm events
- The identity key of an alarm occurrence
- The opaque display payload forwarded to sinks
- AlarmRecord, which represents one active alarm occurrence

Records are immutable (frozen) dataclasses so a snapshot handed to a sink
stays stable even while the store keeps mutating.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from typing import Any, Mapping, Optional, Tuple, Union


class NotificationReason(IntEnum):
    """
    Reason code attached to an incoming alarm notification.

    Members
    -------
    RAISED : int
        The alarm occurrence became active.
    MODIFIED : int
        An active occurrence changed (state, text, colors...).
    CLEARED : int
        The occurrence went away and must leave the active set.

    Notes
    -----
    Sources may emit other codes (e.g. acknowledgement-only notifications).
    Those are kept as plain ints and ignored by the store.
    """

    RAISED = 1
    MODIFIED = 2
    CLEARED = 3

    @classmethod
    def parse(cls, code: int) -> Union["NotificationReason", int]:
        """Return the enum member for known codes, the raw int otherwise."""
        try:
            return cls(code)
        except ValueError:
            return int(code)


@dataclass(frozen=True)
class AlarmKey:
    """
    Identity of one alarm occurrence.

    Parameters
    ----------
    name
        Configured alarm name.
    instance_id
        Instance of that alarm (the same alarm can be raised several times).
    """

    name: str
    instance_id: str

    def __str__(self) -> str:
        return f"{self.name}_{self.instance_id}"


@dataclass(frozen=True)
class AlarmPayload:
    """
    Display fields of an alarm, passed through untouched to sinks.

    The engine never reads these fields. Only sinks know which of them a
    particular view needs.

    Parameters
    ----------
    event_text
        Main alarm text.
    alarm_texts
        Additional alarm text slots (status, address...).
    raise_time
        Time the occurrence was first raised.
    state
        Source-specific alarm state code.
    back_color, text_color
        Display colors as packed RGB ints.
    flashing
        Whether the view should flash the alarm.
    alarm_class_name
        Alarm class (used by filters and counters).
    extra
        Any other raw field the source delivered.
    """

    event_text: str = ""
    alarm_texts: Tuple[str, ...] = ()
    raise_time: Optional[datetime] = None
    state: Optional[int] = None
    back_color: Optional[int] = None
    text_color: Optional[int] = None
    flashing: bool = False
    alarm_class_name: str = ""
    extra: Mapping[str, Any] = field(default_factory=dict, hash=False, compare=True)

    def alarm_text(self, index: int) -> str:
        """Return alarm text slot ``index`` or an empty string when absent."""
        if 0 <= index < len(self.alarm_texts):
            return self.alarm_texts[index]
        return ""


@dataclass(frozen=True)
class AlarmRecord:
    """
    One alarm notification as delivered by the source.

    Parameters
    ----------
    name
        Configured alarm name.
    instance_id
        Alarm instance identifier.
    notification_reason
        Why this notification was sent (see :class:`NotificationReason`).
    modification_time
        Time of the last modification; snapshots are sorted by it.
    payload
        Opaque display fields.
    """

    name: str
    instance_id: str
    notification_reason: Union[NotificationReason, int]
    modification_time: datetime
    payload: AlarmPayload = field(default_factory=AlarmPayload)

    @property
    def key(self) -> AlarmKey:
        return AlarmKey(name=self.name, instance_id=self.instance_id)
