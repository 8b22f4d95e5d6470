from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

from alarmline.domain.models import AlarmKey, AlarmRecord, NotificationReason


@dataclass
class AlarmStore:
    """
    In-memory set of currently active alarms.

    The store keeps exactly one record per :class:`AlarmKey`: every alarm that
    has been raised or modified and not cleared since.

    Notes
    -----
    - This store is intentionally simple and not thread-safe.
      Synchronization is handled by the enclosing `AlarmManager`.
    - RAISED/MODIFIED replace the whole record (last write wins).
    - Unknown notification reasons are ignored, they are not errors.
    """

    _alarms: Dict[AlarmKey, AlarmRecord] = field(default_factory=dict, repr=False)

    def apply(self, reason: Union[NotificationReason, int], alarm: AlarmRecord) -> bool:
        """
        Apply one notification to the active set.

        Parameters
        ----------
        reason
            Notification reason code (RAISED=1, MODIFIED=2, CLEARED=3).
        alarm
            Alarm event carrying identity and payload.

        Returns
        -------
        bool
            True if the active set changed.
        """
        key = alarm.key

        if reason in (NotificationReason.RAISED, NotificationReason.MODIFIED):
            if self._alarms.get(key) == alarm:
                return False
            self._alarms[key] = alarm
            return True

        if reason == NotificationReason.CLEARED:
            return self._alarms.pop(key, None) is not None

        return False

    def clear(self) -> None:
        """
        Remove all active alarms.

        """
        self._alarms.clear()

    def snapshot(self, sort_descending: bool = False, max_count: Optional[int] = None) -> List[AlarmRecord]:
        """
        Return an ordered copy of the active alarms.

        Parameters
        ----------
        sort_descending
            Sort by modification time newest first when True, oldest first otherwise.
        max_count
            Keep at most this many alarms. None means no limit.

        Returns
        -------
        list of AlarmRecord
            New list; later store mutations do not affect it.

        Raises
        ------
        ValueError
            If ``max_count`` is negative.
        """
        if max_count is not None and max_count < 0:
            raise ValueError(f"max_count must be >= 0, got {max_count}")

        # sorted() is stable: equal timestamps keep insertion order
        alarms = sorted(
            self._alarms.values(),
            key=lambda a: a.modification_time,
            reverse=sort_descending,
        )
        if max_count is not None:
            alarms = alarms[:max_count]
        return alarms

    def get(self, key: AlarmKey) -> Optional[AlarmRecord]:
        return self._alarms.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self._alarms

    def __len__(self) -> int:
        return len(self._alarms)
