from __future__ import annotations

from typing import Sequence

# en-US
DEFAULT_TASK_LANGUAGE = 1033

SYSTEM_ALARM_CLASSES = (
    "SystemNotification",
    "SystemAlarm",
    "SystemAlarmWithoutClearEvent",
    "SystemInformation",
    "SystemWarning",
    "SystemWarningWithoutClearEvent",
)


def build_class_exclusion_filter(alarm_classes: Sequence[str]) -> str:
    """
    Build a filter expression excluding the given alarm classes.

    Parameters
    ----------
    alarm_classes
        Alarm class names to exclude.

    Returns
    -------
    str
        e.g. ``"AlarmClassName <> 'A' AND AlarmClassName <> 'B'"``; empty for no classes.
    """
    return " AND ".join(f"AlarmClassName <> '{c}'" for c in alarm_classes)


DEFAULT_ALARMLINE_FILTER = build_class_exclusion_filter(SYSTEM_ALARM_CLASSES)
