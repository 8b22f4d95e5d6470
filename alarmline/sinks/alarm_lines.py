"""
Alarm line sink.

An "alarm line" is a fixed block of tags showing one alarm in an HMI
header. The sink writes the first ``line_count`` alarms of each snapshot into
lines ``Alarm1`` .. ``AlarmN``; lines without an alarm are blanked so stale
alarms never stay on screen.

All tags of one snapshot are written in a single ``TagWriter.write`` call.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Protocol

from alarmline.domain.models import AlarmRecord

DEFAULT_LINE_COUNT = 3

TAG_SUFFIXES = (
    "DateTimeRaised",
    "AlarmText",
    "MachineUnitAssyPart",
    "Status",
    "Address",
    "BackColor",
    "TextColor",
    "Flashing",
)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def rgb(r: int, g: int, b: int) -> int:
    """
    Pack an opaque color as an ARGB int (alpha 0xFF).

    Parameters
    ----------
    r, g, b
        Color components in 0..255.
    """
    for c in (r, g, b):
        if not 0 <= c <= 255:
            raise ValueError(f"color component out of range: {c}")
    return (0xFF << 24) | (r << 16) | (g << 8) | b


WHITE = rgb(255, 255, 255)


def alarm_line_tag_names(line_count: int = DEFAULT_LINE_COUNT) -> List[str]:
    """
    Return the tag names written for ``line_count`` alarm lines.

    Example: ``Alarm1_DateTimeRaised``, ``Alarm1_AlarmText``, ...
    """
    return [f"Alarm{i}_{suffix}" for i in range(1, line_count + 1) for suffix in TAG_SUFFIXES]


class TagWriter(Protocol):
    """Writes a set of tag values in one operation."""

    def write(self, values: Dict[str, Any]) -> None:
        ...


@dataclass
class InMemoryTagWriter:
    """
    Tag writer keeping the latest value of every tag.

    Attributes
    ----------
    values
        Latest value per tag name.
    writes
        Number of ``write`` calls so far.
    """

    values: Dict[str, Any] = field(default_factory=dict)
    writes: int = 0

    def write(self, values: Dict[str, Any]) -> None:
        self.values.update(values)
        self.writes += 1


class AlarmLineSink:
    """
    Sink writing the top alarms of a snapshot into alarm line tags.

    Parameters
    ----------
    writer
        Tag writer receiving the values.
    line_count
        Number of configured alarm lines.
    """

    def __init__(self, writer: TagWriter, line_count: int = DEFAULT_LINE_COUNT):
        if line_count < 1:
            raise ValueError(f"line_count must be >= 1, got {line_count}")
        self._writer = writer
        self._line_count = line_count

    @property
    def line_count(self) -> int:
        return self._line_count

    def __call__(self, alarms: List[AlarmRecord]) -> None:
        values: Dict[str, Any] = {}
        for index in range(1, self._line_count + 1):
            prefix = f"Alarm{index}"
            if index <= len(alarms):
                values.update(self._line_values(prefix, alarms[index - 1]))
            else:
                values.update(self._blank_values(prefix))
        self._writer.write(values)

    @staticmethod
    def _line_values(prefix: str, alarm: AlarmRecord) -> Dict[str, Any]:
        p = alarm.payload
        return {
            f"{prefix}_DateTimeRaised": p.raise_time or EPOCH,
            f"{prefix}_AlarmText": p.event_text,
            f"{prefix}_MachineUnitAssyPart": p.event_text,
            f"{prefix}_Status": p.alarm_text(0),
            f"{prefix}_Address": p.alarm_text(1),
            f"{prefix}_BackColor": WHITE if p.back_color is None else p.back_color,
            f"{prefix}_TextColor": WHITE if p.text_color is None else p.text_color,
            f"{prefix}_Flashing": p.flashing,
        }

    @staticmethod
    def _blank_values(prefix: str) -> Dict[str, Any]:
        return {
            f"{prefix}_DateTimeRaised": EPOCH,
            f"{prefix}_AlarmText": "",
            f"{prefix}_MachineUnitAssyPart": "",
            f"{prefix}_Status": "",
            f"{prefix}_Address": "",
            f"{prefix}_BackColor": WHITE,
            f"{prefix}_TextColor": WHITE,
            f"{prefix}_Flashing": False,
        }
