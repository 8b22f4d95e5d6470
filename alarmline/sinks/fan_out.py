from __future__ import annotations

from typing import List, Sequence

from alarmline.domain.models import AlarmRecord
from alarmline.domain.ports import AlarmSink


class FanOutSink:
    """
    Sink forwarding every snapshot to several sinks, in order.

    Each sink receives its own copy of the list so one sink cannot reorder
    what the next one sees. A failing sink is logged and skipped.
    """

    def __init__(self, sinks: Sequence[AlarmSink]):
        self._sinks = list(sinks)

    def add(self, sink: AlarmSink) -> None:
        self._sinks.append(sink)

    def __call__(self, alarms: List[AlarmRecord]) -> None:
        for sink in self._sinks:
            try:
                sink(list(alarms))
            except Exception as e:
                print(f"[ALARMLINE][SINK] {sink!r} failed: {e!r}")
