"""
Unit tests for the counter and fan-out sinks.
"""

from __future__ import annotations

from alarmline.sinks.counter import AlarmCounterSink
from alarmline.sinks.fan_out import FanOutSink


def test_counter_tracks_latest_snapshot(make_alarm) -> None:
    counter = AlarmCounterSink()

    counter([
        make_alarm("A", "1", alarm_class_name="Alarm"),
        make_alarm("B", "1", alarm_class_name="Warning"),
        make_alarm("C", "1", alarm_class_name="Warning"),
    ])
    assert counter.total == 3
    assert counter.by_class == {"Alarm": 1, "Warning": 2}

    counter([])
    assert counter.total == 0
    assert counter.by_class == {}
    assert counter.updates == 2


def test_fan_out_calls_every_sink_with_its_own_copy(make_alarm, sink) -> None:
    def reorder(alarms):
        alarms.reverse()

    fan = FanOutSink([reorder])
    fan.add(sink)

    fan([make_alarm("A", "1"), make_alarm("B", "1")])

    assert sink.names() == ["A", "B"]


def test_fan_out_skips_failing_sink(make_alarm, sink, capsys) -> None:
    def broken(alarms):
        raise RuntimeError("display offline")

    fan = FanOutSink([broken, sink])

    fan([make_alarm("A", "1")])

    assert sink.names() == ["A"]
    assert "display offline" in capsys.readouterr().out
