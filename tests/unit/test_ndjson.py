"""
Unit tests for alarmline.transport.ndjson.

Validates:
- decoding of raw alarm events (required fields, payload mapping, extras)
- unknown reason codes kept as plain ints
- batch decoding of arrays, single objects and concatenated objects
- timestamps normalised to aware UTC whatever their raw format
- error behavior for malformed input
"""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import pytest

from alarmline.core.state.alarm_store import AlarmStore
from alarmline.domain.models import NotificationReason
from alarmline.transport.ndjson import decode_alarm_event, decode_batch, iter_json_objects


def _raw(**overrides) -> dict:
    obj = {
        "Name": "Overtemp",
        "InstanceID": 3,
        "NotificationReason": 1,
        "ModificationTime": "2026-01-01T10:00:05",
        "RaiseTime": "2026-01-01T10:00:00",
        "EventText": "Tank 3 too hot",
        "AlarmText": ["Raised", "DB3.DBX0.0"],
        "State": 1,
        "BackColor": 4294901760,
        "TextColor": 4278190080,
        "Flashing": True,
        "AlarmClassName": "Alarm",
        "Priority": 10,
    }
    obj.update(overrides)
    return obj


def test_decode_alarm_event_maps_fields() -> None:
    rec = decode_alarm_event(_raw())

    assert rec.name == "Overtemp"
    assert rec.instance_id == "3"
    assert rec.notification_reason is NotificationReason.RAISED
    assert rec.modification_time == datetime(2026, 1, 1, 10, 0, 5, tzinfo=timezone.utc)

    p = rec.payload
    assert p.raise_time == datetime(2026, 1, 1, 10, 0, 0, tzinfo=timezone.utc)
    assert p.event_text == "Tank 3 too hot"
    assert p.alarm_texts == ("Raised", "DB3.DBX0.0")
    assert p.alarm_text(1) == "DB3.DBX0.0"
    assert p.alarm_text(5) == ""
    assert p.state == 1
    assert p.back_color == 4294901760
    assert p.flashing is True
    assert p.alarm_class_name == "Alarm"
    assert p.extra == {"Priority": 10}


def test_decode_alarm_event_minimal_fields() -> None:
    rec = decode_alarm_event(
        {"Name": "A", "InstanceID": "1", "NotificationReason": 3, "ModificationTime": 0}
    )

    assert rec.notification_reason is NotificationReason.CLEARED
    assert rec.payload.raise_time is None
    assert rec.payload.alarm_texts == ()
    assert rec.payload.back_color is None


def test_unknown_reason_kept_as_int() -> None:
    rec = decode_alarm_event(_raw(NotificationReason=5))

    assert rec.notification_reason == 5
    assert not isinstance(rec.notification_reason, NotificationReason)


def test_missing_required_field_raises_key_error() -> None:
    raw = _raw()
    del raw["InstanceID"]
    with pytest.raises(KeyError):
        decode_alarm_event(raw)


def test_bad_timestamp_raises_value_error() -> None:
    with pytest.raises(ValueError):
        decode_alarm_event(_raw(ModificationTime="yesterday"))


def test_iter_json_objects_handles_concatenation() -> None:
    assert list(iter_json_objects('{"a": 1}{"b": 2}  [1]')) == [{"a": 1}, {"b": 2}, [1]]
    assert list(iter_json_objects("   ")) == []


def test_decode_batch_array_keeps_order() -> None:
    line = json.dumps([_raw(NotificationReason=1), _raw(NotificationReason=2, EventText="changed")])

    batch = decode_batch(line)

    assert [r.notification_reason for r in batch] == [NotificationReason.RAISED, NotificationReason.MODIFIED]
    assert batch[1].payload.event_text == "changed"


def test_decode_batch_single_and_concatenated_objects() -> None:
    line = json.dumps(_raw(Name="A")) + json.dumps(_raw(Name="B"))

    assert [r.name for r in decode_batch(line)] == ["A", "B"]
    assert decode_batch("[]") == []
    assert decode_batch("") == []


def test_decode_batch_rejects_non_objects() -> None:
    with pytest.raises(ValueError):
        decode_batch("[1, 2]")


def test_timestamps_are_normalised_to_utc() -> None:
    expected = datetime(2026, 1, 1, 10, 0, 0, tzinfo=timezone.utc)
    plus_two = timezone(timedelta(hours=2))

    for raw in (
        int(expected.timestamp()),
        float(expected.timestamp()),
        "2026-01-01T10:00:00",
        "2026-01-01T12:00:00+02:00",
        datetime(2026, 1, 1, 10, 0, 0),
        datetime(2026, 1, 1, 12, 0, 0, tzinfo=plus_two),
    ):
        rec = decode_alarm_event(_raw(ModificationTime=raw))
        assert rec.modification_time == expected
        assert rec.modification_time.tzinfo is timezone.utc


def test_mixed_timestamp_formats_sort_in_one_store() -> None:
    """
    Epoch seconds, naive ISO and offset ISO in one feed stay sortable.
    """
    base = int(datetime(2026, 1, 1, 10, 0, 0, tzinfo=timezone.utc).timestamp())
    line = json.dumps([
        _raw(Name="epoch", ModificationTime=base + 60),
        _raw(Name="offset", ModificationTime="2026-01-01T10:00:00+00:00"),
        _raw(Name="naive", ModificationTime="2026-01-01T10:00:30"),
    ])

    store = AlarmStore()
    for rec in decode_batch(line):
        store.apply(rec.notification_reason, rec)

    assert [a.name for a in store.snapshot()] == ["offset", "naive", "epoch"]
    assert [a.name for a in store.snapshot(sort_descending=True)] == ["epoch", "naive", "offset"]
