from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Tuple, Union

from alarmline.domain.models import AlarmPayload, AlarmRecord, NotificationReason

# Raw field names mapped onto AlarmPayload; everything else goes to `extra`.
_KNOWN_FIELDS = {
    "Name",
    "InstanceID",
    "NotificationReason",
    "ModificationTime",
    "EventText",
    "AlarmText",
    "RaiseTime",
    "State",
    "BackColor",
    "TextColor",
    "Flashing",
    "AlarmClassName",
}


def _to_dt(value: Any) -> datetime:
    """
    Convert a raw timestamp into an aware UTC datetime.

    Parameters
    ----------
    value
        ISO-8601 string, datetime, or POSIX timestamp in seconds. Naive
        strings and datetimes are taken as UTC.

    Returns
    -------
    datetime
        Timezone-aware datetime in UTC.

    Raises
    ------
    ValueError
        If the value cannot be interpreted as a timestamp.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    elif isinstance(value, str):
        dt = datetime.fromisoformat(value)
    else:
        raise ValueError(f"Unsupported timestamp value: {value!r}")

    # Records from one feed must stay comparable by modification time.
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _alarm_texts(value: Any) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(str(v) for v in value)


def _optional_int(value: Any) -> Union[int, None]:
    return None if value is None else int(value)


def decode_alarm_event(obj: Dict[str, Any]) -> AlarmRecord:
    """
    Decode one raw alarm event dictionary into an :class:`AlarmRecord`.

    Required fields
    ---------------
    ``Name``, ``InstanceID``, ``NotificationReason``, ``ModificationTime``.

    Parameters
    ----------
    obj
        Raw event as delivered by the alarm source (JSON-decoded).

    Returns
    -------
    AlarmRecord
        Decoded record. Unknown reason codes are kept as plain ints.

    Raises
    ------
    KeyError
        If a required field is missing.
    ValueError
        If a field conversion fails.
    """
    payload = AlarmPayload(
        event_text=str(obj.get("EventText", "")),
        alarm_texts=_alarm_texts(obj.get("AlarmText")),
        raise_time=_to_dt(obj["RaiseTime"]) if obj.get("RaiseTime") is not None else None,
        state=_optional_int(obj.get("State")),
        back_color=_optional_int(obj.get("BackColor")),
        text_color=_optional_int(obj.get("TextColor")),
        flashing=bool(obj.get("Flashing", False)),
        alarm_class_name=str(obj.get("AlarmClassName", "")),
        extra={k: v for k, v in obj.items() if k not in _KNOWN_FIELDS},
    )

    return AlarmRecord(
        name=str(obj["Name"]),
        instance_id=str(obj["InstanceID"]),
        notification_reason=NotificationReason.parse(int(obj["NotificationReason"])),
        modification_time=_to_dt(obj["ModificationTime"]),
        payload=payload,
    )


def iter_json_objects(text: str) -> Iterator[Any]:
    """
    Yield every JSON value found in a string.

    Robust against inputs where several JSON values are concatenated without
    delimiters, e.g. ``'{"a": 1}{"b": 2}'``.

    Parameters
    ----------
    text
        Input string potentially containing one or more JSON values.

    Yields
    ------
    Any
        Decoded JSON values in input order.
    """
    s = text.strip()
    if not s:
        return

    dec = json.JSONDecoder()
    i = 0
    n = len(s)

    while i < n:
        while i < n and s[i].isspace():
            i += 1
        if i >= n:
            break

        obj, end = dec.raw_decode(s, i)
        yield obj
        i = end


def decode_batch(line: str) -> List[AlarmRecord]:
    """
    Decode an NDJSON line into a batch of alarm records.

    A line may hold a JSON array of events, a single event object, or several
    concatenated objects. All of them end up in one batch, in input order.

    Parameters
    ----------
    line
        Input line.

    Returns
    -------
    list of AlarmRecord
        Decoded batch (possibly empty for a blank line or ``[]``).

    Raises
    ------
    ValueError
        If a JSON value is neither an object nor an array of objects.
    """
    batch: List[AlarmRecord] = []
    for value in iter_json_objects(line):
        items = value if isinstance(value, list) else [value]
        for item in items:
            if not isinstance(item, dict):
                raise ValueError(f"Alarm event must be a JSON object, got {type(item).__name__}")
            batch.append(decode_alarm_event(item))
    return batch
