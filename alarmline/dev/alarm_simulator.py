from __future__ import annotations

import random
import threading
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

from alarmline.domain.models import AlarmKey, AlarmPayload, AlarmRecord, NotificationReason
from alarmline.sinks.alarm_lines import rgb
from alarmline.transport.in_memory import InMemoryAlarmSource

_RED = rgb(255, 0, 0)
_YELLOW = rgb(255, 255, 0)
_BLACK = rgb(0, 0, 0)


class AlarmSimulator:
    """
    Publishes random alarm notifications to test the manager and sinks
    without a real alarm runtime.

    Each cycle publishes one batch of 1-3 notifications: new alarms are
    raised, active ones are modified or cleared, and now and then an
    acknowledgement-only notification (reason 4) is mixed in.

    Parameters
    ----------
    source
        In-memory source the batches are published to.
    alarm_names
        Alarm names to pick from.
    max_instances
        Instance ids per alarm name are drawn from 1..max_instances.
    rate_hz
        Batches per second.
    seed
        Random seed, for reproducible runs.
    """

    def __init__(
        self,
        source: InMemoryAlarmSource,
        alarm_names: Sequence[str],
        max_instances: int = 4,
        rate_hz: float = 20.0,
        seed: int = 123,
    ):
        self._source = source
        self._names = list(alarm_names)
        self._max_instances = max(1, max_instances)
        self._period_s = 1.0 / max(rate_hz, 1e-6)
        self._rng = random.Random(seed)
        self._active: Dict[AlarmKey, AlarmRecord] = {}
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self._thread is None or not self._thread.is_alive():
            self._stop.clear()
            self._thread = threading.Thread(target=self._run, name="alarm-simulator", daemon=True)
            self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=2.0)

    def next_batch(self, now: Optional[datetime] = None) -> List[AlarmRecord]:
        """
        Build the next batch of notifications.
        """
        ts = now or datetime.now(timezone.utc)
        batch: List[AlarmRecord] = []

        for _ in range(self._rng.randint(1, 3)):
            key = AlarmKey(
                name=self._rng.choice(self._names),
                instance_id=str(self._rng.randint(1, self._max_instances)),
            )
            prev = self._active.get(key)

            if prev is None:
                rec = self._record(key, NotificationReason.RAISED, ts, raised=ts)
                self._active[key] = rec
            else:
                roll = self._rng.random()
                if roll < 0.4:
                    rec = self._record(key, NotificationReason.CLEARED, ts, raised=prev.payload.raise_time)
                    del self._active[key]
                elif roll < 0.9:
                    rec = self._record(key, NotificationReason.MODIFIED, ts, raised=prev.payload.raise_time)
                    self._active[key] = rec
                else:
                    # acknowledgement-only notification
                    rec = self._record(key, 4, ts, raised=prev.payload.raise_time)
            batch.append(rec)

        return batch

    def _record(self, key: AlarmKey, reason, ts: datetime, raised: Optional[datetime]) -> AlarmRecord:
        critical = key.name == self._names[0]
        return AlarmRecord(
            name=key.name,
            instance_id=key.instance_id,
            notification_reason=reason,
            modification_time=ts,
            payload=AlarmPayload(
                event_text=f"{key.name} #{key.instance_id}",
                alarm_texts=("Raised" if reason == NotificationReason.RAISED else "Active", f"DB{key.instance_id}.DBX0.0"),
                raise_time=raised,
                back_color=_RED if critical else _YELLOW,
                text_color=_BLACK,
                flashing=critical,
                alarm_class_name="Alarm" if critical else "Warning",
            ),
        )

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                self._source.publish(self.next_batch())
            except Exception as e:
                print(f"[ALARMLINE][SIMULATOR] publish failed: {e!r}")
            self._stop.wait(self._period_s)
