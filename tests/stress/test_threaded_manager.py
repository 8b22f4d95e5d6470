"""
Threaded tests for AlarmManager with the real ThreadingTimerService.

Validates, with several producer threads hammering one manager:
- no delivery ever contains duplicate keys
- the final delivery (after the trailing window) matches the final store
- deliveries are rate limited by the throttle interval
- stop() prevents any later delivery
"""

from __future__ import annotations

import threading
import time
from datetime import datetime, timedelta
from typing import List

from alarmline.core.alarm.alarm_manager import AlarmManager
from alarmline.core.config.engine_config import EngineConfig
from alarmline.domain.models import AlarmPayload, AlarmRecord, NotificationReason
from alarmline.runtime.task_runner_thread import PeriodicTaskThread
from alarmline.runtime.timers import ThreadingTimerService
from alarmline.transport.in_memory import InMemoryAlarmSource

T0 = datetime(2026, 1, 1, 0, 0, 0)


class ThreadSafeSink:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.calls: List[List[AlarmRecord]] = []
        self.times: List[float] = []

    def __call__(self, alarms: List[AlarmRecord]) -> None:
        with self._lock:
            self.calls.append(list(alarms))
            self.times.append(time.monotonic())

    def count(self) -> int:
        with self._lock:
            return len(self.calls)


def _rec(name: str, instance: int, reason: int, seq: int) -> AlarmRecord:
    return AlarmRecord(
        name=name,
        instance_id=str(instance),
        notification_reason=reason,
        modification_time=T0 + timedelta(milliseconds=seq),
        payload=AlarmPayload(event_text=f"{name}-{seq}"),
    )


def test_concurrent_producers_keep_invariants() -> None:
    sink = ThreadSafeSink()
    source = InMemoryAlarmSource()
    manager = AlarmManager(EngineConfig(callback=sink, delay_in_milliseconds=250), source, ThreadingTimerService())
    manager.start()

    def producer(name: str) -> None:
        for seq in range(300):
            instance = seq % 5
            reason = NotificationReason.CLEARED if seq % 7 == 0 else NotificationReason.MODIFIED
            source.publish([_rec(name, instance, reason, seq)])

    threads = [threading.Thread(target=producer, args=(f"P{i}",)) for i in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10.0)

    # let the trailing delivery fire
    time.sleep(0.6)

    calls = list(sink.calls)
    for snap in calls:
        keys = [a.key for a in snap]
        assert len(keys) == len(set(keys))
        times = [a.modification_time for a in snap]
        assert times == sorted(times)

    assert calls[-1] == manager.snapshot()
    manager.stop()


def test_deliveries_are_rate_limited() -> None:
    sink = ThreadSafeSink()
    source = InMemoryAlarmSource()
    manager = AlarmManager(EngineConfig(callback=sink, delay_in_milliseconds=250), source, ThreadingTimerService())
    manager.start()

    start = time.monotonic()
    seq = 0
    while time.monotonic() - start < 1.0:
        source.publish([_rec("A", seq % 3, NotificationReason.MODIFIED, seq)])
        seq += 1
        time.sleep(0.005)
    time.sleep(0.4)
    manager.stop()

    # 1 start + about 1 s / 250 ms throttled deliveries (+ leading and trailing)
    assert sink.count() <= 1 + 7

    throttled = sink.times[1:]
    gaps = [b - a for a, b in zip(throttled, throttled[1:])]
    assert all(g >= 0.2 for g in gaps)


def test_stop_prevents_trailing_delivery() -> None:
    sink = ThreadSafeSink()
    source = InMemoryAlarmSource()
    manager = AlarmManager(EngineConfig(callback=sink), source, ThreadingTimerService())
    manager.start()

    source.publish([_rec("A", 1, NotificationReason.RAISED, 0)])
    source.publish([_rec("B", 1, NotificationReason.RAISED, 1)])
    count = sink.count()

    manager.stop()
    time.sleep(0.5)

    assert sink.count() == count


def test_periodic_task_thread_runs_and_survives_errors() -> None:
    calls: List[int] = []

    def task() -> None:
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("first cycle fails")

    stop = threading.Event()
    runner = PeriodicTaskThread(task, period_s=0.02, stop_event=stop)
    runner.start()
    time.sleep(0.2)
    runner.stop()
    runner.join(timeout=2.0)

    assert len(calls) >= 3
