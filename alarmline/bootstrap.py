from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Optional

from alarmline.core.config.yaml_config import AppConfig, load_app_config
from alarmline.dev.alarm_simulator import AlarmSimulator
from alarmline.domain.ports import TimerService
from alarmline.runtime.delivery_thread import DeliveryWorkerThread
from alarmline.runtime.task_runner_thread import PeriodicTaskThread
from alarmline.runtime.timers import ThreadingTimerService
from alarmline.services.alarm_update_task import RUNTIME_RUNNING, AlarmUpdateTask
from alarmline.sinks.alarm_lines import AlarmLineSink, InMemoryTagWriter
from alarmline.sinks.counter import AlarmCounterSink
from alarmline.sinks.fan_out import FanOutSink
from alarmline.sinks.webhook import WebhookConfig, WebhookPoster, WebhookSink
from alarmline.transport.in_memory import InMemoryAlarmSource

ACTIVATION_STATE_TAG = "@SystemActivationState"
SORT_ORDER_TAG = "SortOrderDescending"


@dataclass(frozen=True)
class AppWiring:
    """Everything a host needs to run one alarm feed."""
    config: AppConfig
    source: InMemoryAlarmSource
    tags: InMemoryTagWriter
    sinks: FanOutSink
    counter: AlarmCounterSink
    task: AlarmUpdateTask
    runner: PeriodicTaskThread
    simulator: AlarmSimulator
    webhook_worker: Optional[DeliveryWorkerThread] = None

    def start(self) -> None:
        if self.webhook_worker is not None:
            self.webhook_worker.start()
        self.runner.start()
        self.simulator.start()

    def stop(self) -> None:
        self.simulator.stop()
        self.runner.stop()
        self.runner.join(timeout=2.0)
        self.task.shutdown()
        if self.webhook_worker is not None:
            self.webhook_worker.stop()


def build_webhook_worker(cfg: AppConfig) -> Optional[DeliveryWorkerThread]:
    if cfg.webhook is None:
        return None

    auth_header = cfg.webhook.auth_header
    if auth_header and not auth_header.startswith("Bearer "):
        auth_header = f"Bearer {auth_header}"

    poster = WebhookPoster(
        WebhookConfig(
            url=cfg.webhook.url,
            auth_header=auth_header,
            timeout_s=cfg.webhook.timeout_s,
            verify_tls=cfg.webhook.verify_tls,
        )
    )
    return DeliveryWorkerThread(send=poster.post)


def build_app_system(
    config_path: Optional[str] = None,
    cfg: Optional[AppConfig] = None,
    timers: Optional[TimerService] = None,
) -> AppWiring:
    cfg = cfg or load_app_config(config_path)

    # --- TAGS (activation state + operator sort order + alarm lines) ---
    tags = InMemoryTagWriter()
    tags.write({
        ACTIVATION_STATE_TAG: RUNTIME_RUNNING,
        SORT_ORDER_TAG: cfg.feed.sort_order_descending,
    })

    # --- SINKS ---
    counter = AlarmCounterSink()
    sinks = FanOutSink([AlarmLineSink(tags, line_count=cfg.alarm_lines.line_count), counter])

    webhook_worker = build_webhook_worker(cfg)
    if webhook_worker is not None:
        sinks.add(WebhookSink(webhook_worker, feed=cfg.feed.name))

    # --- SOURCE ---
    source = InMemoryAlarmSource()

    # --- TASK ---
    task = AlarmUpdateTask(
        source=source,
        timers=timers or ThreadingTimerService(),
        sink=sinks,
        read_activation_state=lambda: int(tags.values.get(ACTIVATION_STATE_TAG, 0)),
        read_sort_order=lambda: bool(tags.values.get(SORT_ORDER_TAG, False)),
        language=cfg.feed.language,
        filter=cfg.feed.filter,
        delay_in_milliseconds=cfg.feed.delay_ms,
        max_alarms=cfg.feed.max_alarms,
    )
    runner = PeriodicTaskThread(task.run_once, period_s=cfg.task.period_s, stop_event=threading.Event())

    # --- DEMO SOURCE ---
    simulator = AlarmSimulator(
        source,
        alarm_names=cfg.simulator.alarm_names,
        max_instances=cfg.simulator.max_instances,
        rate_hz=cfg.simulator.rate_hz,
        seed=cfg.simulator.seed,
    )

    return AppWiring(
        config=cfg,
        source=source,
        tags=tags,
        sinks=sinks,
        counter=counter,
        task=task,
        runner=runner,
        simulator=simulator,
        webhook_worker=webhook_worker,
    )
