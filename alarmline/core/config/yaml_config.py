from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from alarmline.core.config.alarm_filter import (
    DEFAULT_TASK_LANGUAGE,
    SYSTEM_ALARM_CLASSES,
    build_class_exclusion_filter,
)
from alarmline.core.config.engine_config import DEFAULT_DELAY_MS
from alarmline.sinks.alarm_lines import DEFAULT_LINE_COUNT


@dataclass(frozen=True)
class FeedConfig:
    """Alarm feed (engine) settings."""
    name: str = "alarmline"
    language: int = DEFAULT_TASK_LANGUAGE
    filter: str = build_class_exclusion_filter(SYSTEM_ALARM_CLASSES)
    sort_order_descending: bool = False
    delay_ms: int = DEFAULT_DELAY_MS
    max_alarms: Optional[int] = None


@dataclass(frozen=True)
class TaskConfig:
    """Periodic update task settings."""
    period_s: float = 1.0


@dataclass(frozen=True)
class AlarmLinesConfig:
    """Alarm line sink settings."""
    line_count: int = DEFAULT_LINE_COUNT


@dataclass(frozen=True)
class WebhookConfigData:
    """Webhook sink configuration (URL + auth)."""
    url: str
    auth_header: Optional[str] = None
    timeout_s: float = 3.0
    verify_tls: bool = True


@dataclass(frozen=True)
class SimulatorConfig:
    """Demo alarm source settings."""
    rate_hz: float = 20.0
    alarm_names: List[str] = field(default_factory=lambda: ["Overtemp", "LowPressure", "DoorOpen"])
    max_instances: int = 4
    seed: int = 123


@dataclass(frozen=True)
class AppConfig:
    """
    Root application configuration loaded from YAML.

    Every section is optional; missing sections use their defaults.
    """
    feed: FeedConfig = field(default_factory=FeedConfig)
    task: TaskConfig = field(default_factory=TaskConfig)
    alarm_lines: AlarmLinesConfig = field(default_factory=AlarmLinesConfig)
    webhook: Optional[WebhookConfigData] = None
    simulator: SimulatorConfig = field(default_factory=SimulatorConfig)


def _read_yaml(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError("config.yaml must contain a YAML mapping at the root")
    return data


def _section(raw: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = raw.get(name) or {}
    if not isinstance(value, dict):
        raise ValueError(f"config section '{name}' must be a mapping")
    return value


def _resolve_default_config_path() -> Path:
    """
    Resolve config.yaml location.

    Priority:
    1) ALARMLINE_CONFIG env var if provided
    2) config.yaml next to the executable
    3) ./config.yaml in current working directory
    """
    import os
    import sys

    env = os.getenv("ALARMLINE_CONFIG")
    if env:
        return Path(env).expanduser().resolve()

    exe_dir = Path(sys.executable).resolve().parent
    candidate = exe_dir / "config.yaml"
    if candidate.exists():
        return candidate

    return Path("config.yaml").resolve()


def parse_app_config(raw: Dict[str, Any]) -> AppConfig:
    """
    Convert a raw YAML mapping into typed config objects.

    Raises
    ------
    ValueError
        If a section has the wrong shape or a value is invalid.
    KeyError
        If a required field is missing (``webhook.url``).
    """
    # ---- feed ----
    f = _section(raw, "feed")
    if "filter" in f and f["filter"] is not None:
        alarm_filter = str(f["filter"])
    else:
        classes = f.get("exclude_alarm_classes", list(SYSTEM_ALARM_CLASSES))
        alarm_filter = build_class_exclusion_filter([str(c) for c in classes])

    max_alarms = f.get("max_alarms")
    feed = FeedConfig(
        name=str(f.get("name", "alarmline")),
        language=int(f.get("language", DEFAULT_TASK_LANGUAGE)),
        filter=alarm_filter,
        sort_order_descending=bool(f.get("sort_order_descending", False)),
        delay_ms=int(f.get("delay_ms", DEFAULT_DELAY_MS)),
        max_alarms=None if max_alarms is None else int(max_alarms),
    )
    if feed.max_alarms is not None and feed.max_alarms < 0:
        raise ValueError("feed.max_alarms must be >= 0")

    # ---- task ----
    t = _section(raw, "task")
    task = TaskConfig(period_s=float(t.get("period_s", 1.0)))
    if task.period_s <= 0:
        raise ValueError("task.period_s must be > 0")

    # ---- alarm lines ----
    al = _section(raw, "alarm_lines")
    alarm_lines = AlarmLinesConfig(line_count=int(al.get("line_count", DEFAULT_LINE_COUNT)))
    if alarm_lines.line_count < 1:
        raise ValueError("alarm_lines.line_count must be >= 1")

    # ---- webhook ----
    webhook = None
    w = _section(raw, "webhook")
    if w:
        webhook = WebhookConfigData(
            url=str(w["url"]),
            auth_header=w.get("auth_header"),
            timeout_s=float(w.get("timeout_s", 3.0)),
            verify_tls=bool(w.get("verify_tls", True)),
        )

    # ---- simulator ----
    s = _section(raw, "simulator")
    defaults = SimulatorConfig()
    simulator = SimulatorConfig(
        rate_hz=float(s.get("rate_hz", defaults.rate_hz)),
        alarm_names=[str(n) for n in s.get("alarm_names", defaults.alarm_names)],
        max_instances=int(s.get("max_instances", defaults.max_instances)),
        seed=int(s.get("seed", defaults.seed)),
    )

    return AppConfig(
        feed=feed,
        task=task,
        alarm_lines=alarm_lines,
        webhook=webhook,
        simulator=simulator,
    )


def load_app_config(path: Optional[str] = None) -> AppConfig:
    """
    Load application configuration from YAML and convert into typed config objects.

    Parameters
    ----------
    path
        Explicit path to config.yaml. If None, uses default resolution.

    Returns
    -------
    AppConfig
        Parsed and validated configuration.

    Raises
    ------
    FileNotFoundError
        If config file does not exist.
    ValueError
        If required fields are missing or invalid.
    """
    cfg_path = Path(path).expanduser().resolve() if path else _resolve_default_config_path()
    if not cfg_path.exists():
        raise FileNotFoundError(f"Config not found: {cfg_path}")

    return parse_app_config(_read_yaml(cfg_path))
