from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

import requests

from alarmline.domain.models import AlarmRecord
from alarmline.runtime.delivery_thread import DeliveryWorkerThread


@dataclass(frozen=True)
class WebhookConfig:
    """
    Configuration for webhook-based snapshot delivery.

    Parameters
    ----------
    url
        Target webhook URL.
    timeout_s
        HTTP request timeout in seconds.
    verify_tls
        Whether to verify TLS certificates.
    auth_header
        Optional Authorization header value (e.g., Bearer token).
    """

    url: str
    timeout_s: float = 2.0
    verify_tls: bool = True
    auth_header: Optional[str] = None


def _iso(ts: Optional[datetime]) -> Optional[str]:
    return None if ts is None else ts.isoformat(timespec="seconds")


def build_snapshot_payload(alarms: List[AlarmRecord], feed: str = "alarmline") -> Dict[str, Any]:
    """
    Build the JSON payload for one snapshot.

    The payload includes:
    - "alarms": the ordered alarms with their display fields
    - "totals": active alarm count, overall and per alarm class

    Parameters
    ----------
    alarms
        Ordered snapshot as delivered by the manager.
    feed
        Name of the alarm feed, copied into the payload.

    Returns
    -------
    dict
        Payload with keys "type", "feed", "alarms" and "totals".
    """
    by_class = Counter(a.payload.alarm_class_name for a in alarms)

    return {
        "type": "alarm_snapshot",
        "feed": feed,
        "alarms": [
            {
                "name": a.name,
                "instance_id": a.instance_id,
                "modification_time": _iso(a.modification_time),
                "raise_time": _iso(a.payload.raise_time),
                "event_text": a.payload.event_text,
                "alarm_texts": list(a.payload.alarm_texts),
                "alarm_class_name": a.payload.alarm_class_name,
                "state": a.payload.state,
                "back_color": a.payload.back_color,
                "text_color": a.payload.text_color,
                "flashing": a.payload.flashing,
            }
            for a in alarms
        ],
        "totals": {
            "active": len(alarms),
            "by_class": dict(by_class),
        },
    }


class WebhookPoster:
    """
    Sends one JSON payload via HTTP POST.

    Notes
    -----
    - This class performs side effects (network I/O).
    - HTTP errors are surfaced via ``raise_for_status()``.
    """

    def __init__(self, cfg: WebhookConfig):
        self._cfg = cfg

    def post(self, payload: Dict[str, Any]) -> None:
        """
        POST ``payload`` to the configured URL.

        Raises
        ------
        requests.HTTPError
            If the HTTP response status indicates an error.
        requests.RequestException
            For network-related errors.
        """
        headers = {"Content-Type": "application/json"}
        if self._cfg.auth_header:
            headers["Authorization"] = self._cfg.auth_header

        r = requests.post(
            self._cfg.url,
            json=payload,
            headers=headers,
            timeout=self._cfg.timeout_s,
            verify=self._cfg.verify_tls,
        )
        r.raise_for_status()


class WebhookSink:
    """
    Sink forwarding each snapshot to a webhook.

    The snapshot is converted to a payload on the caller's thread and handed
    to a background worker, so a slow endpoint never blocks the manager.

    Parameters
    ----------
    worker
        Worker thread performing the POST (with retries).
    feed
        Feed name copied into every payload.
    """

    def __init__(self, worker: DeliveryWorkerThread, feed: str = "alarmline"):
        self._worker = worker
        self._feed = feed

    def __call__(self, alarms: List[AlarmRecord]) -> None:
        self._worker.emit(build_snapshot_payload(alarms, feed=self._feed))
