"""
Unit tests for alarmline.sinks.webhook.

These tests validate webhook delivery using mocked HTTP calls:
- snapshot payload shape
- correct request parameters passed to requests.post
- Authorization header handling
- HTTP error propagation via raise_for_status()
- WebhookSink handing payloads to the delivery worker

No real network requests are made.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List
from unittest.mock import MagicMock

import pytest
import requests

from alarmline.sinks.webhook import WebhookConfig, WebhookPoster, WebhookSink, build_snapshot_payload


def test_build_snapshot_payload(make_alarm) -> None:
    payload = build_snapshot_payload(
        [
            make_alarm("A", "1", text="Pump", alarm_class_name="Alarm", raise_time=datetime(2026, 1, 1, 9, 0, 0)),
            make_alarm("B", "2", minute=1, alarm_class_name="Alarm"),
        ],
        feed="line1",
    )

    assert payload["type"] == "alarm_snapshot"
    assert payload["feed"] == "line1"
    assert [a["name"] for a in payload["alarms"]] == ["A", "B"]
    assert payload["alarms"][0]["raise_time"] == "2026-01-01T09:00:00"
    assert payload["alarms"][0]["modification_time"] == "2026-01-01T10:00:00"
    assert payload["alarms"][1]["raise_time"] is None
    assert payload["totals"] == {"active": 2, "by_class": {"Alarm": 2}}


def test_poster_posts_payload_without_auth(monkeypatch) -> None:
    mock_response = MagicMock()
    mock_response.raise_for_status.return_value = None

    def fake_post(url: str, json: Dict[str, Any], headers: Dict[str, str], timeout: float, verify: bool):
        assert url == "https://example.com/webhook"
        assert json == {"k": "v"}
        assert headers == {"Content-Type": "application/json"}
        assert timeout == 3.0
        assert verify is False
        return mock_response

    monkeypatch.setattr("requests.post", fake_post)

    WebhookPoster(WebhookConfig(url="https://example.com/webhook", timeout_s=3.0, verify_tls=False)).post({"k": "v"})

    mock_response.raise_for_status.assert_called_once()


def test_poster_includes_auth_header(monkeypatch) -> None:
    seen: Dict[str, Any] = {}

    def fake_post(url, json, headers, timeout, verify):
        seen.update(headers)
        return MagicMock()

    monkeypatch.setattr("requests.post", fake_post)

    WebhookPoster(WebhookConfig(url="https://x", auth_header="Bearer abc")).post({})

    assert seen["Authorization"] == "Bearer abc"


def test_poster_propagates_http_error(monkeypatch) -> None:
    mock_response = MagicMock()
    mock_response.raise_for_status.side_effect = requests.HTTPError("500")

    monkeypatch.setattr("requests.post", lambda *a, **kw: mock_response)

    with pytest.raises(requests.HTTPError):
        WebhookPoster(WebhookConfig(url="https://x")).post({})


class FakeWorker:
    def __init__(self) -> None:
        self.payloads: List[Dict[str, Any]] = []

    def emit(self, payload: Dict[str, Any]) -> None:
        self.payloads.append(payload)


def test_sink_emits_payload_to_worker(make_alarm) -> None:
    worker = FakeWorker()
    sink = WebhookSink(worker, feed="line2")  # type: ignore[arg-type]

    sink([make_alarm("A", "1")])
    sink([])

    assert [p["totals"]["active"] for p in worker.payloads] == [1, 0]
    assert worker.payloads[0]["feed"] == "line2"
