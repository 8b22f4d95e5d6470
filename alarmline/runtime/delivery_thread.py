from __future__ import annotations

import queue
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

Payload = Dict[str, Any]

_STOP: Payload = {"type": "__stop__"}


@dataclass(frozen=True)
class DeliveryThreadConfig:
    max_queue: int = 16
    retry_count: int = 3
    retry_backoff_s: float = 0.5
    poll_timeout_s: float = 0.5


class DeliveryWorkerThread:
    """
    Background thread sending payloads with a blocking ``send`` function.

    Backpressure Policy
    -------------------
    Snapshots supersede each other, so when the queue is full the OLDEST
    queued payload is dropped to make room for the newest one.

    Parameters
    ----------
    send
        Callable performing the delivery; may raise to request a retry.
    cfg
        Queue size and retry policy.
    """

    def __init__(self, send: Callable[[Payload], None], cfg: Optional[DeliveryThreadConfig] = None):
        self._send = send
        self._cfg = cfg or DeliveryThreadConfig()
        self._q: "queue.Queue[Payload]" = queue.Queue(maxsize=self._cfg.max_queue)
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._run, name="alarmline-delivery", daemon=True)

    def start(self) -> None:
        if not self._thread.is_alive():
            self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        try:
            self._q.put_nowait(_STOP)
        except queue.Full:
            pass
        self._thread.join(timeout=2.0)

    def emit(self, payload: Payload) -> None:
        while True:
            try:
                self._q.put_nowait(payload)
                return
            except queue.Full:
                try:
                    self._q.get_nowait()
                except queue.Empty:
                    pass

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                payload = self._q.get(timeout=self._cfg.poll_timeout_s)
            except queue.Empty:
                continue

            if payload is _STOP:
                break

            self._send_with_retries(payload)

    def _send_with_retries(self, payload: Payload) -> None:
        for attempt in range(self._cfg.retry_count + 1):
            try:
                self._send(payload)
                return
            except Exception as e:
                if attempt >= self._cfg.retry_count:
                    print(f"[ALARMLINE][DELIVERY] giving up after {attempt + 1} attempts: {e!r}")
                    return
                time.sleep(self._cfg.retry_backoff_s * (2 ** attempt))
