"""Periodic telemetry polling with an owned, cancellable timer."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from issmap.satellite.api import FETCH_ERRORS, TelemetrySnapshot, WhereTheIssClient

log = logging.getLogger("issmap.telemetry")


def _run_inline(fn: Callable[[], None]) -> None:
    fn()


class TelemetryPoller:
    """Fetches a snapshot immediately on start, then every `interval` seconds.

    The timer comes from the `set_interval` callable passed to start() (the
    Textual app's in practice) and must return a handle with a stop() method.
    Fetches run through `launch`, which the app points at a daemon thread.
    A failed fetch keeps the previous snapshot. After stop(), no new fetch is
    started and completions still in flight are dropped.
    """

    def __init__(self, client: WhereTheIssClient,
                 on_snapshot: Callable[[TelemetrySnapshot], None],
                 interval: float = 5.0,
                 launch: Optional[Callable[[Callable[[], None]], object]] = None):
        self._client = client
        self._on_snapshot = on_snapshot
        self.interval = interval
        self._launch = launch or _run_inline
        self._timer = None
        self._active = False
        self._lock = threading.Lock()
        self._snapshot = TelemetrySnapshot()
        self.fetch_count = 0
        self.failure_count = 0

    @property
    def active(self) -> bool:
        return self._active

    @property
    def snapshot(self) -> TelemetrySnapshot:
        return self._snapshot

    def start(self, set_interval: Callable) -> None:
        if self._active:
            return
        self._active = True
        log.info("Telemetry polling started (every %.1fs)", self.interval)
        self.poll()
        self._timer = set_interval(self.interval, self.poll)

    def stop(self) -> None:
        with self._lock:
            self._active = False
        if self._timer is not None:
            self._timer.stop()
            self._timer = None
        log.info("Telemetry polling stopped")

    def poll(self) -> None:
        if not self._active:
            return
        self.fetch_count += 1
        self._launch(self._fetch_and_apply)

    def _fetch_and_apply(self) -> None:
        try:
            snapshot = self._client.fetch_snapshot()
        except FETCH_ERRORS as e:
            self.failure_count += 1
            log.warning("Failed to fetch ISS data: %s", e)
            return

        with self._lock:
            if not self._active:
                log.debug("Dropping telemetry that arrived after stop")
                return
            self._snapshot = snapshot
        self._on_snapshot(snapshot)
