"""Shared fixtures: a known ISS element set and fake network/timer objects."""

from __future__ import annotations

import pytest

from issmap.satellite.api import TelemetrySnapshot

ISS_NAME = "ISS (ZARYA)"
ISS_LINE1 = "1 25544U 98067A   24045.54896019  .00016717  00000-0  30093-3 0  9993"
ISS_LINE2 = "2 25544  51.6412 207.4925 0004948 290.5508 178.9792 15.49583488439596"
ISS_TLE_TEXT = f"{ISS_NAME}\n{ISS_LINE1}\n{ISS_LINE2}"


class FakeTimer:
    def __init__(self, interval, callback):
        self.interval = interval
        self.callback = callback
        self.stopped = False

    def stop(self) -> None:
        self.stopped = True


class FakeScheduler:
    """Stands in for App.set_interval; tick() fires every live timer once."""

    def __init__(self):
        self.timers: list[FakeTimer] = []

    def __call__(self, interval, callback):
        timer = FakeTimer(interval, callback)
        self.timers.append(timer)
        return timer

    def tick(self, times: int = 1) -> None:
        for _ in range(times):
            for timer in self.timers:
                if not timer.stopped:
                    timer.callback()


class FakeClient:
    """WhereTheIssClient replacement returning canned data."""

    def __init__(self, snapshots=None, tle_text=ISS_TLE_TEXT):
        self.snapshots = list(snapshots or [TelemetrySnapshot(51.5, -0.1, 420.0, 27600.0)])
        self.tle_text = tle_text
        self.snapshot_calls = 0
        self.tle_calls = 0
        self.closed = False

    def fetch_snapshot(self):
        self.snapshot_calls += 1
        item = self.snapshots[min(self.snapshot_calls, len(self.snapshots)) - 1]
        if isinstance(item, Exception):
            raise item
        return item

    def fetch_tle_text(self):
        self.tle_calls += 1
        if isinstance(self.tle_text, Exception):
            raise self.tle_text
        return self.tle_text

    def close(self):
        self.closed = True


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()
