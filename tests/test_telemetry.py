"""Tests for the telemetry poller lifecycle."""

from __future__ import annotations

import requests

from conftest import FakeClient
from issmap.satellite.api import TelemetrySnapshot
from issmap.satellite.telemetry import TelemetryPoller

LONDON = TelemetrySnapshot(51.5, -0.1, 420.0, 27600.0)
TOKYO = TelemetrySnapshot(35.7, 139.7, 418.0, 27580.0)


class DeferredLaunch:
    """Queues fetches instead of running them, to simulate in-flight requests."""

    def __init__(self):
        self.pending = []

    def __call__(self, fn):
        self.pending.append(fn)

    def run_all(self) -> None:
        pending, self.pending = self.pending, []
        for fn in pending:
            fn()


class TestTelemetryPoller:
    def test_fetches_immediately_on_start(self, scheduler) -> None:
        client = FakeClient([LONDON])
        received = []
        poller = TelemetryPoller(client, received.append, interval=5.0)
        poller.start(scheduler)
        assert client.snapshot_calls == 1
        assert received == [LONDON]
        assert poller.snapshot == LONDON
        assert poller.active

    def test_timer_uses_interval(self, scheduler) -> None:
        poller = TelemetryPoller(FakeClient(), lambda s: None, interval=5.0)
        poller.start(scheduler)
        assert len(scheduler.timers) == 1
        assert scheduler.timers[0].interval == 5.0

    def test_each_tick_fetches(self, scheduler) -> None:
        client = FakeClient([LONDON, TOKYO])
        received = []
        poller = TelemetryPoller(client, received.append)
        poller.start(scheduler)
        scheduler.tick(3)
        assert client.snapshot_calls == 4
        assert poller.fetch_count == 4
        assert received == [LONDON, TOKYO, TOKYO, TOKYO]

    def test_start_twice_keeps_one_timer(self, scheduler) -> None:
        client = FakeClient()
        poller = TelemetryPoller(client, lambda s: None)
        poller.start(scheduler)
        poller.start(scheduler)
        assert len(scheduler.timers) == 1
        assert client.snapshot_calls == 1

    def test_failure_keeps_previous_snapshot(self, scheduler) -> None:
        client = FakeClient([LONDON, requests.ConnectionError("offline"), TOKYO])
        received = []
        poller = TelemetryPoller(client, received.append)
        poller.start(scheduler)
        scheduler.tick()
        assert poller.snapshot == LONDON
        assert poller.failure_count == 1
        assert received == [LONDON]
        scheduler.tick()
        assert poller.snapshot == TOKYO

    def test_malformed_payload_is_a_failure(self, scheduler) -> None:
        client = FakeClient([KeyError("latitude")])
        poller = TelemetryPoller(client, lambda s: None)
        poller.start(scheduler)
        assert poller.failure_count == 1
        assert poller.snapshot == TelemetrySnapshot()

    def test_stop_stops_timer_and_fetching(self, scheduler) -> None:
        client = FakeClient()
        poller = TelemetryPoller(client, lambda s: None)
        poller.start(scheduler)
        poller.stop()
        assert scheduler.timers[0].stopped
        assert not poller.active
        poller.poll()
        scheduler.tick(2)
        assert client.snapshot_calls == 1

    def test_stop_before_start(self) -> None:
        poller = TelemetryPoller(FakeClient(), lambda s: None)
        poller.stop()
        assert not poller.active

    def test_completion_after_stop_is_dropped(self, scheduler) -> None:
        launch = DeferredLaunch()
        received = []
        poller = TelemetryPoller(FakeClient([LONDON]), received.append, launch=launch)
        poller.start(scheduler)
        assert len(launch.pending) == 1
        poller.stop()
        launch.run_all()
        assert received == []
        assert poller.snapshot == TelemetrySnapshot()

    def test_completion_while_active_is_applied(self, scheduler) -> None:
        launch = DeferredLaunch()
        received = []
        poller = TelemetryPoller(FakeClient([LONDON]), received.append, launch=launch)
        poller.start(scheduler)
        launch.run_all()
        assert received == [LONDON]
