"""Headless tests for the Textual application and its widgets."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import pytest
import requests
from rich.text import Text

from conftest import FakeClient
from issmap.data_loader import build_graticule
from issmap.map_app import MapApp
from issmap.satellite.api import TelemetrySnapshot
from issmap.widgets.info_panel import format_snapshot
from issmap.widgets.map_display import _cell_bgcolor, _overlay_label

TLE_EPOCH = datetime(2024, 2, 14, 13, 10, 30, tzinfo=timezone.utc)


def _make_app(client=None):
    app = MapApp(graticule=build_graticule(), client=client or FakeClient())
    app.orbit_loader._clock = lambda: TLE_EPOCH
    return app


async def _settle(app, pilot):
    for thread in list(app._threads):
        thread.join(timeout=30)
    await pilot.pause()


class TestFormatSnapshot:
    def test_rounding(self) -> None:
        rows = format_snapshot(TelemetrySnapshot(51.123456, -0.987654, 420.06, 27600.04))
        assert rows == [
            "Latitude: [bold]51.1235°[/bold]",
            "Longitude: [bold]-0.9877°[/bold]",
            "Altitude: [bold]420.1 km[/bold]",
            "Velocity: [bold]27600.0 km/h[/bold]",
        ]


class TestOverlayLabel:
    def _row(self) -> Text:
        row = Text()
        row.append("\u2800\u2800", style="white on #0b2540")
        row.append("\u2800\u2800", style="white")
        return row

    def test_label_keeps_cell_background(self) -> None:
        out = _overlay_label(self._row(), 1, "\u25c6 ISS", "bold yellow")
        assert out.plain == "\u2800\u25c6 I"
        assert _cell_bgcolor(out, 1) is not None
        assert _cell_bgcolor(out, 2) is None

    def test_label_off_row_is_ignored(self) -> None:
        row = self._row()
        assert _overlay_label(row, 4, "ISS", "bold yellow") is row
        assert _overlay_label(row, -1, "ISS", "bold yellow") is row


class TestMapApp:
    def test_startup_fetches_telemetry_and_orbit(self) -> None:
        async def run():
            client = FakeClient()
            app = _make_app(client)
            async with app.run_test(size=(120, 40)) as pilot:
                await _settle(app, pilot)
                assert client.snapshot_calls >= 1
                assert client.tle_calls == 1
                assert app.map_display.snapshot.latitude == 51.5
                assert app.map_display.orbit_segments
                assert app.last_update is not None

        asyncio.run(run())

    def test_telemetry_failure_keeps_defaults(self) -> None:
        async def run():
            client = FakeClient([requests.ConnectionError("offline")])
            app = _make_app(client)
            async with app.run_test(size=(120, 40)) as pilot:
                await _settle(app, pilot)
                assert app.map_display.snapshot == TelemetrySnapshot()
                assert app.poller.failure_count == 1
                assert app.last_update is None

        asyncio.run(run())

    def test_orbit_failure_shows_no_orbit(self) -> None:
        async def run():
            client = FakeClient(tle_text="garbage")
            app = _make_app(client)
            async with app.run_test(size=(120, 40)) as pilot:
                await _settle(app, pilot)
                assert app.map_display.orbit_segments == []
                assert app.map_display.snapshot.latitude == 51.5

        asyncio.run(run())

    def test_zoom_keys(self) -> None:
        async def run():
            app = _make_app()
            async with app.run_test(size=(120, 40)) as pilot:
                await _settle(app, pilot)
                await pilot.press("plus")
                assert app.map_display.zoom == pytest.approx(1.5)
                for _ in range(4):
                    await pilot.press("minus")
                assert app.map_display.zoom == pytest.approx(1.0)
                for _ in range(20):
                    await pilot.press("plus")
                assert app.map_display.zoom == pytest.approx(4.0)
                await pilot.press("r")
                assert app.map_display.zoom == pytest.approx(1.25)

        asyncio.run(run())

    def test_pan_keys(self) -> None:
        async def run():
            app = _make_app()
            async with app.run_test(size=(120, 40)) as pilot:
                await _settle(app, pilot)
                await pilot.press("plus", "plus", "plus")
                before = app.map_display.center_lon
                await pilot.press("left")
                assert app.map_display.center_lon < before
                await pilot.press("right", "right")
                assert app.map_display.center_lon > before

        asyncio.run(run())

    def test_reload_orbit_key(self) -> None:
        async def run():
            client = FakeClient()
            app = _make_app(client)
            async with app.run_test(size=(120, 40)) as pilot:
                await _settle(app, pilot)
                await pilot.press("o")
                await _settle(app, pilot)
                assert client.tle_calls == 2

        asyncio.run(run())

    def test_updates_after_stop_are_ignored(self) -> None:
        async def run():
            london = TelemetrySnapshot(51.5, -0.1, 420.0, 27600.0)
            tokyo = TelemetrySnapshot(35.7, 139.7, 418.0, 27580.0)
            app = _make_app(FakeClient([london, tokyo]))
            async with app.run_test(size=(120, 40)) as pilot:
                await _settle(app, pilot)
                app.poller.stop()
                app.poller._fetch_and_apply()
                await pilot.pause()
                assert app.poller.snapshot == london
                assert app.map_display.snapshot == london

        asyncio.run(run())

    def test_status_line_shows_report_time_and_visibility(self) -> None:
        async def run():
            reported = TelemetrySnapshot(51.5, -0.1, 420.0, 27600.0,
                                         timestamp=datetime(2013, 3, 23, 20, 11, 16, tzinfo=timezone.utc),
                                         visibility="daylight")
            app = _make_app(FakeClient([reported]))
            async with app.run_test(size=(120, 40)) as pilot:
                await _settle(app, pilot)
                line = app._build_status_line()
                assert "[dim]Reported:[/dim] 20:11:16" in line
                assert "daylight" in line

        asyncio.run(run())

    def test_first_frame_renders_with_default_palette(self) -> None:
        async def run():
            app = _make_app()
            async with app.run_test(size=(120, 40)) as pilot:
                await _settle(app, pilot)
                app.map_display.render_map()
                assert app.map_display.size.width > 0

        asyncio.run(run())
