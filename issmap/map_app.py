"""Main MapApp Textual application."""

import logging
import threading
from datetime import datetime, timezone

from textual.app import App, ComposeResult
from textual.containers import Container
from textual.widgets import Static

from issmap.config_manager import config
from issmap.satellite.api import WhereTheIssClient
from issmap.satellite.orbit import OrbitLoader
from issmap.satellite.telemetry import TelemetryPoller
from issmap.widgets import InfoPanel, MapDisplay
from issmap.widgets.messages import OrbitLoaded, TelemetryUpdated

log = logging.getLogger("issmap.app")


class MapApp(App):
    """Textual TUI application showing the live ISS position on a world map."""

    CSS = """
    Screen {
        background: $surface;
        layers: base overlay;
    }

    #status-line {
        dock: top;
        height: 1;
        width: 100%;
        layer: overlay;
        color: $text;
    }

    #map-container {
        width: 100%;
        height: 100%;
        layer: base;
        border: solid green;
        margin: 1 0 0 0;
    }

    MapDisplay {
        width: 100%;
        height: 100%;
    }

    InfoPanel {
        dock: left;
        margin: 2 0 0 1;
    }
    """

    TITLE = "ISS Live Map"
    BINDINGS = [
        ("up", "navigate_up", "Up"),
        ("down", "navigate_down", "Down"),
        ("left", "navigate_left", "Left"),
        ("right", "navigate_right", "Right"),
        ("plus,equals", "zoom_in", "Zoom+"),
        ("minus", "zoom_out", "Zoom-"),
        ("r", "reset", "Reset"),
        ("o", "reload_orbit", "Reload orbit"),
        ("q", "quit", "Quit"),
    ]

    def __init__(self, segments=None, segment_bounds=None, graticule=None, client=None):
        super().__init__()

        self.segments = segments
        self.segment_bounds = segment_bounds
        self.graticule = graticule
        self.client = client or WhereTheIssClient()

        self.pan_step = config.map["pan_step"]
        self.zoom_step = config.map["zoom_step"]
        self.last_update = None
        self._threads = []

        self.poller = TelemetryPoller(
            self.client,
            on_snapshot=lambda snapshot: self.post_message(TelemetryUpdated(snapshot)),
            interval=config.api["poll_interval"],
            launch=self._launch,
        )
        self.orbit_loader = OrbitLoader(
            self.client,
            on_segments=lambda segments: self.post_message(OrbitLoaded(segments)),
            horizon_s=config.orbit["horizon_s"],
            step_s=config.orbit["step_s"],
            launch=self._launch,
        )

    def _launch(self, fn):
        """Run a blocking fetch on a daemon thread; results come back as messages."""
        self._threads = [t for t in self._threads if t.is_alive()]
        thread = threading.Thread(target=fn, daemon=True)
        self._threads.append(thread)
        thread.start()
        return thread

    def _utc_now(self) -> datetime:
        return datetime.now(timezone.utc)

    def _format_time(self, dt: datetime) -> str:
        return dt.astimezone(timezone.utc).strftime("%Y %m %d %H:%M:%S UTC")

    def _build_status_line(self):
        line = f"Time: {self._format_time(self._utc_now())}"
        if self.last_update is not None:
            line = f"{line}  [dim]Updated:[/dim] {self.last_update.strftime('%H:%M:%S')}"
        snap = self.poller.snapshot
        if snap.timestamp is not None:
            line = f"{line}  [dim]Reported:[/dim] {snap.timestamp.strftime('%H:%M:%S')}"
        if snap.visibility:
            line = f"{line}  [dim]{snap.visibility}[/dim]"
        return line

    def _refresh_toolbar(self):
        if hasattr(self, "status_line"):
            self.status_line.update(self._build_status_line())

    def compose(self) -> ComposeResult:
        """Create child widgets for the app."""
        self.map_display = MapDisplay(self.segments, self.segment_bounds, self.graticule)
        self.info_panel = InfoPanel()
        self.status_line = Static("", id="status-line")

        yield self.status_line
        with Container(id="map-container"):
            yield self.map_display
        yield self.info_panel

    def on_mount(self):
        """Start telemetry polling and the one-shot orbit load."""
        self.set_interval(config.map["refresh_interval"], self._refresh_toolbar)
        self._refresh_toolbar()
        self.map_display.set_view(config.map["center_lon"], config.map["center_lat"],
                                  config.map["zoom"])

        self.poller.start(self.set_interval)
        self.orbit_loader.start()

    def on_unmount(self):
        self.poller.stop()
        self.orbit_loader.cancel()
        self.client.close()

    def on_telemetry_updated(self, message: TelemetryUpdated) -> None:
        if not self.poller.active:
            return
        self.last_update = self._utc_now()
        self.map_display.set_snapshot(message.snapshot)
        self.info_panel.set_snapshot(message.snapshot)
        self._refresh_toolbar()

    def on_orbit_loaded(self, message: OrbitLoaded) -> None:
        if not self.orbit_loader.active:
            return
        self.map_display.set_orbit_segments(message.segments)

    def _pan_step(self):
        return self.pan_step / max(1.0, self.map_display.zoom)

    def action_navigate_up(self):
        self.map_display.pan(0.0, self._pan_step())

    def action_navigate_down(self):
        self.map_display.pan(0.0, -self._pan_step())

    def action_navigate_left(self):
        self.map_display.pan(-self._pan_step(), 0.0)

    def action_navigate_right(self):
        self.map_display.pan(self._pan_step(), 0.0)

    def action_zoom_in(self):
        self.map_display.zoom_by(self.zoom_step)

    def action_zoom_out(self):
        self.map_display.zoom_by(-self.zoom_step)

    def action_reset(self):
        self.map_display.set_view(config.map["center_lon"], config.map["center_lat"],
                                  config.map["zoom"])

    def action_reload_orbit(self):
        log.info("Orbit reload requested")
        self.orbit_loader.start()
