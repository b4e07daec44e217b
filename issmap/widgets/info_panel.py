"""Telemetry readout panel."""

from textual.app import ComposeResult
from textual.widgets import Static, Label

from issmap.satellite.api import TelemetrySnapshot


def format_snapshot(snapshot: TelemetrySnapshot) -> list[str]:
    """Display rows, rounded for reading: 4 decimals for position, 1 for altitude and velocity."""
    return [
        f"Latitude: [bold]{snapshot.latitude:.4f}°[/bold]",
        f"Longitude: [bold]{snapshot.longitude:.4f}°[/bold]",
        f"Altitude: [bold]{snapshot.altitude:.1f} km[/bold]",
        f"Velocity: [bold]{snapshot.velocity:.1f} km/h[/bold]",
    ]


class InfoPanel(Static):
    """Shows the last good position, altitude and velocity."""

    ROW_COUNT = 4
    ROW_ID_PREFIX = "info_row"

    DEFAULT_CSS = """
    InfoPanel {
        layer: overlay;
        width: 28;
        height: auto;
        background: $panel;
        border: round yellow;
        border-title-color: yellow;
        border-title-align: left;
        padding: 0 1;
    }

    .info-row {
        height: 1;
        margin: 0;
        padding: 0;
    }
    """

    def __init__(self):
        super().__init__()
        self.border_title = "ISS"
        self._snapshot = TelemetrySnapshot()

    def compose(self) -> ComposeResult:
        for i in range(self.ROW_COUNT):
            yield Label("", id=f"{self.ROW_ID_PREFIX}_{i}", classes="info-row")

    def on_mount(self):
        self._render_content()

    def set_snapshot(self, snapshot: TelemetrySnapshot):
        self._snapshot = snapshot
        self._render_content()

    def _render_content(self):
        if not self.is_mounted:
            return
        for i, line in enumerate(format_snapshot(self._snapshot)):
            self.query_one(f"#{self.ROW_ID_PREFIX}_{i}", Label).update(line)
