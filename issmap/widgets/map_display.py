"""Map display widget: world map, ISS marker, horizon circles, ground track."""

from rich.style import Style
from rich.text import Text
from textual.reactive import reactive
from textual.widgets import Static

from issmap.config_manager import config
from issmap.map_renderer import (
    clamp_view,
    pixels_to_braille_layers,
    render_base_grid,
    render_disc_grid,
    render_marker_grid,
    render_paths_grid,
)
from issmap.satellite.antimeridian import split_at_antimeridian
from issmap.satellite.api import TelemetrySnapshot
from issmap.satellite.orbital import (
    PRACTICAL_HORIZON_RATIO,
    circle_points,
    horizon_radius_m,
)


ORBIT_DASH = (8, 8)
MARKER_LABEL = "ISS"


def _cell_bgcolor(line: Text, index: int):
    """Background colour of one cell of a rendered row, or None."""
    for span in line.spans:
        if span.start <= index < span.end:
            style = Style.parse(span.style) if isinstance(span.style, str) else span.style
            if style.bgcolor is not None:
                return style.bgcolor
    return None


def _overlay_label(line: Text, start: int, label: str, style: str) -> Text:
    """Write label over line from column start, keeping each cell's background."""
    if not 0 <= start < len(line):
        return line
    label = label[:len(line) - start]
    base = Style.parse(style)
    result = line[:start]
    for offset, ch in enumerate(label):
        bgcolor = _cell_bgcolor(line, start + offset)
        result.append(ch, style=base + Style(bgcolor=bgcolor) if bgcolor else base)
    result.append_text(line[start + len(label):])
    return result


class MapDisplay(Static):
    """Display widget for the flat world map."""

    center_lon = reactive(15.0)
    center_lat = reactive(20.0)
    zoom = reactive(1.25)

    def __init__(self, segments=None, segment_bounds=None, graticule=None):
        super().__init__()
        self.segments = segments
        self.segment_bounds = segment_bounds
        self.graticule = graticule or []
        self.snapshot = TelemetrySnapshot()
        self.orbit_segments = []
        self.min_zoom = config.map["min_zoom"]
        self.max_zoom = config.map["max_zoom"]
        self._cached_base = None
        self._cache_key = None

    def on_mount(self):
        self.render_map()

    def on_resize(self, event):
        self.set_view(self.center_lon, self.center_lat, self.zoom)

    def watch_center_lon(self, value):
        self.render_map()

    def watch_center_lat(self, value):
        self.render_map()

    def watch_zoom(self, value):
        self.render_map()

    def set_snapshot(self, snapshot: TelemetrySnapshot):
        self.snapshot = snapshot
        self.render_map()

    def set_orbit_segments(self, segments):
        self.orbit_segments = segments
        self.render_map()

    def pan(self, d_lon: float, d_lat: float):
        self.set_view(self.center_lon + d_lon, self.center_lat + d_lat, self.zoom)

    def zoom_by(self, delta: float):
        self.set_view(self.center_lon, self.center_lat, self.zoom + delta)

    def set_view(self, center_lon: float, center_lat: float, zoom: float):
        size = self.size
        lon, lat, z = clamp_view(center_lon, center_lat, zoom,
                                 size.width * 2, size.height * 4,
                                 self.min_zoom, self.max_zoom)
        # Assign without triggering three renders
        self.set_reactive(MapDisplay.center_lon, lon)
        self.set_reactive(MapDisplay.center_lat, lat)
        self.set_reactive(MapDisplay.zoom, z)
        self.render_map()

    def horizon_paths(self):
        """Outer and inner horizon outlines, already split at the antimeridian."""
        snap = self.snapshot
        radius = horizon_radius_m(snap.altitude)
        outer = split_at_antimeridian(circle_points(snap.latitude, snap.longitude, radius))
        inner = split_at_antimeridian(
            circle_points(snap.latitude, snap.longitude, radius * PRACTICAL_HORIZON_RATIO))
        return outer, inner

    def _base_layers(self, pixel_width, pixel_height):
        cache_key = (pixel_width, pixel_height, self.center_lon, self.center_lat, self.zoom)
        if self._cache_key != cache_key or self._cached_base is None:
            land = render_base_grid(self.segments, self.segment_bounds,
                                    pixel_width, pixel_height,
                                    self.center_lon, self.center_lat, self.zoom)
            graticule = render_base_grid(self.graticule, None,
                                         pixel_width, pixel_height,
                                         self.center_lon, self.center_lat, self.zoom)
            self._cached_base = (land, graticule)
            self._cache_key = cache_key
        return self._cached_base

    def render_map(self):
        """Render all layers to the display."""
        if not self.is_mounted:
            return
        size = self.size
        if size.width == 0 or size.height == 0:
            return

        pixel_width = size.width * 2
        pixel_height = size.height * 4
        view = (self.center_lon, self.center_lat, self.zoom)

        land_grid, graticule_grid = self._base_layers(pixel_width, pixel_height)

        snap = self.snapshot
        outer_paths, inner_paths = self.horizon_paths()
        outer_grid = render_paths_grid(outer_paths, pixel_width, pixel_height, *view)
        inner_grid = render_paths_grid(inner_paths, pixel_width, pixel_height, *view)
        orbit_grid = render_paths_grid(self.orbit_segments, pixel_width, pixel_height, *view,
                                       dash=ORBIT_DASH)
        marker_grid, marker_cell = render_marker_grid(
            snap.latitude, snap.longitude, pixel_width, pixel_height, *view)
        fill_grid = render_disc_grid(
            snap.latitude, snap.longitude, horizon_radius_m(snap.altitude) / 1000.0,
            pixel_width, pixel_height, *view)

        layers = [
            (marker_grid, f"bold {config.get_color('marker')}"),
            (orbit_grid, config.get_color("orbit")),
            (inner_grid, config.get_color("visibility")),
            (outer_grid, config.get_color("horizon")),
            (land_grid, config.get_color("land")),
            (graticule_grid, config.get_color("graticule")),
        ]
        braille_lines = pixels_to_braille_layers(
            layers, pixel_width, pixel_height,
            background=(fill_grid, config.get_color("horizon_fill")),
        )

        if marker_cell is not None:
            char_x, char_y = marker_cell
            if 0 <= char_y < len(braille_lines):
                braille_lines[char_y] = _overlay_label(
                    braille_lines[char_y], char_x, f"◆ {MARKER_LABEL}",
                    f"bold {config.get_color('marker')}")

        combined = Text()
        for i, line in enumerate(braille_lines):
            combined.append_text(line)
            if i < len(braille_lines) - 1:
                combined.append("\n")

        self.update(combined)
