"""
Flat world map rendering for braille terminal output.
Equirectangular projection, line drawing JIT-compiled with Numba.
"""

import numpy as np
from numba import njit
from rich.text import Text

from issmap.satellite.orbital import great_circle_km

BRAILLE_BASE = 0x2800

BRAILLE_WEIGHTS = np.array([
    [0x01, 0x08],
    [0x02, 0x10],
    [0x04, 0x20],
    [0x40, 0x80],
], dtype=np.uint8)


def map_scale(width, height, zoom):
    """Pixels per degree. At zoom 1 the whole 360x180 world fits."""
    return min(width / 360.0, height / 180.0) * zoom


def clamp_view(center_lon, center_lat, zoom, width, height, min_zoom=1.0, max_zoom=4.0):
    """Keep the view inside the world: no wrap in longitude, no overshoot in latitude.

    Returns:
        (center_lon, center_lat, zoom) adjusted.
    """
    zoom = min(max(zoom, min_zoom), max_zoom)
    if width <= 0 or height <= 0:
        return center_lon, center_lat, zoom

    scale = map_scale(width, height, zoom)
    half_w = width / 2.0 / scale
    half_h = height / 2.0 / scale

    if half_w >= 180.0:
        center_lon = 0.0
    else:
        center_lon = min(max(center_lon, -180.0 + half_w), 180.0 - half_w)

    if half_h >= 90.0:
        center_lat = 0.0
    else:
        center_lat = min(max(center_lat, -90.0 + half_h), 90.0 - half_h)

    return center_lon, center_lat, zoom


def project_coords(lons, lats, width, height, center_lon, center_lat, zoom):
    """Project lon/lat arrays to pixel coordinates."""
    scale = map_scale(width, height, zoom)
    cx, cy = width / 2.0, height / 2.0
    lons = np.asarray(lons, dtype=np.float64)
    lats = np.asarray(lats, dtype=np.float64)
    px = np.floor(cx + (lons - center_lon) * scale).astype(np.int32)
    py = np.floor(cy - (lats - center_lat) * scale).astype(np.int32)
    return px, py


def unproject_grid(width, height, center_lon, center_lat, zoom):
    """Lon/lat of every pixel centre, as two (height, width) arrays."""
    scale = map_scale(width, height, zoom)
    cx, cy = width / 2.0, height / 2.0
    xs = (np.arange(width) + 0.5 - cx) / scale + center_lon
    ys = center_lat - (np.arange(height) + 0.5 - cy) / scale
    return np.meshgrid(xs, ys)


@njit(cache=True)
def draw_polyline(grid, px, py, height, width, dash_on, dash_off):
    """Bresenham through consecutive points. dash_off == 0 draws a solid line."""
    period = dash_on + dash_off
    step = 0
    for i in range(len(px) - 1):
        x0, y0 = px[i], py[i]
        x1, y1 = px[i + 1], py[i + 1]

        dx = abs(x1 - x0)
        dy = abs(y1 - y0)
        sx = 1 if x0 < x1 else -1
        sy = 1 if y0 < y1 else -1
        err = dx - dy

        while True:
            if dash_off == 0 or step % period < dash_on:
                if 0 <= y0 < height and 0 <= x0 < width:
                    grid[y0, x0] = 1
            if x0 == x1 and y0 == y1:
                break
            step += 1
            e2 = 2 * err
            if e2 > -dy:
                err -= dy
                x0 += sx
            if e2 < dx:
                err += dx
                y0 += sy
    if len(px) == 1:
        if 0 <= py[0] < height and 0 <= px[0] < width:
            grid[py[0], px[0]] = 1


@njit(cache=True)
def draw_segments_numba(grid, all_px, all_py, seg_starts, seg_lengths, height, width):
    """Draw all flattened segments as solid lines."""
    n_segs = len(seg_starts)
    for seg_idx in range(n_segs):
        start = seg_starts[seg_idx]
        length = seg_lengths[seg_idx]

        for i in range(length - 1):
            idx = start + i
            x0, y0 = all_px[idx], all_py[idx]
            x1, y1 = all_px[idx + 1], all_py[idx + 1]

            dx = abs(x1 - x0)
            dy = abs(y1 - y0)
            sx = 1 if x0 < x1 else -1
            sy = 1 if y0 < y1 else -1
            err = dx - dy

            while True:
                if 0 <= y0 < height and 0 <= x0 < width:
                    grid[y0, x0] = 1
                if x0 == x1 and y0 == y1:
                    break
                e2 = 2 * err
                if e2 > -dy:
                    err -= dy
                    x0 += sx
                if e2 < dx:
                    err += dx
                    y0 += sy


def visible_extent(width, height, center_lon, center_lat, zoom):
    """(min_lon, max_lon, min_lat, max_lat) currently on screen."""
    scale = map_scale(width, height, zoom)
    half_w = width / 2.0 / scale
    half_h = height / 2.0 / scale
    return (center_lon - half_w, center_lon + half_w,
            center_lat - half_h, center_lat + half_h)


def render_base_grid(segments, segment_bounds, width, height, center_lon, center_lat, zoom):
    """Rasterise [lon, lat] outline segments, culling those off screen."""
    grid = np.zeros((height, width), dtype=np.uint8)
    if not segments:
        return grid

    if segment_bounds is not None and zoom > 1.0:
        min_lon, max_lon, min_lat, max_lat = visible_extent(width, height, center_lon, center_lat, zoom)
        mask = ((segment_bounds[:, 1] >= min_lon) & (segment_bounds[:, 0] <= max_lon) &
                (segment_bounds[:, 3] >= min_lat) & (segment_bounds[:, 2] <= max_lat))
        segs = [segments[i] for i in np.where(mask)[0]]
    else:
        segs = list(segments)

    segs = [s for s in segs if len(s) >= 2]
    if not segs:
        return grid

    seg_lengths = np.array([len(s) for s in segs], dtype=np.int32)
    seg_starts = np.zeros(len(segs), dtype=np.int32)
    seg_starts[1:] = np.cumsum(seg_lengths[:-1])
    coords = np.concatenate(segs)

    all_px, all_py = project_coords(coords[:, 0], coords[:, 1], width, height,
                                    center_lon, center_lat, zoom)
    draw_segments_numba(grid, all_px, all_py, seg_starts, seg_lengths, height, width)
    return grid


def render_paths_grid(paths, width, height, center_lon, center_lat, zoom, dash=(0, 0)):
    """Rasterise (lat, lon) polylines, e.g. orbit segments or circle outlines."""
    grid = np.zeros((height, width), dtype=np.uint8)
    dash_on, dash_off = dash
    for path in paths:
        if not path:
            continue
        pts = np.asarray(path, dtype=np.float64)
        px, py = project_coords(pts[:, 1], pts[:, 0], width, height,
                                center_lon, center_lat, zoom)
        draw_polyline(grid, px, py, height, width, dash_on, dash_off)
    return grid


def render_marker_grid(lat, lon, width, height, center_lon, center_lat, zoom, size=2):
    """Small diamond at (lat, lon). Returns (grid, (char_x, char_y) or None)."""
    grid = np.zeros((height, width), dtype=np.uint8)
    px, py = project_coords([lon], [lat], width, height, center_lon, center_lat, zoom)
    px, py = int(px[0]), int(py[0])
    if not (0 <= px < width and 0 <= py < height):
        return grid, None

    for dy in range(-size, size + 1):
        span = size - abs(dy)
        for dx in range(-span, span + 1):
            x, y = px + dx, py + dy
            if 0 <= x < width and 0 <= y < height:
                grid[y, x] = 1

    return grid, (px // 2, py // 4)


def render_disc_grid(lat, lon, radius_km, width, height, center_lon, center_lat, zoom):
    """Boolean grid: pixels on the map within radius_km of (lat, lon)."""
    if radius_km <= 0:
        return np.zeros((height, width), dtype=bool)
    lons, lats = unproject_grid(width, height, center_lon, center_lat, zoom)
    on_map = (np.abs(lons) <= 180.0) & (np.abs(lats) <= 90.0)
    return on_map & (great_circle_km(lat, lon, lats, lons) <= radius_km)


def _pad_to_cells(grid):
    pixel_h, pixel_w = grid.shape
    pad_h = (4 - pixel_h % 4) % 4
    pad_w = (2 - pixel_w % 2) % 2
    if pad_h or pad_w:
        grid = np.pad(grid, ((0, pad_h), (0, pad_w)), mode='constant')
    return grid


def _cell_blocks(grid):
    pixel_h, pixel_w = grid.shape
    char_h, char_w = pixel_h // 4, pixel_w // 2
    return grid.reshape(char_h, 4, char_w, 2).transpose(0, 2, 1, 3)


def pixels_to_braille_layers(layers, width, height, background=None):
    """Convert stacked pixel layers to colored braille rows.

    Args:
        layers: List of (grid, style) pairs, highest priority first. A cell
            takes the style of the first layer with any pixel in it; the dots
            are the union of all layers.
        width, height: Pixel size of every grid
        background: Optional (bool grid, bg color) painted behind cells where
            at least half the pixels are set

    Returns:
        List of Rich Text objects, one per character row
    """
    if not layers:
        layers = [(np.zeros((height, width), dtype=np.uint8), None)]

    blocks = [_cell_blocks(_pad_to_cells(grid.astype(bool))) for grid, _ in layers]
    styles = [style for _, style in layers]

    char_h, char_w = blocks[0].shape[:2]
    combined = np.zeros_like(blocks[0])
    for b in blocks:
        combined |= b
    weights = BRAILLE_WEIGHTS.reshape(1, 1, 4, 2).astype(np.uint16)
    codes = BRAILLE_BASE + np.sum(combined * weights, axis=(2, 3))

    # Index of the first layer present in each cell, len(layers) if none
    owner = np.full((char_h, char_w), len(layers), dtype=np.int32)
    for i in range(len(blocks) - 1, -1, -1):
        owner[np.any(blocks[i], axis=(2, 3))] = i

    if background is not None:
        bg_grid, bg_color = background
        bg_blocks = _cell_blocks(_pad_to_cells(bg_grid.astype(bool)))
        has_bg = np.sum(bg_blocks, axis=(2, 3)) >= 4
    else:
        bg_color = None
        has_bg = np.zeros((char_h, char_w), dtype=bool)

    result = []
    for cy in range(char_h):
        row_text = Text()
        current_style = None
        current_chars = []

        for cx in range(char_w):
            idx = owner[cy, cx]
            style = styles[idx] if idx < len(styles) else None
            if has_bg[cy, cx]:
                style = f"{style} on {bg_color}" if style else f"on {bg_color}"

            char = chr(codes[cy, cx])

            if style == current_style:
                current_chars.append(char)
            else:
                if current_chars:
                    row_text.append(''.join(current_chars), style=current_style)
                current_chars = [char]
                current_style = style

        if current_chars:
            row_text.append(''.join(current_chars), style=current_style)

        result.append(row_text)

    return result
