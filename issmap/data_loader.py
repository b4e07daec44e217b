"""
Base map loading: Natural Earth shapefiles and a graticule fallback.
"""

import logging
import os
os.environ["SHAPE_RESTORE_SHX"] = "YES"

import numpy as np

log = logging.getLogger("issmap.data_loader")

DEFAULT_SHAPEFILE = 'files/ne_110m_admin_0_countries.shp'


def extract_line_segments(gdf):
    """Extract outline segments from a GeoDataFrame.

    Returns:
        segments: List of float32 arrays of shape (n, 2) holding [lon, lat]
        bounds: numpy array of [min_lon, max_lon, min_lat, max_lat] per segment
    """
    segments = []
    bounds = []

    def add(coords):
        coords = np.asarray(coords, dtype=np.float32)[:, :2]
        if len(coords) < 2:
            return
        segments.append(coords)
        bounds.append((coords[:, 0].min(), coords[:, 0].max(),
                       coords[:, 1].min(), coords[:, 1].max()))

    def extract_coords(geom):
        t = geom.geom_type
        if t == 'Polygon':
            add(geom.exterior.coords)
        elif t == 'MultiPolygon':
            for poly in geom.geoms:
                extract_coords(poly)
        elif t == 'LineString':
            add(geom.coords)
        elif t == 'MultiLineString':
            for line in geom.geoms:
                add(line.coords)

    for geom in gdf.geometry:
        if geom is not None and not geom.is_empty:
            extract_coords(geom)

    bounds_arr = np.array(bounds, dtype=np.float32) if bounds else None
    return segments, bounds_arr


def load_shapefile(shapefile_path):
    """Load a shapefile's outlines. Returns (None, None) if the file is missing or unreadable."""
    if not shapefile_path or not os.path.exists(shapefile_path):
        log.warning("Map file %s not found, drawing graticule only", shapefile_path)
        return None, None

    import geopandas as gpd
    try:
        gdf = gpd.read_file(shapefile_path)
    except Exception as e:
        # geopandas surfaces driver-specific error types
        log.warning("Could not read %s: %s", shapefile_path, e)
        return None, None

    segments, bounds = extract_line_segments(gdf)
    del gdf
    log.info("Loaded %d outline segments from %s", len(segments), shapefile_path)
    return segments, bounds


def build_graticule(step_deg=30.0, lat_limit=85.0, resolution_deg=2.0):
    """Meridians and parallels every step_deg degrees, as [lon, lat] segments."""
    segments = []

    lats = np.arange(-lat_limit, lat_limit + resolution_deg / 2, resolution_deg)
    for lon in np.arange(-180.0, 180.0 + step_deg / 2, step_deg):
        segments.append(np.column_stack([np.full_like(lats, lon), lats]).astype(np.float32))

    lons = np.arange(-180.0, 180.0 + resolution_deg / 2, resolution_deg)
    parallels = np.arange(-90.0 + step_deg, 90.0, step_deg)
    for lat in parallels:
        if abs(lat) > lat_limit:
            continue
        segments.append(np.column_stack([lons, np.full_like(lons, lat)]).astype(np.float32))

    return segments
