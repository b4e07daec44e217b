"""
Visibility horizon geometry around the sub-satellite point.
"""

import math

import numpy as np

EARTH_RADIUS_KM = 6371.0

# Inner circle drawn as the practical visibility bound
PRACTICAL_HORIZON_RATIO = 0.6


def horizon_radius_km(altitude_km: float) -> float:
    """Straight-line distance to the horizon seen from altitude_km.

    sqrt(2*R*h + h^2); negative altitudes are treated as 0.
    """
    h = max(0.0, float(altitude_km))
    return math.sqrt(2 * EARTH_RADIUS_KM * h + h * h)


def horizon_radius_m(altitude_km: float) -> float:
    """Horizon radius in metres, the unit the circles are drawn in."""
    return horizon_radius_km(altitude_km) * 1000.0


def circle_points(lat: float, lon: float, radius_m: float,
                  num_points: int = 90) -> list[tuple[float, float]]:
    """Ring of surface points at great-circle distance radius_m from (lat, lon).

    The ring is closed (first point repeated at the end). Longitudes are
    normalised to [-180, 180) so the ring can be split at the antimeridian.

    Returns:
        List of (latitude_deg, longitude_deg). A zero radius returns only the centre.
    """
    if radius_m <= 0:
        return [(lat, lon)]

    angular = (radius_m / 1000.0) / EARTH_RADIUS_KM
    lat1 = np.radians(lat)
    lon1 = np.radians(lon)
    bearings = np.linspace(0.0, 2.0 * np.pi, num_points + 1)

    sin_lat2 = (np.sin(lat1) * np.cos(angular) +
                np.cos(lat1) * np.sin(angular) * np.cos(bearings))
    lat2 = np.arcsin(np.clip(sin_lat2, -1.0, 1.0))
    lon2 = lon1 + np.arctan2(np.sin(bearings) * np.sin(angular) * np.cos(lat1),
                             np.cos(angular) - np.sin(lat1) * sin_lat2)

    lats = np.degrees(lat2)
    lons = (np.degrees(lon2) + 180.0) % 360.0 - 180.0

    return [(float(a), float(b)) for a, b in zip(lats, lons)]


def great_circle_km(lat1, lon1, lat2, lon2):
    """Haversine distance in km. Accepts scalars or arrays."""
    lat1, lon1, lat2, lon2 = map(np.radians, (lat1, lon1, lat2, lon2))
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    a = np.sin(dlat / 2) ** 2 + np.cos(lat1) * np.cos(lat2) * np.sin(dlon / 2) ** 2
    return 2 * EARTH_RADIUS_KM * np.arcsin(np.sqrt(np.clip(a, 0.0, 1.0)))
