"""
SGP4 ground track sampling.
Turns a TLE response into sub-satellite points over a future time window.
"""

import logging
from datetime import datetime, timezone

import numpy as np
from sgp4.api import Satrec, jday, WGS72

log = logging.getLogger("issmap.propagator")

TLE_LINE_LENGTH = 69

# Ground track window: one low-Earth-orbit period sampled every 30 s
ORBIT_HORIZON_S = 5400
ORBIT_STEP_S = 30

SECONDS_PER_DAY = 86400.0
J2000_JD = 2451545.0

# WGS84 ellipsoid, km
WGS84_A = 6378.137
WGS84_F = 1.0 / 298.257223563
WGS84_B = WGS84_A * (1.0 - WGS84_F)
WGS84_E2 = WGS84_F * (2.0 - WGS84_F)
WGS84_EP2 = WGS84_E2 / (1.0 - WGS84_E2)


def parse_tle_text(text: str) -> Satrec:
    """Build a Satrec from a three-line TLE response (name, line 1, line 2).

    Args:
        text: Raw response body. Lines 2 and 3 must hold the element set.

    Returns:
        Satrec ready for propagation

    Raises:
        ValueError: If there are fewer than 3 lines or the element set is malformed.
    """
    lines = text.split('\n')
    if len(lines) < 3:
        raise ValueError(f"Invalid TLE data: expected 3 lines, got {len(lines)}")

    line1 = lines[1].strip()
    line2 = lines[2].strip()

    if len(line1) != TLE_LINE_LENGTH or not line1.startswith("1 "):
        raise ValueError(f"Invalid TLE line 1: {line1!r}")
    if len(line2) != TLE_LINE_LENGTH or not line2.startswith("2 "):
        raise ValueError(f"Invalid TLE line 2: {line2!r}")

    sat = Satrec.twoline2rv(line1, line2, WGS72)
    if sat.error != 0:
        raise ValueError(f"SGP4 initialisation failed: error code {sat.error}")

    log.debug("Parsed TLE for satellite %s", sat.satnum)
    return sat


def _julian_date(dt: datetime):
    """(jd, fr) for dt; naive datetimes are taken as UTC."""
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)
    return jday(dt.year, dt.month, dt.day, dt.hour, dt.minute,
                dt.second + dt.microsecond / 1e6)


def greenwich_sidereal_time(jd, fr):
    """GMST in radians (IAU 1982, UT1 taken as UTC). Accepts scalars or arrays."""
    t = (jd - J2000_JD + fr) / 36525.0
    seconds = (67310.54841
               + (876600.0 * 3600.0 + 8640184.812866) * t
               + 0.093104 * t ** 2
               - 6.2e-6 * t ** 3)
    return np.mod(seconds, SECONDS_PER_DAY) * (2.0 * np.pi / SECONDS_PER_DAY)


def ecef_to_geodetic(x, y, z):
    """Earth-fixed km to (latitude_deg, longitude_deg, altitude_km).

    Bowring's closed form, good to well under a metre at LEO altitudes.
    Accepts scalars or arrays.
    """
    x, y, z = (np.asarray(v, dtype=np.float64) for v in (x, y, z))
    p = np.hypot(x, y)
    theta = np.arctan2(z * WGS84_A, p * WGS84_B)
    lat = np.arctan2(z + WGS84_EP2 * WGS84_B * np.sin(theta) ** 3,
                     p - WGS84_E2 * WGS84_A * np.cos(theta) ** 3)
    sin_lat = np.sin(lat)
    # Height above the ellipsoid, without the p / cos(lat) pole singularity
    alt = p * np.cos(lat) + z * sin_lat - WGS84_A * np.sqrt(1.0 - WGS84_E2 * sin_lat ** 2)
    return np.degrees(lat), np.degrees(np.arctan2(y, x)), alt


def _teme_to_geodetic(position, jd, fr):
    """Rotate TEME positions by GMST about z, then convert to geodetic."""
    position = np.asarray(position, dtype=np.float64)
    gmst = greenwich_sidereal_time(jd, fr)
    cos_g, sin_g = np.cos(gmst), np.sin(gmst)
    x, y, z = position[..., 0], position[..., 1], position[..., 2]
    return ecef_to_geodetic(x * cos_g + y * sin_g, y * cos_g - x * sin_g, z)


def propagate_to_datetime(sat: Satrec, dt: datetime) -> tuple[float, float, float]:
    """Sub-satellite point and altitude at dt.

    Returns:
        (latitude_deg, longitude_deg, altitude_km), or three NaNs when SGP4
        reports an error for that instant.
    """
    jd, fr = _julian_date(dt)
    error, position, _ = sat.sgp4(jd, fr)
    if error != 0:
        return (np.nan, np.nan, np.nan)

    lat, lon, alt = _teme_to_geodetic(position, jd, fr)
    return (float(lat), float(lon), float(alt))


def sample_ground_track(sat: Satrec, start: datetime,
                        horizon_s: int = ORBIT_HORIZON_S,
                        step_s: int = ORBIT_STEP_S) -> list[tuple[float, float]]:
    """Sample the ground track from start to start + horizon_s inclusive.

    All instants are propagated in one sgp4_array call. Samples whose
    propagation is undefined (SGP4 error or non-finite lat/lon) are skipped,
    so the result may have time gaps.

    Returns:
        List of (latitude_deg, longitude_deg) in time order.
    """
    offsets = np.arange(0, horizon_s + 1, step_s, dtype=np.float64)
    jd0, fr0 = _julian_date(start)
    jd = np.full_like(offsets, jd0)
    fr = fr0 + offsets / SECONDS_PER_DAY

    errors, positions, _ = sat.sgp4_array(jd, fr)
    lats, lons, _ = _teme_to_geodetic(positions, jd, fr)

    ok = (np.asarray(errors) == 0) & np.isfinite(lats) & np.isfinite(lons)
    skipped = int(len(ok) - ok.sum())
    if skipped:
        log.debug("Skipped %d undefined ground track samples", skipped)

    return [(float(lat), float(lon)) for lat, lon in zip(lats[ok], lons[ok])]
