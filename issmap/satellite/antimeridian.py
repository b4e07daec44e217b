"""
Antimeridian splitting for ground tracks and circle outlines.
"""

from typing import Sequence

# Largest longitude jump between adjacent samples that is still drawn as a
# continuous line. Anything wider is a wrap across +/-180.
MAX_LON_JUMP_DEG = 180.0


def split_at_antimeridian(points: Sequence[Sequence[float]]) -> list[list]:
    """Split a (lat, lon) sequence into segments that never wrap the map.

    A new segment starts whenever the longitude of a point differs from the
    previous point in the current segment by more than 180 degrees. The
    segments concatenated in order give back the input points.

    Args:
        points: Ordered (lat, lon) pairs in degrees.

    Returns:
        List of non-empty segments (lists of the original point objects).
    """
    segments = []
    current = []

    for point in points:
        if current:
            prev_lon = current[-1][1]
            if abs(point[1] - prev_lon) > MAX_LON_JUMP_DEG:
                segments.append(current)
                current = []
        current.append(point)

    if current:
        segments.append(current)

    return segments
