"""One-shot ground track loader: fetch TLE, sample, split at the antimeridian."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Callable, Optional

from issmap.satellite.antimeridian import split_at_antimeridian
from issmap.satellite.api import FETCH_ERRORS, WhereTheIssClient
from issmap.satellite.propagator import (
    ORBIT_HORIZON_S,
    ORBIT_STEP_S,
    parse_tle_text,
    sample_ground_track,
)

log = logging.getLogger("issmap.orbit")


def compute_orbit_segments(tle_text: str, start: datetime,
                           horizon_s: int = ORBIT_HORIZON_S,
                           step_s: int = ORBIT_STEP_S) -> list[list[tuple[float, float]]]:
    """Parse a TLE response and return the ground track as polyline segments.

    Raises:
        ValueError: If the TLE text cannot be parsed.
    """
    sat = parse_tle_text(tle_text)
    points = sample_ground_track(sat, start, horizon_s=horizon_s, step_s=step_s)
    return split_at_antimeridian(points)


class OrbitLoader:
    """Loads the predicted ground track once per start() call.

    Failures leave the loader with no segments ("no orbit") and are only
    logged. Results that complete after cancel() are discarded.
    """

    def __init__(self, client: WhereTheIssClient,
                 on_segments: Callable[[list], None],
                 horizon_s: int = ORBIT_HORIZON_S,
                 step_s: int = ORBIT_STEP_S,
                 launch: Optional[Callable[[Callable[[], None]], object]] = None,
                 clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc)):
        self._client = client
        self._on_segments = on_segments
        self.horizon_s = horizon_s
        self.step_s = step_s
        self._launch = launch or (lambda fn: fn())
        self._clock = clock
        self._active = False
        self._generation = 0
        self._lock = threading.Lock()
        self.segments = []

    @property
    def active(self) -> bool:
        return self._active

    def start(self) -> None:
        with self._lock:
            self._active = True
            self._generation += 1
            generation = self._generation
        self._launch(lambda: self._load(generation))

    def cancel(self) -> None:
        with self._lock:
            self._active = False

    def _load(self, generation: int) -> None:
        try:
            tle_text = self._client.fetch_tle_text()
            segments = compute_orbit_segments(
                tle_text, self._clock(), horizon_s=self.horizon_s, step_s=self.step_s
            )
        except FETCH_ERRORS as e:
            log.error("Failed to load ISS orbit: %s", e)
            return

        with self._lock:
            if not self._active or generation != self._generation:
                log.debug("Discarding stale orbit result")
                return
            self.segments = segments

        log.info("Orbit loaded: %d points in %d segments",
                 sum(len(s) for s in segments), len(segments))
        self._on_segments(segments)
