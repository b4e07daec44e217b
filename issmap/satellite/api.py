"""wheretheiss.at REST API client.

Fetches live position telemetry and the current TLE for one satellite.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

import requests

from issmap.config_manager import config

log = logging.getLogger("issmap.api")

# Errors a single fetch may raise; callers log them and carry on
FETCH_ERRORS = (requests.RequestException, ValueError, KeyError, TypeError)


@dataclass(frozen=True)
class TelemetrySnapshot:
    """Current position of the satellite as reported by the service.

    Attributes:
        latitude: Degrees, [-90, 90].
        longitude: Degrees, [-180, 180].
        altitude: Kilometres above the surface.
        velocity: Kilometres per hour.
        timestamp: Report time (UTC), if the service sent one.
        visibility: "daylight" or "eclipsed", if the service sent one.
    """

    latitude: float = 0.0
    longitude: float = 0.0
    altitude: float = 0.0
    velocity: float = 0.0
    timestamp: datetime | None = None
    visibility: str | None = None

    @classmethod
    def from_json(cls, data: dict) -> TelemetrySnapshot:
        """Build a snapshot from the service's JSON payload.

        Raises:
            KeyError: If a required field is missing.
            ValueError, TypeError: If a field is not numeric.
        """
        timestamp = None
        if data.get("timestamp") is not None:
            timestamp = datetime.fromtimestamp(float(data["timestamp"]), tz=timezone.utc)

        return cls(
            latitude=float(data["latitude"]),
            longitude=float(data["longitude"]),
            altitude=float(data["altitude"]),
            velocity=float(data["velocity"]),
            timestamp=timestamp,
            visibility=data.get("visibility"),
        )


@dataclass
class WhereTheIssClient:
    """Client for the wheretheiss.at satellite API.

    Attributes:
        telemetry_url: Position endpoint for the tracked satellite.
        tle_url: TLE endpoint for the tracked satellite.
        timeout: Per-request timeout in seconds.
    """

    telemetry_url: str = field(default_factory=lambda: config.telemetry_url)
    tle_url: str = field(default_factory=lambda: config.tle_url)
    timeout: float = field(default_factory=lambda: config.api["timeout"])
    _session: requests.Session = field(default_factory=requests.Session, repr=False)

    def __post_init__(self) -> None:
        self._session.headers.setdefault("User-Agent", config.api["user_agent"])

    def fetch_snapshot(self) -> TelemetrySnapshot:
        """Fetch the current position, altitude and velocity.

        Raises:
            requests.RequestException: On network errors or non-success status.
            ValueError, KeyError, TypeError: If the payload is malformed.
        """
        response = self._session.get(self.telemetry_url, timeout=self.timeout)
        response.raise_for_status()
        snapshot = TelemetrySnapshot.from_json(response.json())
        log.debug("Telemetry: lat=%.4f lon=%.4f alt=%.1f",
                  snapshot.latitude, snapshot.longitude, snapshot.altitude)
        return snapshot

    def fetch_tle_text(self) -> str:
        """Fetch the current element set as plain text (name line + 2 TLE lines).

        Raises:
            requests.RequestException: On network errors or non-success status.
        """
        response = self._session.get(
            self.tle_url, params={"format": "text"}, timeout=self.timeout
        )
        response.raise_for_status()
        return response.text

    def close(self) -> None:
        self._session.close()
