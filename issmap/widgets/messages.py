"""Textual Message subclasses posted from fetch threads to the app."""

from textual.message import Message


class TelemetryUpdated(Message):
    """Posted when a fresh telemetry snapshot has been fetched."""

    def __init__(self, snapshot) -> None:
        super().__init__()
        self.snapshot = snapshot


class OrbitLoaded(Message):
    """Posted when the predicted ground track has been computed."""

    def __init__(self, segments) -> None:
        super().__init__()
        self.segments = segments
