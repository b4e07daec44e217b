"""Satellite data: telemetry, TLE propagation and ground track geometry."""
