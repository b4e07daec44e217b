"""Widget components for the ISS map application."""

from .map_display import MapDisplay
from .info_panel import InfoPanel

__all__ = [
    'MapDisplay',
    'InfoPanel',
]
