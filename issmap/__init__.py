"""Live ISS position, ground track and visibility horizon in the terminal."""

__version__ = "0.1.0"
