"""
Live ISS map in the terminal using the Textual TUI framework.
Uses braille characters for high-resolution rendering.

Interactive controls:
  Arrow keys: Pan the map
  +/=: Zoom in
  -: Zoom out
  o: Reload the predicted orbit
  r: Reset view
  q: Quit
"""

import argparse
import logging
import sys
from pathlib import Path

from issmap.config_manager import config
from issmap.data_loader import DEFAULT_SHAPEFILE, build_graticule, load_shapefile
from issmap.map_app import MapApp

DEFAULT_LOG_FILE = Path("issmap.log")


def _setup_logging(log_file: Path, debug: bool):
    """Log to a file; the terminal belongs to the TUI."""
    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setFormatter(logging.Formatter(
        "%(asctime)s %(name)s %(levelname)s %(message)s"))
    logging.root.addHandler(handler)
    logging.root.setLevel(logging.DEBUG if debug else logging.INFO)
    # urllib3 is chatty at DEBUG
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def main(argv=None):
    parser = argparse.ArgumentParser(description='Live ISS position and ground track on a terminal world map')
    parser.add_argument('shapefile', nargs='?', default=DEFAULT_SHAPEFILE,
                        help='Natural Earth shapefile for the base map')
    parser.add_argument('--config', type=Path, default=None,
                        help='TOML file overriding the built-in settings')
    parser.add_argument('--log-file', type=Path, default=DEFAULT_LOG_FILE,
                        help=f'Log destination (default: {DEFAULT_LOG_FILE})')
    parser.add_argument('--debug', action='store_true',
                        help='Log at DEBUG level')

    args = parser.parse_args(argv)

    _setup_logging(args.log_file, args.debug)
    log = logging.getLogger("issmap.main")

    if args.config is not None:
        config.reload(args.config)
    if config.user_overrides:
        log.info("Config overrides from %s: %s", config.path, config.user_overrides)

    def status(msg):
        sys.stdout.write(f'\r{msg}')
        sys.stdout.flush()

    status('Loading map...')
    segments, segment_bounds = load_shapefile(args.shapefile)

    status('Starting UI...        \n')
    log.info("Starting ISS map (telemetry every %.1fs)", config.api["poll_interval"])

    app = MapApp(
        segments=segments,
        segment_bounds=segment_bounds,
        graticule=build_graticule(),
    )
    app.run()


if __name__ == '__main__':
    main()
