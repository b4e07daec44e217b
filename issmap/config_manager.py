"""
Unified configuration manager.
Built-in defaults, overlaid with an optional user TOML file. Read-only at runtime.
"""

import copy
import logging
from pathlib import Path

import tomlkit
from rich.color import Color, ColorParseError
from tomlkit.exceptions import ParseError

log = logging.getLogger("issmap.config")

CONFIG_FILE = Path("config.toml")

DEFAULT_API = {
    "base_url": "https://api.wheretheiss.at/v1",
    "satellite_id": 25544,
    "timeout": 10.0,
    "poll_interval": 5.0,
    "user_agent": "issmap/0.1",
}

DEFAULT_ORBIT = {
    "horizon_s": 5400,
    "step_s": 30,
}

DEFAULT_MAP = {
    "center_lat": 20.0,
    "center_lon": 15.0,
    "zoom": 1.25,
    "min_zoom": 1.0,
    "max_zoom": 4.0,
    "zoom_step": 0.25,
    "pan_step": 10.0,
    "refresh_interval": 1.0,
}

DEFAULT_COLORS = {
    "land": "white",
    "graticule": "grey37",
    "orbit": "blue",
    "horizon": "blue",
    "horizon_fill": "#0b2540",
    "visibility": "cyan",
    "marker": "yellow",
}

_SECTIONS = ("api", "orbit", "map", "colors")


def _is_color(value: str) -> bool:
    try:
        Color.parse(value)
    except ColorParseError:
        return False
    return True


class ConfigManager:

    def __init__(self, path: Path | None = None):
        self._path = Path(path) if path is not None else CONFIG_FILE
        self._api = copy.deepcopy(DEFAULT_API)
        self._orbit = copy.deepcopy(DEFAULT_ORBIT)
        self._map = copy.deepcopy(DEFAULT_MAP)
        self._colors = copy.deepcopy(DEFAULT_COLORS)

        # Keys the user file actually changed
        self._user_overrides = {}

        self._load()

    # --- Loading ---

    def _load(self):
        if not self._path.exists():
            return

        try:
            raw = self._path.read_text(encoding="utf-8")
            doc = tomlkit.parse(raw)
        except (OSError, ParseError) as e:
            log.warning("Config load error (%s): %s, using defaults", self._path, e)
            return

        self._apply_toml(doc)
        log.info("Loaded config from %s", self._path)

    def _apply_toml(self, doc):
        for section in _SECTIONS:
            if section not in doc:
                continue
            target = getattr(self, f"_{section}")
            for key, val in doc[section].items():
                if key not in target:
                    log.debug("Ignoring unknown config key %s.%s", section, key)
                    continue
                default = target[key]
                try:
                    coerced = type(default)(val)
                except (TypeError, ValueError):
                    log.warning("Bad value for %s.%s: %r", section, key, val)
                    continue
                if section == "colors" and not _is_color(coerced):
                    log.warning("Bad colour for %s.%s: %r", section, key, val)
                    continue
                target[key] = coerced
                self._user_overrides.setdefault(section, {})
                self._user_overrides[section][key] = coerced

    # --- Read API ---

    @property
    def path(self) -> Path:
        return self._path

    @property
    def api(self):
        return self._api

    @property
    def orbit(self):
        return self._orbit

    @property
    def map(self):
        return self._map

    @property
    def user_overrides(self):
        return self._user_overrides

    def get_color(self, name: str) -> str:
        return self._colors.get(name, "white")

    @property
    def telemetry_url(self) -> str:
        return f"{self._api['base_url']}/satellites/{self._api['satellite_id']}"

    @property
    def tle_url(self) -> str:
        return f"{self.telemetry_url}/tles"

    def reload(self, path: Path | None = None):
        if path is not None:
            self._path = Path(path)
        self._api = copy.deepcopy(DEFAULT_API)
        self._orbit = copy.deepcopy(DEFAULT_ORBIT)
        self._map = copy.deepcopy(DEFAULT_MAP)
        self._colors = copy.deepcopy(DEFAULT_COLORS)
        self._user_overrides = {}
        self._load()


# Module-level singleton
config = ConfigManager()
