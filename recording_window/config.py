"""Configuration loading from YAML with environment variable overrides."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .ephemeris import GeoLocation
from .resolver import RecordingWindowConfig
from .timespec import TimeSpecError, parse_time_spec


_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ValueError(f"Expected a boolean, got {value!r}")


@dataclass(frozen=True)
class Config:
    # windows (time-spec strings)
    start_recording: str = "-30m"
    stop_recording: str = "30m"
    continuous_recorder: bool = False

    # location
    latitude: float | None = None
    longitude: float | None = None
    altitude: float | None = None

    # agent
    utc_offset_seconds: int | None = None  # None = host local offset at each poll
    poll_interval_s: float = 60.0
    health_port: int = 8043  # 0 disables
    log_level: str = "INFO"

    # derived
    window: RecordingWindowConfig = field(init=False, repr=False, compare=False)
    location: GeoLocation | None = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        specs = {}
        for fld in ("start_recording", "stop_recording"):
            try:
                specs[fld] = parse_time_spec(str(getattr(self, fld)))
            except TimeSpecError as exc:
                raise TimeSpecError(f"{fld}: {exc}") from exc
        object.__setattr__(self, "window", RecordingWindowConfig(
            start=specs["start_recording"],
            stop=specs["stop_recording"],
            continuous_recorder=self.continuous_recorder,
        ))

        location = None
        if self.has_location:
            location = GeoLocation(self.latitude, self.longitude, self.altitude)
        object.__setattr__(self, "location", location)

        if self.poll_interval_s <= 0:
            raise ValueError(f"poll_interval_s must be positive, got {self.poll_interval_s}")

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None


def load_config(config_path: str | Path | None = None) -> Config:
    """Load config from YAML file, then override with environment variables."""
    raw: dict[str, Any] = {}
    if config_path and Path(config_path).exists():
        with open(config_path) as f:
            raw = yaml.safe_load(f) or {}

    # flatten nested yaml sections into flat keys for the dataclass
    flat: dict[str, Any] = {}
    for section in ("windows", "location", "recorder", "agent"):
        if section in raw and isinstance(raw[section], dict):
            flat.update(raw[section])
    # also accept top-level keys
    for k, v in raw.items():
        if not isinstance(v, dict):
            flat[k] = v
    # "start-recording" and "start_recording" are the same key
    flat = {str(k).replace("-", "_"): v for k, v in flat.items()}
    if "constant_recorder" in flat:
        flat.setdefault("continuous_recorder", flat.pop("constant_recorder"))

    # environment variable overrides (uppercased key, prefixed RW_)
    env_map = {
        "RW_START_RECORDING": "start_recording",
        "RW_STOP_RECORDING": "stop_recording",
        "RW_CONTINUOUS_RECORDER": "continuous_recorder",
        "RW_LATITUDE": "latitude",
        "RW_LONGITUDE": "longitude",
        "RW_ALTITUDE": "altitude",
        "RW_UTC_OFFSET_SECONDS": "utc_offset_seconds",
        "RW_POLL_INTERVAL_S": "poll_interval_s",
        "RW_HEALTH_PORT": "health_port",
        "RW_LOG_LEVEL": "log_level",
    }
    for env_key, cfg_key in env_map.items():
        val = os.environ.get(env_key)
        if val is not None:
            flat[cfg_key] = val

    # keep only keys the dataclass knows; the device config carries many more
    known = set(env_map.values())
    flat = {k: v for k, v in flat.items() if k in known}

    # type coerce fields
    int_fields = {"utc_offset_seconds", "health_port"}
    float_fields = {"latitude", "longitude", "altitude", "poll_interval_s"}
    for k in int_fields:
        if flat.get(k) is not None:
            flat[k] = int(flat[k])
    for k in float_fields:
        if flat.get(k) is not None:
            flat[k] = float(flat[k])
    if "continuous_recorder" in flat:
        flat["continuous_recorder"] = _to_bool(flat["continuous_recorder"])
    for k in ("start_recording", "stop_recording"):
        # unquoted 22:10 is a base-60 integer to YAML
        if k in flat and not isinstance(flat[k], str):
            raise ValueError(f"{k} must be a quoted string, got {flat[k]!r}")

    return Config(**flat)
