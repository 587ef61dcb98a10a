"""Recording window resolution for unattended field cameras."""

from .ephemeris import GeoLocation, SolarEvents, solar_events
from .resolver import (
    LocationRequired,
    RecordingWindowConfig,
    ResolvedWindow,
    ResolveError,
    SolarUndefined,
    Unresolvable,
    is_active,
    resolve_window,
)
from .timespec import (
    AbsoluteTime,
    ColonBeforeDigit,
    EmptyTimeSpec,
    RelativeTime,
    TimeSpec,
    TimeSpecError,
    UnexpectedCharacter,
    UnitBeforeDigit,
    parse_time_spec,
)
from .wire import WindowSegment, decode_window_segment, encode_window_segment

__all__ = [
    "AbsoluteTime",
    "ColonBeforeDigit",
    "EmptyTimeSpec",
    "GeoLocation",
    "LocationRequired",
    "RecordingWindowConfig",
    "RelativeTime",
    "ResolveError",
    "ResolvedWindow",
    "SolarEvents",
    "SolarUndefined",
    "TimeSpec",
    "TimeSpecError",
    "UnexpectedCharacter",
    "UnitBeforeDigit",
    "Unresolvable",
    "WindowSegment",
    "decode_window_segment",
    "encode_window_segment",
    "is_active",
    "parse_time_spec",
    "resolve_window",
    "solar_events",
]
