"""Binary window segment for the recorder firmware.

Layout (little endian, 11 bytes):

    u8  start is absolute
    i32 start offset (UTC seconds past midnight, or seconds from sunset)
    u8  stop is absolute
    i32 stop offset (UTC seconds past midnight, or seconds from sunrise)
    u8  continuous recorder
"""

from __future__ import annotations

import struct
from typing import NamedTuple

from .resolver import BoundOffset, RecordingWindowConfig, bound_offset

_SEGMENT = struct.Struct("<BiBiB")

SEGMENT_SIZE = _SEGMENT.size


class WindowSegment(NamedTuple):
    start: BoundOffset
    stop: BoundOffset
    continuous: bool


def window_segment(config: RecordingWindowConfig, utc_offset_seconds: int) -> WindowSegment:
    return WindowSegment(
        start=bound_offset(config.start, utc_offset_seconds),
        stop=bound_offset(config.stop, utc_offset_seconds),
        continuous=config.is_continuous,
    )


def encode_window_segment(config: RecordingWindowConfig, utc_offset_seconds: int) -> bytes:
    seg = window_segment(config, utc_offset_seconds)
    try:
        return _SEGMENT.pack(
            int(seg.start.is_absolute),
            seg.start.offset_seconds,
            int(seg.stop.is_absolute),
            seg.stop.offset_seconds,
            int(seg.continuous),
        )
    except struct.error as exc:
        raise ValueError(f"window offsets do not fit the firmware segment: {exc}") from exc


def decode_window_segment(data: bytes) -> WindowSegment:
    if len(data) < SEGMENT_SIZE:
        raise ValueError(f"window segment needs {SEGMENT_SIZE} bytes, got {len(data)}")
    start_abs, start_off, stop_abs, stop_off, continuous = _SEGMENT.unpack_from(data)
    return WindowSegment(
        start=BoundOffset(bool(start_abs), start_off),
        stop=BoundOffset(bool(stop_abs), stop_off),
        continuous=bool(continuous),
    )
