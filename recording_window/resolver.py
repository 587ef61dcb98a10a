"""Recording window resolution.

Turns a pair of window bounds into the concrete UTC interval the recorder
should be active in, for any instant. Relative bounds are anchored on
sunset (start) and sunrise (stop) at the device location; absolute bounds
are local clock times converted with an explicit UTC offset. Nothing here
reads the system clock or timezone.
"""

from __future__ import annotations

import logging
from bisect import bisect_left
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, NamedTuple

from .ephemeris import GeoLocation, SolarEvents, solar_events
from .timespec import SECONDS_PER_DAY, AbsoluteTime, RelativeTime, TimeSpec

log = logging.getLogger(__name__)

ONE_DAY = timedelta(days=1)

DEFAULT_START = RelativeTime(-30 * 60)  # 30 min before sunset
DEFAULT_STOP = RelativeTime(30 * 60)  # 30 min after sunrise


class ResolveError(Exception):
    """A window could not be resolved for the requested instant."""


class LocationRequired(ResolveError):
    def __init__(self) -> None:
        super().__init__("Relative recording windows require a location (latitude and longitude)")


class SolarUndefined(ResolveError):
    def __init__(self, day: date, location: GeoLocation) -> None:
        super().__init__(
            f"No sunrise/sunset on {day.isoformat()} at "
            f"({location.latitude}, {location.longitude})"
        )
        self.day = day
        self.location = location


class Unresolvable(ResolveError):
    def __init__(self, now_utc: datetime, detail: str = "no candidate window matched") -> None:
        super().__init__(f"Unable to calculate recording window at {now_utc.isoformat()}: {detail}")
        self.now_utc = now_utc


@dataclass(frozen=True)
class RecordingWindowConfig:
    start: TimeSpec = DEFAULT_START
    stop: TimeSpec = DEFAULT_STOP
    continuous_recorder: bool = False

    @property
    def is_continuous(self) -> bool:
        if self.continuous_recorder:
            return True
        return (
            isinstance(self.start, AbsoluteTime)
            and isinstance(self.stop, AbsoluteTime)
            and self.start == self.stop
        )

    @property
    def needs_location(self) -> bool:
        return isinstance(self.start, RelativeTime) or isinstance(self.stop, RelativeTime)


class BoundOffset(NamedTuple):
    """A bound as (is_absolute, seconds): UTC seconds past midnight, or anchor offset."""

    is_absolute: bool
    offset_seconds: int


@dataclass(frozen=True)
class ResolvedWindow:
    start_utc: datetime
    end_utc: datetime
    continuous: bool = False

    def contains(self, now_utc: datetime) -> bool:
        if self.continuous:
            return True
        now = as_utc(now_utc)
        return self.start_utc <= now <= self.end_utc

    def starts_in(self, now_utc: datetime) -> timedelta:
        return self.start_utc - as_utc(now_utc)

    def ends_in(self, now_utc: datetime) -> timedelta:
        return self.end_utc - as_utc(now_utc)

    @property
    def duration(self) -> timedelta:
        return self.end_utc - self.start_utc


def as_utc(dt: datetime) -> datetime:
    """Naive datetimes are taken to be UTC already."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def bound_offset(spec: TimeSpec, utc_offset_seconds: int) -> BoundOffset:
    """Resolve a bound to the values the firmware consumes."""
    if isinstance(spec, AbsoluteTime):
        # local clock -> UTC seconds past midnight, kept in [0, 86400)
        return BoundOffset(True, (spec.seconds_past_midnight - utc_offset_seconds) % SECONDS_PER_DAY)
    return BoundOffset(False, spec.offset_seconds)


def _utc_midnight(day: date) -> datetime:
    return datetime.combine(day, time(0), tzinfo=timezone.utc)


def _events_for(day: date, location: GeoLocation) -> SolarEvents:
    events = solar_events(day, location.latitude, location.longitude, location.altitude)
    if events is None:
        raise SolarUndefined(day, location)
    return events


def _solar_window(
    now: datetime,
    start_offset: int,
    end_offset: int,
    location: GeoLocation,
) -> tuple[datetime, datetime]:
    """Pick the sunset-to-sunrise interval that contains or follows ``now``."""
    start_shift = timedelta(seconds=start_offset)
    end_shift = timedelta(seconds=end_offset)
    today = now.date()

    yesterday = _events_for(today - ONE_DAY, location)
    current = _events_for(today, location)
    tomorrow = _events_for(today + ONE_DAY, location)

    yesterday_sunset = yesterday.sunset_utc + start_shift
    today_sunrise = current.sunrise_utc + end_shift
    today_sunset = current.sunset_utc + start_shift
    tomorrow_sunrise = tomorrow.sunrise_utc + end_shift
    tomorrow_sunset = tomorrow.sunset_utc + start_shift

    if now > today_sunset and now > tomorrow_sunrise:
        two_days = _events_for(today + 2 * ONE_DAY, location)
        return tomorrow_sunset, two_days.sunrise_utc + end_shift
    if today_sunset <= now <= tomorrow_sunrise or today_sunrise < now < today_sunset:
        return today_sunset, tomorrow_sunrise
    if now < tomorrow_sunset and now <= today_sunrise and now > yesterday_sunset:
        return yesterday_sunset, today_sunrise
    # past yesterday's real sunset but before the shifted start
    if now <= yesterday_sunset and now <= today_sunrise:
        return yesterday_sunset, today_sunrise
    raise Unresolvable(now)


def _bound_instants(
    bound: BoundOffset,
    days: list[date],
    location: GeoLocation,
    rising: bool,
) -> list[datetime]:
    """Every occurrence of one bound on ``days``, in UTC order.

    Absolute bounds are pinned to each UTC date. Relative bounds shift
    that day's sunrise (``rising``) or sunset.
    """
    shift = timedelta(seconds=bound.offset_seconds)
    if bound.is_absolute:
        return [_utc_midnight(day) + shift for day in days]
    instants = []
    for day in days:
        events = _events_for(day, location)
        instants.append((events.sunrise_utc if rising else events.sunset_utc) + shift)
    return sorted(instants)


def _mixed_window(
    now: datetime,
    start: BoundOffset,
    end: BoundOffset,
    location: GeoLocation,
) -> tuple[datetime, datetime]:
    """Window for one clock bound and one solar bound.

    Each start pairs with the first end at or after it. The result is the
    pairing with the earliest end not before ``now``, taking the earliest
    start when several starts share that end.
    """
    today = now.date()
    days = [today + k * ONE_DAY for k in range(-2, 3)]
    starts = _bound_instants(start, days, location, rising=False)
    ends = _bound_instants(end, days, location, rising=True)

    best: tuple[datetime, datetime] | None = None
    for s in starts:
        i = bisect_left(ends, s)
        if i == len(ends) or ends[i] < now:
            continue
        if best is None or (ends[i], s) < (best[1], best[0]):
            best = (s, ends[i])
    if best is None:
        raise Unresolvable(now)
    return best


def _correct_day_boundary(now: datetime, start: datetime, end: datetime) -> tuple[datetime, datetime]:
    """Move clock-time bounds by a day so the window is current or next.

    Both bounds arrive pinned to ``now``'s UTC date.
    """
    start_prev = start - ONE_DAY
    start_next = start + ONE_DAY
    end_prev = end - ONE_DAY
    end_next = end + ONE_DAY

    if start_prev > end_prev:
        end_prev += ONE_DAY
    if start_next > end_next:
        start_next = start

    # still inside yesterday's occurrence
    if end_prev > now:
        start, end = start_prev, end_prev
    # wraps past midnight
    if end < start:
        end = end_next
    # today's occurrence is over
    if now > end:
        start, end = start_next, end_next
    return start, end


def resolve_window(
    now_utc: datetime,
    config: RecordingWindowConfig,
    location: GeoLocation | None = None,
    utc_offset_seconds: int = 0,
) -> ResolvedWindow:
    """Return the recording window that contains ``now_utc``, or the next one.

    ``utc_offset_seconds`` is the device locale's offset from UTC
    (local - UTC) and applies to absolute bounds only. A continuous
    configuration resolves to the whole UTC day containing ``now_utc``.

    Raises LocationRequired, SolarUndefined or Unresolvable.
    """
    now = as_utc(now_utc)
    if config.is_continuous:
        day_start = _utc_midnight(now.date())
        return ResolvedWindow(day_start, day_start + ONE_DAY, continuous=True)

    start = bound_offset(config.start, utc_offset_seconds)
    end = bound_offset(config.stop, utc_offset_seconds)

    if start.is_absolute and end.is_absolute:
        midnight = _utc_midnight(now.date())
        start_utc, end_utc = _correct_day_boundary(
            now,
            midnight + timedelta(seconds=start.offset_seconds),
            midnight + timedelta(seconds=end.offset_seconds),
        )
    elif location is None:
        raise LocationRequired()
    elif start.is_absolute or end.is_absolute:
        start_utc, end_utc = _mixed_window(now, start, end, location)
    else:
        start_utc, end_utc = _solar_window(now, start.offset_seconds, end.offset_seconds, location)

    if end_utc < start_utc:
        raise Unresolvable(now, f"window end {end_utc.isoformat()} precedes start {start_utc.isoformat()}")
    return ResolvedWindow(start_utc, end_utc)


def is_active(
    now_utc: datetime,
    config: RecordingWindowConfig,
    location: GeoLocation | None = None,
    utc_offset_seconds: int = 0,
) -> bool:
    """True when ``now_utc`` is inside the window, both ends inclusive."""
    if config.is_continuous:
        return True
    window = resolve_window(now_utc, config, location, utc_offset_seconds)
    return window.contains(now_utc)


def _hours_minutes(delta: timedelta) -> str:
    # truncate toward zero like the firmware status line
    total_minutes = int(delta.total_seconds() / 60)
    hours = int(total_minutes / 60)
    return f"{hours}h{total_minutes - hours * 60}m"


def describe_window(window: ResolvedWindow, now_utc: datetime) -> str:
    """Human summary used in status output."""
    if window.continuous:
        return "Recording continuously"
    starts_in = _hours_minutes(window.starts_in(now_utc))
    ends_in = _hours_minutes(window.ends_in(now_utc))
    duration = _hours_minutes(window.duration)
    now = as_utc(now_utc)
    if window.start_utc > now:
        return f"Recording will start in {starts_in} and end in {ends_in}, window duration {duration}"
    if window.end_utc > now:
        return f"Recording will end in {ends_in}, window duration {duration}"
    return f"Recording window ended, window duration {duration}"


def log_window(
    window: ResolvedWindow,
    now_utc: datetime,
    event: str = "window_resolved",
    **fields: Any,
) -> None:
    log.info(event, extra={
        "start_utc": window.start_utc.isoformat(),
        "end_utc": window.end_utc.isoformat(),
        "continuous": window.continuous,
        "active": window.contains(now_utc),
        "summary": describe_window(window, now_utc),
        **fields,
    })
