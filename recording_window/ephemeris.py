"""Sunrise/sunset for a date and device location."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone

from astral import Observer
from astral.sun import sunrise, sunset

log = logging.getLogger(__name__)

_SECONDS_PER_DEGREE_LONGITUDE = 240  # 86400 s / 360 deg


@dataclass(frozen=True)
class GeoLocation:
    latitude: float
    longitude: float
    altitude: float | None = None

    def __post_init__(self) -> None:
        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError(f"latitude must be within [-90, 90], got {self.latitude}")
        if not -180.0 <= self.longitude <= 180.0:
            raise ValueError(f"longitude must be within [-180, 180], got {self.longitude}")


@dataclass(frozen=True)
class SolarEvents:
    sunrise_utc: datetime
    sunset_utc: datetime


def solar_timezone(longitude: float) -> timezone:
    """Fixed offset of local mean solar time at ``longitude``."""
    return timezone(timedelta(seconds=round(longitude * _SECONDS_PER_DEGREE_LONGITUDE)))


def solar_events(
    day: date,
    latitude: float,
    longitude: float,
    altitude: float | None = None,
) -> SolarEvents | None:
    """Apparent sunrise and sunset (UTC) for ``day`` at the given location.

    ``day`` is the local solar day at ``longitude``: the sunrise and sunset
    returned bracket that day's solar noon, so sunrise always precedes
    sunset. Altitude lowers the visible horizon (dip) which makes sunrise
    earlier and sunset later.

    Returns None when the sun does not cross the horizon that day
    (polar day or polar night).
    """
    observer = Observer(
        latitude=latitude,
        longitude=longitude,
        elevation=max(altitude or 0.0, 0.0),
    )
    tz = solar_timezone(longitude)
    try:
        rise = sunrise(observer, day, tzinfo=tz)
        fall = sunset(observer, day, tzinfo=tz)
    except ValueError as exc:
        log.debug("solar_events_undefined", extra={
            "date": day.isoformat(),
            "latitude": latitude,
            "longitude": longitude,
            "reason": str(exc),
        })
        return None
    return SolarEvents(
        sunrise_utc=rise.astimezone(timezone.utc),
        sunset_utc=fall.astimezone(timezone.utc),
    )
