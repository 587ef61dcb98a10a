"""Window poller: re-resolves the recording window on every tick."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable

from .ephemeris import GeoLocation
from .resolver import (
    RecordingWindowConfig,
    ResolvedWindow,
    ResolveError,
    Unresolvable,
    describe_window,
    log_window,
    resolve_window,
)
from .wire import encode_window_segment

log = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def local_utc_offset_seconds(now_utc: datetime) -> int:
    """Host local timezone offset (local - UTC) in effect at ``now_utc``."""
    offset = now_utc.astimezone().utcoffset()
    return int(offset.total_seconds()) if offset is not None else 0


@dataclass(frozen=True)
class WindowStatus:
    checked_at: datetime
    active: bool
    window: ResolvedWindow | None = None
    error: str | None = None
    segment: bytes | None = None

    def as_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "checked_at": self.checked_at.isoformat(),
            "active": self.active,
            "error": self.error,
            "segment": self.segment.hex() if self.segment is not None else None,
        }
        if self.window is not None:
            out.update({
                "window_start": self.window.start_utc.isoformat(),
                "window_end": self.window.end_utc.isoformat(),
                "continuous": self.window.continuous,
                "summary": describe_window(self.window, self.checked_at),
            })
        return out


class WindowScheduler:
    """Poll the resolver and track whether the recorder should be running.

    Resolve errors are logged and reported through ``status``; the next
    tick tries again.
    """

    def __init__(
        self,
        window: RecordingWindowConfig,
        location: GeoLocation | None = None,
        utc_offset_seconds: int | None = None,
        poll_interval_s: float = 60.0,
        clock: Callable[[], datetime] = utc_now,
        on_change: Callable[[bool, WindowStatus], None] | None = None,
    ) -> None:
        self._window = window
        self._location = location
        self._utc_offset = utc_offset_seconds
        self._interval = poll_interval_s
        self._clock = clock
        self._on_change = on_change
        self._lock = threading.Lock()
        self._status: WindowStatus | None = None
        self._was_active = False

    @property
    def status(self) -> WindowStatus | None:
        with self._lock:
            return self._status

    def status_dict(self) -> dict[str, Any]:
        status = self.status
        if status is None:
            return {"status": "starting"}
        return {"status": "ok" if status.error is None else "error", **status.as_dict()}

    def utc_offset_at(self, now_utc: datetime) -> int:
        if self._utc_offset is not None:
            return self._utc_offset
        return local_utc_offset_seconds(now_utc)

    def segment_at(self, now_utc: datetime) -> bytes | None:
        """Firmware window segment for the UTC offset in effect at ``now_utc``."""
        try:
            return encode_window_segment(self._window, self.utc_offset_at(now_utc))
        except ValueError as exc:
            log.warning("window_segment_unencodable", extra={"error": str(exc)})
            return None

    def poll(self, now_utc: datetime | None = None) -> WindowStatus:
        """Run one tick and return the new status."""
        now = now_utc or self._clock()
        segment = self.segment_at(now)
        try:
            window = resolve_window(now, self._window, self._location, self.utc_offset_at(now))
        except Unresolvable:
            log.exception("window_unresolvable", extra={"now": now.isoformat()})
            status = WindowStatus(now, active=False, error="unresolvable", segment=segment)
        except ResolveError as exc:
            log.error("window_resolve_failed", extra={
                "now": now.isoformat(),
                "error": str(exc),
                "error_type": type(exc).__name__,
            })
            status = WindowStatus(now, active=False, error=str(exc), segment=segment)
        else:
            status = WindowStatus(now, active=window.contains(now), window=window, segment=segment)

        with self._lock:
            self._status = status

        if status.active != self._was_active:
            self._was_active = status.active
            event = "recording_window_enter" if status.active else "recording_window_exit"
            if status.window is not None:
                log_window(status.window, now, event)
            else:
                log.info(event, extra={"now": now.isoformat(), "error": status.error})
            if self._on_change is not None:
                self._on_change(status.active, status)
        return status

    def run(self, shutdown: threading.Event) -> None:
        """Poll until ``shutdown`` is set."""
        first = self.poll()
        if first.window is not None and not first.active:
            log_window(first.window, first.checked_at, "recording_window_next")
        while not shutdown.wait(timeout=self._interval):
            self.poll()
