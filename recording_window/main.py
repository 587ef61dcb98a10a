"""Agent entry point: load config, then poll the recording window."""

from __future__ import annotations

import json
import logging
import signal
import sys
import threading
from typing import Any

from .config import Config, load_config
from .healthcheck import HealthServer
from .logging_setup import setup_logging
from .scheduler import WindowScheduler
from .timespec import format_time_spec

log = logging.getLogger(__name__)


class Service:
    """Runs the window poller and its health endpoint until signalled."""

    def __init__(self, cfg: Config) -> None:
        self.cfg = cfg
        self._shutdown = threading.Event()
        self.scheduler = WindowScheduler(
            window=cfg.window,
            location=cfg.location,
            utc_offset_seconds=cfg.utc_offset_seconds,
            poll_interval_s=cfg.poll_interval_s,
        )
        self._health: HealthServer | None = None
        if cfg.health_port > 0:
            self._health = HealthServer(port=cfg.health_port, status_func=self.scheduler.status_dict)

    def run(self) -> None:
        log.info("service_starting", extra={
            "start_recording": format_time_spec(self.cfg.window.start),
            "stop_recording": format_time_spec(self.cfg.window.stop),
            "continuous": self.cfg.window.is_continuous,
            "has_location": self.cfg.has_location,
            "poll_interval_s": self.cfg.poll_interval_s,
        })
        if self.cfg.window.needs_location and not self.cfg.has_location:
            log.error("location_missing", extra={
                "hint": "relative recording windows need latitude and longitude",
            })

        for sig in (signal.SIGTERM, signal.SIGINT):
            signal.signal(sig, self._handle_signal)

        if self._health:
            self._health.start()
        try:
            self.scheduler.run(self._shutdown)
        finally:
            self._stop_all()

    def stop(self) -> None:
        self._shutdown.set()

    def _stop_all(self) -> None:
        log.info("service_stopping")
        if self._health:
            self._health.stop()
        log.info("service_stopped")

    def _handle_signal(self, signum: int, frame: Any) -> None:
        log.info("signal_received", extra={"signal": signal.Signals(signum).name})
        self._shutdown.set()


def main(argv: list[str] | None = None) -> int:
    import argparse

    parser = argparse.ArgumentParser(description="recording-window: decide when a field camera records")
    parser.add_argument("-c", "--config", default="/etc/recording-window/config.yaml",
                        help="Path to config YAML file")
    parser.add_argument("--log-level", default=None, help="Log level (DEBUG/INFO/WARNING/ERROR)")
    parser.add_argument("--once", action="store_true",
                        help="Resolve the window once, print status JSON and exit")
    args = parser.parse_args(argv)

    setup_logging(level=args.log_level or "INFO", json_output=not args.once)

    try:
        cfg = load_config(args.config)
    except (OSError, ValueError, TypeError) as exc:
        log.error("config_load_failed", extra={"error": str(exc)})
        return 1

    if args.log_level is None:
        setup_logging(level=cfg.log_level, json_output=not args.once)

    svc = Service(cfg)
    if args.once:
        status = svc.scheduler.poll()
        print(json.dumps(status.as_dict(), indent=2))
        return 0 if status.error is None else 2

    svc.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
