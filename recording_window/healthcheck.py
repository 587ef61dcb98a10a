"""Localhost HTTP status endpoint for the window poller."""

from __future__ import annotations

import json
import logging
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Callable

log = logging.getLogger(__name__)


class StatusHandler(BaseHTTPRequestHandler):
    """GET /health -> poller status JSON; GET /window -> 200 when recording, 503 otherwise."""

    status_func: Callable[[], dict[str, Any]]  # set on the subclass built by HealthServer

    def do_GET(self) -> None:
        path = self.path.rstrip("/")
        if path == "/health":
            self._send_json(200, self.status_func())
        elif path == "/window":
            status = self.status_func()
            self._send_json(200 if status.get("active") else 503, status)
        else:
            self.send_error(404)

    def _send_json(self, code: int, payload: dict[str, Any]) -> None:
        body = json.dumps(payload, default=str).encode()
        self.send_response(code)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, fmt: str, *args: Any) -> None:
        log.debug("health_request", extra={"request": fmt % args})


class HealthServer:
    """Serve the status endpoint from a daemon thread."""

    def __init__(self, port: int, status_func: Callable[[], dict[str, Any]], host: str = "127.0.0.1") -> None:
        self._host = host
        self._port = port
        self._status_func = status_func
        self._server: ThreadingHTTPServer | None = None
        self._thread: threading.Thread | None = None

    @property
    def port(self) -> int:
        """Bound port (useful when constructed with port 0)."""
        if self._server is not None:
            return self._server.server_address[1]
        return self._port

    def start(self) -> None:
        handler = type("BoundStatusHandler", (StatusHandler,), {"status_func": staticmethod(self._status_func)})
        self._server = ThreadingHTTPServer((self._host, self._port), handler)
        self._thread = threading.Thread(target=self._server.serve_forever, daemon=True, name="health")
        self._thread.start()
        log.info("healthcheck_started", extra={"host": self._host, "port": self.port})

    def stop(self) -> None:
        if self._server:
            self._server.shutdown()
            self._server.server_close()
            self._server = None
