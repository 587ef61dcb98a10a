"""Tests for the status HTTP endpoint."""

import json
import urllib.error
import urllib.request
from typing import Any, Iterator

import pytest

from recording_window.healthcheck import HealthServer


@pytest.fixture
def status() -> dict[str, Any]:
    return {"status": "ok", "active": True}


@pytest.fixture
def server(status: dict[str, Any]) -> Iterator[HealthServer]:
    srv = HealthServer(port=0, status_func=lambda: dict(status))
    srv.start()
    yield srv
    srv.stop()


def _get(srv: HealthServer, path: str) -> tuple[int, dict[str, Any]]:
    url = f"http://127.0.0.1:{srv.port}{path}"
    try:
        with urllib.request.urlopen(url, timeout=5) as resp:
            return resp.status, json.loads(resp.read())
    except urllib.error.HTTPError as exc:
        body = exc.read()
        return exc.code, json.loads(body) if body.startswith(b"{") else {}


class TestHealthServer:
    def test_health(self, server: HealthServer) -> None:
        code, body = _get(server, "/health")
        assert code == 200
        assert body == {"status": "ok", "active": True}

    def test_window_active(self, server: HealthServer) -> None:
        code, _ = _get(server, "/window/")
        assert code == 200

    def test_window_inactive(self, server: HealthServer, status: dict[str, Any]) -> None:
        status["active"] = False
        code, body = _get(server, "/window")
        assert code == 503
        assert body["active"] is False

    def test_unknown_path(self, server: HealthServer) -> None:
        code, _ = _get(server, "/nope")
        assert code == 404
