from __future__ import annotations

import json
import threading
from typing import Any, Callable, Dict, List, Tuple

import pytest

from snaphost.transport.base import HttpResponse, HttpTransport
from snaphost.transport.errors import TransportStatusError

TOKEN = "tok-123"


def default_routes() -> Dict[Tuple[str, str], Any]:
    return {
        ("POST", "/api/v1/connect"): {
            "token": TOKEN,
            "readonly": False,
            "series": "Snapmaker 2.0 A350",
            "headType": 2,
            "hasEnclosure": True,
        },
        ("POST", "/api/v1/disconnect"): {},
        ("GET", "/api/v1/status"): {
            "status": "IDLE",
            "x": 10.0,
            "y": 20.0,
            "z": 30.0,
            "homed": True,
            "offsetX": 1.0,
            "offsetY": 2.0,
            "offsetZ": 3.0,
            "toolHead": "TOOLHEAD_LASER_1",
            "laserCamera": True,
            "moduleList": {"enclosure": True},
        },
        ("GET", "/api/v1/enclosure"): {"isReady": True, "isDoorEnabled": False, "led": 50, "fan": 0},
        ("GET", "/api/v1/module_info"): {
            "moduleInfo": [
                {"key": 1, "laserFocalLength": 7.2, "laserPower": 50, "laserCamera": True},
                {"key": 2, "isEnclosureDoorOpen": False, "led": 50, "fan": 0},
            ]
        },
        ("GET", "/api/v1/module_list"): {
            "moduleList": [
                {"key": 1, "moduleId": 2, "status": True},
                {"key": 3, "moduleId": 5, "status": False},
            ]
        },
    }


class FakeTransport(HttpTransport):
    """
    In-memory machine. A route value may be a dict (JSON body), bytes
    (raw body), an exception instance (raised) or a callable
    (called with the request kwargs, returning one of the above).
    """

    def __init__(self, routes: Dict[Tuple[str, str], Any] | None = None):
        self.base_url = "http://fake:8080"
        self.routes = default_routes()
        self.routes.update(routes or {})
        self.calls: List[Tuple[str, str, Dict[str, Any]]] = []
        self._lock = threading.Lock()

    def _respond(self, method: str, path: str, **kw: Any) -> HttpResponse:
        with self._lock:
            self.calls.append((method, path, kw))
            value = self.routes.get((method, path), {})

        if callable(value):
            value = value(**kw)
        if isinstance(value, BaseException):
            raise value
        if isinstance(value, (bytes, bytearray)):
            return HttpResponse(status=200, reason="OK", content=bytes(value))
        return HttpResponse(status=200, reason="OK", content=json.dumps(value).encode("utf-8"))

    def get(self, path, params=None):
        return self._respond("GET", path, params=dict(params or {}))

    def post(self, path, data=None, files=None):
        return self._respond("POST", path, data=dict(data or {}), files=files)

    def paths(self, method: str | None = None) -> List[str]:
        with self._lock:
            return [p for (m, p, _kw) in self.calls if method is None or m == method]

    def codes(self) -> List[str]:
        with self._lock:
            return [kw["data"]["code"] for (m, p, kw) in self.calls if p == "/api/v1/execute_code"]


@pytest.fixture
def fake_transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def http_error() -> Callable[[int], TransportStatusError]:
    def _make(status: int) -> TransportStatusError:
        return TransportStatusError(status, "Error", b"nope")

    return _make
