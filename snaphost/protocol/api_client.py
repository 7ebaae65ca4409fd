# snaphost/protocol/api_client.py
from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional, Tuple

from snaphost.core.errors import DecodeError, NetworkError, ProtocolError
from snaphost.model.modules import ModuleRecord, decode_module_info
from snaphost.model.status import ConnectionResult, EnclosureSnapshot, ModuleListing, ToolSnapshot
from snaphost.transport.base import FilePart, HttpResponse, HttpTransport
from snaphost.transport.errors import TransportIOError, TransportStatusError

from . import endpoints as ep


class MachineApiClient:
    """
    User-facing API over an HttpTransport: one method per machine endpoint.

    Every request carries the session token (form field on POST, query
    parameter on GET). Transport failures are translated into snaphost
    errors; malformed bodies raise DecodeError naming the query.
    """

    def __init__(self, transport: HttpTransport, token: str, logger: Optional[logging.Logger] = None):
        self._transport = transport
        self._token = str(token)
        self._log = logger or logging.getLogger(__name__)

    @property
    def base_url(self) -> str:
        return self._transport.base_url

    @property
    def token(self) -> str:
        return self._token

    # ---------------------------------------------------------------------
    # Request plumbing
    # ---------------------------------------------------------------------

    def _call(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        data: Optional[Mapping[str, Any]] = None,
        files: Optional[Mapping[str, FilePart]] = None,
    ) -> HttpResponse:
        try:
            if method == "GET":
                q: Dict[str, Any] = {"token": self._token}
                q.update(params or {})
                return self._transport.get(path, params=q)

            form: Dict[str, Any] = {"token": self._token}
            form.update(data or {})
            return self._transport.post(path, data=form, files=files)

        except TransportStatusError as e:
            hint = None
            if e.status in (401, 403):
                hint = "Token rejected. Reconnect and confirm the request on the machine's touchscreen."
            raise ProtocolError(
                f"{method} {path} returned HTTP {e.status} {e.reason}".rstrip(),
                status=e.status,
                hint=hint,
                details={"path": path, "body": (e.body or b"")[:200].decode("utf-8", errors="replace")},
            ) from None
        except TransportIOError as e:
            raise NetworkError(
                f"{method} {path} failed: {e}",
                hint="Check the machine is powered on and reachable at " + self._transport.base_url,
                details={"path": path},
            ) from None

    @staticmethod
    def _json(resp: HttpResponse, subsystem: str) -> Any:
        try:
            return resp.json()
        except ValueError as e:
            raise DecodeError(
                f"{subsystem} response is not valid JSON.",
                subsystem=subsystem,
                hint=str(e),
            ) from None

    # ---------------------------------------------------------------------
    # Session
    # ---------------------------------------------------------------------

    def connect(self) -> ConnectionResult:
        resp = self._call("POST", ep.CONNECT)
        return ConnectionResult.from_json(self._json(resp, "connect"))

    def disconnect(self) -> None:
        self._call("POST", ep.DISCONNECT)

    # ---------------------------------------------------------------------
    # Status queries
    # ---------------------------------------------------------------------

    def get_status(self) -> ToolSnapshot:
        resp = self._call("GET", ep.STATUS)
        return ToolSnapshot.from_json(self._json(resp, "tool"))

    def get_enclosure(self) -> EnclosureSnapshot:
        resp = self._call("GET", ep.ENCLOSURE)
        return EnclosureSnapshot.from_json(self._json(resp, "enclosure"))

    def get_module_info(self) -> Tuple[ModuleRecord, ...]:
        resp = self._call("GET", ep.MODULE_INFO)
        return decode_module_info(self._json(resp, "module"))

    def get_module_list(self) -> ModuleListing:
        resp = self._call("GET", ep.MODULE_LIST)
        return ModuleListing.from_json(self._json(resp, "module_list"))

    # ---------------------------------------------------------------------
    # Commands
    # ---------------------------------------------------------------------

    def set_enclosure(self, *, fan: Optional[int] = None, led: Optional[int] = None) -> None:
        form: Dict[str, Any] = {}
        if fan is not None:
            form["fan"] = int(fan)
        if led is not None:
            form["led"] = int(led)
        self._call("POST", ep.ENCLOSURE, data=form)

    def execute_code(self, code: str) -> None:
        self._log.debug("GCODE code=%s", code)
        self._call("POST", ep.EXECUTE_CODE, data={"code": code})

    def request_capture_photo(self, index: int, x: float, y: float, z: float) -> None:
        self._call(
            "GET",
            ep.REQUEST_CAPTURE_PHOTO,
            params={
                "index": int(index),
                "x": f"{x:.3f}",
                "y": f"{y:.3f}",
                "z": f"{z:.3f}",
                "feedRate": ep.CAPTURE_FEED_RATE,
                "photoQuality": ep.CAPTURE_PHOTO_QUALITY,
            },
        )

    def get_camera_image(self, index: int) -> bytes:
        resp = self._call("GET", ep.GET_CAMERA_IMAGE, params={"index": int(index)})
        return resp.content

    # ---------------------------------------------------------------------
    # Job lifecycle
    # ---------------------------------------------------------------------

    def prepare_print(self, name: str, data: bytes, job_type: str) -> None:
        self._call(
            "POST",
            ep.PREPARE_PRINT,
            data={"type": job_type},
            files={"file": (name, bytes(data), "application/octet-stream")},
        )

    def start_print(self) -> None:
        self._call("POST", ep.START_PRINT)

    def pause_print(self) -> None:
        self._call("POST", ep.PAUSE_PRINT)

    def resume_print(self) -> None:
        self._call("POST", ep.RESUME_PRINT)

    def stop_print(self) -> None:
        self._call("POST", ep.STOP_PRINT)
