from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

import requests
from requests import RequestException

from .base import FilePart, HttpResponse, HttpTransport
from .errors import TransportIOError, TransportStatusError


DEFAULT_PORT = 8080


def build_base_url(address: str, port: int = DEFAULT_PORT) -> str:
    """
    "192.168.1.20"            -> "http://192.168.1.20:8080"
    "192.168.1.20:9000"       -> "http://192.168.1.20:9000"
    "http://printer.lan:8080" -> unchanged (trailing slash stripped)
    """
    address = address.strip()
    if "://" in address:
        return address.rstrip("/")
    if ":" in address:
        return f"http://{address}"
    return f"http://{address}:{int(port)}"


class RequestsTransport(HttpTransport):
    """
    HTTP transport implemented via requests.

    Every call is an independent request (module-level requests.request,
    no shared Session), so concurrent callers never contend on a pool.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        logger: Optional[logging.Logger] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = float(timeout)
        self._log = logger or logging.getLogger(__name__)

    def get(self, path: str, params: Optional[Mapping[str, Any]] = None) -> HttpResponse:
        return self._request("GET", path, params=dict(params or {}))

    def post(
        self,
        path: str,
        data: Optional[Mapping[str, Any]] = None,
        files: Optional[Mapping[str, FilePart]] = None,
    ) -> HttpResponse:
        return self._request("POST", path, data=dict(data or {}), files=dict(files) if files else None)

    def _request(self, method: str, path: str, **kwargs: Any) -> HttpResponse:
        url = f"{self.base_url}/{path.lstrip('/')}"
        self._log.debug("HTTP_REQUEST method=%s url=%s", method, url)

        try:
            resp = requests.request(method, url, timeout=self.timeout, **kwargs)
        except RequestException as e:
            raise TransportIOError(f"{method} {url} failed: {e}") from None

        content = resp.content or b""
        self._log.debug("HTTP_RESPONSE method=%s url=%s status=%d len=%d", method, url, resp.status_code, len(content))

        if resp.status_code != 200:
            raise TransportStatusError(resp.status_code, resp.reason or "", content[:500])

        return HttpResponse(status=resp.status_code, reason=resp.reason or "", content=content)
