from __future__ import annotations

from typing import Optional


class TransportError(Exception):
    """Base class for transport-layer failures."""


class TransportIOError(TransportError):
    """The request could not be sent or its response not received."""


class TransportStatusError(TransportError):
    """The server answered with a non-success HTTP status."""

    def __init__(self, status: int, reason: str = "", body: Optional[bytes] = None):
        super().__init__(f"HTTP {status} ({reason})" if reason else f"HTTP {status}")
        self.status = int(status)
        self.reason = reason
        self.body = body or b""
