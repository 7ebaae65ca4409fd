# snaphost/core/errors.py
from __future__ import annotations

from typing import Optional


class SnapHostError(Exception):
    """
    Base class for all expected operational errors in snaphost.
    """

    #: Stable machine-readable identifier (for CLI exit mapping, logs, etc.)
    code: str = "unknown"

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.hint = hint
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Configuration errors (no machine access yet)
# ---------------------------------------------------------------------------

class ConfigError(SnapHostError):
    """
    Configuration file is missing, unreadable or inconsistent.

    Examples:
      - config path does not exist
      - missing token / address
      - camera offset that is not three numbers
    """
    code = "config_error"


class InvalidArgumentError(SnapHostError):
    """
    A caller-supplied value is out of range.

    Examples:
      - laser spot power outside [0, 1.5]
      - enclosure fan / LED percentage outside [0, 100]
    """
    code = "invalid_argument"


# ---------------------------------------------------------------------------
# Session lifecycle errors
# ---------------------------------------------------------------------------

class NotConnectedError(SnapHostError):
    """
    The session is not (or no longer) connected.

    Examples:
      - disconnect() called twice
      - a motion command waiting on the gate when the session is closed
    """
    code = "not_connected"


class InvalidTokenError(SnapHostError):
    """
    The machine echoed a different token than the one presented on connect.
    """
    code = "invalid_token"


class UnsupportedDeviceError(SnapHostError):
    """
    The machine reported a series string this host does not drive.
    """
    code = "unsupported_device"


class CanceledError(SnapHostError):
    """
    The caller's cancel token fired (or its deadline passed) before the
    operation could proceed.
    """
    code = "canceled"


# ---------------------------------------------------------------------------
# Wire / communication errors
# ---------------------------------------------------------------------------

class NetworkError(SnapHostError):
    """
    The HTTP request could not be completed.

    Examples:
      - connection refused / host unreachable
      - request timed out
    """
    code = "network_error"


class ProtocolError(SnapHostError):
    """
    The machine answered with a non-success HTTP status.
    """
    code = "protocol_error"

    def __init__(
        self,
        message: str,
        *,
        status: Optional[int] = None,
        hint: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, hint=hint, details=details)
        self.status = status


class DecodeError(SnapHostError):
    """
    A response body was received but could not be decoded.

    `subsystem` names the query the body belonged to
    ("connect", "tool", "enclosure", "module", "module_list", ...).
    """
    code = "decode_error"

    def __init__(
        self,
        message: str,
        *,
        subsystem: str = "unknown",
        hint: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, hint=hint, details=details)
        self.subsystem = subsystem


class NoKeyError(SnapHostError):
    """
    A module record has no usable key, or a looked-up key is not listed.
    """
    code = "no_key"


class NoCameraError(SnapHostError):
    """
    A photo was requested but the mounted tool head reports no camera.
    """
    code = "no_camera"
