# snaphost/runtime/session.py
from __future__ import annotations

import datetime as dt
import logging
from typing import Optional, Tuple

from snaphost.core.cancel import CancelToken
from snaphost.core.errors import (
    CanceledError,
    InvalidTokenError,
    NotConnectedError,
    SnapHostError,
    UnsupportedDeviceError,
)
from snaphost.model.status import ToolSnapshot
from snaphost.protocol.api_client import MachineApiClient
from snaphost.protocol.endpoints import EXPECTED_SERIES
from snaphost.transport.base import HttpTransport
from snaphost.transport.http import DEFAULT_PORT, RequestsTransport, build_base_url

from .aggregator import StatusAggregator
from .motion_gate import MotionGate
from .poller import BackgroundPoller
from .state import SessionSnapshot, SessionState

Location = Tuple[float, float, float, float, float, float]  # x, y, z, offset x, y, z


class MachineSession:
    """
    One authenticated session to a machine.

    A session only exists after a successful handshake. connect() returns
    once the cached snapshots have been populated by the first refresh;
    from then on a BackgroundPoller keeps them fresh until disconnect().
    """

    def __init__(
        self,
        *,
        client: MachineApiClient,
        state: SessionState,
        poll_interval_s: float = 1.0,
        logger: Optional[logging.Logger] = None,
    ):
        self._client = client
        self._state = state
        self._poll_interval_s = float(poll_interval_s)
        self._log = logger or logging.getLogger(__name__)

        self._gate = MotionGate(state, logger=self._log)
        self._aggregator = StatusAggregator(client, logger=self._log)
        self._poller: Optional[BackgroundPoller] = None

    # ---------------------------------------------------------------------
    # Lifecycle
    # ---------------------------------------------------------------------

    @classmethod
    def connect(
        cls,
        address: str,
        token: str,
        *,
        port: int = DEFAULT_PORT,
        transport: Optional[HttpTransport] = None,
        poll_interval_s: float = 1.0,
        request_timeout_s: float = 10.0,
        expected_series: str = EXPECTED_SERIES,
        logger: Optional[logging.Logger] = None,
    ) -> "MachineSession":
        log = logger or logging.getLogger(__name__)
        if transport is None:
            transport = RequestsTransport(build_base_url(address, port), timeout=request_timeout_s, logger=log)
        client = MachineApiClient(transport, token, logger=log)

        log.info("SESSION_CONNECT url=%s", transport.base_url)
        conn = client.connect()

        if conn.token != token:
            log.warning("SESSION_TOKEN_MISMATCH url=%s", transport.base_url)
            raise InvalidTokenError(
                "Machine did not accept the session token.",
                hint="Request a new token and confirm it on the machine's touchscreen.",
            )
        if conn.series != expected_series:
            raise UnsupportedDeviceError(
                f"Unsupported machine series {conn.series!r}.",
                hint=f"Only {expected_series!r} is supported.",
                details={"series": conn.series},
            )

        state = SessionState(base_url=transport.base_url, token=token, conn=conn)
        session = cls(client=client, state=state, poll_interval_s=poll_interval_s, logger=log)
        session._start_polling()

        log.info(
            "SESSION_CONNECTED url=%s read_only=%s head_type=%s has_enclosure=%s",
            state.base_url,
            conn.read_only,
            conn.head_type,
            conn.has_enclosure,
        )
        return session

    def _start_polling(self) -> None:
        try:
            self._aggregator.refresh_module_list(self._state)
            poller = BackgroundPoller(self.refresh, interval_s=self._poll_interval_s, logger=self._log)
            self._poller = poller
            poller.start()
            poller.first_result.result()
        except BaseException as e:
            self._log.warning("SESSION_FIRST_REFRESH_FAILED err=%r", e)
            self._teardown()
            raise

    def _teardown(self) -> None:
        self._state.mark_disconnected()
        self._stop_poller()
        try:
            self._client.disconnect()
        except SnapHostError as e:
            self._log.warning("SESSION_DISCONNECT_FAILED err=%s", e)

    def _stop_poller(self) -> None:
        poller, self._poller = self._poller, None
        if poller is not None:
            poller.stop()

    def disconnect(self) -> None:
        # Only one caller wins; the rest see NotConnectedError. From here on
        # the gate admits no motion and the poller starts no new refresh.
        if not self._state.begin_closing():
            raise NotConnectedError("Session is already disconnected.")

        self._log.info("SESSION_DISCONNECT url=%s", self._state.base_url)
        try:
            self._stop_poller()
            self._client.disconnect()
        finally:
            self._state.mark_disconnected()

    def close(self) -> None:
        """Disconnect if still connected; never raises NotConnectedError."""
        if self.connected:
            try:
                self.disconnect()
            except NotConnectedError:
                self._log.debug("SESSION_CLOSE_RACED url=%s", self._state.base_url)

    def __enter__(self) -> "MachineSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ---------------------------------------------------------------------
    # Accessors
    # ---------------------------------------------------------------------

    @property
    def client(self) -> MachineApiClient:
        return self._client

    @property
    def gate(self) -> MotionGate:
        return self._gate

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def connected(self) -> bool:
        return self._state.is_usable()

    @property
    def poller(self) -> Optional[BackgroundPoller]:
        return self._poller

    def snapshot(self) -> SessionSnapshot:
        return self._state.snapshot()

    def tool(self) -> ToolSnapshot:
        with self._state.lock:
            return self._state.tool

    # ---------------------------------------------------------------------
    # Status
    # ---------------------------------------------------------------------

    def refresh(self) -> None:
        self._aggregator.refresh(self._state)

    def refresh_module_list(self) -> None:
        self._aggregator.refresh_module_list(self._state)

    def homed(self) -> bool:
        return self.tool().homed

    def current_location(self) -> Location:
        t = self.tool()
        return (t.x, t.y, t.z, t.offset_x, t.offset_y, t.offset_z)

    def tool_head(self, key: int = 1) -> Tuple[int, bool]:
        """
        Module id and status of the listed module at `key` (the main tool
        head is key 1). Raises NoKeyError if the key is not listed.
        """
        with self._state.lock:
            listing = self._state.module_listing
        entry = listing.lookup(key)
        return entry.module_id, entry.status

    def enclosure_fan_not_running(self) -> bool:
        with self._state.lock:
            enc = self._state.enclosure
        return enc.is_ready and enc.fan == 0

    def running(self) -> Tuple[bool, str]:
        """
        Progress summary of the current job. Returns (printing, summary).
        """
        t = self.tool()
        if t.total_lines == 0:
            return False, "nothing running"

        pct = (100 * t.current_line) // t.total_lines
        elapsed = dt.timedelta(seconds=int(t.elapsed_time))
        eta = dt.datetime.now() + dt.timedelta(seconds=t.remaining_time)
        summary = (
            f'{t.status} "{t.file_name}" {t.print_status} '
            f"{t.current_line}/{t.total_lines} ({pct}%) {elapsed} "
            f"ETA {eta.strftime('%Y-%m-%d %H:%M:%S')}"
        )
        return t.is_printing, summary

    def await_status(
        self,
        status: str,
        cancel: Optional[CancelToken] = None,
        poll_s: float = 1.0,
    ) -> None:
        """
        Block until the cached tool status equals `status`.

        Raises CanceledError when `cancel` fires and NotConnectedError if
        the session is disconnected while waiting.
        """
        token = cancel or CancelToken()
        while True:
            with self._state.lock:
                if self._state.tool.status == status:
                    return
                if not self._state.connected:
                    raise NotConnectedError(f"Session disconnected while waiting for status {status!r}.")
            if token.wait(poll_s):
                raise CanceledError(f"Canceled while waiting for status {status!r}.")

    def dump_state(self) -> None:
        snap = self.snapshot()
        self._log.info("STATE_ENCLOSURE %r", snap.enclosure)
        self._log.info("STATE_MODULES %r", snap.modules)
        self._log.info("STATE_MODULE_LIST %r", snap.module_listing)
        self._log.info("STATE_TOOL %r", snap.tool)
        ok, summary = self.running()
        self._log.info("STATE_RUNNING ok=%s summary=%s", ok, summary)
