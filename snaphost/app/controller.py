# snaphost/app/controller.py
from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional, Tuple

from snaphost.app.config import SnapHostConfig
from snaphost.core.cancel import CancelToken
from snaphost.core.errors import InvalidArgumentError, NoCameraError, SnapHostError
from snaphost.model.status import STATUS_IDLE, STATUS_RUNNING
from snaphost.protocol import endpoints as ep
from snaphost.protocol import gcode
from snaphost.runtime.session import Location, MachineSession
from snaphost.runtime.state import SessionSnapshot
from snaphost.transport.base import HttpTransport

SessionFactory = Callable[..., MachineSession]


class MachineController:
    """
    App-level controller: owns one MachineSession and exposes the machine
    operations (motion, laser, camera, enclosure, jobs).

    Every actuation runs while holding the session's motion gate. Commands
    fail fast; nothing is retried.
    """

    def __init__(
        self,
        config: SnapHostConfig,
        *,
        transport: Optional[HttpTransport] = None,
        session_factory: SessionFactory = MachineSession.connect,
        logger: Optional[logging.Logger] = None,
    ):
        self._config = config
        self._transport = transport
        self._session_factory = session_factory
        self._log = logger or logging.getLogger(__name__)
        self._session: Optional[MachineSession] = None

    @property
    def config(self) -> SnapHostConfig:
        return self._config

    @property
    def session(self) -> MachineSession:
        if self._session is None:
            raise SnapHostError("Controller is not started.", hint="Call start() or use the controller as a context manager.")
        return self._session

    def start(self) -> None:
        if self._session is not None:
            return
        cfg = self._config
        self._session = self._session_factory(
            cfg.address,
            cfg.token,
            port=cfg.port,
            transport=self._transport,
            poll_interval_s=cfg.poll_interval_s,
            request_timeout_s=cfg.request_timeout_s,
            expected_series=cfg.expected_series,
            logger=self._log,
        )

    def stop(self) -> None:
        session, self._session = self._session, None
        if session is None:
            return
        try:
            session.close()
        except SnapHostError as e:
            self._log.warning("CONTROLLER_STOP_FAILED err=%s", e)

    def __enter__(self) -> "MachineController":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    # ---------------------------------------------------------------------
    # Passthrough
    # ---------------------------------------------------------------------

    def snapshot(self) -> SessionSnapshot:
        return self.session.snapshot()

    def refresh(self) -> None:
        self.session.refresh()

    def homed(self) -> bool:
        return self.session.homed()

    def current_location(self) -> Location:
        return self.session.current_location()

    def tool_head(self, key: int = 1) -> Tuple[int, bool]:
        return self.session.tool_head(key)

    def running(self) -> Tuple[bool, str]:
        return self.session.running()

    def await_status(self, status: str, cancel: Optional[CancelToken] = None) -> None:
        self.session.await_status(status, cancel)

    # ---------------------------------------------------------------------
    # Motion
    # ---------------------------------------------------------------------

    def _run_codes(self, *codes: str) -> None:
        client = self.session.client
        for code in codes:
            client.execute_code(code)

    def home(self, cancel: Optional[CancelToken] = None) -> None:
        with self.session.gate.hold(cancel):
            self._run_codes(*gcode.home())
        self._log.info("HOMED")

    def set_origin(self, cancel: Optional[CancelToken] = None) -> None:
        with self.session.gate.hold(cancel):
            self._run_codes(*gcode.set_origin())

    def goto_origin(self, cancel: Optional[CancelToken] = None) -> None:
        session = self.session
        with session.gate.hold(cancel):
            z = session.tool().z
            self._run_codes(*gcode.goto_origin(z))

    def move_to(self, x: float, y: float, z: float, cancel: Optional[CancelToken] = None) -> None:
        session = self.session
        with session.gate.hold(cancel):
            self._run_codes(gcode.move_to(x, y, z))
            session.state.update_position(x, y, z)
        self._log.info("MOVED x=%.2f y=%.2f z=%.2f", x, y, z)

    def step(self, dx: float, dy: float, dz: float, cancel: Optional[CancelToken] = None) -> None:
        session = self.session
        with session.gate.hold(cancel):
            self._run_codes(*gcode.step(dx, dy, dz))
        try:
            session.refresh()
        except SnapHostError as e:
            self._log.warning("STEP_REFRESH_FAILED err=%s", e)

    def park(
        self,
        target: Tuple[float, float, float] = (-179.0, -327.0, -156.5),
        cancel: Optional[CancelToken] = None,
    ) -> Tuple[float, float, float]:
        """
        Move the head to the tool-change position, expressed in machine
        coordinates. Returns the work coordinates it moved to.
        """
        _x, _y, _z, ox, oy, oz = self.current_location()
        tx, ty, tz = target
        x, y, z = ox - tx, oy - ty, oz - tz
        if z < 0:
            raise InvalidArgumentError(
                f"Parking would move to negative z={z:.2f}.",
                hint="Nudge the head manually instead.",
            )
        self.move_to(x, y, z, cancel)
        return (x, y, z)

    # ---------------------------------------------------------------------
    # Laser
    # ---------------------------------------------------------------------

    def laser_spot(self, power: float, cancel: Optional[CancelToken] = None) -> None:
        if not (gcode.SPOT_POWER_MIN <= power <= gcode.SPOT_POWER_MAX):
            raise InvalidArgumentError(
                f"Laser spot power {power} is out of range.",
                hint=f"Use a value in [{gcode.SPOT_POWER_MIN}, {gcode.SPOT_POWER_MAX}].",
            )
        with self.session.gate.hold(cancel):
            self._run_codes(gcode.laser_spot(power))

    def laser_cross_hairs(self, enable: bool, cancel: Optional[CancelToken] = None) -> None:
        with self.session.gate.hold(cancel):
            self._run_codes(gcode.cross_hairs(enable))

    # ---------------------------------------------------------------------
    # Camera
    # ---------------------------------------------------------------------

    def snap_at_jpeg(
        self,
        index: int,
        x: float,
        y: float,
        z: float,
        cancel: Optional[CancelToken] = None,
    ) -> bytes:
        session = self.session
        if not session.tool().laser_camera:
            raise NoCameraError("The mounted tool head has no camera.")

        with session.gate.hold(cancel):
            session.client.request_capture_photo(index, x, y, z)
        return session.client.get_camera_image(index)

    def snap_jpeg(self, index: int = 0, cancel: Optional[CancelToken] = None) -> bytes:
        x, y, z = self.session.tool().position
        return self.snap_at_jpeg(index, x, y, z, cancel)

    # ---------------------------------------------------------------------
    # Enclosure
    # ---------------------------------------------------------------------

    @staticmethod
    def _check_percent(name: str, value: int) -> int:
        if isinstance(value, bool) or not (0 <= int(value) <= 100):
            raise InvalidArgumentError(f"Enclosure {name} {value} is out of range.", hint="Use 0..100 percent.")
        return int(value)

    def enclosure_fan(self, percent: int) -> None:
        self.session.client.set_enclosure(fan=self._check_percent("fan", percent))

    def enclosure_led(self, percent: int) -> None:
        self.session.client.set_enclosure(led=self._check_percent("led", percent))

    def enclosure_fan_not_running(self) -> bool:
        return self.session.enclosure_fan_not_running()

    # ---------------------------------------------------------------------
    # Jobs
    # ---------------------------------------------------------------------

    def run_program(self, name: str, data: bytes) -> None:
        session = self.session
        job_type = ep.JOB_TYPE_CNC if session.tool().is_cnc else ep.JOB_TYPE_LASER
        self._log.info("PROGRAM_UPLOAD name=%s type=%s bytes=%d", name, job_type, len(data))
        session.client.prepare_print(Path(name).name, data, job_type)
        session.client.start_print()

    def pause_program(self) -> None:
        self.session.client.pause_print()

    def resume_program(self) -> None:
        self.session.client.resume_print()

    def stop_program(self) -> None:
        self.session.client.stop_print()

    def await_started(self, cancel: Optional[CancelToken] = None) -> None:
        self.await_status(STATUS_RUNNING, cancel)

    def await_idle(self, cancel: Optional[CancelToken] = None) -> None:
        self.await_status(STATUS_IDLE, cancel)
