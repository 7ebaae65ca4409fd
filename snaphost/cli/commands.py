# snaphost/cli/commands.py
from __future__ import annotations

import datetime as dt
import logging
import math
import threading
from pathlib import Path

from snaphost.app.config import SnapHostConfig, save_config
from snaphost.app.controller import MachineController
from snaphost.app.program import comment_out_lines, estimated_time_s
from snaphost.core.errors import ConfigError, NoCameraError, SnapHostError
from snaphost.model.modules import module_name

_log = logging.getLogger(__name__)

# Tool ids with a supported camera
CAMERA_TOOLS = (2,)

# Interval between progress lines while polling a program
PROGRESS_INTERVAL_S = 3.0


# ---------------- Logging ----------------

def configure_logging(*, verbose: bool = False) -> None:
    """Console handler on the root logger (idempotent)."""
    root = logging.getLogger()
    for h in root.handlers:
        if getattr(h, "_snaphost_console", False):
            return

    sh = logging.StreamHandler()
    sh.setLevel(logging.DEBUG if verbose else logging.INFO)
    sh.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s", "%H:%M:%S"))
    sh._snaphost_console = True  # type: ignore[attr-defined]
    root.addHandler(sh)
    root.setLevel(logging.DEBUG if verbose else logging.INFO)


def configure_file_logging(app_log_path: Path) -> None:
    """
    Add a file handler to the root logger (idempotent).
    """
    root = logging.getLogger()
    app_log_path.parent.mkdir(parents=True, exist_ok=True)
    target = str(app_log_path.resolve())

    for h in root.handlers:
        if isinstance(h, logging.FileHandler) and getattr(h, "baseFilename", None) == target:
            return

    fh = logging.FileHandler(app_log_path, encoding="utf-8", delay=True)
    fh.setLevel(logging.INFO)
    fh.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
    root.addHandler(fh)

    if root.level > logging.INFO:
        root.setLevel(logging.INFO)


# ---------------- Helpers ----------------

def _print_location(ctrl: MachineController, label: str = "at") -> None:
    x, y, z, ox, oy, oz = ctrl.current_location()
    print(f"{label} ({x:.2f},{y:.2f},{z:.2f}) offset=({ox:.2f},{oy:.2f},{oz:.2f})")


def _write_photo(path: str, data: bytes) -> None:
    Path(path).write_bytes(data)
    print(f"Photo: {path} ({len(data)} bytes)")


def _read_program(path) -> bytes:
    try:
        return Path(path).read_bytes()
    except OSError as e:
        raise SnapHostError(f"Unable to read {path}: {e}") from None


def _poll_until_idle(ctrl: MachineController) -> None:
    """Print progress every few seconds until the machine reports IDLE."""
    done = threading.Event()

    def _progress() -> None:
        while not done.wait(PROGRESS_INTERVAL_S):
            ok, summary = ctrl.running()
            print(f"\r{summary}\033[0K", end="", flush=True)
            if not ok:
                break
        print()

    printer = threading.Thread(target=_progress, daemon=True, name="snaphost-progress")
    print("[waiting for idle]")
    printer.start()
    try:
        ctrl.await_idle()
    finally:
        done.set()
        printer.join(timeout=PROGRESS_INTERVAL_S + 1.0)
    print("[system is idle]")


# ---------------- Commands ----------------

def cmd_dump(ctrl: MachineController, args, cfg: SnapHostConfig) -> int:
    snap = ctrl.snapshot()
    print(f"connected modules: {snap.module_listing.entries}")
    ctrl.session.dump_state()
    tool_id, ok = ctrl.tool_head(1)
    print(f"toolID={tool_id}({module_name(tool_id)!r}) ok={ok}")
    print(f"tool config: {cfg.tool(tool_id)}")
    return 0


def cmd_locate(ctrl: MachineController, args, cfg: SnapHostConfig) -> int:
    ctrl.refresh()
    _print_location(ctrl)
    return 0


def cmd_home(ctrl: MachineController, args, cfg: SnapHostConfig) -> int:
    ctrl.home()
    if ctrl.enclosure_fan_not_running():
        _log.warning("ENCLOSURE_FAN_OFF homed, but the enclosure fan should be started")
    return 0


def cmd_move(ctrl: MachineController, args, cfg: SnapHostConfig) -> int:
    ctrl.move_to(args.x, args.y, args.z)
    return 0


def cmd_nudge(ctrl: MachineController, args, cfg: SnapHostConfig) -> int:
    if args.dx == 0 and args.dy == 0 and args.dz == 0:
        print("Nothing to do (all deltas are 0).")
        return 0
    ctrl.step(args.dx, args.dy, args.dz)
    _print_location(ctrl)
    return 0


def cmd_origin(ctrl: MachineController, args, cfg: SnapHostConfig) -> int:
    if args.action == "goto":
        ctrl.goto_origin()
        return 0

    ctrl.refresh()
    _print_location(ctrl, "was at")
    ctrl.set_origin()
    ctrl.await_idle()
    ctrl.refresh()
    _print_location(ctrl, "now at")
    return 0


def cmd_park(ctrl: MachineController, args, cfg: SnapHostConfig) -> int:
    ctrl.refresh()
    x, y, z = ctrl.park()
    print(f"parked at ({x:.2f},{y:.2f},{z:.2f})")
    return 0


def cmd_laser(ctrl: MachineController, args, cfg: SnapHostConfig) -> int:
    if args.action == "spot":
        ctrl.laser_spot(args.power)
    elif args.action == "nospot":
        ctrl.laser_spot(0.0)
    else:
        ctrl.laser_cross_hairs(args.action == "cross")
    return 0


def cmd_enclosure(ctrl: MachineController, args, cfg: SnapHostConfig) -> int:
    if args.fan is None and args.led is None:
        enc = ctrl.snapshot().enclosure
        print(f"Enclosure: ready={enc.is_ready} door_open={enc.is_door_open} fan={enc.fan} led={enc.led}")
        return 0
    if args.fan is not None:
        _log.info("ENCLOSURE_FAN percent=%d", args.fan)
        ctrl.enclosure_fan(args.fan)
    if args.led is not None:
        _log.info("ENCLOSURE_LED percent=%d", args.led)
        ctrl.enclosure_led(args.led)
    return 0


def cmd_photo(ctrl: MachineController, args, cfg: SnapHostConfig) -> int:
    _write_photo(args.out, ctrl.snap_jpeg(args.index))
    return 0


def cmd_snap(ctrl: MachineController, args, cfg: SnapHostConfig) -> int:
    tool_id, _ok = ctrl.tool_head(1)
    delta = cfg.tool(tool_id).camera_delta
    if delta is None:
        raise ConfigError(
            f"Camera offset for tool {tool_id} ({module_name(tool_id)}) is unknown.",
            hint="Run: snaphost set-camera-offset --x DX --y DY --z DZ",
        )

    cx, cy, cz, _ox, _oy, _oz = ctrl.current_location()
    dx, dy, dz = delta
    _write_photo(args.out, ctrl.snap_at_jpeg(0, cx + dx, cy + dy, cz + dz))
    ctrl.move_to(cx, cy, cz)
    return 0


def cmd_circle(ctrl: MachineController, args, cfg: SnapHostConfig) -> int:
    for i in range(9):
        theta = i / 9.0 * 2.0 * math.pi
        _log.info("PHOTO index=%d angle_deg=%.2f", i, math.degrees(theta))
        data = ctrl.snap_at_jpeg(i, args.x + args.radius * math.cos(theta), args.y + args.radius * math.sin(theta), args.z)
        _write_photo(f"photo{i}.jpg", data)
    return 0


def cmd_zoom(ctrl: MachineController, args, cfg: SnapHostConfig) -> int:
    for i in range(9):
        height = args.z - i * args.zd
        _log.info("PHOTO index=%d z=%.2f", i, height)
        _write_photo(f"photo{i}.jpg", ctrl.snap_at_jpeg(i, args.x, args.y, height))
    return 0


def cmd_set_camera_offset(ctrl: MachineController, args, cfg: SnapHostConfig) -> int:
    tool_id, _ok = ctrl.tool_head(1)
    if tool_id not in CAMERA_TOOLS:
        raise NoCameraError(f"Tool {tool_id} ({module_name(tool_id)}) has no supported camera.")

    new_cfg = cfg.with_camera_delta(tool_id, (args.x, args.y, args.z))
    save_config(args.config, new_cfg)
    print(f"{args.config} updated with camera offset for tool {tool_id} ({module_name(tool_id)})")
    return 0


def cmd_program(ctrl: MachineController, args, cfg: SnapHostConfig) -> int:
    if args.action == "pause":
        ctrl.pause_program()
        return 0
    if args.action == "resume":
        ctrl.resume_program()
        return 0
    if args.action == "stop":
        ctrl.stop_program()
        return 0
    if args.action == "poll":
        _poll_until_idle(ctrl)
        return 0

    # run
    data = _read_program(args.file)
    eta_s = estimated_time_s(data)
    if eta_s is None:
        _log.info("PROGRAM_NO_ESTIMATE file=%s", args.file)
    else:
        when = dt.datetime.now() + dt.timedelta(seconds=eta_s)
        print(f"ETA for completion from file: {when.strftime('%Y-%m-%d %H:%M:%S')}")

    ctrl.run_program(args.file, data)
    if not args.poll:
        return 0

    print("[waiting to start]")
    ctrl.await_started()
    _poll_until_idle(ctrl)
    return 0


def cmd_program_edit(args) -> int:
    """Offline: no machine connection needed."""
    src = Path(args.file)
    data = _read_program(src)

    out = src.with_name(f"edited-{src.name}")
    out.write_bytes(comment_out_lines(data, args.lines))
    print(f"Wrote {out}")
    return 0


COMMANDS = {
    "dump": cmd_dump,
    "locate": cmd_locate,
    "home": cmd_home,
    "move": cmd_move,
    "nudge": cmd_nudge,
    "origin": cmd_origin,
    "park": cmd_park,
    "laser": cmd_laser,
    "enclosure": cmd_enclosure,
    "photo": cmd_photo,
    "snap": cmd_snap,
    "circle": cmd_circle,
    "zoom": cmd_zoom,
    "set-camera-offset": cmd_set_camera_offset,
    "program": cmd_program,
}

# Commands that move the head and so need a homed machine.
NEEDS_HOMING = {"move", "nudge", "origin", "park", "laser", "photo", "snap", "circle", "zoom"}
