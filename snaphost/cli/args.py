# snaphost/cli/args.py
from __future__ import annotations

import argparse
from typing import Optional

from snaphost.app.config import DEFAULT_CONFIG_PATH


def _percent(v: str) -> int:
    try:
        n = int(v)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid percentage '{v}' (use 0..100)") from None
    if not 0 <= n <= 100:
        raise argparse.ArgumentTypeError(f"Percentage {n} out of range (use 0..100)")
    return n


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="snaphost", description="Drive a Snapmaker 2.0 A350 over its HTTP API.")
    parser.add_argument("--config", default=DEFAULT_CONFIG_PATH, help="Config file (YAML or JSON).")
    parser.add_argument("--log-file", default=None, help="Also write the application log to this file.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging on the console.")

    sub = parser.add_subparsers(dest="cmd", required=True)

    sub.add_parser("dump", help="Log the cached machine state and exit.")
    sub.add_parser("locate", help="Print the current coordinates.")
    sub.add_parser("home", help="Home the machine (required after power on).")

    p_move = sub.add_parser("move", help="Move to an absolute work position.")
    p_move.add_argument("--x", type=float, default=192.5)
    p_move.add_argument("--y", type=float, default=170.0)
    p_move.add_argument("--z", type=float, default=113.0)

    p_nudge = sub.add_parser("nudge", help="Step the head by a relative amount (mm).")
    p_nudge.add_argument("--dx", type=float, default=0.0)
    p_nudge.add_argument("--dy", type=float, default=0.0)
    p_nudge.add_argument("--dz", type=float, default=0.0)

    p_origin = sub.add_parser("origin", help="Work origin.")
    p_origin.add_argument("action", choices=["set", "goto"])

    sub.add_parser("park", help="Park the head for a tool change.")

    p_laser = sub.add_parser("laser", help="Focus spot and cross hairs.")
    p_laser.add_argument("action", choices=["spot", "nospot", "cross", "nocross"])
    p_laser.add_argument("--power", type=float, default=1.0, help="Spot power percent for 'spot'.")

    p_enc = sub.add_parser("enclosure", help="Set enclosure fan / LED.")
    p_enc.add_argument("--fan", type=_percent, default=None)
    p_enc.add_argument("--led", type=_percent, default=None)

    p_photo = sub.add_parser("photo", help="Take a photo at the current position.")
    p_photo.add_argument("--index", type=int, default=0)
    p_photo.add_argument("--out", default="photo.jpg")

    p_snap = sub.add_parser("snap", help="Take a photo at the configured camera offset and return.")
    p_snap.add_argument("--out", default="photo.jpg")

    p_circle = sub.add_parser("circle", help="Take 9 photos on a circle around a position.")
    p_circle.add_argument("--x", type=float, default=192.5)
    p_circle.add_argument("--y", type=float, default=170.0)
    p_circle.add_argument("--z", type=float, default=113.0)
    p_circle.add_argument("--radius", type=float, default=15.0)

    p_zoom = sub.add_parser("zoom", help="Take 9 photos stepping down in z from a position.")
    p_zoom.add_argument("--x", type=float, default=192.5)
    p_zoom.add_argument("--y", type=float, default=170.0)
    p_zoom.add_argument("--z", type=float, default=113.0)
    p_zoom.add_argument("--zd", type=float, default=1.0, help="z step between photos (mm).")

    p_cam = sub.add_parser("set-camera-offset", help="Store the camera offset for the mounted tool.")
    p_cam.add_argument("--x", type=float, required=True)
    p_cam.add_argument("--y", type=float, required=True)
    p_cam.add_argument("--z", type=float, required=True)

    p_prog = sub.add_parser("program", help="Upload and control programs.")
    prog_sub = p_prog.add_subparsers(dest="action", required=True)
    p_run = prog_sub.add_parser("run")
    p_run.add_argument("file")
    p_run.add_argument("--poll", action="store_true", help="Wait until the program completes.")
    prog_sub.add_parser("pause")
    prog_sub.add_parser("resume")
    prog_sub.add_parser("stop")
    prog_sub.add_parser("poll")
    p_edit = prog_sub.add_parser("edit", help="Write edited-<file> with line ranges commented out.")
    p_edit.add_argument("file")
    p_edit.add_argument("--lines", required=True, help="Comma separated <n>, <n>-<m> or <n>-")

    return parser


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)
