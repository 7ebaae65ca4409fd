# snaphost/protocol/gcode.py
"""
G-code lines for the standard motions. Builders only; nothing here talks
to the machine.
"""
from __future__ import annotations

from typing import List

# Rapid-move feed rate used for every positioning command
FEED_RATE = 1500

# Laser spot power bounds (percent)
SPOT_POWER_MIN = 0.0
SPOT_POWER_MAX = 1.5


def home() -> List[str]:
    return ["G53", "G28"]


def set_origin() -> List[str]:
    return ["G92 X0 Y0 Z0"]


def goto_origin(current_z: float) -> List[str]:
    # Below the work origin, lift Z before travelling in XY.
    if current_z < 0:
        return [f"G0 F{FEED_RATE} Z0", "G0 X0 Y0"]
    return [f"G0 F{FEED_RATE} X0 Y0", "G0 Z0"]


def move_to(x: float, y: float, z: float) -> str:
    return f"G0 F{FEED_RATE} X{x:.2f} Y{y:.2f} Z{z:.2f}"


def step(dx: float, dy: float, dz: float) -> List[str]:
    return ["G91", f"G0 F{FEED_RATE} X{dx:.2f} Y{dy:.2f} Z{dz:.2f}", "G90"]


def laser_spot(power: float) -> str:
    """
    Low-power focusing spot. `power` is a percentage; S is the PWM duty
    (0..255) matching it.
    """
    return f"M3 P{int(power)} S{255.0 * (power / 100.0):.2f}"


def cross_hairs(enable: bool) -> str:
    return f"M2002 T3 P{1 if enable else 0}"
