# snaphost/model/status.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

from snaphost.core.errors import DecodeError, NoKeyError
from .fields import cast_field, read_field


# Tool status strings reported by /api/v1/status (open set)
STATUS_IDLE = "IDLE"
STATUS_RUNNING = "RUNNING"

PRINT_STATUS_PRINTING = "Printing"


def _require_object(body: Any, subsystem: str) -> Mapping[str, Any]:
    if not isinstance(body, Mapping):
        raise DecodeError(
            f"{subsystem} body must be a JSON object, got {type(body).__name__}.",
            subsystem=subsystem,
        )
    return body


def _read_all(obj: Mapping[str, Any], wire_map: Mapping[str, Tuple[str, str]], subsystem: str) -> Dict[str, Any]:
    try:
        return {attr: read_field(obj, wire, type_name) for attr, (wire, type_name) in wire_map.items()}
    except TypeError as e:
        raise DecodeError(f"Malformed {subsystem} response.", subsystem=subsystem, hint=str(e)) from None


_TOOL_FIELDS: Dict[str, Tuple[str, str]] = {
    "status": ("status", "str"),
    "x": ("x", "float"),
    "y": ("y", "float"),
    "z": ("z", "float"),
    "homed": ("homed", "bool"),
    "offset_x": ("offsetX", "float"),
    "offset_y": ("offsetY", "float"),
    "offset_z": ("offsetZ", "float"),
    "tool_head": ("toolHead", "str"),
    "laser_focal_length": ("laserFocalLength", "float"),
    "laser_power": ("laserPower", "float"),
    "laser_camera": ("laserCamera", "bool"),
    "laser_10w_error_state": ("laser10WErrorState", "int"),
    "work_speed": ("workSpeed", "float"),
    "print_status": ("printStatus", "str"),
    "file_name": ("fileName", "str"),
    "total_lines": ("totalLines", "int"),
    "estimated_time": ("estimatedTime", "float"),
    "current_line": ("currentLine", "int"),
    "progress": ("progress", "float"),
    "elapsed_time": ("elapsedTime", "float"),
    "remaining_time": ("remainingTime", "float"),
    "is_enclosure_door_open": ("isEnclosureDoorOpen", "bool"),
    "door_switch_count": ("doorSwitchCount", "int"),
}


@dataclass(frozen=True)
class ToolSnapshot:
    """
    Tool-head state as reported by GET /api/v1/status.
    """
    status: str = ""
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    homed: bool = False
    offset_x: float = 0.0
    offset_y: float = 0.0
    offset_z: float = 0.0
    tool_head: str = ""
    laser_focal_length: float = 0.0
    laser_power: float = 0.0
    laser_camera: bool = False
    laser_10w_error_state: int = 0
    work_speed: float = 0.0
    print_status: str = ""
    file_name: str = ""
    total_lines: int = 0
    estimated_time: float = 0.0
    current_line: int = 0
    progress: float = 0.0
    elapsed_time: float = 0.0
    remaining_time: float = 0.0
    module_list: Dict[str, bool] = field(default_factory=dict)
    is_enclosure_door_open: bool = False
    door_switch_count: int = 0

    @classmethod
    def from_json(cls, body: Any) -> "ToolSnapshot":
        obj = _require_object(body, "tool")
        values = _read_all(obj, _TOOL_FIELDS, "tool")

        raw_modules = obj.get("moduleList") or {}
        if not isinstance(raw_modules, Mapping):
            raise DecodeError("status 'moduleList' must be an object.", subsystem="tool")
        try:
            modules = {str(k): cast_field(v, "bool") for k, v in raw_modules.items()}
        except TypeError as e:
            raise DecodeError("Malformed tool response.", subsystem="tool", hint=f"moduleList: {e}") from None

        return cls(module_list=modules, **values)

    @property
    def position(self) -> Tuple[float, float, float]:
        return (self.x, self.y, self.z)

    @property
    def is_cnc(self) -> bool:
        return "_CNC_" in self.tool_head

    @property
    def is_printing(self) -> bool:
        return self.print_status == PRINT_STATUS_PRINTING


_ENCLOSURE_FIELDS: Dict[str, Tuple[str, str]] = {
    "is_ready": ("isReady", "bool"),
    "is_door_enabled": ("isDoorEnabled", "bool"),
    "is_door_open": ("isEnclosureDoorOpen", "bool"),
    "led": ("led", "int"),
    "fan": ("fan", "int"),
}


@dataclass(frozen=True)
class EnclosureSnapshot:
    """
    Enclosure state as reported by GET /api/v1/enclosure.
    """
    is_ready: bool = False
    is_door_enabled: bool = False
    is_door_open: bool = False
    led: int = 0
    fan: int = 0

    @classmethod
    def from_json(cls, body: Any) -> "EnclosureSnapshot":
        obj = _require_object(body, "enclosure")
        return cls(**_read_all(obj, _ENCLOSURE_FIELDS, "enclosure"))


@dataclass(frozen=True)
class ModuleEntry:
    key: int
    module_id: int
    status: bool


@dataclass(frozen=True)
class ModuleListing:
    """
    Attached modules as reported by GET /api/v1/module_list, in wire order.
    """
    entries: Tuple[ModuleEntry, ...] = ()

    @classmethod
    def from_json(cls, body: Any) -> "ModuleListing":
        obj = _require_object(body, "module_list")
        items = obj.get("moduleList")
        if items is None:
            return cls()
        if not isinstance(items, list):
            raise DecodeError("module_list 'moduleList' must be a list.", subsystem="module_list")

        out = []
        for item in items:
            if not isinstance(item, Mapping):
                raise DecodeError(f"module_list entry must be an object, got {item!r}.", subsystem="module_list")
            try:
                out.append(
                    ModuleEntry(
                        key=read_field(item, "key", "int"),
                        module_id=read_field(item, "moduleId", "int"),
                        status=read_field(item, "status", "bool"),
                    )
                )
            except TypeError as e:
                raise DecodeError("Malformed module_list entry.", subsystem="module_list", hint=str(e)) from None
        return cls(entries=tuple(out))

    def find(self, key: int) -> Optional[ModuleEntry]:
        for entry in self.entries:
            if entry.key == key:
                return entry
        return None

    def lookup(self, key: int) -> ModuleEntry:
        entry = self.find(key)
        if entry is None:
            raise NoKeyError(
                f"No module with key {key} in the module listing.",
                details={"key": key, "known": [e.key for e in self.entries]},
            )
        return entry

    def __len__(self) -> int:
        return len(self.entries)


@dataclass(frozen=True)
class ConnectionResult:
    """
    Handshake response from POST /api/v1/connect.
    """
    token: str
    read_only: bool
    series: str
    head_type: int
    has_enclosure: bool

    @classmethod
    def from_json(cls, body: Any) -> "ConnectionResult":
        obj = _require_object(body, "connect")
        values = _read_all(
            obj,
            {
                "token": ("token", "str"),
                "read_only": ("readonly", "bool"),
                "series": ("series", "str"),
                "head_type": ("headType", "int"),
                "has_enclosure": ("hasEnclosure", "bool"),
            },
            "connect",
        )
        return cls(**values)
