# snaphost/model/modules.py
"""
Module status records from /api/v1/module_info.

Each wire record is a flat JSON object `{"key": <int>, <variant fields>}`
with no field saying which kind of module it describes. The kind is
recovered once, at decode time, by checking for one signature field per
variant in a fixed priority order (SNIFF_ORDER). The resulting
ModuleRecord carries an explicit tag (ModuleKind) from then on.

Records whose shape matches no signature are kept as UnknownModule with
their raw fields, so that new hardware never breaks decoding of a listing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, Mapping, Tuple, Type, Union

from snaphost.core.errors import DecodeError, NoKeyError
from .fields import read_field

_log = logging.getLogger(__name__)


# Known module ids reported by /api/v1/module_list
MODULE_NAMES: Dict[int, str] = {
    1: "standardCNCToolheadForSM2",     # CNC default tool 50W
    2: "levelOneLaserToolheadForSM2",   # Blue Laser 1.6W
    23: "2W Laser Module",              # IR Laser 2W
}


def module_name(module_id: int) -> str:
    return MODULE_NAMES.get(int(module_id), f"module_id={module_id}")


class ModuleKind(str, Enum):
    LASER = "laser"
    ENCLOSURE = "enclosure"
    EMERGENCY_STOP = "emergency_stop"
    QUICK_SWAP = "quick_swap"
    BRACING_KIT = "bracing_kit"
    CNC = "cnc"
    UNKNOWN = "unknown"


class _Variant:
    """
    Shared wire mapping for the recognised variants.

    WIRE maps each dataclass attribute to (wire_name, field_type), in the
    order fields are emitted on encode.
    """
    kind: ClassVar[ModuleKind]
    signature: ClassVar[str]
    WIRE: ClassVar[Dict[str, Tuple[str, str]]]

    @classmethod
    def from_fields(cls, obj: Mapping[str, Any]):
        kwargs = {attr: read_field(obj, wire, type_name) for attr, (wire, type_name) in cls.WIRE.items()}
        return cls(**kwargs)

    def to_fields(self) -> Dict[str, Any]:
        return {wire: getattr(self, attr) for attr, (wire, _t) in self.WIRE.items()}


@dataclass(frozen=True)
class LaserModule(_Variant):
    kind: ClassVar[ModuleKind] = ModuleKind.LASER
    signature: ClassVar[str] = "laserPower"
    WIRE: ClassVar[Dict[str, Tuple[str, str]]] = {
        "focal_length": ("laserFocalLength", "float"),
        "power": ("laserPower", "float"),
        "camera": ("laserCamera", "bool"),
    }

    focal_length: float = 0.0
    power: float = 0.0
    camera: bool = False


@dataclass(frozen=True)
class EnclosureModule(_Variant):
    kind: ClassVar[ModuleKind] = ModuleKind.ENCLOSURE
    signature: ClassVar[str] = "isEnclosureDoorOpen"
    WIRE: ClassVar[Dict[str, Tuple[str, str]]] = {
        "is_ready": ("isReady", "bool"),
        "led": ("led", "int"),
        "fan": ("fan", "int"),
        "is_door_enabled": ("isDoorEnabled", "bool"),
        "is_door_open": ("isEnclosureDoorOpen", "bool"),
        "door_switch_count": ("doorSwitchCount", "int"),
    }

    is_ready: bool = False
    led: int = 0
    fan: int = 0
    is_door_enabled: bool = False
    is_door_open: bool = False
    door_switch_count: int = 0


@dataclass(frozen=True)
class EmergencyStopModule(_Variant):
    kind: ClassVar[ModuleKind] = ModuleKind.EMERGENCY_STOP
    signature: ClassVar[str] = "isEmergencyStopped"
    WIRE: ClassVar[Dict[str, Tuple[str, str]]] = {
        "is_emergency_stopped": ("isEmergencyStopped", "bool"),
    }

    is_emergency_stopped: bool = False


@dataclass(frozen=True)
class QuickSwapModule(_Variant):
    kind: ClassVar[ModuleKind] = ModuleKind.QUICK_SWAP
    signature: ClassVar[str] = "quickSwapState"
    WIRE: ClassVar[Dict[str, Tuple[str, str]]] = {
        "state": ("quickSwapState", "int"),
        "swap_type": ("quickSwapType", "int"),
    }

    state: int = 0
    swap_type: int = 0


@dataclass(frozen=True)
class BracingKitModule(_Variant):
    kind: ClassVar[ModuleKind] = ModuleKind.BRACING_KIT
    signature: ClassVar[str] = "bracingKitState"
    WIRE: ClassVar[Dict[str, Tuple[str, str]]] = {
        "state": ("bracingKitState", "int"),
    }

    state: int = 0


@dataclass(frozen=True)
class CncModule(_Variant):
    kind: ClassVar[ModuleKind] = ModuleKind.CNC
    signature: ClassVar[str] = "spindleSpeed"
    WIRE: ClassVar[Dict[str, Tuple[str, str]]] = {
        "spindle_speed": ("spindleSpeed", "int"),
    }

    spindle_speed: int = 0


@dataclass(frozen=True)
class UnknownModule:
    """A record whose shape matched no known signature; raw fields kept."""
    kind: ClassVar[ModuleKind] = ModuleKind.UNKNOWN

    fields: Dict[str, Any] = field(default_factory=dict)

    def to_fields(self) -> Dict[str, Any]:
        return dict(self.fields)


ModuleVariant = Union[
    LaserModule,
    EnclosureModule,
    EmergencyStopModule,
    QuickSwapModule,
    BracingKitModule,
    CncModule,
    UnknownModule,
]

# Sniff priority: first signature present wins.
SNIFF_ORDER: Tuple[Type[_Variant], ...] = (
    LaserModule,
    EnclosureModule,
    EmergencyStopModule,
    QuickSwapModule,
    BracingKitModule,
    CncModule,
)


@dataclass(frozen=True)
class ModuleRecord:
    key: int
    module: ModuleVariant

    @property
    def kind(self) -> ModuleKind:
        return self.module.kind

    def as_dict(self) -> Dict[str, Any]:
        return encode_module_record(self)


# ---------------------------------------------------------------------------
# Decode / encode
# ---------------------------------------------------------------------------

def _parse_key(obj: Mapping[str, Any]) -> int:
    if "key" not in obj:
        raise NoKeyError("Module record has no 'key' field.", details={"record": dict(obj)})

    key = obj["key"]
    if isinstance(key, bool) or not isinstance(key, int):
        raise NoKeyError(
            f"Module record key must be an integer, got {key!r}.",
            details={"record": dict(obj)},
        )
    if key < 0:
        raise NoKeyError(f"Module record key must be non-negative, got {key}.", details={"record": dict(obj)})
    return key


def sniff_variant(fields: Mapping[str, Any]) -> Type[_Variant] | None:
    """Return the first variant in SNIFF_ORDER whose signature is present."""
    for variant in SNIFF_ORDER:
        if variant.signature in fields:
            return variant
    return None


def decode_module_record(obj: Any) -> ModuleRecord:
    """
    Decode one wire record.

    Raises:
      NoKeyError   if `key` is missing, not an integer or negative
      DecodeError  if the record is not an object, or a recognised shape
                   carries a field of the wrong JSON type
    """
    if not isinstance(obj, Mapping):
        raise DecodeError(
            f"Module record must be a JSON object, got {type(obj).__name__}.",
            subsystem="module",
        )

    key = _parse_key(obj)
    rest = {k: v for k, v in obj.items() if k != "key"}

    variant = sniff_variant(rest)
    if variant is None:
        _log.info("MODULE_SHAPE_UNKNOWN key=%d fields=%s", key, sorted(rest.keys()))
        return ModuleRecord(key=key, module=UnknownModule(fields=rest))

    try:
        module = variant.from_fields(rest)
    except TypeError as e:
        raise DecodeError(
            f"Malformed {variant.kind.value} module record (key={key}).",
            subsystem="module",
            hint=str(e),
            details={"key": key},
        ) from None

    return ModuleRecord(key=key, module=module)


def encode_module_record(record: ModuleRecord) -> Dict[str, Any]:
    out: Dict[str, Any] = {"key": int(record.key)}
    out.update(record.module.to_fields())
    return out


def decode_module_info(body: Any) -> Tuple[ModuleRecord, ...]:
    """
    Decode a /api/v1/module_info body: `{"moduleInfo": [<record>, ...]}`.

    One ModuleRecord is returned per input record; unknown shapes never
    abort the listing.
    """
    if not isinstance(body, Mapping):
        raise DecodeError("module_info body must be a JSON object.", subsystem="module")

    items = body.get("moduleInfo")
    if items is None:
        return ()
    if not isinstance(items, list):
        raise DecodeError("module_info 'moduleInfo' must be a list.", subsystem="module")

    return tuple(decode_module_record(item) for item in items)
