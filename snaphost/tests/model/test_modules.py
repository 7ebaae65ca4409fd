from __future__ import annotations

import logging

import pytest

import snaphost.model.modules as modules_mod
from snaphost.core.errors import DecodeError, NoKeyError
from snaphost.model.modules import (
    BracingKitModule,
    CncModule,
    EmergencyStopModule,
    EnclosureModule,
    LaserModule,
    ModuleKind,
    ModuleRecord,
    QuickSwapModule,
    UnknownModule,
    decode_module_info,
    decode_module_record,
    encode_module_record,
)


def test_laser_record_decodes_and_reencodes():
    """The laser shape decodes to a LaserModule and re-encodes to an equivalent object."""
    wire = {"key": 1, "laserFocalLength": 7.2, "laserPower": 50, "laserCamera": True}
    rec = decode_module_record(wire)

    assert rec.key == 1
    assert rec.kind is ModuleKind.LASER
    assert rec.module == LaserModule(focal_length=7.2, power=50.0, camera=True)
    assert encode_module_record(rec) == wire


def test_sniff_priority_first_signature_wins():
    """A record carrying both laserPower and spindleSpeed is a laser record."""
    rec = decode_module_record({"key": 4, "spindleSpeed": 1200, "laserPower": 10})
    assert rec.kind is ModuleKind.LASER


def test_enclosure_beats_emergency_stop():
    rec = decode_module_record({"key": 2, "isEmergencyStopped": True, "isEnclosureDoorOpen": True})
    assert rec.kind is ModuleKind.ENCLOSURE
    assert rec.module.is_door_open is True


@pytest.mark.parametrize(
    "wire, kind",
    [
        ({"key": 3, "isEmergencyStopped": False}, ModuleKind.EMERGENCY_STOP),
        ({"key": 5, "quickSwapState": 1, "quickSwapType": 0}, ModuleKind.QUICK_SWAP),
        ({"key": 6, "bracingKitState": 2}, ModuleKind.BRACING_KIT),
        ({"key": 7, "spindleSpeed": 9000}, ModuleKind.CNC),
    ],
)
def test_each_signature_selects_its_variant(wire, kind):
    assert decode_module_record(wire).kind is kind


def test_unknown_shape_kept_with_raw_fields(caplog):
    with caplog.at_level(logging.INFO, logger=modules_mod.__name__):
        rec = decode_module_record({"key": 9, "foo": 1, "bar": "x"})

    assert rec.kind is ModuleKind.UNKNOWN
    assert isinstance(rec.module, UnknownModule)
    assert rec.module.fields == {"foo": 1, "bar": "x"}
    assert encode_module_record(rec) == {"key": 9, "foo": 1, "bar": "x"}
    assert "MODULE_SHAPE_UNKNOWN" in caplog.text


@pytest.mark.parametrize("wire", [{"laserPower": 1.0}, {"key": "1"}, {"key": True}, {"key": -1}, {"key": 1.5}])
def test_bad_key_rejected(wire):
    with pytest.raises(NoKeyError):
        decode_module_record(wire)


def test_wrong_field_type_in_recognised_shape_is_decode_error():
    with pytest.raises(DecodeError) as ei:
        decode_module_record({"key": 1, "laserPower": "high"})
    assert ei.value.subsystem == "module"


def test_non_object_record_is_decode_error():
    with pytest.raises(DecodeError):
        decode_module_record([1, 2, 3])


def test_missing_variant_fields_default_to_zero():
    rec = decode_module_record({"key": 2, "isEnclosureDoorOpen": True})
    assert rec.module == EnclosureModule(is_door_open=True)


@pytest.mark.parametrize(
    "module",
    [
        LaserModule(focal_length=12.5, power=1.5, camera=False),
        EnclosureModule(is_ready=True, led=100, fan=30, is_door_enabled=True, is_door_open=False, door_switch_count=4),
        EmergencyStopModule(is_emergency_stopped=True),
        QuickSwapModule(state=1, swap_type=2),
        BracingKitModule(state=3),
        CncModule(spindle_speed=12000),
    ],
)
def test_recognised_variants_survive_encode_decode(module):
    rec = ModuleRecord(key=11, module=module)
    assert decode_module_record(encode_module_record(rec)) == rec


def test_decode_module_info_never_aborts_on_unknown():
    body = {
        "moduleInfo": [
            {"key": 1, "laserPower": 1.0},
            {"key": 2, "mystery": True},
            {"key": 3, "spindleSpeed": 100},
        ]
    }
    recs = decode_module_info(body)
    assert [r.kind for r in recs] == [ModuleKind.LASER, ModuleKind.UNKNOWN, ModuleKind.CNC]


def test_decode_module_info_missing_list_is_empty():
    assert decode_module_info({}) == ()


def test_decode_module_info_rejects_non_list():
    with pytest.raises(DecodeError):
        decode_module_info({"moduleInfo": {"key": 1}})


def test_module_name_known_and_unknown():
    assert modules_mod.module_name(2) == "levelOneLaserToolheadForSM2"
    assert modules_mod.module_name(99) == "module_id=99"
