from __future__ import annotations

import pytest

from snaphost.core.errors import DecodeError, NetworkError, NoKeyError, ProtocolError
from snaphost.model.modules import ModuleKind
from snaphost.protocol.api_client import MachineApiClient
from snaphost.transport.errors import TransportIOError

TOKEN = "tok-123"


def test_token_sent_as_query_on_get(fake_transport):
    c = MachineApiClient(fake_transport, TOKEN)
    c.get_status()

    method, path, kw = fake_transport.calls[-1]
    assert (method, path) == ("GET", "/api/v1/status")
    assert kw["params"]["token"] == TOKEN


def test_token_sent_as_form_on_post(fake_transport):
    c = MachineApiClient(fake_transport, TOKEN)
    c.execute_code("G28")

    _m, _p, kw = fake_transport.calls[-1]
    assert kw["data"] == {"token": TOKEN, "code": "G28"}


def test_connect_parses_handshake(fake_transport):
    res = MachineApiClient(fake_transport, TOKEN).connect()
    assert res.token == TOKEN
    assert res.series == "Snapmaker 2.0 A350"
    assert res.has_enclosure is True


def test_status_error_becomes_protocol_error(fake_transport, http_error):
    fake_transport.routes[("GET", "/api/v1/status")] = http_error(401)
    c = MachineApiClient(fake_transport, TOKEN)

    with pytest.raises(ProtocolError) as ei:
        c.get_status()
    assert ei.value.status == 401
    assert ei.value.hint


def test_io_error_becomes_network_error(fake_transport):
    fake_transport.routes[("POST", "/api/v1/connect")] = TransportIOError("refused")

    with pytest.raises(NetworkError):
        MachineApiClient(fake_transport, TOKEN).connect()


def test_malformed_json_is_decode_error_naming_query(fake_transport):
    fake_transport.routes[("GET", "/api/v1/enclosure")] = b"<html>"

    with pytest.raises(DecodeError) as ei:
        MachineApiClient(fake_transport, TOKEN).get_enclosure()
    assert ei.value.subsystem == "enclosure"


def test_module_info_decoded(fake_transport):
    recs = MachineApiClient(fake_transport, TOKEN).get_module_info()
    assert [r.kind for r in recs] == [ModuleKind.LASER, ModuleKind.ENCLOSURE]


def test_module_info_bad_key_propagates(fake_transport):
    fake_transport.routes[("GET", "/api/v1/module_info")] = {"moduleInfo": [{"laserPower": 1}]}

    with pytest.raises(NoKeyError):
        MachineApiClient(fake_transport, TOKEN).get_module_info()


def test_capture_params(fake_transport):
    MachineApiClient(fake_transport, TOKEN).request_capture_photo(3, 1.0, 2.25, 3.5)

    _m, path, kw = fake_transport.calls[-1]
    assert path == "/api/request_capture_photo"
    assert kw["params"] == {
        "token": TOKEN,
        "index": 3,
        "x": "1.000",
        "y": "2.250",
        "z": "3.500",
        "feedRate": 3000,
        "photoQuality": 31,
    }


def test_camera_image_returns_raw_bytes(fake_transport):
    fake_transport.routes[("GET", "/api/get_camera_image")] = b"\xff\xd8jpeg"
    assert MachineApiClient(fake_transport, TOKEN).get_camera_image(0) == b"\xff\xd8jpeg"


def test_prepare_print_multipart(fake_transport):
    MachineApiClient(fake_transport, TOKEN).prepare_print("job.nc", b"G0 X0", "CNC")

    _m, path, kw = fake_transport.calls[-1]
    assert path == "/api/v1/prepare_print"
    assert kw["data"] == {"token": TOKEN, "type": "CNC"}
    assert kw["files"]["file"] == ("job.nc", b"G0 X0", "application/octet-stream")


def test_set_enclosure_only_sends_given_fields(fake_transport):
    MachineApiClient(fake_transport, TOKEN).set_enclosure(led=40)

    _m, _p, kw = fake_transport.calls[-1]
    assert kw["data"] == {"token": TOKEN, "led": 40}
