from __future__ import annotations

import json

import pytest

from snaphost.app.config import SnapHostConfig, ToolConfig, load_config, save_config
from snaphost.core.errors import ConfigError


def test_load_legacy_json_config(tmp_path):
    p = tmp_path / "snapmaker.config"
    p.write_text(
        json.dumps({"Token": "abc", "Address": "10.0.0.5", "Tools": {"2": {"CameraCoordsDelta": [1, 2.5, -3]}}}),
        encoding="utf-8",
    )

    cfg = load_config(p)
    assert cfg.address == "10.0.0.5"
    assert cfg.token == "abc"
    assert cfg.port == 8080
    assert cfg.tool(2).camera_delta == (1.0, 2.5, -3.0)
    assert cfg.tool(1) == ToolConfig()


def test_load_yaml_config(tmp_path):
    p = tmp_path / "snaphost.yml"
    p.write_text(
        "address: printer.lan\n"
        "token: xyz\n"
        "poll_interval_s: 2.0\n"
        "tools:\n"
        "  2:\n"
        "    camera_delta: [0, 0, 1]\n",
        encoding="utf-8",
    )

    cfg = load_config(p)
    assert cfg.poll_interval_s == 2.0
    assert cfg.tools[2].camera_delta == (0.0, 0.0, 1.0)


def test_missing_file(tmp_path):
    with pytest.raises(ConfigError) as ei:
        load_config(tmp_path / "nope.yml")
    assert ei.value.hint


@pytest.mark.parametrize(
    "text",
    [
        "token: abc\n",
        "address: a\n",
        "- 1\n- 2\n",
        "address: a\ntoken: b\ntools:\n  2:\n    camera_delta: [1, 2]\n",
        "address: a\ntoken: b\nport: eighty\n",
    ],
)
def test_invalid_configs(tmp_path, text):
    p = tmp_path / "bad.yml"
    p.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(p)


def test_save_then_load_keeps_camera_delta(tmp_path):
    p = tmp_path / "out.yml"
    cfg = SnapHostConfig(address="a", token="b").with_camera_delta(2, (1.0, 2.0, 3.0))

    save_config(p, cfg)
    loaded = load_config(p)

    assert loaded == cfg
