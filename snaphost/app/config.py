# snaphost/app/config.py
from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

from snaphost.core.errors import ConfigError
from snaphost.protocol.endpoints import EXPECTED_SERIES
from snaphost.transport.http import DEFAULT_PORT

DEFAULT_CONFIG_PATH = "snapmaker.config"

CameraDelta = Tuple[float, float, float]


@dataclass(frozen=True)
class ToolConfig:
    # (dx, dy, dz) from the tool position to an in-focus, centred photo
    camera_delta: Optional[CameraDelta] = None


@dataclass(frozen=True)
class SnapHostConfig:
    address: str
    token: str
    port: int = DEFAULT_PORT
    poll_interval_s: float = 1.0
    request_timeout_s: float = 10.0
    expected_series: str = EXPECTED_SERIES
    tools: Dict[int, ToolConfig] = field(default_factory=dict)

    def tool(self, tool_id: int) -> ToolConfig:
        return self.tools.get(int(tool_id), ToolConfig())

    def with_camera_delta(self, tool_id: int, delta: CameraDelta) -> "SnapHostConfig":
        tools = dict(self.tools)
        tools[int(tool_id)] = replace(self.tool(tool_id), camera_delta=_parse_delta(delta, tool_id))
        return replace(self, tools=tools)


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------

def _pick(data: Mapping[str, Any], *names: str) -> Any:
    for n in names:
        if n in data:
            return data[n]
    return None


def _parse_delta(raw: Any, tool_id: int) -> CameraDelta:
    if not isinstance(raw, (list, tuple)) or len(raw) != 3:
        raise ConfigError(
            f"Camera offset for tool {tool_id} must be three numbers, got {raw!r}.",
            hint="Use set-camera-offset --x DX --y DY --z DZ.",
        )
    try:
        dx, dy, dz = (float(v) for v in raw)
    except (TypeError, ValueError):
        raise ConfigError(f"Camera offset for tool {tool_id} must be numeric, got {raw!r}.") from None
    return (dx, dy, dz)


def _parse_tools(raw: Any) -> Dict[int, ToolConfig]:
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise ConfigError("'tools' must be a mapping of tool id to tool settings.")

    out: Dict[int, ToolConfig] = {}
    for tid_raw, tinfo in raw.items():
        try:
            tid = int(tid_raw)
        except (TypeError, ValueError):
            raise ConfigError(f"Tool id must be an integer, got {tid_raw!r}.") from None

        tinfo = tinfo or {}
        if not isinstance(tinfo, Mapping):
            raise ConfigError(f"Tool {tid} entry must be a mapping.")

        delta_raw = _pick(tinfo, "camera_delta", "CameraCoordsDelta")
        delta = _parse_delta(delta_raw, tid) if delta_raw is not None else None
        out[tid] = ToolConfig(camera_delta=delta)
    return out


def config_from_dict(data: Mapping[str, Any]) -> SnapHostConfig:
    """
    Build a config from a decoded mapping. Both snake_case keys and the
    capitalised keys of the JSON `snapmaker.config` format are accepted.
    """
    address = _pick(data, "address", "Address")
    token = _pick(data, "token", "Token")
    if not address:
        raise ConfigError("Config is missing the machine address.", hint="Set 'address' to the machine IP.")
    if not token:
        raise ConfigError(
            "Config is missing the session token.",
            hint="Set 'token' to a token accepted on the machine's touchscreen.",
        )

    try:
        return SnapHostConfig(
            address=str(address),
            token=str(token),
            port=int(data.get("port", DEFAULT_PORT)),
            poll_interval_s=float(data.get("poll_interval_s", 1.0)),
            request_timeout_s=float(data.get("request_timeout_s", 10.0)),
            expected_series=str(data.get("expected_series", EXPECTED_SERIES)),
            tools=_parse_tools(_pick(data, "tools", "Tools")),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid config value: {e}") from None


def config_to_dict(cfg: SnapHostConfig) -> Dict[str, Any]:
    tools: Dict[int, Any] = {}
    for tid, tool in sorted(cfg.tools.items()):
        entry: Dict[str, Any] = {}
        if tool.camera_delta is not None:
            entry["camera_delta"] = list(tool.camera_delta)
        tools[tid] = entry

    return {
        "address": cfg.address,
        "token": cfg.token,
        "port": cfg.port,
        "poll_interval_s": cfg.poll_interval_s,
        "request_timeout_s": cfg.request_timeout_s,
        "expected_series": cfg.expected_series,
        "tools": tools,
    }


# ---------------------------------------------------------------------------
# File I/O
# ---------------------------------------------------------------------------

def load_config(path: str | Path) -> SnapHostConfig:
    """
    Load a YAML config file. JSON is a subset of YAML, so JSON config files
    load unchanged.
    """
    full_path = Path(path)
    if not full_path.exists():
        raise ConfigError(
            f"Missing config file: {full_path}",
            hint="Pass --config PATH or create snapmaker.config with address and token.",
        )

    try:
        with open(full_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse {full_path}: {e}") from None

    if not isinstance(data, Mapping):
        raise ConfigError(f"{full_path} must contain a mapping at the top level.")
    return config_from_dict(data)


def save_config(path: str | Path, cfg: SnapHostConfig) -> None:
    full_path = Path(path)
    with open(full_path, "w", encoding="utf-8") as f:
        yaml.safe_dump(config_to_dict(cfg), f, sort_keys=False)
    # holds the session token
    full_path.chmod(0o600)
