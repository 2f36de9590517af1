"""
Runtime settings for the Starkmoat CLI and demo flow.

Resolution order (later wins):
    1. Built-in defaults (protocol.config)
    2. YAML file (explicit path, else ./starkmoat.yaml when present)
    3. Environment variables (STARKMOAT_<FIELD>, e.g. STARKMOAT_RPC_URL)

The core derivations and registry never read settings; only the CLI and
the signaler wiring do.
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

from .config import (
    CHAIN_ID_SN_SEPOLIA,
    DEFAULT_ACTION,
    DEFAULT_DOMAIN,
    DEFAULT_ENTRYPOINT,
    DEFAULT_ROOT,
    DEFAULT_RPC_URL,
)
from .exceptions import ConfigurationError

DEFAULT_SETTINGS_FILE = Path("starkmoat.yaml")
ENV_PREFIX = "STARKMOAT_"

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


@dataclass
class StarkmoatSettings:
    rpc_url: str = DEFAULT_RPC_URL
    chain_id: str = CHAIN_ID_SN_SEPOLIA
    domain: str = DEFAULT_DOMAIN
    action: str = DEFAULT_ACTION
    root: str = DEFAULT_ROOT
    entrypoint: str = DEFAULT_ENTRYPOINT
    target_contract: str = ""
    append_nullifier: bool = True
    registry_path: str = "starkmoat-registry.cbor"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.to_dict(), default_flow_style=False, sort_keys=True)

    @property
    def events_path(self) -> str:
        return f"{self.registry_path}.events"


def _field_types() -> Dict[str, Any]:
    return {f.name: f.type for f in fields(StarkmoatSettings)}


def _coerce(name: str, value: Any) -> Any:
    expected = _field_types()[name]
    if expected in (bool, "bool"):
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in _TRUE_VALUES:
            return True
        if isinstance(value, str) and value.strip().lower() in _FALSE_VALUES:
            return False
        raise ConfigurationError(f"{name} must be a boolean, got {value!r}")

    if isinstance(value, bool) or not isinstance(value, (str, int)):
        raise ConfigurationError(f"{name} must be a string, got {value!r}")
    # YAML turns unquoted 0x... into int
    if isinstance(value, int):
        return hex(value)
    return value


def _apply(settings: StarkmoatSettings, data: Mapping[str, Any], source: str) -> None:
    known = _field_types()
    for key, value in data.items():
        if key not in known:
            raise ConfigurationError(f"Unknown setting {key!r} in {source}")
        setattr(settings, key, _coerce(key, value))


def load_settings_file(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Read a YAML settings file.

    Raises:
        ConfigurationError: If the file is unreadable, not YAML, or not a mapping
    """
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except OSError as e:
        raise ConfigurationError(f"Cannot read settings file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Settings file {path} must contain a mapping")
    return data


def load_settings(
    path: Optional[Union[str, Path]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> StarkmoatSettings:
    """
    Build effective settings.

    Args:
        path: Optional YAML file. When omitted, ./starkmoat.yaml is read if
            it exists.
        environ: Environment mapping (default: os.environ)

    Returns:
        StarkmoatSettings

    Raises:
        ConfigurationError: On unknown keys, bad types, or bad YAML
    """
    settings = StarkmoatSettings()

    if path is not None:
        _apply(settings, load_settings_file(path), str(path))
    elif DEFAULT_SETTINGS_FILE.is_file():
        _apply(settings, load_settings_file(DEFAULT_SETTINGS_FILE), str(DEFAULT_SETTINGS_FILE))

    env = os.environ if environ is None else environ
    overrides = {}
    for name in _field_types():
        env_name = ENV_PREFIX + name.upper()
        if env.get(env_name):
            overrides[name] = env[env_name]
    _apply(settings, overrides, "environment")

    return settings
