"""Application configuration loaded from a YAML file."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

DEFAULT_CONFIG_PATH = "config/config.yaml"

_TRUE_WORDS = frozenset({"y", "yes", "true", "on"})
_FALSE_WORDS = frozenset({"n", "no", "false", "off"})


class ConfigError(Exception):
    """Raised when the configuration is missing or malformed."""


def _require(data: Any, keys: tuple[str, ...], section: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ConfigError(f"{section} must be a mapping")
    missing = [key for key in keys if key not in data]
    if missing:
        raise ConfigError(f"{section} is missing: {', '.join(missing)}")
    return data


def _as_str(value: Any, key: str) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    raise ConfigError(f"{key!r} must be a scalar value")


def _as_bool(value: Any, key: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.lower()
        if lowered in _TRUE_WORDS:
            return True
        if lowered in _FALSE_WORDS:
            return False
    raise ConfigError(f"{key!r} must be a boolean")


@dataclass(frozen=True)
class MQTTConfig:
    """Where and as whom to connect to the MQTT broker."""

    server_address: str
    client_id: str

    @classmethod
    def from_mapping(cls, data: Any) -> MQTTConfig:
        data = _require(data, ("server_address", "client_id"), "mqtt")
        return cls(
            server_address=_as_str(data["server_address"], "server_address"),
            client_id=_as_str(data["client_id"], "client_id"),
        )


@dataclass(frozen=True)
class NFCConfig:
    """How the NFC reader behaves."""

    debug: bool = True
    read_data: bool = True

    @classmethod
    def from_mapping(cls, data: Any) -> NFCConfig:
        data = _require(data, ("debug", "read_data"), "nfc")
        return cls(
            debug=_as_bool(data["debug"], "debug"),
            read_data=_as_bool(data["read_data"], "read_data"),
        )


@dataclass(frozen=True)
class AppConfig:
    """The whole application configuration."""

    nfc_tag_topic: str
    mqtt: MQTTConfig
    nfc: NFCConfig

    @classmethod
    def from_mapping(cls, data: Any) -> AppConfig:
        data = _require(data, ("nfc_tag_topic", "mqtt", "nfc"), "configuration")
        return cls(
            nfc_tag_topic=_as_str(data["nfc_tag_topic"], "nfc_tag_topic"),
            mqtt=MQTTConfig.from_mapping(data["mqtt"]),
            nfc=NFCConfig.from_mapping(data["nfc"]),
        )


def load_config(path: str | Path = DEFAULT_CONFIG_PATH) -> AppConfig:
    """Read and validate the YAML configuration at ``path``."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"cannot read {path}: {exc}") from exc
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML in {path}: {exc}") from exc
    return AppConfig.from_mapping(data)