"""Connection to an MQTT broker used to publish tag messages."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlsplit

from paho.mqtt import client as paho

from .config import MQTTConfig

log = logging.getLogger(__name__)

# scheme -> (default port, use TLS, transport)
_SCHEMES = {
    "tcp": (1883, False, "tcp"),
    "mqtt": (1883, False, "tcp"),
    "ssl": (8883, True, "tcp"),
    "mqtts": (8883, True, "tcp"),
    "ws": (80, False, "websockets"),
    "wss": (443, True, "websockets"),
}


class MQTTError(Exception):
    """Raised when talking to the broker fails."""


@dataclass(frozen=True)
class _Endpoint:
    host: str
    port: int
    tls: bool
    transport: str


def _parse_address(address: str) -> _Endpoint:
    parts = urlsplit(address if "://" in address else f"tcp://{address}")
    try:
        default_port, tls, transport = _SCHEMES[parts.scheme.lower()]
    except KeyError:
        raise MQTTError(f"unsupported scheme in server address {address!r}") from None
    if not parts.hostname:
        raise MQTTError(f"no host in server address {address!r}")
    try:
        port = parts.port or default_port
    except ValueError as exc:
        raise MQTTError(f"bad port in server address {address!r}") from exc
    return _Endpoint(parts.hostname, port, tls, transport)


def _make_client(client_id: str, endpoint: _Endpoint) -> Any:
    api_version = getattr(paho, "CallbackAPIVersion", None)
    if api_version is None:
        client = paho.Client(client_id=client_id, transport=endpoint.transport)
    else:
        client = paho.Client(
            api_version.VERSION2, client_id=client_id, transport=endpoint.transport
        )
    if endpoint.tls:
        client.tls_set()
    return client


def _failure(message: str) -> MQTTError:
    log.error("MQTT Error: %s", message)
    return MQTTError(message)


class MQTTHandler:
    """Publishes messages to one broker; usable as a context manager."""

    def __init__(self, config: MQTTConfig, client: Any = None) -> None:
        self._config = config
        self._endpoint = _parse_address(config.server_address)
        self._client = (
            client if client is not None else _make_client(config.client_id, self._endpoint)
        )
        self._connected = False

    @property
    def config(self) -> MQTTConfig:
        return self._config

    @property
    def connected(self) -> bool:
        return self._connected

    def connect(self) -> None:
        """Connect to the broker and start the network loop."""
        log.info("Connecting to MQTT broker...")
        try:
            rc = self._client.connect(self._endpoint.host, self._endpoint.port)
        except (OSError, ValueError) as exc:
            raise _failure(str(exc)) from exc
        if rc:
            raise _failure(f"connect failed with code {int(rc)}")
        self._client.loop_start()
        self._connected = True
        log.info("Connected successfully!")

    def disconnect(self) -> None:
        """Disconnect from the broker if connected."""
        if not self._connected:
            return
        log.info("Disconnecting from MQTT broker...")
        try:
            self._client.disconnect()
        except (OSError, ValueError) as exc:
            raise _failure(str(exc)) from exc
        finally:
            self._client.loop_stop()
            self._connected = False
        log.info("Disconnected successfully!")

    def publish(self, topic: str, payload: str, qos: int = 1) -> None:
        """Publish ``payload`` on ``topic`` and wait until it has gone out."""
        if not self._connected:
            log.error("Not connected to MQTT broker. Cannot publish message.")
            raise MQTTError("Not connected to MQTT broker. Cannot publish message.")
        log.info("Publishing message: %s", payload)
        try:
            info = self._client.publish(topic, payload, qos=qos)
            if info.rc:
                raise _failure(f"publish failed with code {int(info.rc)}")
            info.wait_for_publish()
        except (OSError, ValueError, RuntimeError) as exc:
            raise _failure(str(exc)) from exc
        log.info("Message published successfully!")

    def __enter__(self) -> MQTTHandler:
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.disconnect()