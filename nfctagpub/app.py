"""Command that publishes detected NFC tag ids to MQTT."""

from __future__ import annotations

import argparse
import contextlib
import logging
import sys
from collections import deque
from collections.abc import Iterable, Iterator

from .config import DEFAULT_CONFIG_PATH, AppConfig, ConfigError, load_config
from .mqtt_handler import MQTTError, MQTTHandler
from .nfc_handler import NFCDevice, NFCError, NFCHandler, NFCHandlerHooks, Target
from .tagid import TagId

log = logging.getLogger(__name__)

TAG_TYPE = "ISO14443A"


class MqttTagPublisher(NFCHandlerHooks):
    """Sends each detected tag id as a JSON message to an MQTT topic."""

    def __init__(self, mqtt: MQTTHandler, topic: str) -> None:
        self._mqtt = mqtt
        self._topic = topic

    def publish_tag_id(self, tag_id: str) -> bool:
        payload = TagId(type=TAG_TYPE, id=tag_id).to_json()
        try:
            self._mqtt.publish(self._topic, payload)
        except MQTTError as exc:
            log.error("Could not publish tag id: %s", exc)
            return False
        return True


def _parse_hex(field: str, line: str) -> bytes:
    if field == "-":
        return b""
    try:
        return bytes.fromhex(field)
    except ValueError as exc:
        raise NFCError(f"bad tag line {line.strip()!r}") from exc


class _LineDevice(NFCDevice):
    """Reads one line per poll: 'UID [SAK [RESPONSE ...]]' in hex, blank for no tag.

    Each RESPONSE answers one APDU exchange with the tag, in order; '-' stands
    for an empty response.
    """

    name = "line input"

    def __init__(self, lines: Iterable[str]) -> None:
        self._lines = iter(lines)
        self._responses: deque[bytes] = deque()

    def select_passive_target(self) -> Target | None:
        line = next(self._lines, "")
        fields = line.split()
        self._responses.clear()
        if not fields:
            return None
        uid = _parse_hex(fields[0], line)
        try:
            sak = int(fields[1], 16) if len(fields) > 1 else 0
        except ValueError as exc:
            raise NFCError(f"bad tag line {line.strip()!r}") from exc
        self._responses.extend(_parse_hex(field, line) for field in fields[2:])
        return Target(uid=uid, sak=sak)

    def transceive_bytes(self, apdu: bytes, timeout_ms: int) -> bytes:
        if not self._responses:
            raise NFCError(f"no response available for APDU {bytes(apdu).hex()}")
        return self._responses.popleft()


@contextlib.contextmanager
def _open_tags(source: str) -> Iterator[Iterable[str]]:
    if source == "-":
        yield sys.stdin
    else:
        with open(source, encoding="utf-8") as stream:
            yield stream


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="nfctagpub", description="Publish the UIDs of NFC tags to an MQTT topic."
    )
    parser.add_argument("--config", default=DEFAULT_CONFIG_PATH, help="YAML configuration file")
    parser.add_argument(
        "--tags",
        default="-",
        help=(
            "tag source, one line per poll: 'UID [SAK [RESPONSE ...]]' in hex, "
            "blank for no tag ('-' for stdin)"
        ),
    )
    parser.add_argument("--interval", type=float, default=0.5, help="seconds between polls")
    parser.add_argument("--polls", type=int, default=None, help="stop after this many polls")
    return parser.parse_args(argv)


def _serve(config: AppConfig, args: argparse.Namespace) -> None:
    try:
        mqtt = MQTTHandler(config.mqtt)
    except MQTTError as exc:
        log.error("Failed to create handlers: %s", exc)
        return
    try:
        mqtt.connect()
    except MQTTError:
        log.error("Failed to connect to MQTT broker.")
    try:
        with _open_tags(args.tags) as lines:
            device = _LineDevice(lines)
            publisher = MqttTagPublisher(mqtt, config.nfc_tag_topic)
            handler = NFCHandler(config.nfc, publisher, device)
            log.info("NFC device initialized: %s", device.name)
            handler.run(args.interval, args.polls)
    except OSError as exc:
        log.error("Could not open NFC device: %s", exc)
    except KeyboardInterrupt:
        pass
    finally:
        try:
            mqtt.disconnect()
        except MQTTError:
            pass


def main(argv: list[str] | None = None) -> int:
    """Load the configuration, connect to MQTT and poll for tags."""
    args = _parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(message)s", stream=sys.stdout)
    log.info("Let's read NFC tags!")
    try:
        config = load_config(args.config)
    except ConfigError as exc:
        log.error("Error loading configuration: %s", exc)
        log.error("Failed to load configuration.")
    else:
        log.info("App config loaded successfully")
        _serve(config, args)
    log.info("Exiting program.")
    return 0