"""Polling an NFC reader for ISO 14443-A tags and reading their data."""

from __future__ import annotations

import itertools
import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass

from .config import NFCConfig

log = logging.getLogger(__name__)

MIFARE_CLASSIC_SAK = 0x08
TYPE4_SAK = 0x20

_MIFARE_BLOCK = 0x04
_DEFAULT_KEY_A = bytes([0xFF] * 6)
_RESPONSE_LIMIT = 256
_REMOVAL_DELAY = 1.0
_APDU_TIMEOUT_MS = 500
_CONTENT_TIMEOUT_MS = 1000

_SELECT_NDEF_APP = bytes([0x00, 0xA4, 0x04, 0x00, 0x07, 0xD2, 0x76, 0x00, 0x00, 0x85, 0x01, 0x01, 0x00])
_SELECT_CC = bytes([0x00, 0xA4, 0x00, 0x0C, 0x02, 0xE1, 0x03])
_READ_CC = bytes([0x00, 0xB0, 0x00, 0x00, 0x0F])
_READ_NDEF_LENGTH = bytes([0x00, 0xB0, 0x00, 0x00, 0x02])


class NFCError(Exception):
    """Raised when an exchange with a tag fails."""


@dataclass(frozen=True)
class Target:
    """A tag found in the reader's field."""

    uid: bytes
    sak: int = 0


class NFCDevice(ABC):
    """A reader acting as ISO 14443-A initiator at 106 kbps."""

    @property
    def name(self) -> str:
        return type(self).__name__

    @abstractmethod
    def select_passive_target(self) -> Target | None:
        """Return the tag in the field, or None; may raise NFCError."""

    @abstractmethod
    def transceive_bytes(self, apdu: bytes, timeout_ms: int) -> bytes:
        """Send ``apdu`` to the selected tag and return its reply; raise NFCError on failure."""


class NFCHandlerHooks(ABC):
    """Receives the identifiers of newly detected tags."""

    @abstractmethod
    def publish_tag_id(self, tag_id: str) -> bool:
        """Handle a detected tag id; return whether it was delivered."""


def format_uid(uid: bytes) -> str:
    """Lower-case hex digits of ``uid`` with no separators."""
    return bytes(uid).hex()


def format_bytes(data: bytes) -> str:
    """Each byte as ``0xNN``, separated by spaces."""
    return " ".join(f"0x{b:02x}" for b in data)


def _status_ok(response: bytes) -> bool:
    return len(response) >= 2 and response[-2] == 0x90


class NFCHandler:
    """Polls a device, reports new tags to the hooks and optionally reads them."""

    def __init__(
        self,
        config: NFCConfig,
        hooks: NFCHandlerHooks,
        device: NFCDevice,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config
        self._hooks = hooks
        self._device = device
        self._clock = clock
        self._last_uid = ""
        self._last_seen = clock()

    def poll_once(self) -> str | None:
        """Poll the reader once; return the UID of a newly detected tag, else None."""
        try:
            target = self._device.select_passive_target()
        except NFCError as exc:
            log.debug("Tag selection failed: %s", exc)
            target = None

        if target is None:
            if self._last_uid and self._clock() - self._last_seen > _REMOVAL_DELAY:
                if self._config.debug:
                    log.info("Tag removed")
                self._last_uid = ""
            return None

        uid = format_uid(target.uid)
        if uid == self._last_uid:
            return None

        self._last_uid = uid
        self._last_seen = self._clock()
        if self._config.debug:
            log.info("Detected tag UID: %s", uid)
        self._hooks.publish_tag_id(uid)
        if self._config.read_data:
            self._read_target(target, uid)
        return uid

    def run(self, interval: float = 0.5, max_polls: int | None = None) -> None:
        """Poll repeatedly, ``max_polls`` times or for ever."""
        polls = itertools.count() if max_polls is None else range(max_polls)
        for _ in polls:
            self.poll_once()
            time.sleep(interval)

    def send_apdu(self, apdu: bytes, timeout_ms: int) -> bytes:
        """Exchange one APDU with the tag, keeping at most 256 reply bytes."""
        try:
            response = self._device.transceive_bytes(bytes(apdu), timeout_ms)
        except NFCError:
            log.error("APDU exchange failed")
            raise
        return bytes(response[:_RESPONSE_LIMIT])

    def read_mifare_classic(self, target: Target) -> bytes:
        """Authenticate block 4 with the default key A and read it."""
        uid = target.uid[:4].ljust(4, b"\x00")
        auth = bytes([0x60, _MIFARE_BLOCK]) + _DEFAULT_KEY_A + uid
        try:
            self.send_apdu(auth, _APDU_TIMEOUT_MS)
        except NFCError as exc:
            raise NFCError("Authentication failed for MIFARE Classic block 0x04") from exc
        log.info("Authentication successful. Reading block 0x04")
        try:
            data = self.send_apdu(bytes([0x30, _MIFARE_BLOCK]), _APDU_TIMEOUT_MS)
        except NFCError as exc:
            raise NFCError("Failed to read data from MIFARE block 0x04") from exc
        log.info("Data from block 0x04: %s", format_bytes(data))
        return data

    def read_nfc_type4(self, target: Target) -> bytes:
        """Select the NDEF application and read the NDEF file's content."""
        response = self._exchange(_SELECT_NDEF_APP, _APDU_TIMEOUT_MS)
        if len(response) < 2 or response[-2:] != b"\x90\x00":
            raise NFCError("SELECT NDEF failed")

        if not _status_ok(self._exchange(_SELECT_CC, _APDU_TIMEOUT_MS)):
            raise NFCError("SELECT CC file failed")

        response = self._exchange(_READ_CC, _APDU_TIMEOUT_MS)
        if len(response) < 15:
            raise NFCError("CC file too short")
        file_id = int.from_bytes(response[9:11], "big")
        max_size = int.from_bytes(response[11:13], "big")
        log.info("Found NDEF File ID: 0x%x, max size: %d", file_id, max_size)

        select_file = bytes([0x00, 0xA4, 0x00, 0x0C, 0x02]) + file_id.to_bytes(2, "big")
        if not _status_ok(self._exchange(select_file, _APDU_TIMEOUT_MS)):
            raise NFCError("SELECT NDEF file failed")

        response = self._exchange(_READ_NDEF_LENGTH, _APDU_TIMEOUT_MS)
        if len(response) < 4:
            raise NFCError("Failed to read NDEF length")
        ndef_len = int.from_bytes(response[:2], "big")
        log.info("NDEF content length: %d", ndef_len)

        read_content = bytes([0x00, 0xB0, 0x00, 0x02, ndef_len & 0xFF])
        content = self._exchange(read_content, _CONTENT_TIMEOUT_MS)
        if not content:
            raise NFCError("Failed to read NDEF content")
        log.info("NDEF content: %s", format_bytes(content))
        return content

    def _exchange(self, apdu: bytes, timeout_ms: int) -> bytes:
        try:
            return self.send_apdu(apdu, timeout_ms)
        except NFCError:
            return b""

    def _read_target(self, target: Target, uid: str) -> None:
        if target.sak == MIFARE_CLASSIC_SAK:
            log.info("Detected MIFARE Classic tag with NFCID: %s", uid)
            reader = self.read_mifare_classic
        elif target.sak == TYPE4_SAK:
            log.info("Tag appears to be NFC Type 4 (SEL_RES=0x20) with NFCID: %s", uid)
            reader = self.read_nfc_type4
        else:
            log.info("Unknown SEL_RES value: 0x%x. Skipping read.", target.sak)
            return
        try:
            reader(target)
        except NFCError as exc:
            log.error("%s", exc)