"""Poll an NFC reader for ISO14443A tags and publish their UIDs to an MQTT broker."""

__version__ = "0.1.0"