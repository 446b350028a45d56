import pytest

from nfctagpub.config import (
    AppConfig,
    ConfigError,
    MQTTConfig,
    NFCConfig,
    load_config,
)

VALID = {
    "nfc_tag_topic": "nfc/tags",
    "mqtt": {"server_address": "tcp://localhost:1883", "client_id": "my_client_id"},
    "nfc": {"debug": True, "read_data": False},
}

YAML_TEXT = """\
nfc_tag_topic: nfc/tags
mqtt:
  server_address: tcp://localhost:1883
  client_id: my_client_id
nfc:
  debug: true
  read_data: false
"""


def test_app_config_from_mapping():
    config = AppConfig.from_mapping(VALID)
    assert config.nfc_tag_topic == "nfc/tags"
    assert config.mqtt == MQTTConfig("tcp://localhost:1883", "my_client_id")
    assert config.nfc == NFCConfig(debug=True, read_data=False)


@pytest.mark.parametrize("key", ["nfc_tag_topic", "mqtt", "nfc"])
def test_app_config_missing_key(key):
    data = {k: v for k, v in VALID.items() if k != key}
    with pytest.raises(ConfigError, match=key):
        AppConfig.from_mapping(data)


@pytest.mark.parametrize("key", ["server_address", "client_id"])
def test_mqtt_config_missing_key(key):
    data = {k: v for k, v in VALID["mqtt"].items() if k != key}
    with pytest.raises(ConfigError, match=key):
        MQTTConfig.from_mapping(data)


@pytest.mark.parametrize("key", ["debug", "read_data"])
def test_nfc_config_missing_key(key):
    data = {k: v for k, v in VALID["nfc"].items() if k != key}
    with pytest.raises(ConfigError, match=key):
        NFCConfig.from_mapping(data)


def test_nfc_config_rejects_non_boolean():
    with pytest.raises(ConfigError):
        NFCConfig.from_mapping({"debug": "maybe", "read_data": True})


def test_nfc_config_accepts_boolean_words():
    config = NFCConfig.from_mapping({"debug": "Yes", "read_data": "off"})
    assert (config.debug, config.read_data) == (True, False)


def test_mqtt_config_numeric_client_id_becomes_text():
    config = MQTTConfig.from_mapping({"server_address": "tcp://localhost", "client_id": 42})
    assert config.client_id == str(42)


def test_mqtt_config_rejects_nested_value():
    with pytest.raises(ConfigError):
        MQTTConfig.from_mapping({"server_address": ["a"], "client_id": "x"})


def test_section_must_be_mapping():
    with pytest.raises(ConfigError):
        AppConfig.from_mapping({**VALID, "mqtt": "tcp://localhost"})


def test_load_config_reads_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(YAML_TEXT, encoding="utf-8")
    assert load_config(path) == AppConfig.from_mapping(VALID)


def test_load_config_missing_file(tmp_path):
    with pytest.raises(ConfigError):
        load_config(tmp_path / "absent.yaml")


def test_load_config_invalid_yaml(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("mqtt: [unclosed", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(path)


def test_load_config_empty_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(path)