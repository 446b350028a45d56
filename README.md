# nfctagpub

nfctagpub polls an NFC reader for ISO14443A tags. When a new tag appears, it publishes the tag's UID to an MQTT topic as compact JSON with sorted keys:

```json
{"id":"04a1b2c3","type":"ISO14443A"}
```

It can also read data from a detected tag. The result is written to the log:

- **MIFARE Classic** (SAK `0x08`): authenticates block 4 with the default key A, then reads the block.
- **NFC Type 4** (SAK `0x20`): selects the NDEF application, reads the capability container, selects the NDEF file, and reads its length and content.

Tags with any other SAK are not read.

## Installation

```
pip install .
```

With the test dependencies:

```
pip install ".[test]"
```

## Configuration

The configuration is a YAML file. All of these keys are required:

```yaml
nfc_tag_topic: nfc/tag_id
mqtt:
  server_address: tcp://localhost:1883
  client_id: nfc_reader
nfc:
  debug: true
  read_data: true
```

- `nfc_tag_topic`: the topic that tag IDs are published to.
- `mqtt.server_address`: the broker address. The supported schemes are `tcp://` and `mqtt://` (default port 1883), `ssl://` and `mqtts://` (8883, TLS), `ws://` (80, websockets) and `wss://` (443, TLS websockets). An address with no scheme is treated as `tcp://`.
- `mqtt.client_id`: the MQTT client identifier.
- `nfc.debug`: when true, detected tags and removed tags are logged.
- `nfc.read_data`: when true, the tag's data is read after its UID has been published.

`nfctagpub.config.load_config(path)` reads the file and returns an `AppConfig` that holds an `MQTTConfig` and an `NFCConfig`. The default path is `config/config.yaml`. `load_config` raises `ConfigError` if the file cannot be read, is not valid YAML, is missing a key, or has a value of the wrong kind.

## The `nfctagpub` command

```
nfctagpub [--config PATH] [--tags SOURCE] [--interval SECONDS] [--polls N]
```

- `--config`: the configuration file. The default is `config/config.yaml`.
- `--tags`: where tag readings come from. This is a file path, or `-` for standard input, which is the default.
- `--interval`: the number of seconds between polls. The default is 0.5.
- `--polls`: stop after this many polls. Without it, the command polls until it is interrupted.

The command loads the configuration, connects to the broker and then polls for tags. It logs to standard output and always exits with status 0. If the broker cannot be reached, polling still goes ahead, and each failed publish is logged.

Each poll reads one line from the tag source:

```
UID [SAK [RESPONSE ...]]
```

All fields are hex. A blank line, or the end of the input, means that no tag is present. Each `RESPONSE` answers the next APDU sent to that tag, in order. A `-` stands for an empty response. For example, this publishes one MIFARE Classic tag and logs the contents of block 4:

```
echo "04a1b2c3 08 - 00112233445566778899aabbccddeeff" | nfctagpub --polls 1
```

### What the command does not do

The command does not drive reader hardware itself. It takes its tag readings from lines of text, as described above. To use a physical reader, implement `NFCDevice` for it and run `NFCHandler` yourself, as shown in the next section.

## Library use

```python
from nfctagpub.app import MqttTagPublisher
from nfctagpub.config import load_config
from nfctagpub.mqtt_handler import MQTTHandler
from nfctagpub.nfc_handler import NFCHandler

config = load_config("config/config.yaml")
with MQTTHandler(config.mqtt) as mqtt:
    hooks = MqttTagPublisher(mqtt, config.nfc_tag_topic)
    handler = NFCHandler(config.nfc, hooks, device=my_device)
    handler.run(interval=0.5)
```

### `nfctagpub.nfc_handler`

- `NFCDevice`: the abstract reader. It has two methods:
  - `select_passive_target()` returns a `Target(uid, sak)`, or `None` when no tag is present.
  - `transceive_bytes(apdu, timeout_ms)` returns the tag's reply.

  Both raise `NFCError` when they fail.
- `NFCHandlerHooks`: receives new tag IDs through `publish_tag_id(tag_id)`.
- `NFCHandler(config, hooks, device, clock=time.monotonic)` has these methods:
  - `poll_once()` polls one time. It returns the UID of a newly detected tag, or `None`.
  - `run(interval=0.5, max_polls=None)` polls repeatedly.
  - `send_apdu(apdu, timeout_ms)` exchanges one APDU and keeps at most 256 reply bytes.
  - `read_mifare_classic(target)` returns the data read from the tag and raises `NFCError` on failure.
  - `read_nfc_type4(target)` does the same for Type 4 tags.

  A tag is published once when it appears. A poll can find no tag more than one second after that tag was detected. In that case the tag is forgotten, and the next time it is seen it is published again.
- `format_uid(uid)` gives lower-case hex with no separators, for example `04a1b2c3`.
- `format_bytes(data)` gives `0xNN` values separated by spaces.

### `nfctagpub.mqtt_handler`

`MQTTHandler(config, client=None)` wraps a paho-mqtt client.

- `connect()` connects to the broker.
- `disconnect()` disconnects from it.
- `publish(topic, payload, qos=1)` waits until the message has been sent.

Failures raise `MQTTError`, and so does calling `publish` before the handler is connected. The handler can be used as a context manager, which connects on entry and disconnects on exit.

### `nfctagpub.app` and `nfctagpub.tagid`

`MqttTagPublisher(mqtt, topic)` is an `NFCHandlerHooks`. It sends each tag ID as `TagId(type="ISO14443A", id=...).to_json()`. It returns `False` if the publish fails.

`TagId.from_json(text)` parses such a message back. It raises `ValueError` if the message is not in that form.

## Tests

```
pytest
```