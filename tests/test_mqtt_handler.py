import pytest

from nfctagpub.config import MQTTConfig
from nfctagpub.mqtt_handler import MQTTError, MQTTHandler


class FakeInfo:
    def __init__(self, rc=0):
        self.rc = rc
        self.waited = False

    def wait_for_publish(self, timeout=None):
        self.waited = True


class FakeClient:
    def __init__(self, connect_rc=0, connect_error=None, publish_rc=0):
        self.connect_rc = connect_rc
        self.connect_error = connect_error
        self.publish_rc = publish_rc
        self.connected_to = None
        self.loop_running = False
        self.disconnected = False
        self.published = []
        self.infos = []

    def connect(self, host, port=1883, keepalive=60):
        if self.connect_error is not None:
            raise self.connect_error
        self.connected_to = (host, port)
        return self.connect_rc

    def loop_start(self):
        self.loop_running = True

    def loop_stop(self):
        self.loop_running = False

    def disconnect(self):
        self.disconnected = True

    def publish(self, topic, payload=None, qos=0, retain=False):
        self.published.append((topic, payload, qos))
        info = FakeInfo(self.publish_rc)
        self.infos.append(info)
        return info


def make_handler(address="tcp://broker.example.com:1884", **client_args):
    client = FakeClient(**client_args)
    handler = MQTTHandler(MQTTConfig(address, "reader-1"), client)
    return handler, client


def test_connect_uses_host_and_port():
    handler, client = make_handler()
    handler.connect()
    assert client.connected_to == ("broker.example.com", 1884)
    assert handler.connected
    assert client.loop_running


def test_default_port():
    handler, client = make_handler("tcp://localhost")
    handler.connect()
    assert client.connected_to == ("localhost", 1883)


def test_publish_before_connect_raises():
    handler, client = make_handler()
    with pytest.raises(MQTTError, match="Not connected"):
        handler.publish("nfc/tags", "{}")
    assert client.published == []


def test_publish_sends_with_default_qos():
    handler, client = make_handler()
    handler.connect()
    handler.publish("nfc/tags", "payload")
    assert client.published == [("nfc/tags", "payload", 1)]
    assert client.infos[0].waited


def test_publish_with_explicit_qos():
    handler, client = make_handler()
    handler.connect()
    handler.publish("nfc/tags", "payload", qos=0)
    assert client.published[0][2] == 0


def test_publish_failure_code_raises():
    handler, client = make_handler(publish_rc=4)
    handler.connect()
    with pytest.raises(MQTTError):
        handler.publish("nfc/tags", "payload")


def test_connect_network_error_raises():
    handler, client = make_handler(connect_error=ConnectionRefusedError("refused"))
    with pytest.raises(MQTTError):
        handler.connect()
    assert not handler.connected


def test_connect_refused_code_raises():
    handler, client = make_handler(connect_rc=5)
    with pytest.raises(MQTTError):
        handler.connect()
    assert not handler.connected


def test_context_manager_connects_and_disconnects():
    handler, client = make_handler()
    with handler as entered:
        assert entered is handler
        assert handler.connected
    assert not handler.connected
    assert client.disconnected
    assert not client.loop_running


def test_disconnect_when_not_connected_is_quiet():
    handler, client = make_handler()
    handler.disconnect()
    assert not client.disconnected


def test_unsupported_scheme():
    with pytest.raises(MQTTError, match="scheme"):
        MQTTHandler(MQTTConfig("http://localhost:1883", "reader-1"), FakeClient())


def test_address_without_scheme_defaults_to_tcp():
    handler, client = make_handler("localhost:1884")
    handler.connect()
    assert client.connected_to == ("localhost", 1884)