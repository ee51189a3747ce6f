from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock

import paho.mqtt.client as mqtt
import pytest

from device_agent.core.exceptions import ConfigurationError, ProtocolError
from device_agent.models.device_models import Response, SessionDescriptor
from device_agent.protocols import mqtt_client as mqtt_module
from device_agent.protocols.base_protocol_client import ConnectionState
from device_agent.protocols.mqtt_client import MQTTClient, MQTTOptions, parse_broker


@pytest.mark.parametrize(
    ("broker", "expected"),
    [
        ("broker.local", ("broker.local", 1883, False)),
        ("broker.local:1884", ("broker.local", 1884, False)),
        ("tcp://10.0.0.5:1883", ("10.0.0.5", 1883, False)),
        ("mqtt://broker.local", ("broker.local", 1883, False)),
        ("ssl://broker.local", ("broker.local", 8883, True)),
        ("mqtts://broker.local:9883/", ("broker.local", 9883, True)),
    ],
)
def test_parse_broker(broker: str, expected) -> None:
    assert parse_broker(broker) == expected


@pytest.mark.parametrize("broker", ["", "ws://broker.local", "broker.local:port"])
def test_parse_broker_rejects_bad_addresses(broker: str) -> None:
    with pytest.raises(ConfigurationError):
        parse_broker(broker)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"host": ""},
        {"host": "h", "port": 0},
        {"host": "h", "port": 70000},
        {"host": "h", "keepalive": 0},
    ],
)
def test_options_are_validated(kwargs) -> None:
    with pytest.raises(ConfigurationError):
        MQTTOptions(**kwargs)


def test_options_from_descriptor_with_overrides() -> None:
    descriptor = SessionDescriptor(
        broker="ssl://broker.local", client_id="42", username="42", password="beef",
    )

    options = MQTTOptions.from_descriptor(descriptor, ca_certs="/etc/ca.pem")

    assert options.use_tls and options.port == 8883
    assert options.ca_certs == "/etc/ca.pem"
    assert "beef" not in repr(options)


# --------------------------------------------------------------------------- #
# connection handling against a mocked paho client
# --------------------------------------------------------------------------- #
@pytest.fixture()
def paho_client(monkeypatch):
    fake = MagicMock()
    fake.connect.return_value = mqtt.MQTT_ERR_SUCCESS
    monkeypatch.setattr(mqtt_module.mqtt, "Client", MagicMock(return_value=fake))
    return fake


def connect_ack(client: MQTTClient, fake, reason_code: int = 0):
    def _loop_start() -> None:
        client._on_connect(fake, None, {}, reason_code, None)
    return _loop_start


def test_new_client_waits_for_connack(paho_client) -> None:
    client = MQTTClient()
    paho_client.loop_start.side_effect = connect_ack(client, paho_client)
    options = MQTTOptions(host="broker.local", client_id="42", username="42", password="beef")

    client.new_client(options)

    assert client.get_instance() is paho_client
    assert client.is_connected()
    paho_client.username_pw_set.assert_called_once_with("42", "beef")
    paho_client.connect.assert_called_once_with(host="broker.local", port=1883, keepalive=30)
    paho_client.tls_set.assert_not_called()


def test_new_client_refused_by_broker(paho_client) -> None:
    client = MQTTClient()
    paho_client.loop_start.side_effect = connect_ack(client, paho_client, reason_code=5)

    with pytest.raises(ProtocolError, match="Connection refused"):
        client.new_client(MQTTOptions(host="broker.local"))

    assert client.get_instance() is None
    assert client.connection_state is ConnectionState.ERROR
    paho_client.loop_stop.assert_called_once()


def test_new_client_times_out_without_connack(paho_client) -> None:
    client = MQTTClient()

    with pytest.raises(ProtocolError, match="timeout"):
        client.new_client(MQTTOptions(host="broker.local", connect_timeout=0.01))
    assert client.get_instance() is None


def test_new_client_socket_error(paho_client) -> None:
    paho_client.connect.side_effect = OSError("connection refused")

    with pytest.raises(ProtocolError):
        MQTTClient().new_client(MQTTOptions(host="broker.local"))


def test_new_client_needs_mqtt_options() -> None:
    with pytest.raises(ConfigurationError):
        MQTTClient().new_client(object())


def test_operations_require_a_client() -> None:
    client = MQTTClient()

    with pytest.raises(ProtocolError):
        client.publish({"topic": "s/1", "payload": b"{}"})
    with pytest.raises(ProtocolError):
        client.subscribe({"topic": "c"})


def test_publish_error_code_raises() -> None:
    client = MQTTClient()
    client.client = MagicMock()
    client.client.publish.return_value = SimpleNamespace(rc=mqtt.MQTT_ERR_NO_CONN)

    with pytest.raises(ProtocolError):
        client.publish({"topic": "s/1", "payload": b"{}", "qos": 1})


def test_subscriptions_are_restored_on_reconnect() -> None:
    client = MQTTClient()
    fake = MagicMock()
    fake.subscribe.return_value = (mqtt.MQTT_ERR_SUCCESS, 1)
    client.client = fake

    client.subscribe({"topic": "c", "qos": 1, "callback": lambda response: None})
    client._on_connect(fake, None, {}, 0, None)

    assert fake.subscribe.call_count == 2
    fake.subscribe.assert_called_with("c", 1)
    assert client.get_subscribed_topics() == ["c"]


# --------------------------------------------------------------------------- #
# disconnect hook and message routing
# --------------------------------------------------------------------------- #
def test_unexpected_disconnect_refreshes_password() -> None:
    client = MQTTClient()
    client.options = MQTTOptions(host="h", username="42", password="old", on_connection_lost=lambda: "a1b2")
    fake = MagicMock()

    client._on_disconnect(fake, None, None, 7, None)

    fake.username_pw_set.assert_called_once_with("42", "a1b2")
    assert client.connection_state is ConnectionState.RECONNECTING


def test_failed_hook_leaves_password_alone() -> None:
    client = MQTTClient()
    client.options = MQTTOptions(host="h", username="42", on_connection_lost=lambda: None)
    fake = MagicMock()

    client._on_disconnect(fake, None, None, 7, None)

    fake.username_pw_set.assert_not_called()


def test_clean_disconnect_skips_hook() -> None:
    hook = MagicMock(return_value="a1b2")
    client = MQTTClient()
    client.options = MQTTOptions(host="h", on_connection_lost=hook)

    client._on_disconnect(MagicMock(), None, None, 0, None)

    hook.assert_not_called()
    assert client.connection_state is ConnectionState.DISCONNECTED


def test_messages_are_routed_through_wildcard_subscriptions() -> None:
    client = MQTTClient()
    received = []
    client.message_handlers = {"c/+": received.append, "s/#": lambda r: pytest.fail("wrong route")}

    client._on_message(None, None, SimpleNamespace(topic="c/1", payload=b"{}", qos=1, retain=0))

    assert received == [Response(topic="c/1", payload=b"{}", qos=1, retained=False)]


def test_handler_errors_are_contained() -> None:
    client = MQTTClient()

    def explode(response) -> None:
        raise RuntimeError("boom")

    client.message_handlers = {"c": explode}

    client._on_message(None, None, SimpleNamespace(topic="c", payload=b"", qos=0, retain=0))
