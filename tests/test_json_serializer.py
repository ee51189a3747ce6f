from __future__ import annotations

import json

import pytest

from device_agent.core.exceptions import SerializationError
from device_agent.models.device_models import Property
from device_agent.serializers.json_serializer import JSONSerializer


@pytest.fixture()
def serializer() -> JSONSerializer:
    return JSONSerializer()


def test_property_payload_is_compact_json(serializer) -> None:
    payload = serializer.make_property_payload(Property(property_id=3, value=72.5, sub_device_id="s1"))

    assert payload == b'{"type":"property","subDeviceId":"s1","propertyId":3,"value":72.5}'


def test_event_payload_carries_identifier(serializer) -> None:
    payload = serializer.make_event_payload(Property(property_id=9, value="hot"), identifier="overheat")

    assert json.loads(payload) == {
        "type": "event",
        "subDeviceId": "",
        "propertyId": 9,
        "value": "hot",
        "identifier": "overheat",
    }


def test_unserialisable_value_raises(serializer) -> None:
    with pytest.raises(SerializationError):
        serializer.make_property_payload(Property(property_id=1, value=object()))


def test_unmarshal_command_converts_param_keys(serializer) -> None:
    command = serializer.unmarshal_command(b'{"id":7,"subDeviceId":"sub1","params":{"0":"x","12":5}}')

    assert command.id == 7
    assert command.sub_device_id == "sub1"
    assert command.params == {0: "x", 12: 5}


def test_unmarshal_command_without_params(serializer) -> None:
    command = serializer.unmarshal_command('{"id": 2}')

    assert command.sub_device_id == ""
    assert command.params == {}


@pytest.mark.parametrize(
    "payload",
    [
        b"not json",
        b"[1, 2]",
        b'{"subDeviceId": "s"}',
        b'{"id": 1, "params": {"zero": 1}}',
        b"\xff\xfe",
    ],
)
def test_unmarshal_command_rejects_bad_payloads(serializer, payload: bytes) -> None:
    with pytest.raises(SerializationError):
        serializer.unmarshal_command(payload)
