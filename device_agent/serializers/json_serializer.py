import json
from typing import Any, Dict

from device_agent.core.exceptions import SerializationError
from device_agent.models.device_models import CommandPayload, Property
from .base_serializer import Serializer


class JSONSerializer(Serializer):
    """Compact UTF-8 JSON payloads."""

    def marshal(self, value: Any) -> bytes:
        try:
            return json.dumps(value, separators=(",", ":")).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Failed to marshal value: {e}") from e

    def make_property_payload(self, prop: Property) -> bytes:
        return self.marshal(self._property_body("property", prop))

    def make_event_payload(self, prop: Property, identifier: str = "") -> bytes:
        body = self._property_body("event", prop)
        body["identifier"] = identifier
        return self.marshal(body)

    def unmarshal_command(self, payload: bytes) -> CommandPayload:
        try:
            if isinstance(payload, (bytes, bytearray)):
                payload = payload.decode("utf-8")
            row = json.loads(payload)
            if not isinstance(row, dict):
                raise ValueError("command payload is not a JSON object")
            return CommandPayload.from_dict(row)
        except (UnicodeDecodeError, ValueError, KeyError, TypeError, AttributeError) as e:
            raise SerializationError(f"Failed to unmarshal command: {e}") from e

    @staticmethod
    def _property_body(kind: str, prop: Property) -> Dict[str, Any]:
        return {
            "type": kind,
            "subDeviceId": prop.sub_device_id,
            "propertyId": prop.property_id,
            "value": prop.value,
        }
