# device_agent/serializers/base_serializer.py
from abc import ABC, abstractmethod
from typing import Any

from device_agent.models.device_models import CommandPayload, Property


class Serializer(ABC):
    """Payload codec shared by the messaging layer.

    Every method raises SerializationError when the value cannot be encoded
    or the bytes cannot be decoded.
    """

    @abstractmethod
    def marshal(self, value: Any) -> bytes:
        pass

    @abstractmethod
    def make_property_payload(self, prop: Property) -> bytes:
        pass

    @abstractmethod
    def make_event_payload(self, prop: Property, identifier: str = "") -> bytes:
        pass

    @abstractmethod
    def unmarshal_command(self, payload: bytes) -> CommandPayload:
        pass
