from typing import Dict, Type

from device_agent.core.exceptions import ConfigurationError
from device_agent.protocols.mqtt_client import MQTTClient
from device_agent.protocols.base_protocol_client import BaseProtocolClient, ProtocolType


class ProtocolFactory:

    _registry: Dict[ProtocolType, Type[BaseProtocolClient]] = {
        ProtocolType.MQTT : MQTTClient,
        # Add other transport clients as needed
    }

    @classmethod
    def register(cls, protocol_type: ProtocolType, client_class: Type[BaseProtocolClient]):
        """Register a transport implementation for *protocol_type*."""
        cls._registry[protocol_type] = client_class

    @classmethod
    def create(cls, protocol_type) -> BaseProtocolClient:
        """
        Create a transport client.

        Args:
            protocol_type (ProtocolType | str): ProtocolType.MQTT or 'mqtt', etc.

        Returns:
            BaseProtocolClient: Unconnected transport client instance
        """
        if isinstance(protocol_type, str):
            try:
                protocol_type = ProtocolType(protocol_type.lower())
            except ValueError:
                raise ConfigurationError(f"Unknown protocol: {protocol_type}")

        handler = cls._registry.get(protocol_type)
        if not handler:
            raise ConfigurationError(f"No handler registered for protocol: {protocol_type}")

        return handler()
