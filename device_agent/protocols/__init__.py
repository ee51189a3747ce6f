"""Transport client implementations."""

from .base_protocol_client import (
    BaseProtocolClient,
    ProtocolType,
    TransportOptions,
    ConnectionState
)

from .mqtt_client import MQTTClient, MQTTOptions, parse_broker
from .protocol_factory import ProtocolFactory

__all__ = [
    # Base classes
    'BaseProtocolClient',
    'ProtocolType',
    'TransportOptions',
    'ConnectionState',

    # Implementations
    'MQTTClient',
    'MQTTOptions',
    'parse_broker',

    # Factory
    'ProtocolFactory'
]
