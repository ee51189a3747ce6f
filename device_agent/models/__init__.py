"""Data models and domain objects."""

from .device_models import (
    DeviceIdentity,
    SessionDescriptor,
    Property,
    CommandPayload,
    Command,
    Request,
    Response,
    RegisterResponse,
    AuthResponse,
    merge_identity,
    decode_hex,
    SUB_DEVICE_PARAM_KEY,
    STATUS_OK,
)

from .topics import Topics, DEFAULT_TOPICS

__all__ = [
    # Domain models
    'DeviceIdentity',
    'SessionDescriptor',
    'Property',
    'CommandPayload',
    'Command',
    'Request',
    'Response',
    'RegisterResponse',
    'AuthResponse',
    'merge_identity',
    'decode_hex',
    'SUB_DEVICE_PARAM_KEY',
    'STATUS_OK',

    # Topic table
    'Topics',
    'DEFAULT_TOPICS',
]
