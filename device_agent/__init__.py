"""IoT Device Agent - Main Package"""

__version__ = '1.0.0'
__description__ = 'Device lifecycle, session and telemetry agent for IoT platforms'

# Core patterns - most fundamental
from .core import (
    RetryPolicy,
    DeviceAgentError,
    ConfigurationError,
    StorageError,
    SessionError,
    SerializationError,
    RegistrationError,
    LoginError,
    LifecycleError,
    LifecycleCancelled,
)

# Models - domain objects
from .models import DeviceIdentity, Property, Command, Request, Topics, DEFAULT_TOPICS, SUB_DEVICE_PARAM_KEY

# Storage
from .storage import MemoryStorage, JSONFileStorage

# Protocols
from .protocols import ProtocolFactory, ProtocolType, MQTTClient, MQTTOptions

# Serializers
from .serializers import JSONSerializer

# Lifecycle
from .orchestration import LifecycleController, LifecycleState

# Public facade
from .device import Device

__all__ = [
    # Core
    'RetryPolicy',
    'DeviceAgentError',
    'ConfigurationError',
    'StorageError',
    'SessionError',
    'SerializationError',
    'RegistrationError',
    'LoginError',
    'LifecycleError',
    'LifecycleCancelled',

    # Models
    'DeviceIdentity',
    'Property',
    'Command',
    'Request',
    'Topics',
    'DEFAULT_TOPICS',
    'SUB_DEVICE_PARAM_KEY',

    # Storage
    'MemoryStorage',
    'JSONFileStorage',

    # Transport
    'ProtocolFactory',
    'ProtocolType',
    'MQTTClient',
    'MQTTOptions',

    # Serializers
    'JSONSerializer',

    # Lifecycle
    'LifecycleController',
    'LifecycleState',
    'Device',
]
