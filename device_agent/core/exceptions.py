"""
Centralised exception definitions for the IoT device agent.
All custom exceptions should inherit from DeviceAgentError.
"""

from enum import Enum


class DeviceAgentError(Exception):
    """Base class for every custom exception thrown by this project."""

class ConfigurationError(DeviceAgentError):
    """Raised when options, settings or environment variables are invalid."""

class ProtocolError(DeviceAgentError):
    """Generic failure inside a transport client (MQTT, …)."""

class StorageError(DeviceAgentError):
    """Raised when the key/value store cannot be read or written."""

class HTTPTransportError(DeviceAgentError):
    """Raised when an HTTP request cannot be completed at all."""

class SerializationError(DeviceAgentError):
    """Raised when a payload cannot be encoded or decoded."""

class SessionError(DeviceAgentError):
    """Raised when the messaging session cannot be opened or used."""


class FailureKind(Enum):
    """Which layer of a credential exchange failed."""
    TRANSPORT = "transport"
    DECODE = "decode"
    STATUS = "status"
    TOKEN = "token"
    PRECONDITION = "precondition"


class CredentialError(DeviceAgentError):
    """Failure of a registration or login exchange with the platform."""

    def __init__(self, message: str, kind: FailureKind):
        super().__init__(message)
        self.kind = kind

class RegistrationError(CredentialError):
    """Device registration failed."""

class LoginError(CredentialError):
    """Device login failed."""


class LifecycleError(DeviceAgentError):
    """Raised when the automatic lifecycle cannot bring the device online."""

class LifecycleCancelled(LifecycleError):
    """Raised when a running lifecycle retry loop is cancelled."""
