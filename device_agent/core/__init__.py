# device_agent/core/__init__.py
"""Core infrastructure components for the IoT device agent."""

# Import order: most fundamental to most specific

from .exceptions import (
    DeviceAgentError,
    ConfigurationError,
    ProtocolError,
    StorageError,
    HTTPTransportError,
    SerializationError,
    SessionError,
    FailureKind,
    CredentialError,
    RegistrationError,
    LoginError,
    LifecycleError,
    LifecycleCancelled,
)

from .patterns.retry import RetryPolicy, RetryLoop


__all__ = [
    "RetryPolicy",
    "RetryLoop",
    "DeviceAgentError",        # make available at package root
    "ConfigurationError",
    "ProtocolError",
    "StorageError",
    "HTTPTransportError",
    "SerializationError",
    "SessionError",
    "FailureKind",
    "CredentialError",
    "RegistrationError",
    "LoginError",
    "LifecycleError",
    "LifecycleCancelled",
]
