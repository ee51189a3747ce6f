"""
Messaging Transport Framework
Base abstract class and interfaces for publish/subscribe transport clients
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Any, Optional
from enum import Enum
import logging

from device_agent.models.device_models import Request, SessionDescriptor


class ProtocolType(Enum):
    """Enumeration of supported transport types."""
    MQTT = "mqtt"


class ConnectionState(Enum):
    """Where the underlying connection is, as last reported by the transport."""
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    RECONNECTING = "reconnecting"
    ERROR = "error"


@dataclass(frozen=True)
class TransportOptions:
    """Base for the closed, per-transport connection option records."""

    @property
    def protocol_type(self) -> ProtocolType:
        raise NotImplementedError


class BaseProtocolClient(ABC):
    """
    Abstract base class for messaging transport clients.

    A transport owns at most one live connection. ``get_instance()`` is the
    liveness probe used by the lifecycle: it returns the underlying client
    handle while a session exists and None otherwise.
    """

    protocol_type: ProtocolType

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)
        self.connection_state = ConnectionState.DISCONNECTED

    # Abstract methods that subclasses must implement (Strategy pattern)
    @abstractmethod
    def make_options(self, descriptor: SessionDescriptor) -> TransportOptions:
        """Build transport-specific options from a session descriptor."""
        pass

    @abstractmethod
    def new_client(self, options: TransportOptions) -> None:
        """Create the underlying client and open the connection."""
        pass

    @abstractmethod
    def format_request(self, request: Request) -> Dict[str, Any]:
        """Format a logical request into the transport's option shape."""
        pass

    @abstractmethod
    def publish(self, params: Dict[str, Any]) -> None:
        pass

    @abstractmethod
    def subscribe(self, params: Dict[str, Any]) -> None:
        pass

    @abstractmethod
    def unsubscribe(self, topics: List[str]) -> None:
        pass

    @abstractmethod
    def get_instance(self) -> Optional[Any]:
        """Return the live client handle, or None when no session exists."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        pass

    # Shared helpers
    def get_connection_state(self) -> ConnectionState:
        return self.connection_state

    def is_connected(self) -> bool:
        """True only after the broker acknowledged the connection."""
        return self.connection_state is ConnectionState.CONNECTED

    def get_stats(self) -> Dict[str, Any]:
        """Snapshot of transport health for status logging."""
        return {
            "protocol": self.protocol_type.value,
            "state": self.connection_state.value,
            "live": self.get_instance() is not None,
        }
