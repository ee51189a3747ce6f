# session_manager.py - owns the transport and opens/reopens the messaging session

import logging
from typing import Callable, List, Optional

from device_agent.core.exceptions import ConfigurationError, ProtocolError, SessionError
from device_agent.models.device_models import DeviceIdentity, Request, SessionDescriptor
from device_agent.protocols.base_protocol_client import BaseProtocolClient, TransportOptions

KEEPALIVE_SECONDS = 30


class SessionManager:
    """
    Builds connection options from the device identity and forwards
    publish/subscribe requests to the transport. Nothing is buffered here:
    delivery guarantees belong to the transport.
    """

    def __init__(self, transport: BaseProtocolClient):
        self.transport = transport
        self.log = logging.getLogger(self.__class__.__name__)

    @staticmethod
    def describe(identity: DeviceIdentity,
                 on_connection_lost: Optional[Callable[[], Optional[str]]] = None) -> SessionDescriptor:
        """Derive the session descriptor: id as client id and username, hex token as password."""
        id_str = str(identity.id)
        return SessionDescriptor(
            broker=identity.access,
            client_id=id_str,
            username=id_str,
            password=(identity.token or b"").hex(),
            keepalive=KEEPALIVE_SECONDS,
            on_connection_lost=on_connection_lost,
        )

    def open(self, identity: DeviceIdentity,
             explicit_options: Optional[TransportOptions] = None,
             on_connection_lost: Optional[Callable[[], Optional[str]]] = None) -> None:
        """Open (or reopen) the transport session.

        Caller-supplied options go to the transport verbatim; otherwise they
        are derived from *identity*.
        """
        protocol = self.transport.protocol_type.value
        try:
            if explicit_options is not None:
                self.log.info(f"Opening {protocol} session with caller-supplied options")
                self.transport.new_client(explicit_options)
                return

            descriptor = self.describe(identity, on_connection_lost)
            self.log.info(f"Opening {protocol} session: {descriptor!r}")
            options = self.transport.make_options(descriptor)
            self.transport.new_client(options)
        except (ProtocolError, ConfigurationError) as e:
            raise SessionError(f"init {protocol} client failed: {e}") from e

    def publish(self, request: Request) -> None:
        try:
            self.transport.publish(self.transport.format_request(request))
        except ProtocolError as e:
            raise SessionError(f"publish to '{request.topic}' failed: {e}") from e

    def subscribe(self, request: Request) -> None:
        try:
            self.transport.subscribe(self.transport.format_request(request))
        except ProtocolError as e:
            raise SessionError(f"subscribe to '{request.topic}' failed: {e}") from e

    def unsubscribe(self, topics: List[str]) -> None:
        try:
            self.transport.unsubscribe(topics)
        except ProtocolError as e:
            raise SessionError(f"unsubscribe from {topics} failed: {e}") from e

    def is_live(self) -> bool:
        return self.transport.get_instance() is not None

    def close(self) -> None:
        self.transport.disconnect()
