"""
Device facade.

Composes identity storage, credentials, session and messaging behind the
API an application uses::

    device = Device("pk-123", "boiler-7", "1.0.0", storage=JSONFileStorage("identity.json"))
    device.auto_init()
    device.on_command(Command(id=1, callback=handle_reboot))
    device.post_property(Property(property_id=3, value=72.5))
"""

from typing import List, Optional
import logging

from device_agent.core.exceptions import DeviceAgentError, LifecycleError
from device_agent.core.patterns.retry import RetryPolicy
from device_agent.models.device_models import Command, DeviceIdentity, Property, Request
from device_agent.models.topics import DEFAULT_TOPICS, Topics
from device_agent.orchestration.lifecycle import LifecycleController
from device_agent.orchestration.state_machine import LifecycleState
from device_agent.protocols.base_protocol_client import BaseProtocolClient, ProtocolType, TransportOptions
from device_agent.protocols.protocol_factory import ProtocolFactory
from device_agent.serializers.base_serializer import Serializer
from device_agent.serializers.json_serializer import JSONSerializer
from device_agent.services.credential_service import CredentialClient
from device_agent.services.http_client import HTTPClient, RequestsHTTPClient
from device_agent.services.identity_store import IdentityStore
from device_agent.services.messaging_service import MessagingFacade
from device_agent.services.session_manager import SessionManager
from device_agent.storage.base_storage import Storage
from device_agent.storage.memory_storage import MemoryStorage


class Device:
    """A single device: its identity plus every collaborator it talks through."""

    def __init__(self,
                 product_key: str,
                 name: str,
                 version: str,
                 *,
                 protocol: Optional[BaseProtocolClient] = None,
                 serializer: Optional[Serializer] = None,
                 topics: Optional[Topics] = None,
                 storage: Optional[Storage] = None,
                 http_client: Optional[HTTPClient] = None,
                 retry_policy: Optional[RetryPolicy] = None):
        self.identity = DeviceIdentity(product_key=product_key, name=name, version=version)
        self.protocol = protocol or ProtocolFactory.create(ProtocolType.MQTT)
        self.serializer = serializer or JSONSerializer()
        self.topics = topics or DEFAULT_TOPICS
        self.storage = storage or MemoryStorage()
        self.http_client = http_client or RequestsHTTPClient()
        self.logger = logging.getLogger(self.__class__.__name__)

        self.identity_store = IdentityStore(self.storage, name)
        self.credentials = CredentialClient(self.http_client, self.topics, protocol=self.protocol.protocol_type.value)
        self.session = SessionManager(self.protocol)
        self.messaging = MessagingFacade(self.serializer, self.session, self.topics)
        self.lifecycle = LifecycleController(
            self.identity, self.identity_store, self.credentials, self.session, retry_policy,
        )

    @property
    def state(self) -> LifecycleState:
        return self.lifecycle.state

    # Identity persistence
    def get_device_info(self) -> DeviceIdentity:
        """Return the identity as persisted, without touching the in-memory one."""
        return self.identity_store.load()

    def load_device_info(self) -> DeviceIdentity:
        """Fill empty in-memory fields from storage."""
        return self.identity_store.refresh(self.identity)

    def set_device_info(self) -> None:
        self.identity_store.save(self.identity)

    # Credentials
    def register(self) -> None:
        self.lifecycle.register()

    def login(self) -> None:
        self.lifecycle.login()

    def auto_login(self) -> None:
        self.lifecycle.auto_login()

    # Session
    def init_protocol_client(self, options: Optional[TransportOptions] = None) -> None:
        self.lifecycle.init_session(options)

    def publish(self, request: Request) -> None:
        self.session.publish(request)

    def subscribe(self, request: Request) -> None:
        self.session.subscribe(request)

    def unsubscribe(self, topics: List[str]) -> None:
        self.session.unsubscribe(topics)

    # Messaging
    def post_property(self, prop: Property) -> None:
        self.messaging.post_property(prop)

    def post_event(self, identifier: str, prop: Property) -> None:
        self.messaging.post_event(identifier, prop)

    def on_command(self, *commands: Command) -> None:
        self.messaging.on_command(*commands)

    # Automatic lifecycle
    def auto_init(self, options: Optional[TransportOptions] = None) -> None:
        self.lifecycle.auto_init(options)

    def auto_post_property(self, prop: Property) -> None:
        """Post *prop*, bringing the session up first if none is live."""
        if not self.lifecycle.is_session_live():
            try:
                self.lifecycle.auto_init()
            except DeviceAgentError as e:
                raise LifecycleError(f"auto init failed: {e}") from e
        self.post_property(prop)

    def cancel(self) -> None:
        self.lifecycle.cancel()

    def close(self) -> None:
        self.lifecycle.cancel()
        self.session.close()
        self.lifecycle.state_machine.reset()
