from typing import Callable, Optional
import logging
import threading

from device_agent.core.exceptions import DeviceAgentError
from device_agent.core.patterns.retry import RetryLoop, RetryPolicy
from device_agent.models.device_models import DeviceIdentity
from device_agent.protocols.base_protocol_client import TransportOptions
from device_agent.services.credential_service import CredentialClient
from device_agent.services.identity_store import IdentityStore
from device_agent.services.session_manager import SessionManager
from .state_machine import LifecycleState, LifecycleStateMachine

class LifecycleController:
    """
    Drives a device from bare identity to an operational messaging session.

    ``auto_init`` runs login and session setup under the RetryPolicy given at
    construction. With retries enabled it blocks until success; ``cancel()``
    from another thread ends the wait with LifecycleCancelled.
    """

    def __init__(self,
                 identity: DeviceIdentity,
                 identity_store: IdentityStore,
                 credentials: CredentialClient,
                 session: SessionManager,
                 policy: Optional[RetryPolicy] = None,
                 *,
                 sleep: Optional[Callable[[float], object]] = None):
        self.identity = identity
        self.store = identity_store
        self.credentials = credentials
        self.session = session
        self.policy = policy if policy is not None else RetryPolicy()
        self.cancel_event = threading.Event()
        self.state_machine = LifecycleStateMachine()
        self.logger = logging.getLogger(self.__class__.__name__)
        self._sleep = sleep
        self._init_lock = threading.Lock()

    @property
    def state(self) -> LifecycleState:
        return self.state_machine.current_state

    def _loop(self, factory: Callable[..., RetryLoop]) -> RetryLoop:
        return factory(cancel_event=self.cancel_event, sleep=self._sleep)

    # Single-shot credential steps
    def register(self) -> None:
        device_id, secret = self.credentials.register(self.identity)
        self.identity.apply_registration(device_id, secret)
        self.store.save(self.identity)

    def login(self) -> None:
        token, access = self.credentials.login(self.identity)
        self.identity.apply_login(token, access)
        self.store.save(self.identity)

    def auto_login(self) -> None:
        """Register first when the device has never been registered, then log in."""
        if self.credentials.needs_registration(self.identity):
            self._loop(self.policy.registration)(self.register)
        self.login()

    def init_session(self, options: Optional[TransportOptions] = None) -> None:
        self.session.open(self.identity, options, on_connection_lost=self._on_connection_lost)

    def _on_connection_lost(self) -> Optional[str]:
        self.logger.warning("Session lost, refreshing login before reconnect")
        try:
            self.login()
        except DeviceAgentError as e:
            self.logger.error(f"Re-login after connection loss failed: {e}")
            return None
        return self.identity.token.hex()

    def is_session_live(self) -> bool:
        return self.session.is_live()

    def auto_init(self, options: Optional[TransportOptions] = None) -> None:
        """Bring the session up unless one is already live."""
        with self._init_lock:
            if self.session.is_live():
                return

            self.state_machine.reset()
            self.state_machine.transition_to(LifecycleState.SESSION_PENDING)
            try:
                self._loop(self.policy.login)(self.auto_login)
                self._loop(self.policy.session)(self.init_session, options)
            except Exception:
                self.state_machine.reset()
                raise

            self.state_machine.transition_to(LifecycleState.SESSION_ACTIVE)
            self.state_machine.transition_to(LifecycleState.OPERATIONAL)
            self.logger.info(f"Device {self.identity.id} is operational")

    def cancel(self) -> None:
        """Stop any running retry loop; later retries are refused as well."""
        self.logger.info("Lifecycle cancellation requested")
        self.cancel_event.set()
