"""Business services: identity, credentials, session and messaging."""

from .http_client import HTTPClient, RequestsHTTPClient
from .identity_store import IdentityStore
from .credential_service import CredentialClient
from .session_manager import SessionManager
from .messaging_service import MessagingFacade

__all__ = [
    'HTTPClient',
    'RequestsHTTPClient',
    'IdentityStore',
    'CredentialClient',
    'SessionManager',
    'MessagingFacade',
]
