# identity_store.py - persists DeviceIdentity fields through the Storage capability

from dataclasses import fields
from typing import Any, Dict, Optional
import logging
import threading

from device_agent.core.exceptions import ConfigurationError
from device_agent.models.device_models import DeviceIdentity, decode_hex, merge_identity
from device_agent.storage.base_storage import Storage

# identity attribute -> storage key suffix
IDENTITY_KEYS: Dict[str, str] = {
    "product_key": "ProductKey",
    "name": "Name",
    "secret": "Secret",
    "version": "Version",
    "id": "ID",
    "access": "Access",
    "token": "Token",
}

logger = logging.getLogger(__name__)


def _as_str(value: Any) -> str:
    return "" if value is None else str(value)


def _as_int(value: Any) -> int:
    if value is None or value == "":
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning(f"Ignoring non-numeric stored device id: {value!r}")
        return 0


def _as_bytes(value: Any) -> Optional[bytes]:
    if value is None or value == "":
        return None
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str):
        try:
            return decode_hex(value)
        except ValueError:
            logger.warning("Ignoring stored token that is not a hex string")
            return None
    if isinstance(value, list):
        return bytes(value)
    logger.warning(f"Ignoring stored token of type {type(value).__name__}")
    return None


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or value == 0 or value == b""


class IdentityStore:
    """
    Maps DeviceIdentity fields onto namespaced storage keys (``<name>.<Field>``).

    ``save`` is a partial merge: empty in-memory fields never overwrite what
    is already persisted. Reads and writes for one device name are serialised
    by a per-name lock shared by every store in the process.
    """

    _locks: Dict[str, threading.RLock] = {}
    _locks_guard = threading.Lock()

    def __init__(self, storage: Storage, name: str):
        if not name:
            raise ConfigurationError("Device name is required to namespace identity storage")
        self.storage = storage
        self.name = name
        self.log = logging.getLogger(self.__class__.__name__)

    @classmethod
    def _lock_for(cls, name: str) -> threading.RLock:
        with cls._locks_guard:
            return cls._locks.setdefault(name, threading.RLock())

    def key(self, attr: str) -> str:
        return f"{self.name}.{IDENTITY_KEYS[attr]}"

    def load(self) -> DeviceIdentity:
        """Read all seven fields; missing keys become empty values, storage errors propagate."""
        with self._lock_for(self.name):
            raw = {attr: self.storage.get(self.key(attr)) for attr in IDENTITY_KEYS}

        return DeviceIdentity(
            product_key = _as_str(raw["product_key"]),
            name        = _as_str(raw["name"]),
            secret      = _as_str(raw["secret"]),
            version     = _as_str(raw["version"]),
            id          = _as_int(raw["id"]),
            access      = _as_str(raw["access"]),
            token       = _as_bytes(raw["token"]),
        )

    def save(self, identity: DeviceIdentity) -> None:
        """Write every non-empty field of *identity*, leaving the others untouched."""
        if identity.name and identity.name != self.name:
            raise ConfigurationError(
                f"Identity '{identity.name}' cannot be saved in the namespace of '{self.name}'"
            )

        written = []
        with self._lock_for(self.name):
            for attr in IDENTITY_KEYS:
                value = getattr(identity, attr)
                if _is_empty(value):
                    continue
                self.storage.set(self.key(attr), value)
                written.append(IDENTITY_KEYS[attr])

        self.log.debug(f"Persisted identity fields for '{self.name}': {written}")

    def refresh(self, identity: DeviceIdentity) -> DeviceIdentity:
        """Fill the empty fields of *identity* from storage, in place."""
        with self._lock_for(self.name):
            persisted = self.load()
        merged = merge_identity(identity, persisted)
        for f in fields(DeviceIdentity):
            setattr(identity, f.name, getattr(merged, f.name))
        return identity
