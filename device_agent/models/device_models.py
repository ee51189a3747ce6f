from __future__ import annotations
import re
from dataclasses import dataclass, field, fields
from typing import Any, Callable, Dict, Optional

# Reserved command-parameter key carrying the sub-device id.
SUB_DEVICE_PARAM_KEY = -1

# Business status the platform embeds in every successful response body.
STATUS_OK = "OK"

_HEX_RE = re.compile(r"(?:[0-9a-fA-F]{2})*")


def decode_hex(value: str) -> bytes:
    """Strict hex decode: no whitespace, no separators, even length."""
    if not isinstance(value, str) or not _HEX_RE.fullmatch(value):
        raise ValueError(f"not a hex string: {value!r}")
    return bytes.fromhex(value)


def _data_object(row: Dict[str, Any]) -> Dict[str, Any]:
    data = row.get("data")
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise TypeError(f"response data is not a JSON object: {type(data).__name__}")
    return data


###############################################################################
# 1. DEVICE IDENTITY ----------------------------------------------------------
###############################################################################

@dataclass
class DeviceIdentity:
    """Durable identity of one device, owned by the running agent process."""
    product_key: str = ""
    name: str = ""
    version: str = ""
    secret: str = field(default="", repr=False)
    id: int = 0                       # 0 = never registered
    token: Optional[bytes] = field(default=None, repr=False)   # session access token
    access: str = ""                  # session endpoint (broker address)

    @property
    def is_registered(self) -> bool:
        return self.id != 0 and self.secret != ""

    @property
    def has_session_credentials(self) -> bool:
        return bool(self.token) and self.access != ""

    def apply_registration(self, device_id: int, secret: str) -> None:
        self.id = device_id
        self.secret = secret

    def apply_login(self, token: bytes, access: str) -> None:
        self.token = token
        self.access = access


def _is_default(value: Any) -> bool:
    return value is None or value == "" or value == 0 or value == b""


def merge_identity(primary: DeviceIdentity, fallback: DeviceIdentity) -> DeviceIdentity:
    """Field-wise merge: every non-default field of *primary* wins over *fallback*."""
    merged = {}
    for f in fields(DeviceIdentity):
        value = getattr(primary, f.name)
        merged[f.name] = getattr(fallback, f.name) if _is_default(value) else value
    return DeviceIdentity(**merged)


###############################################################################
# 2. SESSION DESCRIPTOR -------------------------------------------------------
###############################################################################

@dataclass(frozen=True)
class SessionDescriptor:
    """Transport-neutral connection parameters derived from a DeviceIdentity."""
    broker: str
    client_id: str
    username: str
    password: str
    keepalive: int = 30               # seconds
    # Called on unexpected disconnect; returns a fresh password or None.
    on_connection_lost: Optional[Callable[[], Optional[str]]] = None

    def __repr__(self) -> str:
        return (f"SessionDescriptor(broker={self.broker!r}, client_id={self.client_id!r}, "
                f"username={self.username!r}, keepalive={self.keepalive})")


###############################################################################
# 3. TELEMETRY / COMMANDS -----------------------------------------------------
###############################################################################

@dataclass(frozen=True)
class Property:
    """One property value reported by a (sub-)device."""
    property_id: int
    value: Any
    sub_device_id: str = ""


@dataclass(frozen=True)
class CommandPayload:
    """Decoded inbound command."""
    id: int
    sub_device_id: str = ""
    params: Dict[int, Any] = field(default_factory=dict)

    # ---------- factory --------------------------------------------------- #
    @classmethod
    def from_dict(cls, row: Dict[str, Any]) -> "CommandPayload":
        raw_params = row.get("params") or {}
        return cls(
            id            = int(row["id"]),
            sub_device_id = str(row.get("subDeviceId") or ""),
            params        = {int(k): v for k, v in raw_params.items()},
        )


@dataclass(frozen=True)
class Command:
    """Row of the command registration table."""
    id: int
    callback: Callable[[Dict[int, Any]], None]


###############################################################################
# 4. REQUEST / RESPONSE -------------------------------------------------------
###############################################################################

@dataclass
class Request:
    """Logical publish/subscribe request, formatted by the transport."""
    topic: str
    qos: int = 0
    retained: bool = False
    payload: bytes = b""
    callback: Optional[Callable[["Response"], None]] = None


@dataclass(frozen=True)
class Response:
    """Inbound message handed to subscription callbacks."""
    topic: str
    payload: bytes
    qos: int = 0
    retained: bool = False


###############################################################################
# 5. PLATFORM RESPONSE BODIES -------------------------------------------------
###############################################################################

@dataclass(frozen=True)
class RegisterResponse:
    status: str
    id: int
    secret: str

    @property
    def is_ok(self) -> bool:
        return self.status == STATUS_OK

    # ---------- factory --------------------------------------------------- #
    @classmethod
    def from_dict(cls, row: Dict[str, Any]) -> "RegisterResponse":
        data = _data_object(row)
        return cls(
            status = str(row["status"]),
            id     = int(data.get("id") or 0),
            secret = str(data.get("secret") or ""),
        )


@dataclass(frozen=True)
class AuthResponse:
    status: str
    access_token: str
    access_addr: str

    @property
    def is_ok(self) -> bool:
        return self.status == STATUS_OK

    # ---------- factory --------------------------------------------------- #
    @classmethod
    def from_dict(cls, row: Dict[str, Any]) -> "AuthResponse":
        data = _data_object(row)
        return cls(
            status       = str(row["status"]),
            access_token = str(data.get("accessToken") or ""),
            access_addr  = str(data.get("accessAddr") or ""),
        )
