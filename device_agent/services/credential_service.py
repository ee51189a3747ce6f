# credential_service.py - registration and login against the platform REST endpoints

import json
import logging
from typing import Any, Dict, Tuple, Type

from device_agent.core.exceptions import (
    CredentialError,
    FailureKind,
    HTTPTransportError,
    LoginError,
    RegistrationError,
)
from device_agent.models.device_models import AuthResponse, DeviceIdentity, RegisterResponse, decode_hex
from device_agent.models.topics import Topics
from device_agent.services.http_client import HTTPClient

CONTENT_TYPE = "application/json"


def register_args_from_identity(identity: DeviceIdentity) -> Dict[str, Any]:
    return {
        "productKey": identity.product_key,
        "name": identity.name,
        "version": identity.version,
    }


def auth_args_from_identity(identity: DeviceIdentity, protocol: str) -> Dict[str, Any]:
    return {
        "id": identity.id,
        "secret": identity.secret,
        "protocol": protocol,
    }


class CredentialClient:
    """
    Talks to the registration and login endpoints.

    Both verbs are pure with respect to the identity: they return the issued
    values and leave applying and persisting them to the caller. Failures are
    raised as RegistrationError / LoginError whose ``kind`` tells a transport
    failure, an undecodable body, a non-OK business status and a bad token
    apart.
    """

    def __init__(self, http_client: HTTPClient, topics: Topics, protocol: str = "mqtt"):
        self.http = http_client
        self.topics = topics
        self.protocol = protocol
        self.log = logging.getLogger(self.__class__.__name__)

    @staticmethod
    def needs_registration(identity: DeviceIdentity) -> bool:
        """Registration is only needed when there are no session credentials and no prior registration."""
        return not identity.has_session_credentials and not identity.is_registered

    def register(self, identity: DeviceIdentity) -> Tuple[int, str]:
        """Register the device and return the platform-issued (id, secret)."""
        if not identity.product_key or not identity.name:
            raise RegistrationError(
                "device register failed, product key and device name are required",
                FailureKind.PRECONDITION,
            )

        self.log.info(f"Registering device '{identity.name}' of product '{identity.product_key}'")
        row = self._post(self.topics.register, register_args_from_identity(identity), RegistrationError, "register")

        try:
            response = RegisterResponse.from_dict(row)
        except (KeyError, TypeError, ValueError) as e:
            raise RegistrationError(
                f"device register failed, register rest api response is malformed: {e}",
                FailureKind.DECODE,
            ) from e

        if not response.is_ok:
            raise RegistrationError(
                f"device register failed, register rest api status is not ok: {response.status}",
                FailureKind.STATUS,
            )
        if response.id == 0 or not response.secret:
            raise RegistrationError(
                "device register failed, register rest api response carries no device id or secret",
                FailureKind.DECODE,
            )

        self.log.info(f"Device '{identity.name}' registered with id {response.id}")
        return response.id, response.secret

    def login(self, identity: DeviceIdentity) -> Tuple[bytes, str]:
        """Log the device in and return (raw token bytes, session endpoint)."""
        if identity.id == 0 or not identity.secret:
            raise LoginError(
                "device login failed, device id and secret are required (register first)",
                FailureKind.PRECONDITION,
            )

        self.log.info(f"Logging in device {identity.id}")
        row = self._post(self.topics.login, auth_args_from_identity(identity, self.protocol), LoginError, "login")

        try:
            response = AuthResponse.from_dict(row)
        except (KeyError, TypeError, ValueError) as e:
            raise LoginError(
                f"device login failed, login rest api response is malformed: {e}",
                FailureKind.DECODE,
            ) from e

        if not response.is_ok:
            raise LoginError(
                f"device login failed, login rest api status is not ok: {response.status}",
                FailureKind.STATUS,
            )

        try:
            token = decode_hex(response.access_token)
        except ValueError as e:
            raise LoginError(
                f"device login failed, access token is not a hex string: {e}",
                FailureKind.TOKEN,
            ) from e
        if not token:
            raise LoginError("device login failed, login rest api issued an empty access token", FailureKind.TOKEN)
        if not response.access_addr:
            raise LoginError("device login failed, login rest api issued no access address", FailureKind.DECODE)

        self.log.info(f"Device {identity.id} logged in, session endpoint {response.access_addr}")
        return token, response.access_addr

    def _post(self, url: str, args: Dict[str, Any], error_cls: Type[CredentialError], verb: str) -> Dict[str, Any]:
        """POST *args* as JSON and return the decoded JSON object body."""
        body = json.dumps(args).encode("utf-8")

        try:
            status, raw = self.http.post(url, CONTENT_TYPE, body)
        except HTTPTransportError as e:
            raise error_cls(f"device {verb} failed, request {verb} rest api failed: {e}", FailureKind.TRANSPORT) from e

        try:
            row = json.loads(raw)
            if not isinstance(row, dict):
                raise ValueError("response body is not a JSON object")
        except ValueError as e:
            # an HTTP error page is a transport problem, a garbled 2xx body a decode one
            kind = FailureKind.TRANSPORT if status >= 400 else FailureKind.DECODE
            raise error_cls(
                f"device {verb} failed, {verb} rest api response (HTTP {status}) convert to json failed: {e}",
                kind,
            ) from e

        return row
