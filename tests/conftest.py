from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from device_agent.core.exceptions import HTTPTransportError, ProtocolError
from device_agent.core.patterns.retry import RetryPolicy
from device_agent.device import Device
from device_agent.models.device_models import Request, Response, SessionDescriptor
from device_agent.models.topics import Topics
from device_agent.protocols.base_protocol_client import (
    BaseProtocolClient,
    ConnectionState,
    ProtocolType,
    TransportOptions,
)
from device_agent.protocols.mqtt_client import MQTTOptions
from device_agent.services.http_client import HTTPClient
from device_agent.storage.memory_storage import MemoryStorage

REGISTER_URL = "http://platform/v1/devices/registration"
LOGIN_URL = "http://platform/v1/devices/authentication"


def ok_register(device_id: int = 42, secret: str = "abc") -> Tuple[int, bytes]:
    return 200, json.dumps({"status": "OK", "data": {"id": device_id, "secret": secret}}).encode()


def ok_login(token: str = "817aecf0", addr: str = "broker.local:1883") -> Tuple[int, bytes]:
    return 200, json.dumps({"status": "OK", "data": {"accessToken": token, "accessAddr": addr}}).encode()


class StubHTTPClient(HTTPClient):
    """Replays queued responses per URL and records every request body."""

    def __init__(self) -> None:
        self.responses: Dict[str, List[Any]] = {}
        self.calls: List[Tuple[str, str, Dict[str, Any]]] = []

    def queue(self, url: str, *responses: Any) -> None:
        self.responses.setdefault(url, []).extend(responses)

    def post(self, url: str, content_type: str, body: bytes) -> Tuple[int, bytes]:
        self.calls.append((url, content_type, json.loads(body)))
        queued = self.responses.get(url)
        if not queued:
            raise HTTPTransportError(f"no stub response for {url}")
        response = queued.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def calls_to(self, url: str) -> List[Dict[str, Any]]:
        return [body for called, _, body in self.calls if called == url]


class StubTransport(BaseProtocolClient):
    """In-memory transport that records traffic and can fail on demand."""

    protocol_type = ProtocolType.MQTT

    def __init__(self) -> None:
        super().__init__()
        self.handle: Optional[object] = None
        self.options: List[TransportOptions] = []
        self.published: List[Dict[str, Any]] = []
        self.subscriptions: Dict[str, Dict[str, Any]] = {}
        self.unsubscribed: List[List[str]] = []
        self.connect_failures = 0
        self.publish_error: Optional[Exception] = None

    def make_options(self, descriptor: SessionDescriptor) -> MQTTOptions:
        return MQTTOptions.from_descriptor(descriptor)

    def new_client(self, options: TransportOptions) -> None:
        self.options.append(options)
        if self.connect_failures:
            self.connect_failures -= 1
            raise ProtocolError("broker unavailable")
        self.handle = object()
        self.connection_state = ConnectionState.CONNECTED

    def format_request(self, request: Request) -> Dict[str, Any]:
        return {
            "topic": request.topic,
            "qos": request.qos,
            "retain": request.retained,
            "payload": request.payload,
            "callback": request.callback,
        }

    def publish(self, params: Dict[str, Any]) -> None:
        if self.publish_error:
            raise self.publish_error
        self.published.append(params)

    def subscribe(self, params: Dict[str, Any]) -> None:
        self.subscriptions[params["topic"]] = params

    def unsubscribe(self, topics: List[str]) -> None:
        self.unsubscribed.append(list(topics))
        for topic in topics:
            self.subscriptions.pop(topic, None)

    def get_instance(self) -> Optional[object]:
        return self.handle

    def disconnect(self) -> None:
        self.handle = None
        self.connection_state = ConnectionState.DISCONNECTED

    def deliver(self, topic: str, payload: bytes) -> None:
        params = self.subscriptions[topic]
        params["callback"](Response(topic=topic, payload=payload, qos=params["qos"]))


class SleepRecorder:
    def __init__(self) -> None:
        self.calls: List[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture()
def topics() -> Topics:
    return Topics(
        register=REGISTER_URL,
        login=LOGIN_URL,
        post_property="s/1",
        post_event="s/2",
        on_command="c",
    )


@pytest.fixture()
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture()
def http() -> StubHTTPClient:
    return StubHTTPClient()


@pytest.fixture()
def transport() -> StubTransport:
    return StubTransport()


@pytest.fixture()
def sleeper() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture()
def make_device(topics, storage, http, transport, sleeper):
    def _make(policy: Optional[RetryPolicy] = None, name: str = "boiler-7") -> Device:
        device = Device(
            "pk-123",
            name,
            "1.0.0",
            protocol=transport,
            topics=topics,
            storage=storage,
            http_client=http,
            retry_policy=policy,
        )
        device.lifecycle._sleep = sleeper
        return device

    return _make
