"""
MQTT Transport Client Implementation
paho-mqtt backed transport that inherits from BaseProtocolClient
"""

import logging
import threading
from dataclasses import dataclass
from typing import Dict, List, Any, Optional, Callable, Tuple
import paho.mqtt.client as mqtt
from device_agent.core.exceptions import ConfigurationError, ProtocolError
from device_agent.models.device_models import Request, Response, SessionDescriptor
from device_agent.protocols.base_protocol_client import (
    BaseProtocolClient, ConnectionState, ProtocolType, TransportOptions,
)

DEFAULT_PORT = 1883
DEFAULT_TLS_PORT = 8883

_PLAIN_SCHEMES = {"tcp", "mqtt"}
_TLS_SCHEMES = {"ssl", "tls", "mqtts"}


def parse_broker(broker: str) -> Tuple[str, int, bool]:
    """Split ``[scheme://]host[:port]`` into (host, port, use_tls)."""
    if not broker:
        raise ConfigurationError("MQTT broker address is required")

    scheme, rest = "", broker.strip()
    if "://" in rest:
        scheme, rest = rest.split("://", 1)
        scheme = scheme.lower()
        if scheme not in _PLAIN_SCHEMES | _TLS_SCHEMES:
            raise ConfigurationError(f"Unsupported MQTT broker scheme: '{scheme}'")
    use_tls = scheme in _TLS_SCHEMES
    rest = rest.rstrip("/")

    host, sep, port_str = rest.rpartition(":")
    if not sep:
        return rest, DEFAULT_TLS_PORT if use_tls else DEFAULT_PORT, use_tls
    try:
        port = int(port_str)
    except ValueError:
        raise ConfigurationError(f"Invalid MQTT broker port in '{broker}'")
    return host, port, use_tls


@dataclass(frozen=True)
class MQTTOptions(TransportOptions):
    """Closed set of MQTT connection options, validated at construction."""
    host: str
    port: int = DEFAULT_PORT
    client_id: str = ""
    username: Optional[str] = None
    password: Optional[str] = None
    keepalive: int = 30
    clean_session: bool = True
    use_tls: bool = False
    ca_certs: Optional[str] = None
    connect_timeout: float = 10.0
    on_connection_lost: Optional[Callable[[], Optional[str]]] = None

    def __post_init__(self):
        if not self.host:
            raise ConfigurationError("MQTT broker host is required")
        if not isinstance(self.port, int) or not (1 <= self.port <= 65535):
            raise ConfigurationError("MQTT broker port must be a valid port number")
        if self.keepalive <= 0:
            raise ConfigurationError("MQTT keepalive must be positive")

    def __repr__(self) -> str:
        return (f"MQTTOptions(host={self.host!r}, port={self.port}, client_id={self.client_id!r}, "
                f"username={self.username!r}, use_tls={self.use_tls})")

    @property
    def protocol_type(self) -> ProtocolType:
        return ProtocolType.MQTT

    @classmethod
    def from_descriptor(cls, descriptor: SessionDescriptor, **overrides) -> "MQTTOptions":
        host, port, use_tls = parse_broker(descriptor.broker)
        params = dict(
            host=host,
            port=port,
            use_tls=use_tls,
            client_id=descriptor.client_id,
            username=descriptor.username,
            password=descriptor.password,
            keepalive=descriptor.keepalive,
            on_connection_lost=descriptor.on_connection_lost,
        )
        params.update(overrides)
        return cls(**params)


class MQTTClient(BaseProtocolClient):
    """
    MQTT transport built on paho-mqtt.

    Features:
    - Network loop on paho's own background thread
    - Automatic reconnect with a password refresh hook
    - Re-subscription of remembered topics after reconnect
    - Wildcard-aware dispatch of inbound messages
    """

    protocol_type = ProtocolType.MQTT

    def __init__(self):
        super().__init__()

        # MQTT-specific attributes
        self.client: Optional[mqtt.Client] = None
        self.options: Optional[MQTTOptions] = None
        self.subscribed_topics: Dict[str, int] = {}
        self.message_handlers: Dict[str, Callable[[Response], None]] = {}
        self._lock = threading.Lock()
        self._connack = threading.Event()
        self._connect_error: Optional[str] = None

    def make_options(self, descriptor: SessionDescriptor) -> MQTTOptions:
        return MQTTOptions.from_descriptor(descriptor)

    def new_client(self, options: TransportOptions) -> None:
        """Create the paho client and block until the broker acknowledges the connection."""
        if not isinstance(options, MQTTOptions):
            raise ConfigurationError(f"MQTT transport needs MQTTOptions, got {type(options).__name__}")

        if self.client is not None:
            self.disconnect()

        client = mqtt.Client(
            mqtt.CallbackAPIVersion.VERSION2,
            client_id=options.client_id,
            clean_session=options.clean_session,
            protocol=mqtt.MQTTv311,
        )

        # Set authentication if provided
        if options.username:
            client.username_pw_set(options.username, options.password)

        # Configure TLS if enabled
        if options.use_tls:
            client.tls_set(ca_certs=options.ca_certs)

        # Set callbacks
        client.on_connect = self._on_connect
        client.on_disconnect = self._on_disconnect
        client.on_message = self._on_message
        client.on_subscribe = self._on_subscribe
        client.on_unsubscribe = self._on_unsubscribe
        client.on_log = self._on_log

        self.options = options
        self._connack.clear()
        self._connect_error = None
        self.connection_state = ConnectionState.CONNECTING
        self.logger.info(f"Connecting to MQTT broker at {options.host}:{options.port} as '{options.client_id}'")

        try:
            result = client.connect(host=options.host, port=options.port, keepalive=options.keepalive)
            if result != mqtt.MQTT_ERR_SUCCESS:
                raise ProtocolError(f"MQTT connection failed with code: {result}")

            # Start the network loop in a separate thread
            client.loop_start()

            if not self._connack.wait(options.connect_timeout):
                raise ProtocolError(f"Connection timeout after {options.connect_timeout}s")
            if self._connect_error:
                raise ProtocolError(self._connect_error)

        except ProtocolError as e:
            self.logger.error(f"MQTT connection failed: {e}")
            self.connection_state = ConnectionState.ERROR
            client.loop_stop()
            raise
        except (OSError, ValueError) as e:
            self.logger.error(f"MQTT connection failed: {e}")
            self.connection_state = ConnectionState.ERROR
            client.loop_stop()
            raise ProtocolError(f"MQTT connection failed: {e}") from e

        self.client = client
        self.logger.info("Successfully connected to MQTT broker")

    def disconnect(self) -> None:
        """Disconnect from MQTT broker."""
        client, self.client = self.client, None
        if client is None:
            return
        self.logger.info("Disconnecting from MQTT broker")
        client.disconnect()
        client.loop_stop()
        with self._lock:
            self.subscribed_topics.clear()
            self.message_handlers.clear()
        self.connection_state = ConnectionState.DISCONNECTED
        self.logger.info("Disconnected from MQTT broker")

    def get_instance(self) -> Optional[mqtt.Client]:
        return self.client

    def format_request(self, request: Request) -> Dict[str, Any]:
        return {
            "topic": request.topic,
            "qos": request.qos,
            "retain": request.retained,
            "payload": request.payload,
            "callback": request.callback,
        }

    # Public methods for publishing and topic management
    def publish(self, params: Dict[str, Any]) -> None:
        """Publish a message to a topic."""
        client = self._require_client()
        topic = params["topic"]
        result = client.publish(topic, params.get("payload"), params.get("qos", 0), params.get("retain", False))

        if result.rc != mqtt.MQTT_ERR_SUCCESS:
            self.logger.error(f"Error publishing message to topic '{topic}': {result.rc}")
            raise ProtocolError(f"Failed to publish message to topic '{topic}': {mqtt.error_string(result.rc)}")

        self.logger.debug(f"Published message to topic '{topic}'")

    def subscribe(self, params: Dict[str, Any]) -> None:
        """Subscribe to a topic and route its messages to the request callback."""
        client = self._require_client()
        topic, qos = params["topic"], params.get("qos", 0)

        result, mid = client.subscribe(topic, qos)
        if result != mqtt.MQTT_ERR_SUCCESS:
            self.logger.error(f"Error subscribing to topic '{topic}': {result}")
            raise ProtocolError(f"Failed to subscribe to topic '{topic}': {mqtt.error_string(result)}")

        with self._lock:
            self.subscribed_topics[topic] = qos
            if params.get("callback"):
                self.message_handlers[topic] = params["callback"]

        self.logger.info(f"Subscribed to topic '{topic}' with QoS {qos}")

    def unsubscribe(self, topics: List[str]) -> None:
        """Unsubscribe from a list of topics."""
        client = self._require_client()

        result, mid = client.unsubscribe(list(topics))
        if result != mqtt.MQTT_ERR_SUCCESS:
            self.logger.error(f"Error unsubscribing from topics {topics}: {result}")
            raise ProtocolError(f"Failed to unsubscribe from topics {topics}: {mqtt.error_string(result)}")

        with self._lock:
            for topic in topics:
                self.subscribed_topics.pop(topic, None)
                self.message_handlers.pop(topic, None)

        self.logger.info(f"Unsubscribed from topics {topics}")

    def get_subscribed_topics(self) -> List[str]:
        """Get list of currently subscribed topics."""
        with self._lock:
            return list(self.subscribed_topics)

    def _require_client(self) -> mqtt.Client:
        if self.client is None:
            raise ProtocolError("MQTT client is not initialized")
        return self.client

    # MQTT Event Callbacks
    def _on_connect(self, client, userdata, flags, reason_code, properties):
        """Callback for when client connects to broker."""
        if reason_code == 0:
            self.logger.info(f"Connected to MQTT broker with flags: {flags}")
            self.connection_state = ConnectionState.CONNECTED
            with self._lock:
                resubscribe = list(self.subscribed_topics.items())
            for topic, qos in resubscribe:
                client.subscribe(topic, qos)
                self.logger.info(f"Re-subscribed to topic '{topic}' with QoS {qos}")
        else:
            self._connect_error = f"Connection refused - {reason_code}"
            self.logger.error(self._connect_error)
            self.connection_state = ConnectionState.ERROR
        self._connack.set()

    def _on_disconnect(self, client, userdata, disconnect_flags, reason_code, properties):
        """Callback for when client disconnects from broker."""
        if reason_code == 0:
            self.logger.info("Disconnected from MQTT broker")
            self.connection_state = ConnectionState.DISCONNECTED
            return

        self.logger.warning(f"Unexpected disconnection from MQTT broker (code: {reason_code})")
        self.connection_state = ConnectionState.RECONNECTING

        hook = self.options.on_connection_lost if self.options else None
        if hook is None:
            return
        try:
            password = hook()
        except Exception as e:
            self.logger.error(f"Error in connection-lost hook: {e}")
            return
        if password:
            client.username_pw_set(self.options.username, password)
            self.logger.info("Refreshed MQTT password before reconnect")

    def _on_message(self, client, userdata, msg):
        """Callback for when a message is received."""
        response = Response(topic=msg.topic, payload=msg.payload, qos=msg.qos, retained=bool(msg.retain))

        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug(f"Received message on topic '{msg.topic}': {len(msg.payload)} bytes")

        with self._lock:
            handlers = [h for sub, h in self.message_handlers.items() if mqtt.topic_matches_sub(sub, msg.topic)]
        for handler in handlers:
            try:
                handler(response)
            except Exception as e:
                self.logger.error(f"Error in message handler for topic '{msg.topic}': {e}")

    def _on_subscribe(self, client, userdata, mid, reason_code_list, properties):
        """Callback for when subscription is acknowledged."""
        self.logger.debug(f"Subscription acknowledged: {reason_code_list}")

    def _on_unsubscribe(self, client, userdata, mid, reason_code_list, properties):
        """Callback for when unsubscription is acknowledged."""
        self.logger.debug(f"Unsubscription acknowledged for message ID: {mid}")

    def _on_log(self, client, userdata, level, buf):
        """Callback for MQTT client logging."""
        # Map MQTT log levels to Python logging levels
        level_map = {
            mqtt.MQTT_LOG_DEBUG: logging.DEBUG,
            mqtt.MQTT_LOG_INFO: logging.DEBUG,
            mqtt.MQTT_LOG_NOTICE: logging.INFO,
            mqtt.MQTT_LOG_WARNING: logging.WARNING,
            mqtt.MQTT_LOG_ERR: logging.ERROR
        }

        python_level = level_map.get(level, logging.DEBUG)
        self.logger.log(python_level, f"MQTT: {buf}")
