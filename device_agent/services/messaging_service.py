# messaging_service.py - property/event posting and command dispatch

import functools
import logging
from typing import Any, Callable, Dict

from device_agent.core.exceptions import SerializationError
from device_agent.models.device_models import (
    SUB_DEVICE_PARAM_KEY,
    Command,
    Property,
    Request,
    Response,
)
from device_agent.models.topics import Topics
from device_agent.serializers.base_serializer import Serializer
from device_agent.services.session_manager import SessionManager

TELEMETRY_QOS = 1

CommandTable = Dict[int, Callable[[Dict[int, Any]], None]]


class MessagingFacade:
    """Builds the property, event and command messages on top of an open session."""

    def __init__(self, serializer: Serializer, session: SessionManager, topics: Topics):
        self.serializer = serializer
        self.session = session
        self.topics = topics
        self.commands: CommandTable = {}
        self.log = logging.getLogger(self.__class__.__name__)

    def post_property(self, prop: Property) -> None:
        payload = self.serializer.make_property_payload(prop)
        self.session.publish(self._publish_request(self.topics.post_property, payload))

    def post_event(self, identifier: str, prop: Property) -> None:
        payload = self.serializer.make_event_payload(prop, identifier=identifier)
        self.session.publish(self._publish_request(self.topics.post_event, payload))

    def on_command(self, *commands: Command) -> None:
        """Subscribe to the command topic with a fresh table, replacing any earlier one."""
        table: CommandTable = {cmd.id: cmd.callback for cmd in commands}
        request = Request(
            topic=self.topics.on_command,
            qos=TELEMETRY_QOS,
            callback=functools.partial(self._dispatch, table),
        )
        self.session.subscribe(request)
        self.commands = table
        self.log.info(f"Listening for commands {sorted(table)} on '{self.topics.on_command}'")

    def _dispatch(self, table: CommandTable, response: Response) -> None:
        try:
            command = self.serializer.unmarshal_command(response.payload)
        except SerializationError as e:
            self.log.warning(f"Dropping undecodable command on '{response.topic}': {e}")
            return

        params = dict(command.params)
        params[SUB_DEVICE_PARAM_KEY] = command.sub_device_id

        callback = table.get(command.id)
        if callback is None:
            self.log.debug(f"No handler registered for command {command.id}")
            return

        try:
            callback(params)
        except Exception as e:
            self.log.error(f"Error in handler for command {command.id}: {e}")

    @staticmethod
    def _publish_request(topic: str, payload: bytes) -> Request:
        return Request(topic=topic, qos=TELEMETRY_QOS, retained=False, payload=payload)
