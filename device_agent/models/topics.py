from __future__ import annotations
from dataclasses import dataclass


@dataclass(frozen=True)
class Topics:
    """Static lookup of every transport-addressable name the device uses."""
    register: str                # REST endpoint
    login: str                   # REST endpoint
    post_property: str
    post_event: str
    on_command: str


DEFAULT_TOPICS = Topics(
    register      = "http://localhost:8088/v1/devices/registration",
    login         = "http://localhost:8088/v1/devices/authentication",
    post_property = "s/1",
    post_event    = "s/2",
    on_command    = "c",
)
