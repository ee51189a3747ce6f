"""Payload serializers."""

from .base_serializer import Serializer
from .json_serializer import JSONSerializer

__all__ = [
    'Serializer',
    'JSONSerializer',
]
