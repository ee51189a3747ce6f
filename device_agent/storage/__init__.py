"""Key/value storage backends for device identity."""

from .base_storage import Storage
from .memory_storage import MemoryStorage
from .file_storage import JSONFileStorage

__all__ = [
    'Storage',
    'MemoryStorage',
    'JSONFileStorage',
]
