from abc import ABC, abstractmethod
from typing import Any, Optional


class Storage(ABC):
    """Durable key/value store for device identity fields."""

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Return the stored value, or None when the key is missing.

        Raises StorageError when the backend itself cannot be read.
        """
        pass

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Store *value* under *key*. Raises StorageError on failure."""
        pass
