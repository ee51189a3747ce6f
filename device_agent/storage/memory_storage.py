import threading
from typing import Any, Dict, Optional

from .base_storage import Storage


class MemoryStorage(Storage):
    """Process-local storage; identity is lost when the process exits."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = value

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return dict(self._data)
