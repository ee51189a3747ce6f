"""
JSON file storage backend.

Keeps every key in a single JSON document. ``bytes`` values are written as
``{"__bytes__": "<hex>"}`` so tokens survive the round trip.
"""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict, Optional, Union

from ..core.exceptions import StorageError
from .base_storage import Storage

logger = logging.getLogger(__name__)

_BYTES_TAG = "__bytes__"


def _encode(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return {_BYTES_TAG: bytes(value).hex()}
    return value


def _decode(value: Any) -> Any:
    if isinstance(value, dict) and set(value) == {_BYTES_TAG}:
        return bytes.fromhex(value[_BYTES_TAG])
    return value


class JSONFileStorage(Storage):

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            raw = self._read().get(key)
        try:
            return _decode(raw)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Corrupt bytes value for '{key}' in '{self.path}': {e}") from e

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            data = self._read()
            data[key] = _encode(value)
            self._write(data)

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise StorageError(f"Failed to read storage file '{self.path}': {e}") from e
        if not isinstance(data, dict):
            raise StorageError(f"Storage file '{self.path}' does not hold a JSON object")
        return data

    def _write(self, data: Dict[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f, indent=2, sort_keys=True)
                os.replace(tmp, self.path)
            except BaseException:
                os.unlink(tmp)
                raise
        except (OSError, TypeError, ValueError) as e:
            raise StorageError(f"Failed to write storage file '{self.path}': {e}") from e
        logger.debug(f"Wrote {len(data)} keys to {self.path}")
