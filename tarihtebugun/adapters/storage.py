from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol
import json
import logging
import os
import threading

logger = logging.getLogger(__name__)


class KeyValueBackend(Protocol):
    """String-to-string store. Implementations may raise on any operation."""

    def get_item(self, key: str) -> Optional[str]:
        ...

    def set_item(self, key: str, value: str) -> None:
        ...

    def remove_item(self, key: str) -> None:
        ...


class MemoryBackend:
    def __init__(self) -> None:
        self._data: Dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileBackend:
    """All keys live in one JSON object on disk, rewritten on every change."""

    def __init__(self, path: str) -> None:
        self.path = path
        self._lock = threading.Lock()

    def _load(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} does not hold a JSON object")
        return data

    def _save(self, data: Dict[str, str]) -> None:
        tmp_path = f"{self.path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        os.replace(tmp_path, self.path)

    def get_item(self, key: str) -> Optional[str]:
        with self._lock:
            return self._load().get(key)

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            data = self._load()
            data[key] = value
            self._save(data)

    def remove_item(self, key: str) -> None:
        with self._lock:
            data = self._load()
            if key in data:
                del data[key]
                self._save(data)


@dataclass(frozen=True)
class StoreResult:
    ok: bool
    value: Any = None
    error: Optional[Exception] = None


_STORAGE_ERRORS = (OSError, ValueError, TypeError, RecursionError)


class PersistentStore:
    """JSON-serializing wrapper that never lets a backend failure escape.

    ``read``/``write``/``delete`` report failures as a ``StoreResult``;
    ``get``/``set``/``remove`` collapse them to ``None``/``False``.
    """

    def __init__(self, backend: KeyValueBackend) -> None:
        self.backend = backend

    def read(self, key: str) -> StoreResult:
        try:
            raw = self.backend.get_item(key)
            value = json.loads(raw) if raw else None
        except _STORAGE_ERRORS as e:
            logger.error("Storage get error for key %r: %s", key, e)
            return StoreResult(False, error=e)
        return StoreResult(True, value)

    def write(self, key: str, value: Any) -> StoreResult:
        try:
            self.backend.set_item(key, json.dumps(value, ensure_ascii=False))
        except _STORAGE_ERRORS as e:
            logger.error("Storage set error for key %r: %s", key, e)
            return StoreResult(False, error=e)
        return StoreResult(True, value)

    def delete(self, key: str) -> StoreResult:
        try:
            self.backend.remove_item(key)
        except _STORAGE_ERRORS as e:
            logger.error("Storage remove error for key %r: %s", key, e)
            return StoreResult(False, error=e)
        return StoreResult(True)

    def get(self, key: str) -> Any:
        return self.read(key).value

    def set(self, key: str, value: Any) -> bool:
        return self.write(key, value).ok

    def remove(self, key: str) -> bool:
        return self.delete(key).ok


def open_store(path: str) -> PersistentStore:
    backend: KeyValueBackend = JsonFileBackend(path) if path else MemoryBackend()
    return PersistentStore(backend)
