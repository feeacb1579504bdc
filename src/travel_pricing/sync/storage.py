"""
Keyed string storage for persisted enquiry state.

Two backends share the same get/set/remove interface: an in-memory dict
and a directory holding one JSON file per key.
"""
import json
import logging
import os
import re
import tempfile
import threading
from pathlib import Path
from typing import Optional, Protocol

logger = logging.getLogger(__name__)


class StorageBackend(Protocol):
    def get_item(self, key: str) -> Optional[str]:
        ...

    def set_item(self, key: str, value: str) -> None:
        ...

    def remove_item(self, key: str) -> None:
        ...

    def keys(self, prefix: str = '') -> list[str]:
        ...


class MemoryStorage:
    """Process-local storage."""

    def __init__(self):
        self._data: dict[str, str] = {}
        self._lock = threading.Lock()

    def get_item(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def remove_item(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self, prefix: str = '') -> list[str]:
        with self._lock:
            return sorted(k for k in self._data if k.startswith(prefix))


_UNSAFE_CHARS = re.compile(r'[^A-Za-z0-9_.-]')


class FileStorage:
    """Storage in a directory, one <key>.json file per slot."""

    def __init__(self, directory: Path):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.directory / f"{_UNSAFE_CHARS.sub('_', key)}.json"

    def get_item(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        with open(path, 'r', encoding='utf-8') as f:
            return f.read()

    def set_item(self, key: str, value: str) -> None:
        # Write to a temp file first so readers never see a half-written slot
        fd, tmp_path = tempfile.mkstemp(dir=self.directory, suffix='.tmp')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(value)
            os.replace(tmp_path, self._path(key))
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def remove_item(self, key: str) -> None:
        path = self._path(key)
        if path.exists():
            path.unlink()

    def keys(self, prefix: str = '') -> list[str]:
        safe_prefix = _UNSAFE_CHARS.sub('_', prefix)
        return sorted(
            p.stem for p in self.directory.glob('*.json') if p.stem.startswith(safe_prefix)
        )


def load_json_slot(storage: StorageBackend, key: str) -> Optional[object]:
    """
    Read and parse a JSON slot.

    Returns None for a missing slot. A corrupt slot is logged, cleared and
    reported as missing.
    """
    raw = storage.get_item(key)
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except ValueError as e:
        logger.warning(f"Discarding corrupt storage slot '{key}': {e}")
        storage.remove_item(key)
        return None


def save_json_slot(storage: StorageBackend, key: str, value: object) -> None:
    storage.set_item(key, json.dumps(value, ensure_ascii=False))
