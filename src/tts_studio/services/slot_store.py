"""Capacity-bounded key/value storage for history, preferences and presets."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Dict, Optional, Protocol

from ..errors import StorageCapacityError

logger = logging.getLogger(__name__)

HISTORY_KEY = "tts-history-v1"
PREFS_KEY = "tts-prefs-v1"
PROMPT_PRESETS_KEY = "tts-prompt-presets"

_SAFE_KEY = re.compile(r"^[A-Za-z0-9._-]+$")


def _entry_size(key: str, value: str) -> int:
    return len(key.encode("utf-8")) + len(value.encode("utf-8"))


class SlotStore(Protocol):
    """String store addressed by fixed keys.

    ``set`` raises :class:`StorageCapacityError` when the write would exceed
    the store's capacity; other failures surface as ``OSError``.
    """

    capacity: int

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemorySlotStore:
    """In-process store, mainly for tests and ephemeral sessions."""

    def __init__(self, capacity: int = 5 * 1024 * 1024):
        self.capacity = capacity
        self._data: Dict[str, str] = {}

    def used_bytes(self) -> int:
        return sum(_entry_size(k, v) for k, v in self._data.items())

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        current = self._data.get(key)
        required = self.used_bytes() + _entry_size(key, value)
        if current is not None:
            required -= _entry_size(key, current)
        if required > self.capacity:
            raise StorageCapacityError(key, required, self.capacity)
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class FileSlotStore:
    """
    Directory-backed store with one file per key.

    Capacity is enforced over the combined size of all keys, mirroring the
    per-origin quota of browser storage.
    """

    def __init__(self, directory: Path, capacity: int = 5 * 1024 * 1024):
        self._dir = directory
        self.capacity = capacity

    def _ensure_data_dir(self) -> None:
        """Ensure the data directory exists."""
        self._dir.mkdir(parents=True, exist_ok=True)

    def _path_for(self, key: str) -> Path:
        if not _SAFE_KEY.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self._dir / f"{key}.json"

    def used_bytes(self) -> int:
        if not self._dir.exists():
            return 0
        total = 0
        for path in self._dir.glob("*.json"):
            total += len(path.stem.encode("utf-8")) + path.stat().st_size
        return total

    def get(self, key: str) -> Optional[str]:
        path = self._path_for(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        path = self._path_for(key)
        existing = path.stat().st_size + len(key.encode("utf-8")) if path.exists() else 0
        required = self.used_bytes() - existing + _entry_size(key, value)
        if required > self.capacity:
            raise StorageCapacityError(key, required, self.capacity)

        self._ensure_data_dir()
        tmp_path = path.with_suffix(".tmp")
        tmp_path.write_text(value, encoding="utf-8")
        tmp_path.replace(path)
        logger.debug(f"Saved {key} to {path} ({len(value)} chars)")

    def remove(self, key: str) -> None:
        path = self._path_for(key)
        if path.exists():
            path.unlink()
            logger.debug(f"Removed {key} from {self._dir}")


__all__ = [
    "FileSlotStore",
    "HISTORY_KEY",
    "MemorySlotStore",
    "PREFS_KEY",
    "PROMPT_PRESETS_KEY",
    "SlotStore",
]
