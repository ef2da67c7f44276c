"""Key-value string stores that hold the persisted address book."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional, Protocol

from .errors import StorageError

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    def get(self, slot: str) -> Optional[str]: ...

    def set(self, slot: str, value: str) -> None: ...


class MemoryStore:
    """Process-local store, used for throwaway sessions and tests."""

    def __init__(self, initial: Optional[dict[str, str]] = None) -> None:
        self._slots: dict[str, str] = dict(initial or {})
        self.writes = 0

    def get(self, slot: str) -> Optional[str]:
        return self._slots.get(slot)

    def set(self, slot: str, value: str) -> None:
        self._slots[slot] = value
        self.writes += 1


class JsonFileStore:
    """Named string slots kept together in one JSON object on disk."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._slots = self._read()

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            # Refuse to continue: a later write would replace stored secrets.
            raise StorageError(f"Cannot read store {self.path}", exc) from exc
        if not isinstance(data, dict):
            raise StorageError(f"Store {self.path} does not hold a JSON object")
        return {str(key): value for key, value in data.items() if isinstance(value, str)}

    def get(self, slot: str) -> Optional[str]:
        return self._slots.get(slot)

    def set(self, slot: str, value: str) -> None:
        slots = {**self._slots, slot: value}
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(slots), encoding="utf-8")
        except OSError as exc:
            raise StorageError(f"Cannot write store {self.path}", exc) from exc
        self._slots = slots
        logger.debug("Wrote slot %s to %s", slot, self.path)
