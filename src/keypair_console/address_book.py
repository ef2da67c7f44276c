"""The address book: sole owner of keypair records and their persistence."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import replace
from typing import Callable, Iterable, Optional

from . import codec
from .config import STORAGE_SLOT
from .errors import StorageError, ValidationError
from .models import KeypairRecord
from .store import KeyValueStore

logger = logging.getLogger(__name__)


def _wall_clock_id() -> int:
    return int(time.time() * 1000)


class AddressBook:
    """Ordered keypair records with write-through persistence.

    Every mutation changes only the record it targets. The whole book is
    written to the store before the change becomes visible, including no-op
    deletes and toggles.
    Records handed out are frozen copies, so callers cannot bypass this.
    """

    def __init__(
        self,
        store: KeyValueStore,
        slot: str = STORAGE_SLOT,
        clock: Callable[[], int] = _wall_clock_id,
    ) -> None:
        self._store = store
        self._slot = slot
        self._clock = clock
        self._records: list[KeypairRecord] = self._load()
        self._listeners: list[Callable[[], None]] = []

    def _load(self) -> list[KeypairRecord]:
        raw = self._store.get(self._slot)
        if raw is None:
            return []
        try:
            entries = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise StorageError(f"Stored slot {self._slot!r} is not valid JSON", exc) from exc
        if not isinstance(entries, list):
            raise StorageError(f"Stored slot {self._slot!r} is not a list of records")

        records: list[KeypairRecord] = []
        seen: set[int] = set()
        for entry in entries:
            try:
                record = KeypairRecord.from_dict(entry)
            except ValidationError as exc:
                raise StorageError(f"Stored slot {self._slot!r} holds a malformed record", exc) from exc
            if record.id in seen:
                raise StorageError(f"Stored slot {self._slot!r} repeats id {record.id}")
            seen.add(record.id)
            records.append(record)
        logger.info("Loaded %d keypair records", len(records))
        return records

    def _commit(self, records: list[KeypairRecord]) -> None:
        """Write ``records`` to the store, then make them the current book.

        A failed write leaves the in-memory book as it was.
        """

        payload = json.dumps([record.to_dict() for record in records])
        try:
            self._store.set(self._slot, payload)
        except OSError as exc:
            raise StorageError(f"Cannot write slot {self._slot!r}", exc) from exc
        self._records = records
        for listener in self._listeners:
            listener()

    def subscribe(self, listener: Callable[[], None]) -> None:
        """Call ``listener`` after every persisted mutation."""

        self._listeners.append(listener)

    def _next_id(self) -> int:
        candidate = self._clock()
        if self._records:
            candidate = max(candidate, max(record.id for record in self._records) + 1)
        return candidate

    def _index_of(self, record_id: int) -> Optional[int]:
        for index, record in enumerate(self._records):
            if record.id == record_id:
                return index
        return None

    def __len__(self) -> int:
        return len(self._records)

    def list(self) -> list[KeypairRecord]:
        return list(self._records)

    def get(self, record_id: int) -> Optional[KeypairRecord]:
        index = self._index_of(record_id)
        return None if index is None else self._records[index]

    def find_by_public_key(self, public_key: str) -> Optional[KeypairRecord]:
        return next((record for record in self._records if record.public_key == public_key), None)

    def create(self) -> KeypairRecord:
        """Generate a keypair and append it with a zero balance."""

        public_key, private_key = codec.generate_keypair()
        record = KeypairRecord(id=self._next_id(), public_key=public_key, private_key=private_key)
        self._commit(self._records + [record])
        logger.info("Created keypair %s (id %s)", record.short_key(), record.id)
        return record

    def delete(self, record_id: int) -> bool:
        """Remove a record; returns False when it was already absent."""

        index = self._index_of(record_id)
        records = list(self._records)
        removed = records.pop(index) if index is not None else None
        self._commit(records)
        if removed is not None:
            logger.info("Deleted keypair %s (id %s)", removed.short_key(), removed.id)
        return removed is not None

    def toggle_visibility(self, record_id: int) -> Optional[KeypairRecord]:
        index = self._index_of(record_id)
        records = list(self._records)
        updated = None
        if index is not None:
            current = records[index]
            updated = replace(current, show_private=not current.show_private)
            records[index] = updated
        self._commit(records)
        return updated

    def set_balance(self, record_id: int, balance: float) -> Optional[KeypairRecord]:
        """Update only the balance of the record currently holding ``record_id``.

        Returns None when the record has been removed in the meantime.
        """

        index = self._index_of(record_id)
        if index is None:
            return None
        records = list(self._records)
        updated = replace(records[index], balance=balance)
        records[index] = updated
        self._commit(records)
        return updated

    def append_records(self, records: Iterable[KeypairRecord]) -> list[KeypairRecord]:
        """Append already validated records, re-keying any id already in use."""

        added: list[KeypairRecord] = []
        used = {record.id for record in self._records}
        next_id = self._next_id()
        for record in records:
            if record.id in used:
                next_id = max(next_id, max(used) + 1)
                record = replace(record, id=next_id)
            used.add(record.id)
            added.append(record)
        self._commit(self._records + added)
        return added
