"""Address book export and validated, all-or-nothing import.

Exports contain every private key in cleartext. Anyone holding an export
file controls the funds of every address in it; treat the file like the
keys themselves.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from . import codec
from .address_book import AddressBook
from .errors import ValidationError
from .models import KeypairRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImportReport:
    merged: int
    skipped: int

    def summary(self) -> str:
        return f"Imported {self.merged} keypair(s), skipped {self.skipped} duplicate(s)"


def validate_entry(position: int, entry: Any) -> KeypairRecord:
    """Parse one payload entry, checking the address and the secret it carries."""

    try:
        record = KeypairRecord.from_dict(entry)
    except ValidationError as exc:
        raise ValidationError(f"Entry {position}: {exc.message}") from exc

    if not codec.is_address_syntax(record.public_key):
        raise ValidationError(f"Entry {position}: publicKey is not a valid address")
    try:
        derived, _ = codec.derive_keypair(codec.decode_secret(record.private_key))
    except ValidationError as exc:
        raise ValidationError(f"Entry {position}: {exc.message}") from exc
    if derived != record.public_key:
        raise ValidationError(f"Entry {position}: privateKey does not belong to publicKey")
    return record


class ImportExportSerializer:
    def __init__(self, book: AddressBook) -> None:
        self.book = book

    def export(self) -> list[dict[str, Any]]:
        """Snapshot every record, secrets included, in address book order."""

        return [record.to_dict() for record in self.book.list()]

    def dumps(self) -> str:
        return json.dumps(self.export(), indent=2)

    def export_to_file(self, path: Path) -> int:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.dumps(), encoding="utf-8")
        logger.warning("Exported %d keypairs with private keys to %s", len(self.book), path)
        return len(self.book)

    def import_records(self, payload: Any) -> ImportReport:
        """Validate the whole payload, then append records with unseen public keys.

        Any invalid entry rejects the payload and leaves the book untouched.
        """

        if not isinstance(payload, list):
            raise ValidationError("Import payload must be a list of keypair records")
        records = [validate_entry(position, entry) for position, entry in enumerate(payload)]

        seen: set[str] = set()
        fresh: list[KeypairRecord] = []
        skipped = 0
        for record in records:
            if record.public_key in seen or self.book.find_by_public_key(record.public_key) is not None:
                skipped += 1
                continue
            seen.add(record.public_key)
            fresh.append(record)

        if fresh:
            self.book.append_records(fresh)
        report = ImportReport(merged=len(fresh), skipped=skipped)
        logger.info(report.summary())
        return report

    def loads(self, text: str) -> ImportReport:
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ValidationError("Import file is not valid JSON", exc) from exc
        return self.import_records(payload)

    def import_from_file(self, path: Path) -> ImportReport:
        try:
            text = Path(path).read_text(encoding="utf-8")
        except OSError as exc:
            raise ValidationError(f"Cannot read import file {path}", exc) from exc
        return self.loads(text)
