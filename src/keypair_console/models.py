"""Keypair records and transient request types."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .errors import ValidationError


@dataclass(frozen=True)
class KeypairRecord:
    """One stored keypair and its last observed balance in SOL.

    ``balance`` is only as fresh as the last successful refresh.
    """

    id: int
    public_key: str
    private_key: str
    show_private: bool = False
    balance: float = 0.0

    def short_key(self) -> str:
        return f"{self.public_key[:4]}…{self.public_key[-4:]}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "publicKey": self.public_key,
            "privateKey": self.private_key,
            "showPrivate": self.show_private,
            "balance": self.balance,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "KeypairRecord":
        """Build a record from its JSON form, checking field presence and types only."""

        if not isinstance(data, dict):
            raise ValidationError("Record entry must be an object")
        missing = [key for key in ("id", "publicKey", "privateKey") if data.get(key) in (None, "")]
        if missing:
            raise ValidationError(f"Record entry is missing {', '.join(missing)}")

        record_id = data["id"]
        if isinstance(record_id, bool) or not isinstance(record_id, int):
            raise ValidationError(f"Record id must be an integer, got {record_id!r}")
        if not isinstance(data["publicKey"], str) or not isinstance(data["privateKey"], str):
            raise ValidationError("publicKey and privateKey must be strings")

        balance = data.get("balance", 0)
        if isinstance(balance, bool) or not isinstance(balance, (int, float)):
            balance = 0.0

        return cls(
            id=record_id,
            public_key=data["publicKey"],
            private_key=data["privateKey"],
            show_private=bool(data.get("showPrivate", False)),
            balance=float(balance),
        )


@dataclass
class TransferRequest:
    """A single transfer as entered by the user; never persisted."""

    source_id: Optional[int]
    destination: str
    amount: str
