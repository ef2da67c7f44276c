"""Error kinds raised by keystore and transfer operations."""

from __future__ import annotations

from typing import Any, Optional


class WalletError(Exception):
    """Base class for every failure local to one wallet operation."""

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.message}: {self.cause}"
        return self.message


class ValidationError(WalletError):
    """Missing or malformed input; nothing was performed."""


class InsufficientFundsError(WalletError):
    """The cached balance cannot cover the amount plus the fee reserve."""

    def __init__(self, balance: float, required: float) -> None:
        super().__init__(
            f"Insufficient balance: {balance} SOL available, {required} SOL required"
        )
        self.balance = balance
        self.required = required


class NetworkError(WalletError):
    """Transport failure while talking to the ledger."""


class LedgerRejectionError(WalletError):
    """The ledger refused or failed to execute the transaction."""

    def __init__(self, message: str, detail: Any = None, signature: Optional[str] = None) -> None:
        super().__init__(message)
        self.detail = detail
        self.signature = signature

    def __str__(self) -> str:
        if self.detail is not None:
            return f"{self.message}: {self.detail}"
        return self.message


class ConfirmationTimeoutError(WalletError):
    """No confirmation arrived in time; the outcome is unknown, not failed."""

    def __init__(self, signature: str, timeout: float) -> None:
        super().__init__(
            f"Confirmation for {signature} not observed within {timeout:g}s; "
            "the transaction may still land"
        )
        self.signature = signature
        self.timeout = timeout


class NotFoundError(WalletError):
    """The referenced record id is not in the address book."""

    def __init__(self, record_id: Any) -> None:
        super().__init__(f"No keypair record with id {record_id}")
        self.record_id = record_id


class StorageError(WalletError):
    """The persisted address book could not be read."""


__all__ = [
    "WalletError",
    "ValidationError",
    "InsufficientFundsError",
    "NetworkError",
    "LedgerRejectionError",
    "ConfirmationTimeoutError",
    "NotFoundError",
    "StorageError",
]
