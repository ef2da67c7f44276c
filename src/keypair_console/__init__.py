"""Local Solana keystore with balance tracking, faucet, and transfers."""

from .address_book import AddressBook
from .balances import BalanceSynchronizer
from .errors import (
    ConfirmationTimeoutError,
    InsufficientFundsError,
    LedgerRejectionError,
    NetworkError,
    NotFoundError,
    StorageError,
    ValidationError,
    WalletError,
)
from .faucet import FaucetRequester, FaucetResult
from .ledger import LatestReference, LedgerClient, LedgerConfirmation, SolanaLedgerClient
from .models import KeypairRecord, TransferRequest
from .serializer import ImportExportSerializer, ImportReport
from .store import JsonFileStore, MemoryStore
from .transfer import TransferOrchestrator, TransferResult

__all__ = [
    "AddressBook",
    "BalanceSynchronizer",
    "ConfirmationTimeoutError",
    "FaucetRequester",
    "FaucetResult",
    "ImportExportSerializer",
    "ImportReport",
    "InsufficientFundsError",
    "JsonFileStore",
    "KeypairRecord",
    "LatestReference",
    "LedgerClient",
    "LedgerConfirmation",
    "LedgerRejectionError",
    "MemoryStore",
    "NetworkError",
    "NotFoundError",
    "SolanaLedgerClient",
    "StorageError",
    "TransferOrchestrator",
    "TransferRequest",
    "TransferResult",
    "ValidationError",
    "WalletError",
]
