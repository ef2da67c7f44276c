"""Session state and the controller wiring records to the ledger."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

from .address_book import AddressBook
from .balances import BalanceSynchronizer
from .config import (
    CONFIRMATION_TIMEOUT_SECONDS,
    DEFAULT_ENDPOINTS,
    DEFAULT_NETWORK,
    FAUCET_NETWORKS,
    Network,
)
from .confirmation import drain_abandoned
from .errors import ValidationError
from .faucet import FaucetRequester, FaucetResult
from .ledger import LedgerClient, SolanaLedgerClient
from .models import KeypairRecord, TransferRequest
from .serializer import ImportExportSerializer, ImportReport
from .store import KeyValueStore
from .transfer import TransferOrchestrator, TransferResult

logger = logging.getLogger(__name__)


@dataclass
class TransferDraft:
    """Transfer form input that survives until a transfer succeeds."""

    from_id: Optional[int] = None
    to_address: str = ""
    amount: str = ""

    def to_request(self) -> TransferRequest:
        return TransferRequest(source_id=self.from_id, destination=self.to_address, amount=self.amount)


@dataclass
class WalletState:
    """Visible, non-persisted session state."""

    network: Network = DEFAULT_NETWORK
    endpoint_index: int = 0
    transfer_draft: TransferDraft = field(default_factory=TransferDraft)
    faucet_amount: str = "1"
    activity: list[str] = field(default_factory=list)

    def status_line(self, record_count: int) -> str:
        return f"{self.network} · {record_count} keypair(s)"

    def switch_network(self, network: Network) -> None:
        self.network = network
        self.endpoint_index = 0

    def clear_transfer_draft(self) -> None:
        self.transfer_draft = TransferDraft()

    def record_activity(self, description: str) -> None:
        self.activity.append(description)


LedgerFactory = Callable[[str], LedgerClient]


class WalletController:
    """Own the address book and build ledger-backed services per endpoint."""

    def __init__(
        self,
        state: WalletState,
        store: KeyValueStore,
        ledger_factory: LedgerFactory = SolanaLedgerClient,
        confirmation_timeout: float = CONFIRMATION_TIMEOUT_SECONDS,
    ) -> None:
        self.state = state
        self.book = AddressBook(store)
        self.serializer = ImportExportSerializer(self.book)
        self.confirmation_timeout = confirmation_timeout
        self._ledger_factory = ledger_factory
        self._ledger: Optional[LedgerClient] = None
        self._stale_ledgers: list[LedgerClient] = []

    def endpoint(self) -> str:
        """Return the RPC endpoint for the active network using the current index."""

        return DEFAULT_ENDPOINTS[self.state.network][self.state.endpoint_index]

    def switch_network(self, network: Network) -> None:
        self.state.switch_network(network)
        self.reset_endpoint_cache()
        self.state.record_activity(f"Switched to {network}")

    def reset_endpoint_cache(self) -> None:
        """Drop the cached client; it is closed on the next ``close()``."""

        if self._ledger is not None:
            self._stale_ledgers.append(self._ledger)
        self._ledger = None

    def ledger(self) -> LedgerClient:
        if self._ledger is None:
            self._ledger = self._ledger_factory(self.endpoint())
            logger.info("Using RPC endpoint %s", self.endpoint())
        return self._ledger

    def synchronizer(self) -> BalanceSynchronizer:
        return BalanceSynchronizer(self.book, self.ledger())

    def records(self) -> list[KeypairRecord]:
        return self.book.list()

    def create_keypair(self) -> KeypairRecord:
        record = self.book.create()
        self.state.record_activity(f"Created keypair {record.short_key()}")
        return record

    def delete_keypair(self, record_id: int) -> bool:
        removed = self.book.delete(record_id)
        if self.state.transfer_draft.from_id == record_id:
            self.state.transfer_draft.from_id = None
        if removed:
            self.state.record_activity(f"Deleted keypair {record_id}")
        return removed

    def toggle_private_key(self, record_id: int) -> Optional[KeypairRecord]:
        return self.book.toggle_visibility(record_id)

    async def refresh_balance(self, record_id: int) -> KeypairRecord:
        record = await self.synchronizer().refresh(record_id)
        self.state.record_activity(f"Balance of {record.short_key()}: {record.balance} SOL")
        return record

    async def request_airdrop(self, record_id: int) -> FaucetResult:
        if self.state.network not in FAUCET_NETWORKS:
            raise ValidationError(f"Airdrops are not available on {self.state.network}")
        ledger = self.ledger()
        requester = FaucetRequester(
            self.book,
            ledger,
            BalanceSynchronizer(self.book, ledger),
            confirmation_timeout=self.confirmation_timeout,
        )
        result = await requester.request_funds(record_id, self.state.faucet_amount)
        self.state.record_activity(f"Airdrop confirmed: {result.signature}")
        return result

    async def transfer(self) -> TransferResult:
        """Send the current transfer draft; the draft is cleared only on success."""

        ledger = self.ledger()
        orchestrator = TransferOrchestrator(
            self.book,
            ledger,
            BalanceSynchronizer(self.book, ledger),
            confirmation_timeout=self.confirmation_timeout,
        )
        result = await orchestrator.transfer(self.state.transfer_draft.to_request())
        self.state.clear_transfer_draft()
        self.state.record_activity(f"Transfer confirmed: {result.signature}")
        return result

    def export_to_file(self, path: Path) -> int:
        count = self.serializer.export_to_file(path)
        self.state.record_activity(f"Exported {count} keypair(s) to {Path(path).name}")
        return count

    def import_from_file(self, path: Path) -> ImportReport:
        report = self.serializer.import_from_file(path)
        self.state.record_activity(report.summary())
        return report

    def explorer_url(self, signature: str) -> str:
        cluster = self.state.network.lower()
        cluster_param = "" if cluster == "mainnet" else f"?cluster={cluster}"
        return f"https://explorer.solana.com/tx/{signature}{cluster_param}"

    async def close(self) -> None:
        """Stop abandoned confirmation lookups, then close every ledger client."""

        await drain_abandoned()
        clients = self._stale_ledgers + ([self._ledger] if self._ledger is not None else [])
        self._stale_ledgers = []
        self._ledger = None
        for client in clients:
            await client.close()
