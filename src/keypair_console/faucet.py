"""Capped test-fund (airdrop) requests."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Union

from .address_book import AddressBook
from .amount import parse_sol, sol_to_lamports
from .balances import BalanceSynchronizer
from .config import CONFIRMATION_TIMEOUT_SECONDS, FAUCET_CAP_SOL
from .confirmation import ConfirmationState, race_confirmation
from .errors import (
    ConfirmationTimeoutError,
    LedgerRejectionError,
    NotFoundError,
    ValidationError,
    WalletError,
)
from .ledger import LedgerClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FaucetResult:
    signature: str
    lamports: int
    balance: Optional[float]


class FaucetRequester:
    """Request airdropped SOL for a record, with the same timeout as transfers."""

    def __init__(
        self,
        book: AddressBook,
        ledger: LedgerClient,
        synchronizer: Optional[BalanceSynchronizer] = None,
        cap: Decimal = FAUCET_CAP_SOL,
        confirmation_timeout: float = CONFIRMATION_TIMEOUT_SECONDS,
    ) -> None:
        self.book = book
        self.ledger = ledger
        self.synchronizer = synchronizer or BalanceSynchronizer(book, ledger)
        self.cap = cap
        self.confirmation_timeout = confirmation_timeout

    def check(self, record_id: int, amount: Union[str, float, Decimal]) -> tuple[str, int]:
        parsed = parse_sol(amount)
        if parsed > self.cap:
            raise ValidationError(f"Maximum airdrop amount is {self.cap} SOL")
        record = self.book.get(record_id)
        if record is None:
            raise NotFoundError(record_id)
        return record.public_key, sol_to_lamports(parsed)

    async def request_funds(
        self, record_id: int, amount: Union[str, float, Decimal]
    ) -> FaucetResult:
        address, lamports = self.check(record_id, amount)

        reference = await self.ledger.get_latest_reference()
        signature = await self.ledger.request_test_funds(address, lamports)
        logger.info("Requested airdrop of %d lamports to %s: %s", lamports, address, signature)

        result = await race_confirmation(
            signature,
            self.ledger.confirm(signature, reference.blockhash, reference.last_valid_block_height),
            self.confirmation_timeout,
        )
        if result.state is ConfirmationState.TIMED_OUT:
            raise ConfirmationTimeoutError(signature, self.confirmation_timeout)
        if result.state is ConfirmationState.REJECTED:
            raise LedgerRejectionError("Airdrop failed", detail=result.err, signature=signature)

        balance: Optional[float] = None
        try:
            balance = (await self.synchronizer.refresh(record_id)).balance
        except WalletError as exc:
            logger.warning("Airdrop %s confirmed but balance refresh failed: %s", signature, exc)
        return FaucetResult(signature=signature, lamports=lamports, balance=balance)
