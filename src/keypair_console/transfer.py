"""Validate, build, sign, submit, and confirm a SOL transfer."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from solders.hash import Hash
from solders.keypair import Keypair
from solders.message import Message
from solders.pubkey import Pubkey
from solders.system_program import TransferParams, transfer
from solders.transaction import Transaction

from . import codec
from .address_book import AddressBook
from .amount import parse_sol, sol_to_lamports
from .balances import BalanceSynchronizer
from .config import CONFIRMATION_TIMEOUT_SECONDS, FEE_RESERVE_SOL
from .confirmation import ConfirmationState, race_confirmation
from .errors import (
    ConfirmationTimeoutError,
    InsufficientFundsError,
    LedgerRejectionError,
    NotFoundError,
    ValidationError,
    WalletError,
)
from .ledger import LedgerClient
from .models import KeypairRecord, TransferRequest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransferResult:
    """A confirmed transfer.

    ``balance`` is the refreshed source balance, or None when the refresh
    after confirmation failed.
    """

    signature: str
    blockhash: str
    lamports: int
    balance: Optional[float]


@dataclass(frozen=True)
class _CheckedTransfer:
    source: KeypairRecord
    destination: Pubkey
    amount: Decimal
    lamports: int


def build_transfer_transaction(
    keypair: Keypair, destination: Pubkey, lamports: int, blockhash: Hash
) -> Transaction:
    """Single system transfer paid and signed by ``keypair``."""

    instruction = transfer(
        TransferParams(from_pubkey=keypair.pubkey(), to_pubkey=destination, lamports=lamports)
    )
    message = Message.new_with_blockhash([instruction], keypair.pubkey(), blockhash)
    return Transaction([keypair], message, blockhash)


class TransferOrchestrator:
    """Runs the transfer pipeline; each stage either passes or raises.

    Checks on inputs, balance, and destination run locally before any ledger
    call. The blockhash fetch, signing, and submission follow each other
    with nothing in between, and confirmation is raced against a timer.
    """

    def __init__(
        self,
        book: AddressBook,
        ledger: LedgerClient,
        synchronizer: Optional[BalanceSynchronizer] = None,
        confirmation_timeout: float = CONFIRMATION_TIMEOUT_SECONDS,
        fee_reserve: Decimal = FEE_RESERVE_SOL,
    ) -> None:
        self.book = book
        self.ledger = ledger
        self.synchronizer = synchronizer or BalanceSynchronizer(book, ledger)
        self.confirmation_timeout = confirmation_timeout
        self.fee_reserve = fee_reserve

    def check(self, request: TransferRequest) -> _CheckedTransfer:
        """Run the local stages: presence, balance pre-check, destination."""

        if (
            request.source_id in (None, "")
            or not (request.destination or "").strip()
            or not str(request.amount or "").strip()
        ):
            raise ValidationError("Source, destination, and amount are all required")
        amount = parse_sol(request.amount)
        lamports = sol_to_lamports(amount)

        source = self.book.get(request.source_id)
        if source is None:
            raise NotFoundError(request.source_id)

        required = amount + self.fee_reserve
        if Decimal(str(source.balance)) < required:
            raise InsufficientFundsError(source.balance, float(required))

        destination_text = request.destination.strip()
        destination = codec.parse_address(destination_text)
        if not codec.is_valid_address(destination_text):
            raise ValidationError(f"Destination {destination_text} is not on the ed25519 curve")

        return _CheckedTransfer(source=source, destination=destination, amount=amount, lamports=lamports)

    async def transfer(self, request: TransferRequest) -> TransferResult:
        checked = self.check(request)
        keypair = codec.keypair_from_secret(codec.decode_secret(checked.source.private_key))

        reference = await self.ledger.get_latest_reference()
        transaction = build_transfer_transaction(
            keypair, checked.destination, checked.lamports, Hash.from_string(reference.blockhash)
        )
        signature = await self.ledger.submit(bytes(transaction))
        logger.info(
            "Sent %s SOL from %s to %s: %s",
            checked.amount,
            checked.source.short_key(),
            checked.destination,
            signature,
        )

        result = await race_confirmation(
            signature,
            self.ledger.confirm(signature, reference.blockhash, reference.last_valid_block_height),
            self.confirmation_timeout,
        )
        if result.state is ConfirmationState.TIMED_OUT:
            raise ConfirmationTimeoutError(signature, self.confirmation_timeout)
        if result.state is ConfirmationState.REJECTED:
            raise LedgerRejectionError("Transaction failed", detail=result.err, signature=signature)

        balance: Optional[float] = None
        try:
            balance = (await self.synchronizer.refresh(checked.source.id)).balance
        except WalletError as exc:
            logger.warning("Transfer %s confirmed but balance refresh failed: %s", signature, exc)

        return TransferResult(
            signature=signature,
            blockhash=reference.blockhash,
            lamports=checked.lamports,
            balance=balance,
        )
