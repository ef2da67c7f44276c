"""Async ledger capability and its Solana RPC implementation."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol

import httpx
from solana.exceptions import SolanaRpcException
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Commitment
from solana.rpc.core import (
    RPCException,
    RPCNoResultException,
    TransactionExpiredBlockheightExceededError,
    UnconfirmedTxError,
)
from solana.rpc.types import TxOpts
from solders.signature import Signature

from . import codec
from .config import COMMITMENT
from .errors import LedgerRejectionError, NetworkError

logger = logging.getLogger(__name__)

_TRANSPORT_ERRORS = (SolanaRpcException, httpx.HTTPError, OSError)
_READ_ERRORS = _TRANSPORT_ERRORS + (RPCException, RPCNoResultException)


def _rpc_detail(exc: RPCException) -> Any:
    return exc.args[0] if exc.args else str(exc)


@dataclass(frozen=True)
class LatestReference:
    """A recent blockhash and the last block height at which it is accepted."""

    blockhash: str
    last_valid_block_height: int


@dataclass(frozen=True)
class LedgerConfirmation:
    """What the ledger reported for a signature.

    ``err`` carries the on-chain execution error, if any. ``pending`` means the
    ledger gave no final status before the blockhash window closed.
    """

    signature: str
    err: Any = None
    pending: bool = False

    @property
    def succeeded(self) -> bool:
        return not self.pending and self.err is None


class LedgerClient(Protocol):
    async def get_balance(self, address: str) -> int: ...

    async def get_latest_reference(self) -> LatestReference: ...

    async def submit(self, signed_transaction: bytes) -> str: ...

    async def confirm(
        self, signature: str, blockhash: str, last_valid_block_height: int
    ) -> LedgerConfirmation: ...

    async def request_test_funds(self, address: str, lamports: int) -> str: ...

    async def close(self) -> None: ...


class SolanaLedgerClient:
    """LedgerClient backed by ``solana.rpc.async_api.AsyncClient``."""

    def __init__(
        self,
        endpoint: str,
        commitment: str = COMMITMENT,
        poll_seconds: float = 0.5,
        client: Optional[AsyncClient] = None,
    ) -> None:
        self.endpoint = endpoint
        self.commitment = Commitment(commitment)
        self.poll_seconds = poll_seconds
        self._client = client or AsyncClient(endpoint, commitment=self.commitment)

    async def get_balance(self, address: str) -> int:
        pubkey = codec.parse_address(address)
        try:
            response = await self._client.get_balance(pubkey, commitment=self.commitment)
        except _READ_ERRORS as exc:
            raise NetworkError(f"Balance lookup failed for {address}", exc) from exc
        return int(response.value)

    async def get_latest_reference(self) -> LatestReference:
        try:
            response = await self._client.get_latest_blockhash(commitment=self.commitment)
        except _READ_ERRORS as exc:
            raise NetworkError("Could not fetch a recent blockhash", exc) from exc
        return LatestReference(
            blockhash=str(response.value.blockhash),
            last_valid_block_height=int(response.value.last_valid_block_height),
        )

    async def submit(self, signed_transaction: bytes) -> str:
        opts = TxOpts(skip_preflight=False, preflight_commitment=self.commitment)
        try:
            response = await self._client.send_raw_transaction(signed_transaction, opts=opts)
        except _TRANSPORT_ERRORS + (RPCNoResultException,) as exc:
            raise NetworkError("Transaction submission failed", exc) from exc
        except RPCException as exc:
            # Preflight simulation ran the transaction and the ledger refused it.
            raise LedgerRejectionError(
                "Ledger rejected the transaction", detail=_rpc_detail(exc)
            ) from exc
        return str(response.value)

    async def confirm(
        self, signature: str, blockhash: str, last_valid_block_height: int
    ) -> LedgerConfirmation:
        logger.debug(
            "Awaiting %s for blockhash %s (valid until height %d)",
            signature,
            blockhash,
            last_valid_block_height,
        )
        try:
            response = await self._client.confirm_transaction(
                Signature.from_string(signature),
                commitment=self.commitment,
                sleep_seconds=self.poll_seconds,
                last_valid_block_height=last_valid_block_height,
            )
        except (UnconfirmedTxError, TransactionExpiredBlockheightExceededError):
            return LedgerConfirmation(signature=signature, pending=True)
        except _READ_ERRORS as exc:
            raise NetworkError(f"Confirmation lookup failed for {signature}", exc) from exc

        status = response.value[0] if response.value else None
        if status is None:
            return LedgerConfirmation(signature=signature, pending=True)
        return LedgerConfirmation(signature=signature, err=status.err)

    async def request_test_funds(self, address: str, lamports: int) -> str:
        pubkey = codec.parse_address(address)
        try:
            response = await self._client.request_airdrop(pubkey, lamports, commitment=self.commitment)
        except _TRANSPORT_ERRORS + (RPCNoResultException,) as exc:
            raise NetworkError(f"Airdrop request failed for {address}", exc) from exc
        except RPCException as exc:
            raise LedgerRejectionError(
                "Faucet refused the airdrop", detail=_rpc_detail(exc)
            ) from exc
        return str(response.value)

    async def close(self) -> None:
        await self._client.close()

