import asyncio
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from solders.hash import Hash
from solders.keypair import Keypair
from solders.signature import Signature
from solders.transaction import Transaction

from fakes import FakeLedger, funded_book, off_curve_address
from keypair_console.config import CONFIRMATION_TIMEOUT_SECONDS
from keypair_console.errors import (
    ConfirmationTimeoutError,
    InsufficientFundsError,
    LedgerRejectionError,
    NetworkError,
    NotFoundError,
    ValidationError,
)
from keypair_console.models import TransferRequest
from keypair_console.transfer import TransferOrchestrator


def _destination() -> str:
    return str(Keypair().pubkey())


def _run_transfer(orchestrator, request):
    return asyncio.run(orchestrator.transfer(request))


def test_zero_amount_rejected_before_network():
    book, record_id = funded_book()
    ledger = FakeLedger()

    with pytest.raises(ValidationError):
        _run_transfer(TransferOrchestrator(book, ledger), TransferRequest(record_id, _destination(), "0"))

    assert ledger.calls == []


@pytest.mark.parametrize(
    "source_id, destination, amount",
    [
        (None, "dest", "1"),
        (1, "", "1"),
        (1, "dest", ""),
        (1, "dest", "abc"),
        (1, "dest", "-1"),
        (1, "dest", "inf"),
        (1, "dest", "0.0000000001"),
    ],
)
def test_missing_or_malformed_inputs(source_id, destination, amount):
    book, _ = funded_book()
    ledger = FakeLedger()

    with pytest.raises(ValidationError):
        _run_transfer(TransferOrchestrator(book, ledger), TransferRequest(source_id, destination, amount))

    assert ledger.calls == []


def test_insufficient_cached_balance():
    book, record_id = funded_book(balance=0.01)
    ledger = FakeLedger()

    with pytest.raises(InsufficientFundsError):
        _run_transfer(TransferOrchestrator(book, ledger), TransferRequest(record_id, _destination(), "0.02"))

    assert ledger.calls == []


def test_fee_reserve_counts_against_balance():
    book, record_id = funded_book(balance=0.1)
    orchestrator = TransferOrchestrator(book, FakeLedger())

    with pytest.raises(InsufficientFundsError):
        orchestrator.check(TransferRequest(record_id, _destination(), "0.1"))
    orchestrator.check(TransferRequest(record_id, _destination(), "0.099995"))


def test_off_curve_destination_rejected_before_construction():
    book, record_id = funded_book()
    ledger = FakeLedger()

    with pytest.raises(ValidationError):
        _run_transfer(TransferOrchestrator(book, ledger), TransferRequest(record_id, off_curve_address(), "0.1"))

    assert ledger.calls == []


def test_malformed_destination():
    book, record_id = funded_book()
    ledger = FakeLedger()

    with pytest.raises(ValidationError):
        _run_transfer(TransferOrchestrator(book, ledger), TransferRequest(record_id, "not-a-key", "0.1"))

    assert ledger.calls == []


def test_unknown_source():
    book, _ = funded_book()

    with pytest.raises(NotFoundError):
        _run_transfer(TransferOrchestrator(book, FakeLedger()), TransferRequest(424242, _destination(), "0.1"))


def test_successful_transfer_signs_with_fresh_blockhash_and_refreshes():
    book, record_id = funded_book(balance=1.0)
    source = book.get(record_id)
    ledger = FakeLedger({source.public_key: 750_000_000})

    result = _run_transfer(
        TransferOrchestrator(book, ledger), TransferRequest(record_id, _destination(), "0.25")
    )

    assert ledger.call_names() == ["get_latest_reference", "submit", "confirm", "get_balance"]
    transaction = Transaction.from_bytes(ledger.submitted[0])
    assert transaction.message.recent_blockhash == Hash.from_string(ledger.reference.blockhash)
    assert str(transaction.message.account_keys[0]) == source.public_key
    assert transaction.signatures[0] == Signature.from_string(result.signature)
    assert ledger.calls[2][1] == (
        result.signature,
        ledger.reference.blockhash,
        ledger.reference.last_valid_block_height,
    )
    assert result.lamports == 250_000_000
    assert result.blockhash == ledger.reference.blockhash
    assert result.balance == 0.75
    assert book.get(record_id).balance == 0.75


def test_confirmation_timeout_reports_unknown_outcome():
    book, record_id = funded_book(balance=1.0)
    ledger = FakeLedger({book.get(record_id).public_key: 1})
    ledger.never_confirm = True
    orchestrator = TransferOrchestrator(book, ledger, confirmation_timeout=0.05)

    with pytest.raises(ConfirmationTimeoutError) as info:
        _run_transfer(orchestrator, TransferRequest(record_id, _destination(), "0.5"))

    assert not isinstance(info.value, LedgerRejectionError)
    assert info.value.signature
    assert "get_balance" not in ledger.call_names()
    assert book.get(record_id).balance == 1.0


def test_pending_ledger_status_is_unknown_not_failed():
    book, record_id = funded_book(balance=1.0)
    ledger = FakeLedger()
    ledger.confirm_pending = True

    with pytest.raises(ConfirmationTimeoutError):
        _run_transfer(TransferOrchestrator(book, ledger), TransferRequest(record_id, _destination(), "0.5"))


def test_on_chain_error_is_a_rejection():
    book, record_id = funded_book(balance=1.0)
    ledger = FakeLedger()
    ledger.confirm_err = {"InstructionError": [0, {"Custom": 1}]}

    with pytest.raises(LedgerRejectionError) as info:
        _run_transfer(TransferOrchestrator(book, ledger), TransferRequest(record_id, _destination(), "0.5"))

    assert info.value.detail == ledger.confirm_err
    assert "get_balance" not in ledger.call_names()
    assert book.get(record_id).balance == 1.0


def test_submission_failure_stops_pipeline():
    book, record_id = funded_book(balance=1.0)
    ledger = FakeLedger()
    ledger.submit_error = NetworkError("connection reset")

    with pytest.raises(NetworkError):
        _run_transfer(TransferOrchestrator(book, ledger), TransferRequest(record_id, _destination(), "0.5"))

    assert ledger.call_names() == ["get_latest_reference", "submit"]


def test_confirmed_transfer_survives_failed_refresh():
    book, record_id = funded_book(balance=1.0)
    ledger = FakeLedger()
    ledger.balance_error = NetworkError("rpc down")

    result = _run_transfer(TransferOrchestrator(book, ledger), TransferRequest(record_id, _destination(), "0.5"))

    assert result.balance is None
    assert book.get(record_id).balance == 1.0


def test_default_confirmation_timeout():
    book, _ = funded_book()

    assert TransferOrchestrator(book, FakeLedger()).confirmation_timeout == CONFIRMATION_TIMEOUT_SECONDS == 30
