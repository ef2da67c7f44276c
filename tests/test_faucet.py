import asyncio
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from fakes import FakeLedger, funded_book
from keypair_console.errors import ConfirmationTimeoutError, LedgerRejectionError, NotFoundError, ValidationError
from keypair_console.faucet import FaucetRequester


def test_amount_over_cap_rejected_before_network():
    book, record_id = funded_book(balance=0.0)
    ledger = FakeLedger()

    with pytest.raises(ValidationError):
        asyncio.run(FaucetRequester(book, ledger).request_funds(record_id, "3"))

    assert ledger.calls == []


@pytest.mark.parametrize("amount", ["0", "-1", "", "lots"])
def test_non_positive_amounts_rejected(amount):
    book, record_id = funded_book(balance=0.0)
    ledger = FakeLedger()

    with pytest.raises(ValidationError):
        asyncio.run(FaucetRequester(book, ledger).request_funds(record_id, amount))

    assert ledger.calls == []


def test_unknown_record():
    book, _ = funded_book()
    ledger = FakeLedger()

    with pytest.raises(NotFoundError):
        asyncio.run(FaucetRequester(book, ledger).request_funds(31337, "1"))

    assert ledger.calls == []


def test_cap_amount_is_credited_and_refreshed():
    book, record_id = funded_book(balance=0.0)
    ledger = FakeLedger()

    result = asyncio.run(FaucetRequester(book, ledger).request_funds(record_id, "2"))

    assert result.lamports == 2_000_000_000
    assert result.balance == 2.0
    assert book.get(record_id).balance == 2.0
    assert ledger.call_names() == ["get_latest_reference", "request_test_funds", "confirm", "get_balance"]


def test_faucet_confirmation_times_out():
    book, record_id = funded_book(balance=0.0)
    ledger = FakeLedger()
    ledger.never_confirm = True

    with pytest.raises(ConfirmationTimeoutError):
        asyncio.run(FaucetRequester(book, ledger, confirmation_timeout=0.05).request_funds(record_id, "1"))

    assert book.get(record_id).balance == 0.0


def test_faucet_on_chain_failure():
    book, record_id = funded_book(balance=0.0)
    ledger = FakeLedger()
    ledger.confirm_err = "AccountInUse"

    with pytest.raises(LedgerRejectionError):
        asyncio.run(FaucetRequester(book, ledger).request_funds(record_id, "0.5"))
