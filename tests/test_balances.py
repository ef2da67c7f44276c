import asyncio
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from fakes import FakeLedger, funded_book
from keypair_console.balances import BalanceSynchronizer
from keypair_console.errors import NetworkError, NotFoundError


def test_refresh_converts_lamports_to_sol():
    book, record_id = funded_book(balance=0.0)
    record = book.get(record_id)
    ledger = FakeLedger({record.public_key: 2_500_000_000})

    updated = asyncio.run(BalanceSynchronizer(book, ledger).refresh(record_id))

    assert updated.balance == 2.5
    assert book.get(record_id).balance == 2.5
    assert updated.private_key == record.private_key


def test_failed_lookup_keeps_last_known_balance():
    book, record_id = funded_book(balance=0.75)
    ledger = FakeLedger()
    ledger.balance_error = NetworkError("rpc down")

    with pytest.raises(NetworkError):
        asyncio.run(BalanceSynchronizer(book, ledger).refresh(record_id))

    assert book.get(record_id).balance == 0.75


def test_unknown_record_is_reported_without_ledger_call():
    book, _ = funded_book()
    ledger = FakeLedger()

    with pytest.raises(NotFoundError):
        asyncio.run(BalanceSynchronizer(book, ledger).refresh(999))

    assert ledger.calls == []


def test_refresh_does_not_undo_mutations_made_while_waiting():
    book, record_id = funded_book(balance=0.0)
    other = book.create()
    ledger = FakeLedger({book.get(record_id).public_key: 1_000_000_000})

    async def scenario():
        ledger.balance_gate = asyncio.Event()
        pending = asyncio.ensure_future(BalanceSynchronizer(book, ledger).refresh(record_id))
        await asyncio.sleep(0)
        book.delete(other.id)
        created = book.create()
        ledger.balance_gate.set()
        await pending
        return created

    created = asyncio.run(scenario())

    ids = [record.id for record in book.list()]
    assert ids == [record_id, created.id]
    assert book.get(record_id).balance == 1.0


def test_record_deleted_mid_refresh_stays_deleted():
    book, record_id = funded_book()
    ledger = FakeLedger()

    async def scenario():
        ledger.balance_gate = asyncio.Event()
        pending = asyncio.ensure_future(BalanceSynchronizer(book, ledger).refresh(record_id))
        await asyncio.sleep(0)
        book.delete(record_id)
        ledger.balance_gate.set()
        await pending

    with pytest.raises(NotFoundError):
        asyncio.run(scenario())
    assert book.get(record_id) is None
