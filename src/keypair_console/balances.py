"""Balance refresh for single address book records."""

from __future__ import annotations

import logging

from .address_book import AddressBook
from .amount import lamports_to_sol
from .errors import NotFoundError
from .ledger import LedgerClient
from .models import KeypairRecord

logger = logging.getLogger(__name__)


class BalanceSynchronizer:
    """Pull the ledger balance for one record into the address book."""

    def __init__(self, book: AddressBook, ledger: LedgerClient) -> None:
        self.book = book
        self.ledger = ledger

    async def refresh(self, record_id: int) -> KeypairRecord:
        """Fetch and store the balance of ``record_id``.

        Lookup failures propagate and leave the cached balance as it was.
        The write targets the record by id after the lookup returns, so a
        concurrent delete or create is never undone.
        """

        record = self.book.get(record_id)
        if record is None:
            raise NotFoundError(record_id)

        lamports = await self.ledger.get_balance(record.public_key)

        updated = self.book.set_balance(record_id, lamports_to_sol(lamports))
        if updated is None:
            logger.info("Record %s was removed while its balance was loading", record_id)
            raise NotFoundError(record_id)
        logger.debug("Balance of %s is %s SOL", updated.short_key(), updated.balance)
        return updated
