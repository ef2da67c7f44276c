"""Timer-bound wait for ledger confirmations."""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Any, Awaitable

from .ledger import LedgerConfirmation

logger = logging.getLogger(__name__)


class ConfirmationState(enum.Enum):
    CONFIRMED = "confirmed"
    REJECTED = "rejected"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True)
class ConfirmationResult:
    state: ConfirmationState
    signature: str
    err: Any = None


# Lookups abandoned after a timeout, held until they finish or are drained.
_abandoned: set["asyncio.Future[LedgerConfirmation]"] = set()


def _discard_late_result(task: "asyncio.Future[LedgerConfirmation]") -> None:
    _abandoned.discard(task)
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.debug("Abandoned confirmation finished with %s", exc)
    else:
        logger.debug("Abandoned confirmation finished with %s", task.result())


async def race_confirmation(
    signature: str,
    confirmation: Awaitable[LedgerConfirmation],
    timeout: float,
) -> ConfirmationResult:
    """Wait for ``confirmation`` for at most ``timeout`` seconds.

    When the timer wins, the lookup keeps running in the background but its
    outcome is never reported; the caller gets ``TIMED_OUT``. A ledger that
    reports no final status is also ``TIMED_OUT``: the outcome is unknown.
    Transport errors from the lookup propagate unchanged.
    """

    task = asyncio.ensure_future(confirmation)
    done, _ = await asyncio.wait({task}, timeout=timeout)
    if task not in done:
        _abandoned.add(task)
        task.add_done_callback(_discard_late_result)
        logger.warning("Confirmation for %s timed out after %gs", signature, timeout)
        return ConfirmationResult(ConfirmationState.TIMED_OUT, signature)

    outcome: LedgerConfirmation = task.result()
    if outcome.pending:
        return ConfirmationResult(ConfirmationState.TIMED_OUT, signature)
    if outcome.succeeded:
        return ConfirmationResult(ConfirmationState.CONFIRMED, signature)
    return ConfirmationResult(ConfirmationState.REJECTED, signature, err=outcome.err)


def abandoned_count() -> int:
    return len(_abandoned)


async def drain_abandoned() -> None:
    """Cancel abandoned lookups running on the current loop and wait for them to stop."""

    loop = asyncio.get_running_loop()
    pending = [task for task in _abandoned if task.get_loop() is loop]
    for task in pending:
        task.cancel()
    if pending:
        await asyncio.gather(*pending, return_exceptions=True)
        logger.debug("Cancelled %d abandoned confirmation lookup(s)", len(pending))

