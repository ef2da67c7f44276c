"""SOL amount parsing and lamport conversion."""

from __future__ import annotations

from decimal import ROUND_DOWN, Decimal, InvalidOperation
from typing import Union

from .config import LAMPORTS_PER_SOL
from .errors import ValidationError


def parse_sol(value: Union[str, int, float, Decimal]) -> Decimal:
    """Parse a user-entered SOL amount as a positive finite decimal."""

    if isinstance(value, bool):
        raise ValidationError(f"Invalid amount: {value!r}")
    text = value.strip() if isinstance(value, str) else str(value)
    if not text:
        raise ValidationError("Amount is required")
    try:
        amount = Decimal(text)
    except InvalidOperation as exc:
        raise ValidationError(f"Amount is not a number: {text!r}", exc) from exc
    if not amount.is_finite() or amount <= 0:
        raise ValidationError("Amount must be a positive number")
    return amount


def sol_to_lamports(amount: Decimal) -> int:
    """Convert SOL to whole lamports, rounding down."""

    lamports = int((amount * LAMPORTS_PER_SOL).to_integral_value(rounding=ROUND_DOWN))
    if lamports <= 0:
        raise ValidationError(f"Amount {amount} SOL is smaller than one lamport")
    return lamports


def lamports_to_sol(lamports: int) -> float:
    return lamports / LAMPORTS_PER_SOL
