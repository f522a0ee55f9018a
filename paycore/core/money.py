"""Amount parsing shared by every money-moving component."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Union

from .errors import InvalidAmountError

AmountLike = Union[Decimal, int, float, str]

CENT = Decimal("0.01")


def to_amount(value: AmountLike | None, *, label: str = "Amount") -> Decimal:
    """Parse ``value`` into a positive two-place ``Decimal``.

    Floats go through ``str`` so ``0.1`` stays ``0.10``.
    """
    if value is None or isinstance(value, bool):
        raise InvalidAmountError(f"{label} is required")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise InvalidAmountError(f"{label} must be a number", details={"value": str(value)}) from None
    if not amount.is_finite() or amount.quantize(CENT) <= 0:
        raise InvalidAmountError(f"{label} must be greater than zero", details={"value": str(value)})
    return amount.quantize(CENT)


__all__ = ["AmountLike", "CENT", "to_amount"]
