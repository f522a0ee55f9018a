"""Card data checks performed before authorisation."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from typing import Optional

from paycore.core.errors import ValidationError

CARD_BRANDS = {"4": "visa", "5": "mastercard", "3": "amex", "6": "discover"}

_EXPIRY_PATTERN = re.compile(r"^(0[1-9]|1[0-2])/(\d{2})$")


@dataclass(slots=True, frozen=True)
class CardDetails:
    number: str
    expiry: str
    cvv: str
    holder_name: str

    @property
    def digits(self) -> str:
        return re.sub(r"\s", "", self.number or "")

    @property
    def last4(self) -> str:
        return self.digits[-4:]

    @property
    def brand(self) -> str:
        return card_brand(self.digits)


def card_brand(number: str) -> str:
    return CARD_BRANDS.get((number or "")[:1], "unknown")


def validate_card(card: CardDetails, today: Optional[date] = None) -> None:
    """Raise :class:`ValidationError` for the first problem found on ``card``.

    A card stays valid through the last day of its expiry month.
    """
    if len(card.digits) < 13:
        raise ValidationError("Invalid card number", code="INVALID_CARD_NUMBER")
    match = _EXPIRY_PATTERN.match(card.expiry or "")
    if match is None:
        raise ValidationError("Invalid expiry date", code="INVALID_EXPIRY_DATE")
    if not card.cvv or len(card.cvv) < 3:
        raise ValidationError("Invalid CVV", code="INVALID_CVV")
    if not card.holder_name or len(card.holder_name.strip()) < 2:
        raise ValidationError("Invalid cardholder name", code="INVALID_CARDHOLDER_NAME")

    today = today or date.today()
    month, year = int(match.group(1)), 2000 + int(match.group(2))
    if (year, month) < (today.year, today.month):
        raise ValidationError("Card has expired", code="CARD_EXPIRED")


__all__ = ["CARD_BRANDS", "CardDetails", "card_brand", "validate_card"]
