"""Checkout exports"""

from .cards import CARD_BRANDS, CardDetails, card_brand, validate_card
from .service import CheckoutService

__all__ = ["CARD_BRANDS", "CardDetails", "CheckoutService", "card_brand", "validate_card"]
