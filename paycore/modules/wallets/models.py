"""Wallet ledger models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

DEPOSIT = "deposit"
WITHDRAW = "withdraw"
TRANSFER = "transfer"
PAYMENT = "payment"

WALLET_TRANSACTION_TYPES = (DEPOSIT, WITHDRAW, TRANSFER, PAYMENT)
DEBIT_TYPES = frozenset({WITHDRAW, TRANSFER, PAYMENT})


@dataclass(slots=True)
class WalletAccount:
    account_id: str
    balance: Decimal
    created_at: datetime
    updated_at: datetime


@dataclass(slots=True)
class WalletEntryDraft:
    id: str
    type: str
    amount: Decimal
    timestamp: datetime
    reference: str
    description: Optional[str] = None
    counterparty: Optional[str] = None

    @property
    def signed_amount(self) -> Decimal:
        return -self.amount if self.type in DEBIT_TYPES else self.amount


@dataclass(slots=True)
class WalletTransaction:
    id: str
    account_id: str
    type: str
    amount: Decimal
    balance_after: Decimal
    timestamp: datetime
    reference: str
    description: Optional[str] = None
    counterparty: Optional[str] = None

    @property
    def signed_amount(self) -> Decimal:
        return -self.amount if self.type in DEBIT_TYPES else self.amount
