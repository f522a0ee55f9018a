"""Wallet ledger exports"""

from .models import (
    DEBIT_TYPES,
    DEPOSIT,
    PAYMENT,
    TRANSFER,
    WALLET_TRANSACTION_TYPES,
    WITHDRAW,
    WalletAccount,
    WalletEntryDraft,
    WalletTransaction,
)
from .repository import WalletRepository
from .service import WalletLedger

__all__ = [
    "DEBIT_TYPES",
    "DEPOSIT",
    "PAYMENT",
    "TRANSFER",
    "WALLET_TRANSACTION_TYPES",
    "WITHDRAW",
    "WalletAccount",
    "WalletEntryDraft",
    "WalletLedger",
    "WalletRepository",
    "WalletTransaction",
]
