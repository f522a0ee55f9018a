"""Repository protocol for wallet accounts."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Protocol, Sequence

from .models import WalletAccount, WalletEntryDraft, WalletTransaction


class WalletRepository(Protocol):
    async def get_account(self, account_id: str) -> WalletAccount | None:
        ...

    async def create_account(self, account_id: str, created_at: datetime) -> WalletAccount:
        ...

    async def apply(self, account_id: str, entry: WalletEntryDraft) -> WalletTransaction | None:
        """Move the balance by ``entry.signed_amount`` and append ``entry``.

        Returns ``None`` without touching anything when the result would be
        negative. Check and write happen as one step.
        """
        ...

    async def history(self, account_id: str, limit: int) -> Sequence[WalletTransaction]:
        ...

    async def get_transaction(self, account_id: str, transaction_id: str) -> WalletTransaction | None:
        ...

    async def ledger_total(self, account_id: str) -> Decimal:
        """Sum of signed amounts of every entry on the account."""
        ...
