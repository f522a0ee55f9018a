from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Sequence

from paycore.modules.wallets import WalletAccount, WalletEntryDraft, WalletTransaction

from .base import InMemoryStore, detached


class InMemoryWalletRepository(InMemoryStore):
    def __init__(self) -> None:
        super().__init__()
        self._accounts: dict[str, WalletAccount] = {}
        self._entries: dict[str, list[WalletTransaction]] = {}

    async def get_account(self, account_id: str) -> WalletAccount | None:
        async with self._lock:
            return detached(self._accounts.get(account_id))

    async def create_account(self, account_id: str, created_at: datetime) -> WalletAccount:
        async with self._lock:
            account = self._accounts.get(account_id)
            if account is None:
                account = WalletAccount(account_id=account_id, balance=Decimal("0"), created_at=created_at, updated_at=created_at)
                self._accounts[account_id] = account
                self._entries[account_id] = []
            return detached(account)

    async def apply(self, account_id: str, entry: WalletEntryDraft) -> WalletTransaction | None:
        async with self._lock:
            account = self._accounts[account_id]
            balance = account.balance + entry.signed_amount
            if balance < 0:
                return None
            account.balance = balance
            account.updated_at = entry.timestamp
            transaction = WalletTransaction(
                id=entry.id,
                account_id=account_id,
                type=entry.type,
                amount=entry.amount,
                balance_after=balance,
                timestamp=entry.timestamp,
                reference=entry.reference,
                description=entry.description,
                counterparty=entry.counterparty,
            )
            self._entries[account_id].append(transaction)
            return detached(transaction)

    async def history(self, account_id: str, limit: int) -> Sequence[WalletTransaction]:
        async with self._lock:
            entries = self._entries.get(account_id, [])
            return [detached(entry) for entry in reversed(entries[-limit:])]

    async def get_transaction(self, account_id: str, transaction_id: str) -> WalletTransaction | None:
        async with self._lock:
            for entry in self._entries.get(account_id, []):
                if entry.id == transaction_id:
                    return detached(entry)
            return None

    async def ledger_total(self, account_id: str) -> Decimal:
        async with self._lock:
            return sum((entry.signed_amount for entry in self._entries.get(account_id, [])), Decimal("0"))
