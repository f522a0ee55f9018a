from __future__ import annotations

from typing import Any, Mapping, Sequence

from paycore.modules.transactions import Transaction, TransactionDraft

from .base import InMemoryStore, detached, with_changes


class InMemoryTransactionRepository(InMemoryStore):
    def __init__(self) -> None:
        super().__init__()
        self._rows: dict[str, Transaction] = {}

    async def create(self, draft: TransactionDraft) -> Transaction:
        async with self._lock:
            if draft.transaction_id in self._rows:
                raise ValueError(f"Duplicate transaction id {draft.transaction_id}")
            transaction = Transaction.from_draft(self._next_id(), detached(draft))
            self._rows[transaction.transaction_id] = transaction
            return detached(transaction)

    async def get_by_transaction_id(self, transaction_id: str) -> Transaction | None:
        async with self._lock:
            return detached(self._rows.get(transaction_id))

    async def get_by_id(self, id: int) -> Transaction | None:
        async with self._lock:
            for transaction in self._rows.values():
                if transaction.id == id:
                    return detached(transaction)
            return None

    async def list_by_order(self, order_id: int) -> Sequence[Transaction]:
        async with self._lock:
            return [detached(row) for row in self._rows.values() if row.order_id == order_id]

    async def list_page(self, offset: int, limit: int) -> tuple[Sequence[Transaction], int]:
        async with self._lock:
            rows = sorted(self._rows.values(), key=lambda row: row.id, reverse=True)
            return [detached(row) for row in rows[offset : offset + limit]], len(rows)

    async def update(self, transaction_id: str, changes: Mapping[str, Any]) -> Transaction | None:
        async with self._lock:
            current = self._rows.get(transaction_id)
            if current is None:
                return None
            updated = with_changes(current, changes)
            self._rows[transaction_id] = updated
            return detached(updated)
