"""Repository protocol for the transaction ledger."""

from __future__ import annotations

from typing import Any, Mapping, Protocol, Sequence

from .models import Transaction, TransactionDraft


class TransactionRepository(Protocol):
    async def create(self, draft: TransactionDraft) -> Transaction:
        """Append a transaction, assigning the next numeric id atomically."""
        ...

    async def get_by_transaction_id(self, transaction_id: str) -> Transaction | None:
        ...

    async def get_by_id(self, id: int) -> Transaction | None:
        ...

    async def list_by_order(self, order_id: int) -> Sequence[Transaction]:
        ...

    async def list_page(self, offset: int, limit: int) -> tuple[Sequence[Transaction], int]:
        ...

    async def update(self, transaction_id: str, changes: Mapping[str, Any]) -> Transaction | None:
        ...
