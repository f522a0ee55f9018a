"""SQLAlchemy implementation for the transaction ledger"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any, Mapping, Sequence

from sqlalchemy import desc, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from paycore.infrastructure.database.base import from_cents, to_cents
from paycore.infrastructure.database.models import TransactionRecord
from paycore.modules.transactions import Transaction, TransactionDraft, TransactionErrorInfo


def _to_domain(row: TransactionRecord) -> Transaction:
    return Transaction(
        id=row.id,
        transaction_id=row.transaction_id,
        order_id=row.order_id,
        amount=from_cents(row.amount_cents),
        payment_method=row.payment_method,
        status=row.status,
        timestamp=row.timestamp,
        retry_count=row.retry_count,
        error=TransactionErrorInfo(**row.error) if row.error else None,
        gateway_response=row.gateway_response,
        phone=row.phone,
        card_last4=row.card_last4,
        card_brand=row.card_brand,
        original_transaction_id=row.original_transaction_id,
        proof_file_name=row.proof_file_name,
        verified_at=row.verified_at,
        verification_data=row.verification_data,
        updated_at=row.updated_at,
    )


def _column_values(changes: Mapping[str, Any]) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for key, value in changes.items():
        if key == "amount":
            values["amount_cents"] = to_cents(value)
        elif key == "error":
            values["error"] = asdict(value) if value is not None else None
        else:
            values[key] = value
    return values


class SqlTransactionRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, draft: TransactionDraft) -> Transaction:
        row = TransactionRecord(
            transaction_id=draft.transaction_id,
            order_id=draft.order_id,
            amount_cents=to_cents(draft.amount),
            payment_method=draft.payment_method,
            status=draft.status,
            timestamp=draft.timestamp,
            retry_count=draft.retry_count,
            error=asdict(draft.error) if draft.error else None,
            gateway_response=draft.gateway_response,
            phone=draft.phone,
            card_last4=draft.card_last4,
            card_brand=draft.card_brand,
            original_transaction_id=draft.original_transaction_id,
        )
        self.session.add(row)
        await self.session.flush()
        await self.session.refresh(row)
        return _to_domain(row)

    async def get_by_transaction_id(self, transaction_id: str) -> Transaction | None:
        stmt = select(TransactionRecord).where(TransactionRecord.transaction_id == transaction_id)
        result = await self.session.execute(stmt)
        row = result.scalars().first()
        return _to_domain(row) if row else None

    async def get_by_id(self, id: int) -> Transaction | None:
        row = await self.session.get(TransactionRecord, id)
        return _to_domain(row) if row else None

    async def list_by_order(self, order_id: int) -> Sequence[Transaction]:
        stmt = select(TransactionRecord).where(TransactionRecord.order_id == order_id).order_by(TransactionRecord.id)
        result = await self.session.execute(stmt)
        return [_to_domain(row) for row in result.scalars().all()]

    async def list_page(self, offset: int, limit: int) -> tuple[Sequence[Transaction], int]:
        total = await self.session.scalar(select(func.count()).select_from(TransactionRecord))
        stmt = select(TransactionRecord).order_by(desc(TransactionRecord.id)).offset(offset).limit(limit)
        result = await self.session.execute(stmt)
        return [_to_domain(row) for row in result.scalars().all()], int(total or 0)

    async def update(self, transaction_id: str, changes: Mapping[str, Any]) -> Transaction | None:
        stmt = (
            update(TransactionRecord)
            .where(TransactionRecord.transaction_id == transaction_id)
            .values(**_column_values(changes))
            .execution_options(synchronize_session="fetch")
            .returning(TransactionRecord)
        )
        result = await self.session.execute(stmt)
        row = result.scalars().first()
        return _to_domain(row) if row else None
