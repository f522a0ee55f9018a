"""SQLAlchemy implementation for the wallet ledger"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Sequence

from sqlalchemy import case, desc, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from paycore.infrastructure.database.base import from_cents, to_cents
from paycore.infrastructure.database.models import WalletAccountRecord, WalletTransactionRecord
from paycore.modules.wallets import DEBIT_TYPES, WalletAccount, WalletEntryDraft, WalletTransaction


def _account(row: WalletAccountRecord) -> WalletAccount:
    return WalletAccount(
        account_id=row.account_id,
        balance=from_cents(row.balance_cents),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _entry(row: WalletTransactionRecord) -> WalletTransaction:
    return WalletTransaction(
        id=row.id,
        account_id=row.account_id,
        type=row.type,
        amount=from_cents(row.amount_cents),
        balance_after=from_cents(row.balance_after_cents),
        timestamp=row.timestamp,
        reference=row.reference,
        description=row.description,
        counterparty=row.counterparty,
    )


class SqlWalletRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_account(self, account_id: str) -> WalletAccount | None:
        row = await self.session.get(WalletAccountRecord, account_id)
        return _account(row) if row else None

    async def create_account(self, account_id: str, created_at: datetime) -> WalletAccount:
        row = WalletAccountRecord(account_id=account_id, balance_cents=0, created_at=created_at, updated_at=created_at)
        self.session.add(row)
        try:
            await self.session.flush()
        except IntegrityError:
            await self.session.rollback()
            row = await self.session.get(WalletAccountRecord, account_id)
            if row is None:
                raise
        return _account(row)

    async def apply(self, account_id: str, entry: WalletEntryDraft) -> WalletTransaction | None:
        delta = to_cents(entry.signed_amount)
        stmt = update(WalletAccountRecord).where(WalletAccountRecord.account_id == account_id)
        if delta < 0:
            # The balance floor is part of the UPDATE so it holds across processes.
            stmt = stmt.where(WalletAccountRecord.balance_cents + delta >= 0)
        stmt = (
            stmt.values(balance_cents=WalletAccountRecord.balance_cents + delta, updated_at=entry.timestamp)
            .execution_options(synchronize_session=False)
            .returning(WalletAccountRecord.balance_cents)
        )
        result = await self.session.execute(stmt)
        balance_cents = result.scalar_one_or_none()
        if balance_cents is None:
            return None

        row = WalletTransactionRecord(
            id=entry.id,
            account_id=account_id,
            type=entry.type,
            amount_cents=to_cents(entry.amount),
            balance_after_cents=balance_cents,
            timestamp=entry.timestamp,
            reference=entry.reference,
            description=entry.description,
            counterparty=entry.counterparty,
        )
        self.session.add(row)
        await self.session.flush()
        return _entry(row)

    async def history(self, account_id: str, limit: int) -> Sequence[WalletTransaction]:
        stmt = (
            select(WalletTransactionRecord)
            .where(WalletTransactionRecord.account_id == account_id)
            .order_by(desc(WalletTransactionRecord.seq))
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return [_entry(row) for row in result.scalars().all()]

    async def get_transaction(self, account_id: str, transaction_id: str) -> WalletTransaction | None:
        stmt = select(WalletTransactionRecord).where(
            WalletTransactionRecord.account_id == account_id,
            WalletTransactionRecord.id == transaction_id,
        )
        result = await self.session.execute(stmt)
        row = result.scalars().first()
        return _entry(row) if row else None

    async def ledger_total(self, account_id: str) -> Decimal:
        signed = case(
            (WalletTransactionRecord.type.in_(sorted(DEBIT_TYPES)), -WalletTransactionRecord.amount_cents),
            else_=WalletTransactionRecord.amount_cents,
        )
        stmt = select(func.coalesce(func.sum(signed), 0)).where(WalletTransactionRecord.account_id == account_id)
        total = await self.session.scalar(stmt)
        return from_cents(int(total or 0))
