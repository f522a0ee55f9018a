"""SQLAlchemy implementation for recurring plans and scheduled payments"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional, Sequence

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from paycore.infrastructure.database.base import from_cents, to_cents
from paycore.infrastructure.database.models import RecurringPaymentRecord, ScheduledPaymentRecord
from paycore.modules.recurring import (
    PENDING,
    RecurringPayment,
    RecurringPlanDraft,
    ScheduledPayment,
    ScheduledPaymentDraft,
)

_PLAN_COLUMNS = {
    "amount": "amount_cents",
    "last_payment_amount": "last_payment_amount_cents",
    "metadata": "meta",
}
_MONEY_FIELDS = {"amount", "last_payment_amount"}


def _plan(row: RecurringPaymentRecord) -> RecurringPayment:
    return RecurringPayment(
        id=row.id,
        name=row.name,
        vendor_id=row.vendor_id,
        vendor_name=row.vendor_name,
        amount=from_cents(row.amount_cents),
        frequency=row.frequency,
        start_date=row.start_date,
        next_payment_date=row.next_payment_date,
        created_at=row.created_at,
        updated_at=row.updated_at,
        end_date=row.end_date,
        status=row.status,
        description=row.description,
        payment_method=row.payment_method,
        auto_retry=row.auto_retry,
        max_retries=row.max_retries,
        retry_interval_hours=row.retry_interval_hours,
        total_payments=row.total_payments,
        successful_payments=row.successful_payments,
        failed_payments=row.failed_payments,
        last_payment_date=row.last_payment_date,
        last_payment_status=row.last_payment_status,
        last_payment_amount=from_cents(row.last_payment_amount_cents),
        created_by=row.created_by,
        paused_at=row.paused_at,
        resumed_at=row.resumed_at,
        cancelled_at=row.cancelled_at,
        completed_at=row.completed_at,
        failed_at=row.failed_at,
        failure_reason=row.failure_reason,
        metadata=dict(row.meta or {}),
    )


def _scheduled(row: ScheduledPaymentRecord) -> ScheduledPayment:
    return ScheduledPayment(
        id=row.id,
        recurring_payment_id=row.recurring_payment_id,
        scheduled_date=row.scheduled_date,
        amount=from_cents(row.amount_cents),
        created_at=row.created_at,
        status=row.status,
        retry_count=row.retry_count,
        is_retry=row.is_retry,
        original_scheduled_payment_id=row.original_scheduled_payment_id,
        processed_at=row.processed_at,
        failure_reason=row.failure_reason,
        payment_reference=row.payment_reference,
    )


def _plan_values(changes: Mapping[str, Any]) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for key, value in changes.items():
        if key in _MONEY_FIELDS:
            value = to_cents(value)
        values[_PLAN_COLUMNS.get(key, key)] = value
    return values


def _scheduled_values(changes: Mapping[str, Any]) -> dict[str, Any]:
    values = dict(changes)
    if "amount" in values:
        values["amount_cents"] = to_cents(values.pop("amount"))
    return values


class SqlRecurringRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_plan(self, draft: RecurringPlanDraft) -> RecurringPayment:
        row = RecurringPaymentRecord(
            name=draft.name,
            vendor_id=draft.vendor_id,
            vendor_name=draft.vendor_name,
            amount_cents=to_cents(draft.amount),
            frequency=draft.frequency,
            start_date=draft.start_date,
            end_date=draft.end_date,
            next_payment_date=draft.next_payment_date,
            status="active",
            description=draft.description,
            payment_method=draft.payment_method,
            auto_retry=draft.auto_retry,
            max_retries=draft.max_retries,
            retry_interval_hours=draft.retry_interval_hours,
            total_payments=0,
            successful_payments=0,
            failed_payments=0,
            created_by=draft.created_by,
            created_at=draft.created_at,
            updated_at=draft.created_at,
            meta=dict(draft.metadata),
        )
        self.session.add(row)
        await self.session.flush()
        await self.session.refresh(row)
        return _plan(row)

    async def get_plan(self, plan_id: int) -> RecurringPayment | None:
        row = await self.session.get(RecurringPaymentRecord, plan_id)
        return _plan(row) if row else None

    async def list_plans(self, status: Optional[str] = None) -> Sequence[RecurringPayment]:
        stmt = select(RecurringPaymentRecord)
        if status is not None:
            stmt = stmt.where(RecurringPaymentRecord.status == status)
        stmt = stmt.order_by(RecurringPaymentRecord.next_payment_date, RecurringPaymentRecord.id)
        result = await self.session.execute(stmt)
        return [_plan(row) for row in result.scalars().all()]

    async def update_plan(self, plan_id: int, changes: Mapping[str, Any]) -> RecurringPayment | None:
        stmt = (
            update(RecurringPaymentRecord)
            .where(RecurringPaymentRecord.id == plan_id)
            .values(**_plan_values(changes))
            .execution_options(synchronize_session="fetch")
            .returning(RecurringPaymentRecord)
        )
        result = await self.session.execute(stmt)
        row = result.scalars().first()
        return _plan(row) if row else None

    async def create_scheduled(self, draft: ScheduledPaymentDraft) -> ScheduledPayment:
        row = ScheduledPaymentRecord(
            recurring_payment_id=draft.recurring_payment_id,
            scheduled_date=draft.scheduled_date,
            amount_cents=to_cents(draft.amount),
            status=PENDING,
            retry_count=draft.retry_count,
            is_retry=draft.is_retry,
            original_scheduled_payment_id=draft.original_scheduled_payment_id,
            created_at=draft.created_at,
        )
        self.session.add(row)
        await self.session.flush()
        await self.session.refresh(row)
        return _scheduled(row)

    async def get_scheduled(self, scheduled_id: int) -> ScheduledPayment | None:
        row = await self.session.get(ScheduledPaymentRecord, scheduled_id)
        return _scheduled(row) if row else None

    async def update_scheduled(self, scheduled_id: int, changes: Mapping[str, Any]) -> ScheduledPayment | None:
        stmt = (
            update(ScheduledPaymentRecord)
            .where(ScheduledPaymentRecord.id == scheduled_id)
            .values(**_scheduled_values(changes))
            .execution_options(synchronize_session="fetch")
            .returning(ScheduledPaymentRecord)
        )
        result = await self.session.execute(stmt)
        row = result.scalars().first()
        return _scheduled(row) if row else None

    async def list_due(self, now: datetime) -> Sequence[ScheduledPayment]:
        return await self.list_pending(until=now)

    async def list_pending(
        self,
        plan_id: Optional[int] = None,
        until: Optional[datetime] = None,
    ) -> Sequence[ScheduledPayment]:
        stmt = select(ScheduledPaymentRecord).where(ScheduledPaymentRecord.status == PENDING)
        if plan_id is not None:
            stmt = stmt.where(ScheduledPaymentRecord.recurring_payment_id == plan_id)
        if until is not None:
            stmt = stmt.where(ScheduledPaymentRecord.scheduled_date <= until)
        stmt = stmt.order_by(ScheduledPaymentRecord.scheduled_date, ScheduledPaymentRecord.id)
        result = await self.session.execute(stmt)
        return [_scheduled(row) for row in result.scalars().all()]

    async def list_processed_since(self, since: datetime) -> Sequence[ScheduledPayment]:
        stmt = (
            select(ScheduledPaymentRecord)
            .where(
                ScheduledPaymentRecord.status != PENDING,
                ScheduledPaymentRecord.processed_at.is_not(None),
                ScheduledPaymentRecord.processed_at >= since,
            )
            .order_by(ScheduledPaymentRecord.id)
        )
        result = await self.session.execute(stmt)
        return [_scheduled(row) for row in result.scalars().all()]

    async def delete_pending(self, plan_id: int) -> int:
        stmt = (
            delete(ScheduledPaymentRecord)
            .where(
                ScheduledPaymentRecord.recurring_payment_id == plan_id,
                ScheduledPaymentRecord.status == PENDING,
            )
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0
