"""Recurring payment scheduling, processing and analytics."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Mapping, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from paycore.core.errors import NotFoundError, PaymentError, StateError, ValidationError
from paycore.core.identifiers import Clock, utcnow
from paycore.core.locks import KeyedLocks
from paycore.core.money import AmountLike, to_amount
from paycore.modules.vendors import VendorDirectory

from .models import (
    ACTIVE,
    CANCELLED,
    COMPLETED,
    FAILED,
    FREQUENCIES,
    PAUSED,
    PENDING,
    PLAN_STATUSES,
    SUCCESS,
    BatchResult,
    RecurringAnalytics,
    RecurringPayment,
    RecurringPlanDraft,
    ScheduledItemResult,
    ScheduledPayment,
    ScheduledPaymentDraft,
    ScheduledPaymentView,
)
from .payers import RecurringPayer
from .repository import RecurringRepository
from .schedule import monthly_projection, next_payment_date

logger = logging.getLogger(__name__)

MAX_RETRIES_RANGE = (0, 10)
RETRY_INTERVAL_RANGE = (1, 168)

# Plan fields ``update`` accepts; status moves through pause/resume/cancel.
UPDATABLE_FIELDS = frozenset(
    {
        "name",
        "vendor_id",
        "amount",
        "frequency",
        "end_date",
        "description",
        "payment_method",
        "auto_retry",
        "max_retries",
        "retry_interval_hours",
        "metadata",
    }
)


class RecurringPaymentScheduler:
    """Owns every recurring plan and its queue of scheduled payments.

    Plan state changes for one plan are serialised on a per-plan lock; due
    payments of different plans are processed concurrently, at most
    ``max_concurrent_plans`` at a time when set. Repositories bound to a single
    database session need 1.
    """

    def __init__(
        self,
        repository: RecurringRepository,
        vendors: VendorDirectory,
        payer: RecurringPayer,
        *,
        default_max_retries: int = 3,
        default_retry_interval_hours: int = 24,
        locks: Optional[KeyedLocks] = None,
        max_concurrent_plans: Optional[int] = None,
        clock: Clock = utcnow,
    ) -> None:
        self._repository = repository
        self._vendors = vendors
        self._payer = payer
        self.default_max_retries = default_max_retries
        self.default_retry_interval_hours = default_retry_interval_hours
        self._locks = locks or KeyedLocks()
        self.max_concurrent_plans = max_concurrent_plans
        self._clock = clock

    @classmethod
    def with_session(
        cls,
        session: AsyncSession,
        vendors: VendorDirectory,
        payer: RecurringPayer,
        **kwargs,
    ) -> "RecurringPaymentScheduler":
        from paycore.infrastructure.database.repositories.recurring_repository import SqlRecurringRepository

        kwargs.setdefault("max_concurrent_plans", 1)
        return cls(SqlRecurringRepository(session), vendors, payer, **kwargs)

    async def create(
        self,
        name: str,
        vendor_id: int,
        amount: AmountLike,
        frequency: str,
        *,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        description: Optional[str] = None,
        payment_method: str = "wallet",
        auto_retry: bool = True,
        max_retries: Optional[int] = None,
        retry_interval_hours: Optional[int] = None,
        created_by: Optional[str] = None,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> RecurringPayment:
        if not (name or "").strip():
            raise ValidationError("Recurring payment name is required", code="INVALID_RECURRING_PAYMENT")
        vendor = await self._vendors.get(vendor_id)
        _check_frequency(frequency)
        value = to_amount(amount, label="Recurring amount")
        max_retries = self.default_max_retries if max_retries is None else max_retries
        retry_interval_hours = (
            self.default_retry_interval_hours if retry_interval_hours is None else retry_interval_hours
        )
        _check_retry_policy(max_retries, retry_interval_hours)

        now = self._clock()
        start = start_date or now
        if end_date is not None and end_date <= start:
            raise ValidationError("End date must be after start date", code="INVALID_DATE_RANGE")

        plan = await self._repository.create_plan(
            RecurringPlanDraft(
                name=name.strip(),
                vendor_id=vendor.id,
                vendor_name=vendor.name,
                amount=value,
                frequency=frequency,
                start_date=start,
                next_payment_date=start,
                created_at=now,
                end_date=end_date,
                description=description or f"Recurring payment to {vendor.name}",
                payment_method=payment_method,
                auto_retry=auto_retry,
                max_retries=max_retries,
                retry_interval_hours=retry_interval_hours,
                created_by=created_by,
                metadata=dict(metadata or {}),
            )
        )
        await self._enqueue(plan, plan.next_payment_date)
        logger.info("Created %s recurring plan %s for vendor %s", frequency, plan.id, vendor.id)
        return plan

    async def get(self, plan_id: int) -> RecurringPayment:
        plan = await self._repository.get_plan(plan_id)
        if plan is None:
            raise NotFoundError("Recurring payment not found", code="RECURRING_NOT_FOUND")
        return plan

    async def list(self, status: Optional[str] = None) -> Sequence[RecurringPayment]:
        if status is not None and status not in PLAN_STATUSES:
            raise ValidationError("Invalid recurring payment status", code="INVALID_STATUS")
        return await self._repository.list_plans(status)

    async def list_scheduled(self, days: int = 30, now: Optional[datetime] = None) -> Sequence[ScheduledPaymentView]:
        """Pending payments due within ``days`` of ``now``, with their plans."""
        until = (now or self._clock()) + timedelta(days=days)
        views = []
        for scheduled in await self._repository.list_pending(until=until):
            plan = await self._repository.get_plan(scheduled.recurring_payment_id)
            views.append(ScheduledPaymentView(scheduled=scheduled, plan=plan))
        return views

    async def update(self, plan_id: int, changes: Mapping[str, Any]) -> RecurringPayment:
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(
                f"Fields cannot be updated: {', '.join(sorted(unknown))}",
                code="INVALID_RECURRING_FIELDS",
            )
        async with self._locks.hold(_lock_key(plan_id)):
            plan = await self.get(plan_id)
            if plan.status in (CANCELLED, COMPLETED, FAILED):
                raise StateError(f"Recurring payment is {plan.status}", code="RECURRING_NOT_EDITABLE")

            updates: dict[str, Any] = dict(changes)
            if "vendor_id" in updates and updates["vendor_id"] != plan.vendor_id:
                vendor = await self._vendors.get(updates["vendor_id"])
                updates["vendor_name"] = vendor.name
            if "amount" in updates:
                updates["amount"] = to_amount(updates["amount"], label="Recurring amount")
            _check_retry_policy(
                updates.get("max_retries", plan.max_retries),
                updates.get("retry_interval_hours", plan.retry_interval_hours),
            )
            if updates.get("end_date") is not None and updates["end_date"] <= plan.start_date:
                raise ValidationError("End date must be after start date", code="INVALID_DATE_RANGE")

            reschedule = False
            if "frequency" in updates and updates["frequency"] != plan.frequency:
                _check_frequency(updates["frequency"])
                pending = await self._repository.list_pending(plan.id)
                base = pending[0].scheduled_date if pending else plan.next_payment_date
                updates["next_payment_date"] = next_payment_date(base, updates["frequency"], plan.start_date.day)
                reschedule = plan.is_active

            updates["updated_at"] = self._clock()
            updated = await self._save(plan.id, updates)
            if reschedule:
                await self._repository.delete_pending(plan.id)
                await self._enqueue(updated, updated.next_payment_date)
            elif "amount" in updates:
                for scheduled in await self._repository.list_pending(plan.id):
                    await self._repository.update_scheduled(scheduled.id, {"amount": updated.amount})
            return updated

    async def pause(self, plan_id: int, *, actor: Optional[str] = None) -> RecurringPayment:
        async with self._locks.hold(_lock_key(plan_id)):
            plan = await self.get(plan_id)
            if plan.status != ACTIVE:
                raise StateError(f"Only active plans can be paused, plan is {plan.status}", code="RECURRING_NOT_ACTIVE")
            await self._repository.delete_pending(plan.id)
            now = self._clock()
            logger.info("Paused recurring plan %s (by %s)", plan.id, actor or "system")
            return await self._save(plan.id, {"status": PAUSED, "paused_at": now, "updated_at": now})

    async def resume(self, plan_id: int, *, actor: Optional[str] = None) -> RecurringPayment:
        """Reactivate a paused plan; the next payment falls one period after now.

        Month based plans keep the day of month they started on.
        """
        async with self._locks.hold(_lock_key(plan_id)):
            plan = await self.get(plan_id)
            if plan.status != PAUSED:
                raise StateError(f"Only paused plans can be resumed, plan is {plan.status}", code="RECURRING_NOT_PAUSED")
            now = self._clock()
            upcoming = next_payment_date(now, plan.frequency, plan.start_date.day)
            if plan.end_date is not None and upcoming > plan.end_date:
                logger.info("Recurring plan %s resumed past its end date, completing", plan.id)
                return await self._save(plan.id, {"status": COMPLETED, "completed_at": now, "updated_at": now})
            updated = await self._save(
                plan.id,
                {"status": ACTIVE, "next_payment_date": upcoming, "resumed_at": now, "updated_at": now},
            )
            await self._enqueue(updated, upcoming)
            logger.info("Resumed recurring plan %s (by %s)", plan.id, actor or "system")
            return updated

    async def cancel(self, plan_id: int, *, actor: Optional[str] = None) -> RecurringPayment:
        """Cancel a plan. The record is kept for the audit history."""
        async with self._locks.hold(_lock_key(plan_id)):
            plan = await self.get(plan_id)
            if plan.status in (CANCELLED, COMPLETED):
                raise StateError(f"Recurring payment is already {plan.status}", code="RECURRING_CLOSED")
            await self._repository.delete_pending(plan.id)
            now = self._clock()
            logger.info("Cancelled recurring plan %s (by %s)", plan.id, actor or "system")
            return await self._save(plan.id, {"status": CANCELLED, "cancelled_at": now, "updated_at": now})

    async def advance(self, plan_id: int, from_date: Optional[datetime] = None) -> RecurringPayment:
        """Move an active plan to its next cycle, completing it past ``end_date``."""
        async with self._locks.hold(_lock_key(plan_id)):
            plan = await self.get(plan_id)
            if plan.status != ACTIVE:
                raise StateError(f"Recurring payment is {plan.status}", code="RECURRING_NOT_ACTIVE")
            return await self._advance(plan, from_date or plan.next_payment_date)

    async def process_due(self, now: Optional[datetime] = None) -> BatchResult:
        """Attempt every pending payment due at ``now``.

        Plans are processed concurrently, entries of one plan in order. One
        item failing never stops the others; each outcome lands in the result.
        """
        now = now or self._clock()
        due = await self._repository.list_due(now)
        by_plan: dict[int, list[ScheduledPayment]] = {}
        for scheduled in due:
            by_plan.setdefault(scheduled.recurring_payment_id, []).append(scheduled)

        outcomes: dict[int, ScheduledItemResult] = {}
        limit = asyncio.Semaphore(self.max_concurrent_plans or max(len(by_plan), 1))

        async def run_plan(plan_id: int, items: list[ScheduledPayment]) -> None:
            async with limit, self._locks.hold(_lock_key(plan_id)):
                for scheduled in items:
                    try:
                        outcomes[scheduled.id] = await self._process(scheduled, now)
                    except Exception as exc:
                        logger.exception("Unexpected error processing scheduled payment %s", scheduled.id)
                        outcomes[scheduled.id] = ScheduledItemResult(
                            scheduled_payment_id=scheduled.id,
                            recurring_payment_id=plan_id,
                            success=False,
                            error=str(exc),
                        )

        await asyncio.gather(*(run_plan(plan_id, items) for plan_id, items in by_plan.items()))

        result = BatchResult()
        for scheduled in due:
            result.add(outcomes[scheduled.id])
        logger.info(
            "Processed %s due recurring payments: %s successful, %s failed",
            result.processed,
            result.successful,
            result.failed,
        )
        return result

    async def analytics(self, now: Optional[datetime] = None, days: int = 30) -> RecurringAnalytics:
        now = now or self._clock()
        since = now - timedelta(days=days)
        active = await self._repository.list_plans(ACTIVE)
        processed = await self._repository.list_processed_since(since)
        completed = [item for item in processed if item.status == COMPLETED]
        failed = [item for item in processed if item.status == FAILED]
        upcoming = await self._repository.list_pending(until=now + timedelta(days=days))

        by_frequency: dict[str, int] = {}
        for plan in active:
            by_frequency[plan.frequency] = by_frequency.get(plan.frequency, 0) + 1

        total = sum((item.amount for item in completed), Decimal("0"))
        average = (total / len(completed)).quantize(Decimal("0.01")) if completed else Decimal("0")
        success_rate = round(len(completed) / len(processed) * 100, 2) if processed else 0.0
        return RecurringAnalytics(
            active_recurring_payments=len(active),
            recurring_by_frequency=by_frequency,
            monthly_projection=monthly_projection(active),
            success_rate=success_rate,
            upcoming_payments=len(upcoming),
            completed_payments=len(completed),
            failed_payments=len(failed),
            total_automated_amount=total,
            avg_payment_amount=average,
        )

    async def _process(self, scheduled: ScheduledPayment, now: datetime) -> ScheduledItemResult:
        current = await self._repository.get_scheduled(scheduled.id)
        if current is None or current.status != PENDING:
            raise StateError("Scheduled payment was already processed", code="SCHEDULED_ALREADY_PROCESSED")
        plan = await self.get(current.recurring_payment_id)

        def outcome(success: bool, *, reference: Optional[str] = None, error: Optional[str] = None) -> ScheduledItemResult:
            return ScheduledItemResult(
                scheduled_payment_id=current.id,
                recurring_payment_id=plan.id,
                success=success,
                reference=reference,
                error=error,
            )

        if plan.status != ACTIVE:
            await self._repository.update_scheduled(
                current.id,
                {"status": FAILED, "processed_at": now, "failure_reason": "Recurring payment is not active"},
            )
            return outcome(False, error="Recurring payment is not active")

        if plan.end_date is not None and now > plan.end_date:
            await self._repository.update_scheduled(
                current.id,
                {"status": FAILED, "processed_at": now, "failure_reason": "Recurring payment has reached end date"},
            )
            await self._save(plan.id, {"status": COMPLETED, "completed_at": now, "updated_at": now})
            return outcome(False, error="Recurring payment has reached end date")

        try:
            reference = await self._payer.pay(plan, current)
        except PaymentError as exc:
            await self._handle_failure(plan, current, exc, now)
            return outcome(False, error=exc.message)

        await self._repository.update_scheduled(
            current.id,
            {"status": COMPLETED, "processed_at": now, "payment_reference": reference},
        )
        plan = await self._save(
            plan.id,
            {
                "total_payments": plan.total_payments + 1,
                "successful_payments": plan.successful_payments + 1,
                "last_payment_date": now,
                "last_payment_status": SUCCESS,
                "last_payment_amount": current.amount,
                "updated_at": now,
            },
        )
        await self._vendors.record_payment(plan.vendor_id, current.amount, now)
        await self._advance(plan, plan.next_payment_date)
        return outcome(True, reference=reference)

    async def _handle_failure(
        self,
        plan: RecurringPayment,
        scheduled: ScheduledPayment,
        error: PaymentError,
        now: datetime,
    ) -> None:
        await self._repository.update_scheduled(
            scheduled.id,
            {"status": FAILED, "processed_at": now, "failure_reason": error.message},
        )
        plan = await self._save(
            plan.id,
            {
                "total_payments": plan.total_payments + 1,
                "failed_payments": plan.failed_payments + 1,
                "last_payment_date": now,
                "last_payment_status": FAILED,
                "updated_at": now,
            },
        )

        if not plan.auto_retry:
            logger.warning("Recurring plan %s payment failed (%s), skipping to next cycle", plan.id, error.code)
            await self._advance(plan, plan.next_payment_date)
            return

        if scheduled.retry_count < plan.max_retries:
            retry_at = now + timedelta(hours=plan.retry_interval_hours)
            await self._repository.create_scheduled(
                ScheduledPaymentDraft(
                    recurring_payment_id=plan.id,
                    scheduled_date=retry_at,
                    amount=plan.amount,
                    created_at=now,
                    retry_count=scheduled.retry_count + 1,
                    is_retry=True,
                    original_scheduled_payment_id=scheduled.original_scheduled_payment_id or scheduled.id,
                )
            )
            logger.warning(
                "Recurring plan %s payment failed (%s), retry %s/%s at %s",
                plan.id,
                error.code,
                scheduled.retry_count + 1,
                plan.max_retries,
                retry_at.isoformat(),
            )
            return

        logger.warning("Recurring plan %s failed after %s retries", plan.id, plan.max_retries)
        await self._save(
            plan.id,
            {
                "status": FAILED,
                "failed_at": now,
                "failure_reason": f"Max retries ({plan.max_retries}) exceeded",
                "updated_at": now,
            },
        )

    async def _advance(self, plan: RecurringPayment, from_date: datetime) -> RecurringPayment:
        upcoming = next_payment_date(from_date, plan.frequency, plan.start_date.day)
        now = self._clock()
        if plan.end_date is not None and upcoming > plan.end_date:
            logger.info("Recurring plan %s reached its end date", plan.id)
            return await self._save(plan.id, {"status": COMPLETED, "completed_at": now, "updated_at": now})
        updated = await self._save(plan.id, {"next_payment_date": upcoming, "updated_at": now})
        await self._enqueue(updated, upcoming)
        return updated

    async def _enqueue(self, plan: RecurringPayment, when: datetime) -> ScheduledPayment:
        return await self._repository.create_scheduled(
            ScheduledPaymentDraft(
                recurring_payment_id=plan.id,
                scheduled_date=when,
                amount=plan.amount,
                created_at=self._clock(),
            )
        )

    async def _save(self, plan_id: int, changes: Mapping[str, Any]) -> RecurringPayment:
        plan = await self._repository.update_plan(plan_id, changes)
        if plan is None:
            raise NotFoundError("Recurring payment not found", code="RECURRING_NOT_FOUND")
        return plan


def _lock_key(plan_id: int) -> str:
    return f"recurring:{plan_id}"


def _check_frequency(frequency: str) -> None:
    if frequency not in FREQUENCIES:
        raise ValidationError(
            "Invalid frequency. Must be daily, weekly, monthly, quarterly, or yearly",
            code="INVALID_FREQUENCY",
        )


def _check_retry_policy(max_retries: Any, retry_interval_hours: Any) -> None:
    low, high = MAX_RETRIES_RANGE
    if isinstance(max_retries, bool) or not isinstance(max_retries, int) or not low <= max_retries <= high:
        raise ValidationError(f"Max retries must be between {low} and {high}", code="INVALID_RETRY_POLICY")
    low, high = RETRY_INTERVAL_RANGE
    if (
        isinstance(retry_interval_hours, bool)
        or not isinstance(retry_interval_hours, int)
        or not low <= retry_interval_hours <= high
    ):
        raise ValidationError(
            f"Retry interval must be between {low} and {high} hours",
            code="INVALID_RETRY_POLICY",
        )


__all__ = ["RecurringPaymentScheduler", "UPDATABLE_FIELDS"]
