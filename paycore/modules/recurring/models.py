"""Recurring payment plan models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

DAILY = "daily"
WEEKLY = "weekly"
MONTHLY = "monthly"
QUARTERLY = "quarterly"
YEARLY = "yearly"

FREQUENCIES = (DAILY, WEEKLY, MONTHLY, QUARTERLY, YEARLY)

# Approximate occurrences per month, used only for projections.
MONTHLY_MULTIPLIERS = {
    DAILY: Decimal("30"),
    WEEKLY: Decimal("4.33"),
    MONTHLY: Decimal("1"),
    QUARTERLY: Decimal("0.33"),
    YEARLY: Decimal("0.083"),
}

ACTIVE = "active"
PAUSED = "paused"
CANCELLED = "cancelled"
COMPLETED = "completed"
FAILED = "failed"

PLAN_STATUSES = (ACTIVE, PAUSED, CANCELLED, COMPLETED, FAILED)

PENDING = "pending"

SCHEDULED_STATUSES = (PENDING, COMPLETED, FAILED)

SUCCESS = "success"


@dataclass(slots=True)
class RecurringPlanDraft:
    name: str
    vendor_id: int
    vendor_name: str
    amount: Decimal
    frequency: str
    start_date: datetime
    next_payment_date: datetime
    created_at: datetime
    end_date: Optional[datetime] = None
    description: str = ""
    payment_method: str = "wallet"
    auto_retry: bool = True
    max_retries: int = 3
    retry_interval_hours: int = 24
    created_by: Optional[str] = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class RecurringPayment:
    id: int
    name: str
    vendor_id: int
    vendor_name: str
    amount: Decimal
    frequency: str
    start_date: datetime
    next_payment_date: datetime
    created_at: datetime
    updated_at: datetime
    end_date: Optional[datetime] = None
    status: str = ACTIVE
    description: str = ""
    payment_method: str = "wallet"
    auto_retry: bool = True
    max_retries: int = 3
    retry_interval_hours: int = 24
    total_payments: int = 0
    successful_payments: int = 0
    failed_payments: int = 0
    last_payment_date: Optional[datetime] = None
    last_payment_status: Optional[str] = None
    last_payment_amount: Optional[Decimal] = None
    created_by: Optional[str] = None
    paused_at: Optional[datetime] = None
    resumed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    failed_at: Optional[datetime] = None
    failure_reason: Optional[str] = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def is_active(self) -> bool:
        return self.status == ACTIVE

    @classmethod
    def from_draft(cls, id: int, draft: RecurringPlanDraft) -> "RecurringPayment":
        return cls(
            id=id,
            name=draft.name,
            vendor_id=draft.vendor_id,
            vendor_name=draft.vendor_name,
            amount=draft.amount,
            frequency=draft.frequency,
            start_date=draft.start_date,
            next_payment_date=draft.next_payment_date,
            created_at=draft.created_at,
            updated_at=draft.created_at,
            end_date=draft.end_date,
            description=draft.description,
            payment_method=draft.payment_method,
            auto_retry=draft.auto_retry,
            max_retries=draft.max_retries,
            retry_interval_hours=draft.retry_interval_hours,
            created_by=draft.created_by,
            metadata=dict(draft.metadata),
        )


@dataclass(slots=True)
class ScheduledPaymentDraft:
    recurring_payment_id: int
    scheduled_date: datetime
    amount: Decimal
    created_at: datetime
    retry_count: int = 0
    is_retry: bool = False
    original_scheduled_payment_id: Optional[int] = None


@dataclass(slots=True)
class ScheduledPayment:
    id: int
    recurring_payment_id: int
    scheduled_date: datetime
    amount: Decimal
    created_at: datetime
    status: str = PENDING
    retry_count: int = 0
    is_retry: bool = False
    original_scheduled_payment_id: Optional[int] = None
    processed_at: Optional[datetime] = None
    failure_reason: Optional[str] = None
    payment_reference: Optional[str] = None

    @classmethod
    def from_draft(cls, id: int, draft: ScheduledPaymentDraft) -> "ScheduledPayment":
        return cls(
            id=id,
            recurring_payment_id=draft.recurring_payment_id,
            scheduled_date=draft.scheduled_date,
            amount=draft.amount,
            created_at=draft.created_at,
            retry_count=draft.retry_count,
            is_retry=draft.is_retry,
            original_scheduled_payment_id=draft.original_scheduled_payment_id,
        )


@dataclass(slots=True)
class ScheduledItemResult:
    scheduled_payment_id: int
    recurring_payment_id: int
    success: bool
    reference: Optional[str] = None
    error: Optional[str] = None


@dataclass(slots=True)
class BatchResult:
    processed: int = 0
    successful: int = 0
    failed: int = 0
    errors: list[dict[str, Any]] = field(default_factory=list)
    items: list[ScheduledItemResult] = field(default_factory=list)

    def add(self, item: ScheduledItemResult) -> None:
        self.items.append(item)
        self.processed += 1
        if item.success:
            self.successful += 1
        else:
            self.failed += 1
            self.errors.append({"recurring_payment_id": item.recurring_payment_id, "error": item.error})


@dataclass(slots=True)
class ScheduledPaymentView:
    scheduled: ScheduledPayment
    plan: Optional[RecurringPayment]


@dataclass(slots=True)
class RecurringAnalytics:
    active_recurring_payments: int
    recurring_by_frequency: dict[str, int]
    monthly_projection: Decimal
    success_rate: float
    upcoming_payments: int
    completed_payments: int
    failed_payments: int
    total_automated_amount: Decimal
    avg_payment_amount: Decimal
