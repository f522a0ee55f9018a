"""Recurring payment exports"""

from .models import (
    ACTIVE,
    CANCELLED,
    COMPLETED,
    DAILY,
    FAILED,
    FREQUENCIES,
    MONTHLY,
    PAUSED,
    PENDING,
    QUARTERLY,
    WEEKLY,
    YEARLY,
    BatchResult,
    RecurringAnalytics,
    RecurringPayment,
    RecurringPlanDraft,
    ScheduledItemResult,
    ScheduledPayment,
    ScheduledPaymentDraft,
    ScheduledPaymentView,
)
from .payers import RecurringPayer, WalletRecurringPayer
from .repository import RecurringRepository
from .schedule import add_months, monthly_projection, next_payment_date
from .service import RecurringPaymentScheduler

__all__ = [
    "ACTIVE",
    "BatchResult",
    "CANCELLED",
    "COMPLETED",
    "DAILY",
    "FAILED",
    "FREQUENCIES",
    "MONTHLY",
    "PAUSED",
    "PENDING",
    "QUARTERLY",
    "RecurringAnalytics",
    "RecurringPayer",
    "RecurringPayment",
    "RecurringPaymentScheduler",
    "RecurringPlanDraft",
    "RecurringRepository",
    "ScheduledItemResult",
    "ScheduledPayment",
    "ScheduledPaymentDraft",
    "ScheduledPaymentView",
    "WEEKLY",
    "WalletRecurringPayer",
    "YEARLY",
    "add_months",
    "monthly_projection",
    "next_payment_date",
]
