"""Calendar arithmetic for recurring payment due dates."""

from __future__ import annotations

import calendar
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Iterable, Optional

from paycore.core.errors import ValidationError

from .models import DAILY, MONTHLY, MONTHLY_MULTIPLIERS, QUARTERLY, WEEKLY, YEARLY, RecurringPayment

_MONTH_STEPS = {MONTHLY: 1, QUARTERLY: 3, YEARLY: 12}


def add_months(moment: datetime, months: int, anchor_day: Optional[int] = None) -> datetime:
    """Shift ``moment`` by whole calendar months.

    The day is ``anchor_day`` (default: the day of ``moment``) clamped to the
    length of the target month, so Jan 31 + 1 month is Feb 28/29 and a plan
    anchored on the 31st returns to Mar 31 afterwards.
    """
    day = anchor_day or moment.day
    index = moment.month - 1 + months
    year = moment.year + index // 12
    month = index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return moment.replace(year=year, month=month, day=min(day, last_day))


def next_payment_date(current: datetime, frequency: str, anchor_day: Optional[int] = None) -> datetime:
    if frequency == DAILY:
        return current + timedelta(days=1)
    if frequency == WEEKLY:
        return current + timedelta(days=7)
    if frequency in _MONTH_STEPS:
        return add_months(current, _MONTH_STEPS[frequency], anchor_day)
    raise ValidationError(
        "Invalid frequency. Must be daily, weekly, monthly, quarterly, or yearly",
        code="INVALID_FREQUENCY",
    )


def monthly_projection(plans: Iterable[RecurringPayment]) -> Decimal:
    """Approximate monthly spend of ``plans`` using fixed per-frequency multipliers."""
    total = Decimal("0")
    for plan in plans:
        total += plan.amount * MONTHLY_MULTIPLIERS.get(plan.frequency, Decimal("0"))
    return total.quantize(Decimal("0.01"))


__all__ = ["add_months", "monthly_projection", "next_payment_date"]
