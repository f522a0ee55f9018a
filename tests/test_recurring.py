from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
import pytest_asyncio

from paycore.core.errors import NotFoundError, StateError, ValidationError
from paycore.modules.recurring import ACTIVE, CANCELLED, COMPLETED, FAILED, PAUSED
from paycore.modules.recurring.schedule import add_months, next_payment_date

T0 = datetime(2026, 1, 31, 9, 0, tzinfo=timezone.utc)


@pytest_asyncio.fixture
async def vendor(services):
    return await services.vendors.create("Karachi Dairy Supply", "orders@kds.pk", "03001234567")


async def pending_dates(services, plan_id):
    views = await services.recurring.list_scheduled(days=3650, now=T0)
    return [view.scheduled.scheduled_date for view in views if view.scheduled.recurring_payment_id == plan_id]


@pytest.mark.parametrize(
    "start, frequency, anchor, expected",
    [
        (datetime(2024, 1, 31), "monthly", None, datetime(2024, 2, 29)),
        (datetime(2024, 2, 29), "monthly", 31, datetime(2024, 3, 31)),
        (datetime(2025, 11, 30), "quarterly", None, datetime(2026, 2, 28)),
        (datetime(2024, 2, 29), "yearly", None, datetime(2025, 2, 28)),
        (datetime(2026, 12, 31), "daily", None, datetime(2027, 1, 1)),
        (datetime(2026, 12, 28), "weekly", None, datetime(2027, 1, 4)),
    ],
)
def test_next_payment_date(start, frequency, anchor, expected):
    assert next_payment_date(start, frequency, anchor) == expected


def test_add_months_crosses_years():
    assert add_months(datetime(2026, 11, 15), 3) == datetime(2027, 2, 15)


async def test_create_validates_input(services, vendor):
    with pytest.raises(ValidationError):
        await services.recurring.create("Milk", vendor.id, 100, "fortnightly")
    with pytest.raises(NotFoundError):
        await services.recurring.create("Milk", 999, 100, "monthly")
    with pytest.raises(ValidationError):
        await services.recurring.create("Milk", vendor.id, 100, "monthly", start_date=T0, end_date=T0)
    with pytest.raises(ValidationError):
        await services.recurring.create("Milk", vendor.id, 100, "monthly", max_retries=11)
    with pytest.raises(ValidationError):
        await services.recurring.create("  ", vendor.id, 100, "monthly")


async def test_successful_payment_advances_plan(services, vendor):
    await services.wallet.deposit(1000)
    plan = await services.recurring.create("Milk", vendor.id, 300, "monthly", start_date=T0)

    result = await services.recurring.process_due(T0)

    assert (result.processed, result.successful, result.failed) == (1, 1, 0)
    assert result.items[0].reference.startswith("PAY")
    assert await services.wallet.balance() == Decimal("700.00")
    updated = await services.recurring.get(plan.id)
    assert updated.next_payment_date == datetime(2026, 2, 28, 9, 0, tzinfo=timezone.utc)
    assert (updated.total_payments, updated.successful_payments) == (1, 1)
    assert updated.last_payment_amount == Decimal("300.00")
    assert (await services.vendors.get(vendor.id)).total_paid == Decimal("300.00")
    assert await pending_dates(services, plan.id) == [updated.next_payment_date]


async def test_one_failure_does_not_stop_the_batch(services, vendor):
    await services.wallet.deposit(500)
    affordable = await services.recurring.create("Milk", vendor.id, 300, "monthly", start_date=T0)
    too_big = await services.recurring.create("Bread", vendor.id, 600, "monthly", start_date=T0)

    result = await services.recurring.process_due(T0)

    assert (result.processed, result.successful, result.failed) == (2, 1, 1)
    assert result.errors == [{"recurring_payment_id": too_big.id, "error": "Insufficient wallet balance"}]
    assert (await services.recurring.get(affordable.id)).successful_payments == 1
    failed = await services.recurring.get(too_big.id)
    assert failed.status == ACTIVE
    assert failed.failed_payments == 1
    assert await pending_dates(services, too_big.id) == [T0 + timedelta(hours=24)]

    analytics = await services.recurring.analytics(T0)
    assert analytics.active_recurring_payments == 2
    assert analytics.recurring_by_frequency == {"monthly": 2}
    assert analytics.monthly_projection == Decimal("900.00")
    assert (analytics.completed_payments, analytics.failed_payments) == (1, 1)
    assert analytics.success_rate == 50.0
    assert analytics.total_automated_amount == Decimal("300.00")
    assert analytics.avg_payment_amount == Decimal("300.00")
    assert analytics.upcoming_payments == 2


async def test_plan_fails_after_retries_are_used(services, vendor):
    plan = await services.recurring.create(
        "Rent", vendor.id, 50, "monthly", start_date=T0, max_retries=1, retry_interval_hours=2
    )

    first = await services.recurring.process_due(T0)
    second = await services.recurring.process_due(T0 + timedelta(hours=2))

    assert first.failed == 1 and second.failed == 1
    failed = await services.recurring.get(plan.id)
    assert failed.status == FAILED
    assert failed.failed_payments == 2
    assert failed.failure_reason == "Max retries (1) exceeded"
    assert await pending_dates(services, plan.id) == []


async def test_without_auto_retry_failure_skips_a_cycle(services, vendor):
    plan = await services.recurring.create("Ice", vendor.id, 50, "weekly", start_date=T0, auto_retry=False)

    await services.recurring.process_due(T0)

    skipped = await services.recurring.get(plan.id)
    assert skipped.status == ACTIVE
    assert skipped.next_payment_date == T0 + timedelta(days=7)
    assert await pending_dates(services, plan.id) == [T0 + timedelta(days=7)]


async def test_plan_completes_at_end_date(services, vendor):
    await services.wallet.deposit(1000)
    plan = await services.recurring.create(
        "Eggs", vendor.id, 10, "daily", start_date=T0, end_date=T0 + timedelta(days=1, hours=12)
    )

    await services.recurring.process_due(T0)
    assert (await services.recurring.get(plan.id)).status == ACTIVE
    await services.recurring.process_due(T0 + timedelta(days=1))

    done = await services.recurring.get(plan.id)
    assert done.status == COMPLETED
    assert done.successful_payments == 2
    assert await pending_dates(services, plan.id) == []


async def test_pause_resume_cancel(services, vendor, clock):
    plan = await services.recurring.create("Gas", vendor.id, 40, "weekly", start_date=clock.now)

    paused = await services.recurring.pause(plan.id, actor="ops")
    assert paused.status == PAUSED
    assert await services.recurring.list_scheduled(days=30, now=clock.now) == []
    with pytest.raises(StateError):
        await services.recurring.pause(plan.id)

    clock.advance(days=3)
    resumed = await services.recurring.resume(plan.id)
    assert resumed.status == ACTIVE
    assert resumed.next_payment_date == clock.now + timedelta(days=7)
    [view] = await services.recurring.list_scheduled(days=30, now=clock.now)
    assert view.plan.id == plan.id

    cancelled = await services.recurring.cancel(plan.id)
    assert cancelled.status == CANCELLED
    assert await services.recurring.list_scheduled(days=30, now=clock.now) == []
    with pytest.raises(StateError):
        await services.recurring.cancel(plan.id)
    with pytest.raises(StateError):
        await services.recurring.update(plan.id, {"amount": 10})


async def test_update_amount_and_frequency(services, vendor):
    plan = await services.recurring.create("Water", vendor.id, 20, "weekly", start_date=T0)

    with pytest.raises(ValidationError):
        await services.recurring.update(plan.id, {"status": PAUSED})

    repriced = await services.recurring.update(plan.id, {"amount": "25.50"})
    [view] = await services.recurring.list_scheduled(days=3650, now=T0)
    assert repriced.amount == Decimal("25.50")
    assert view.scheduled.amount == Decimal("25.50")

    monthly = await services.recurring.update(plan.id, {"frequency": "monthly"})
    assert monthly.next_payment_date == datetime(2026, 2, 28, 9, 0, tzinfo=timezone.utc)
    assert await pending_dates(services, plan.id) == [monthly.next_payment_date]
