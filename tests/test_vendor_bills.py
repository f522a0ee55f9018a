from datetime import timedelta
from decimal import Decimal

import pytest
import pytest_asyncio

from paycore.core.errors import InsufficientBalanceError, NotFoundError, StateError, ValidationError
from paycore.modules.vendors import PAID, PARTIALLY_PAID, PENDING, payment_term_days


@pytest_asyncio.fixture
async def vendor(services):
    return await services.vendors.create(
        "Lahore Packaging Co",
        "billing@lpc.pk",
        "03451234567",
        payment_terms="Net 15",
    )


@pytest.mark.parametrize(
    "terms, days",
    [("Net 15", 15), ("net 45 days", 45), ("Due on receipt", 30), ("", 30), ("Net 0", 30)],
)
def test_payment_term_days(terms, days):
    assert payment_term_days(terms) == days


async def test_bill_raises_vendor_total_owed(services, clock, vendor):
    bill = await services.bills.create(vendor.id, "1000", "Cartons", tax_amount="170", actor="finance_manager")

    assert bill.status == PENDING
    assert bill.total_amount == Decimal("1170.00")
    assert bill.balance_due == Decimal("1170.00")
    assert bill.vendor_name == "Lahore Packaging Co"
    assert bill.bill_number.startswith("BILL-")
    assert bill.due_date == clock.now + timedelta(days=15)
    assert bill.created_by == "finance_manager"
    assert (await services.vendors.get(vendor.id)).total_owed == Decimal("1170.00")


async def test_bill_creation_validates_input(services, vendor):
    with pytest.raises(ValidationError) as missing:
        await services.bills.create(vendor.id, 100, "  ")
    with pytest.raises(ValidationError):
        await services.bills.create(vendor.id, 0, "Tape")
    with pytest.raises(ValidationError):
        await services.bills.create(vendor.id, 100, "Tape", tax_amount="-5")
    with pytest.raises(NotFoundError):
        await services.bills.create(999, 100, "Tape")

    assert missing.value.code == "INVALID_BILL"
    assert (await services.vendors.get(vendor.id)).total_owed == Decimal("0")


async def test_partial_then_full_payment(services, funded_wallet, vendor):
    bill = await services.bills.create(vendor.id, 1000, "Cartons", bill_number="INV-77")

    partial = await services.bills.pay(bill.id, "400", reference="CHQ-1")
    assert partial.bill.status == PARTIALLY_PAID
    assert partial.bill.balance_due == Decimal("600.00")
    assert partial.reference == "CHQ-1"

    settled = await services.bills.pay(bill.id)
    assert settled.amount == Decimal("600.00")
    assert settled.bill.status == PAID
    assert settled.bill.paid_at is not None
    assert settled.bill.payment_references == ["CHQ-1", settled.reference]

    refreshed = await services.vendors.get(vendor.id)
    assert refreshed.total_owed == Decimal("0.00")
    assert refreshed.total_paid == Decimal("1000.00")
    assert await funded_wallet.balance() == Decimal("9000.00")
    [latest] = await funded_wallet.history(limit=1)
    assert (latest.counterparty, latest.description) == ("Lahore Packaging Co", "Vendor bill INV-77")


async def test_payment_rules(services, funded_wallet, vendor):
    bill = await services.bills.create(vendor.id, 300, "Labels")

    with pytest.raises(ValidationError) as over:
        await services.bills.pay(bill.id, "300.01")
    assert over.value.code == "BILL_OVERPAYMENT"

    await services.bills.pay(bill.id)
    with pytest.raises(StateError) as again:
        await services.bills.pay(bill.id, 1)
    assert again.value.code == "BILL_ALREADY_PAID"

    with pytest.raises(NotFoundError):
        await services.bills.pay(12345)


async def test_failed_wallet_debit_leaves_bill_open(services, vendor):
    bill = await services.bills.create(vendor.id, 50_000, "Machinery")

    with pytest.raises(InsufficientBalanceError):
        await services.bills.pay(bill.id)

    unchanged = await services.bills.get(bill.id)
    assert unchanged.status == PENDING
    assert unchanged.amount_paid == Decimal("0")
    assert (await services.vendors.get(vendor.id)).total_owed == Decimal("50000.00")


async def test_pending_and_overdue_bills(services, funded_wallet, clock, vendor):
    later = await services.bills.create(vendor.id, 100, "Ink", due_date=clock.now + timedelta(days=20))
    sooner = await services.bills.create(vendor.id, 100, "Paper", due_date=clock.now + timedelta(days=2))
    partly = await services.bills.create(vendor.id, 100, "Glue", due_date=clock.now + timedelta(days=5))
    paid = await services.bills.create(vendor.id, 100, "Tape", due_date=clock.now + timedelta(days=1))
    await services.bills.pay(partly.id, 40)
    await services.bills.pay(paid.id)

    pending = await services.bills.pending()
    assert [bill.id for bill in pending] == [sooner.id, partly.id, later.id]
    assert await services.bills.overdue() == []

    clock.advance(days=6)
    assert [bill.id for bill in await services.bills.overdue()] == [sooner.id, partly.id]
    assert [bill.id for bill in await services.bills.list(vendor.id)] == [paid.id, sooner.id, partly.id, later.id]
