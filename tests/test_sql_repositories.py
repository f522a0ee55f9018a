from decimal import Decimal

import pytest
import pytest_asyncio

from conftest import jpeg_upload, make_image
from paycore.core.config import DatabaseSettings
from paycore.core.container import ApplicationContainer
from paycore.core.errors import InsufficientBalanceError, SecurityError, ValidationError
from paycore.modules.audit import AuditFilter
from paycore.modules.audit.models import ADMIN_FILE_ACCESS
from paycore.modules.proofs import UploadedFile
from paycore.modules.scanning import EICAR_SIGNATURE
from paycore.modules.transactions import COMPLETED, FAILED


@pytest_asyncio.fixture
async def sql_container(settings, clock, sleep, storage):
    sql_settings = settings.model_copy(
        update={"database": DatabaseSettings(backend="sql", url="sqlite+aiosqlite:///:memory:")}
    )
    container = ApplicationContainer(settings=sql_settings, clock=clock, sleep=sleep, storage=storage)
    await container.create_schema()
    yield container
    await container.dispose()


async def test_wallet_survives_units_of_work(sql_container):
    async with sql_container.unit_of_work() as services:
        await services.wallet.deposit("120.25")
        await services.wallet.payment(20, payee="Electric Co")

    async with sql_container.unit_of_work() as services:
        assert await services.wallet.balance() == Decimal("100.25")
        assert await services.wallet.ledger_total() == Decimal("100.25")
        history = await services.wallet.history()
        assert [entry.counterparty for entry in history] == ["Electric Co", None]


async def test_payment_errors_commit_and_other_errors_roll_back(sql_container):
    with pytest.raises(InsufficientBalanceError):
        async with sql_container.unit_of_work() as services:
            await services.wallet.deposit(50)
            await services.wallet.withdraw(80)

    with pytest.raises(RuntimeError):
        async with sql_container.unit_of_work() as services:
            await services.wallet.deposit(1000)
            raise RuntimeError("request aborted")

    async with sql_container.unit_of_work() as services:
        assert await services.wallet.balance() == Decimal("50.00")


async def test_failed_charge_is_kept(sql_container):
    with pytest.raises(ValidationError):
        async with sql_container.unit_of_work() as services:
            await services.checkout.charge_wallet("jazzcash", 100, 5, "99999")

    async with sql_container.unit_of_work() as services:
        [failed] = await services.ledger.list_by_order(5)
        assert failed.status == FAILED
        assert failed.error.code == "INVALID_PHONE"
        assert failed.amount == Decimal("100.00")


async def test_transaction_ledger_roundtrip(sql_container):
    async with sql_container.unit_of_work() as services:
        first = await services.checkout.charge_wallet("jazzcash", "19.99", 6, "03001234567")
        await services.checkout.charge_wallet("easypaisa", 5, 7, "03451234567")

    async with sql_container.unit_of_work() as services:
        loaded = await services.ledger.get(first.transaction_id)
        page = await services.ledger.list_page(offset=0, limit=10)
        verified = await services.ledger.verify(first.transaction_id)

    assert loaded.status == COMPLETED
    assert loaded.amount == Decimal("19.99")
    assert loaded.phone == "03001234567"
    assert page.total == 2
    assert page.items[0].order_id == 7
    assert verified.verified is True


async def test_proof_upload_and_access(sql_container):
    async with sql_container.unit_of_work() as services:
        proof = await services.uploads.upload(jpeg_upload(pad_to=4096), 90, user_id="cashier-9")

    async with sql_container.unit_of_work() as services:
        descriptor = await services.access.fetch(proof.file_name, "admin", client_ip="10.0.0.1")
        [entry] = await services.audit.query(AuditFilter(action=ADMIN_FILE_ACCESS, order_id=90))
        stored = await services.reviews.get(proof.file_name)

    assert descriptor.checksum == proof.checksum
    assert entry.details["storage_key"] == proof.storage_key
    assert stored.uploaded_at == proof.uploaded_at
    assert stored.scan_result["clean"] is True


async def test_quarantine_entries_persist(sql_container):
    infected = UploadedFile("receipt.jpg", "image/jpeg", make_image(pad_to=2048) + EICAR_SIGNATURE)
    with pytest.raises(SecurityError) as caught:
        async with sql_container.unit_of_work() as services:
            await services.uploads.upload(infected, 91, user_id="u91")

    async with sql_container.unit_of_work() as services:
        entry = await services.quarantine.get(caught.value.details["quarantine_id"])
        stats = await services.quarantine.statistics()
        await services.quarantine.review(entry.id, "release", "admin")

    assert entry.threats == ["Eicar-Test-Signature"]
    assert stats.pending_review == 1
    async with sql_container.unit_of_work() as services:
        assert (await services.quarantine.statistics()).released == 1


async def test_recurring_batch_on_one_session(sql_container, clock):
    async with sql_container.unit_of_work() as services:
        await services.wallet.deposit(100)
        vendor = await services.vendors.create("Fresh Farms", "ap@fresh.pk", "03211234567")
        cheap = await services.recurring.create("Veg", vendor.id, 30, "monthly", start_date=clock.now)
        pricey = await services.recurring.create("Meat", vendor.id, 500, "monthly", start_date=clock.now)

    result = await sql_container.process_recurring()

    assert (result.processed, result.successful, result.failed) == (2, 1, 1)
    async with sql_container.unit_of_work() as services:
        assert (await services.recurring.get(cheap.id)).successful_payments == 1
        assert (await services.recurring.get(pricey.id)).failed_payments == 1
        assert (await services.vendors.get(vendor.id)).total_paid == Decimal("30.00")
        assert await services.wallet.balance() == Decimal("70.00")


async def test_vendor_bills_persist_across_units_of_work(sql_container, clock):
    async with sql_container.unit_of_work() as services:
        await services.wallet.deposit(500)
        vendor = await services.vendors.create("Fresh Farms", "ap@fresh.pk", "03211234567")
        bill = await services.bills.create(vendor.id, "800", "Crates", tax_amount="12.50")
        await services.bills.pay(bill.id, 300)

    async with sql_container.unit_of_work() as services:
        with pytest.raises(InsufficientBalanceError):
            await services.bills.pay(bill.id)

    async with sql_container.unit_of_work() as services:
        stored = await services.bills.get(bill.id)
        assert (stored.status, stored.amount_paid, stored.balance_due) == (
            "partially_paid",
            Decimal("300.00"),
            Decimal("512.50"),
        )
        assert len(stored.payment_references) == 1
        assert [item.id for item in await services.bills.pending()] == [bill.id]
        refreshed = await services.vendors.get(vendor.id)
        assert (refreshed.total_owed, refreshed.total_paid) == (Decimal("512.50"), Decimal("300.00"))
