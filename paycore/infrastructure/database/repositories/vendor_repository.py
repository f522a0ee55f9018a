"""SQLAlchemy implementation for the vendor directory and vendor bills"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Iterable, Mapping, Optional, Sequence

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from paycore.infrastructure.database.base import from_cents, to_cents
from paycore.infrastructure.database.models import VendorBillRecord, VendorRecord
from paycore.modules.vendors import Vendor, VendorBill, VendorBillDraft, VendorDraft

_MONEY_COLUMNS = {"total_paid": "total_paid_cents", "total_owed": "total_owed_cents"}
_BILL_MONEY_COLUMNS = {
    "amount": "amount_cents",
    "tax_amount": "tax_amount_cents",
    "total_amount": "total_amount_cents",
    "amount_paid": "amount_paid_cents",
}


def _to_domain(row: VendorRecord) -> Vendor:
    return Vendor(
        id=row.id,
        name=row.name,
        email=row.email,
        phone=row.phone,
        created_at=row.created_at,
        updated_at=row.updated_at,
        address=row.address,
        tax_id=row.tax_id,
        bank_account=row.bank_account,
        payment_terms=row.payment_terms,
        status=row.status,
        total_paid=from_cents(row.total_paid_cents),
        total_owed=from_cents(row.total_owed_cents),
        last_payment_date=row.last_payment_date,
    )


def _bill(row: VendorBillRecord) -> VendorBill:
    return VendorBill(
        id=row.id,
        vendor_id=row.vendor_id,
        vendor_name=row.vendor_name,
        bill_number=row.bill_number,
        description=row.description,
        amount=from_cents(row.amount_cents),
        tax_amount=from_cents(row.tax_amount_cents),
        total_amount=from_cents(row.total_amount_cents),
        due_date=row.due_date,
        created_at=row.created_at,
        updated_at=row.updated_at,
        category=row.category,
        created_by=row.created_by,
        status=row.status,
        amount_paid=from_cents(row.amount_paid_cents),
        paid_at=row.paid_at,
        payment_references=list(row.payment_references or []),
    )

class SqlVendorRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, draft: VendorDraft) -> Vendor:
        row = VendorRecord(
            name=draft.name,
            email=draft.email,
            phone=draft.phone,
            address=draft.address,
            tax_id=draft.tax_id,
            bank_account=draft.bank_account,
            payment_terms=draft.payment_terms,
            status="active",
            total_paid_cents=0,
            total_owed_cents=0,
            created_at=draft.created_at,
            updated_at=draft.created_at,
        )
        self.session.add(row)
        await self.session.flush()
        await self.session.refresh(row)
        return _to_domain(row)

    async def get(self, vendor_id: int) -> Vendor | None:
        row = await self.session.get(VendorRecord, vendor_id)
        return _to_domain(row) if row else None

    async def list(self) -> Sequence[Vendor]:
        result = await self.session.execute(select(VendorRecord).order_by(VendorRecord.id))
        return [_to_domain(row) for row in result.scalars().all()]

    async def update(self, vendor_id: int, changes: Mapping[str, Any]) -> Vendor | None:
        values = {
            _MONEY_COLUMNS.get(key, key): to_cents(value) if key in _MONEY_COLUMNS else value
            for key, value in changes.items()
        }
        return await self._update(vendor_id, values)

    async def add_payment(self, vendor_id: int, amount: Decimal, at: datetime) -> Vendor | None:
        return await self._update(
            vendor_id,
            {
                "total_paid_cents": VendorRecord.total_paid_cents + to_cents(amount),
                "last_payment_date": at,
                "updated_at": at,
            },
        )

    async def add_owed(self, vendor_id: int, amount: Decimal, at: datetime) -> Vendor | None:
        return await self._update(
            vendor_id,
            {"total_owed_cents": VendorRecord.total_owed_cents + to_cents(amount), "updated_at": at},
        )

    async def _update(self, vendor_id: int, values: Mapping[str, Any]) -> Vendor | None:
        stmt = (
            update(VendorRecord)
            .where(VendorRecord.id == vendor_id)
            .values(**values)
            .execution_options(synchronize_session="fetch")
            .returning(VendorRecord)
        )
        result = await self.session.execute(stmt)
        row = result.scalars().first()
        return _to_domain(row) if row else None


class SqlVendorBillRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, draft: VendorBillDraft) -> VendorBill:
        row = VendorBillRecord(
            vendor_id=draft.vendor_id,
            vendor_name=draft.vendor_name,
            bill_number=draft.bill_number,
            description=draft.description,
            category=draft.category,
            amount_cents=to_cents(draft.amount),
            tax_amount_cents=to_cents(draft.tax_amount),
            total_amount_cents=to_cents(draft.amount + draft.tax_amount),
            amount_paid_cents=0,
            due_date=draft.due_date,
            status="pending",
            payment_references=[],
            created_by=draft.created_by,
            created_at=draft.created_at,
            updated_at=draft.created_at,
        )
        self.session.add(row)
        await self.session.flush()
        await self.session.refresh(row)
        return _bill(row)

    async def get(self, bill_id: int) -> VendorBill | None:
        row = await self.session.get(VendorBillRecord, bill_id)
        return _bill(row) if row else None

    async def list(
        self,
        *,
        vendor_id: Optional[int] = None,
        statuses: Optional[Iterable[str]] = None,
    ) -> Sequence[VendorBill]:
        stmt = select(VendorBillRecord)
        if vendor_id is not None:
            stmt = stmt.where(VendorBillRecord.vendor_id == vendor_id)
        if statuses is not None:
            stmt = stmt.where(VendorBillRecord.status.in_(list(statuses)))
        result = await self.session.execute(stmt.order_by(VendorBillRecord.due_date, VendorBillRecord.id))
        return [_bill(row) for row in result.scalars().all()]

    async def update(self, bill_id: int, changes: Mapping[str, Any]) -> VendorBill | None:
        values = {
            _BILL_MONEY_COLUMNS.get(key, key): to_cents(value) if key in _BILL_MONEY_COLUMNS else value
            for key, value in changes.items()
        }
        stmt = (
            update(VendorBillRecord)
            .where(VendorBillRecord.id == bill_id)
            .values(**values)
            .execution_options(synchronize_session="fetch")
            .returning(VendorBillRecord)
        )
        result = await self.session.execute(stmt)
        row = result.scalars().first()
        return _bill(row) if row else None
