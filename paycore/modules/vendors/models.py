"""Vendor directory models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional

ACTIVE = "active"
INACTIVE = "inactive"

VENDOR_STATUSES = (ACTIVE, INACTIVE)

# Fields a caller may change through ``VendorDirectory.update``.
EDITABLE_FIELDS = frozenset(
    {"name", "email", "phone", "address", "tax_id", "bank_account", "payment_terms", "status"}
)


@dataclass(slots=True)
class VendorDraft:
    name: str
    email: str
    phone: str
    created_at: datetime
    address: str = ""
    tax_id: str = ""
    bank_account: str = ""
    payment_terms: str = "Net 30"


@dataclass(slots=True)
class Vendor:
    id: int
    name: str
    email: str
    phone: str
    created_at: datetime
    updated_at: datetime
    address: str = ""
    tax_id: str = ""
    bank_account: str = ""
    payment_terms: str = "Net 30"
    status: str = ACTIVE
    total_paid: Decimal = Decimal("0")
    total_owed: Decimal = Decimal("0")
    last_payment_date: Optional[datetime] = None

    @classmethod
    def from_draft(cls, id: int, draft: VendorDraft) -> "Vendor":
        return cls(
            id=id,
            name=draft.name,
            email=draft.email,
            phone=draft.phone,
            created_at=draft.created_at,
            updated_at=draft.created_at,
            address=draft.address,
            tax_id=draft.tax_id,
            bank_account=draft.bank_account,
            payment_terms=draft.payment_terms,
        )


PENDING = "pending"
PARTIALLY_PAID = "partially_paid"
PAID = "paid"

BILL_STATUSES = (PENDING, PARTIALLY_PAID, PAID)
# Statuses that still leave money owed to the vendor.
OPEN_BILL_STATUSES = (PENDING, PARTIALLY_PAID)


@dataclass(slots=True)
class VendorBillDraft:
    vendor_id: int
    vendor_name: str
    bill_number: str
    description: str
    amount: Decimal
    tax_amount: Decimal
    due_date: datetime
    created_at: datetime
    category: str = "general"
    created_by: Optional[str] = None


@dataclass(slots=True)
class VendorBill:
    id: int
    vendor_id: int
    vendor_name: str
    bill_number: str
    description: str
    amount: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    due_date: datetime
    created_at: datetime
    updated_at: datetime
    category: str = "general"
    created_by: Optional[str] = None
    status: str = PENDING
    amount_paid: Decimal = Decimal("0")
    paid_at: Optional[datetime] = None
    payment_references: list[str] = field(default_factory=list)

    @property
    def balance_due(self) -> Decimal:
        return self.total_amount - self.amount_paid

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_BILL_STATUSES

    def is_overdue(self, now: datetime) -> bool:
        return self.is_open and self.due_date < now

    @classmethod
    def from_draft(cls, id: int, draft: VendorBillDraft) -> "VendorBill":
        return cls(
            id=id,
            vendor_id=draft.vendor_id,
            vendor_name=draft.vendor_name,
            bill_number=draft.bill_number,
            description=draft.description,
            amount=draft.amount,
            tax_amount=draft.tax_amount,
            total_amount=draft.amount + draft.tax_amount,
            due_date=draft.due_date,
            created_at=draft.created_at,
            updated_at=draft.created_at,
            category=draft.category,
            created_by=draft.created_by,
        )


@dataclass(slots=True)
class BillPayment:
    """One settlement of a bill out of the store wallet."""

    bill: VendorBill
    amount: Decimal
    reference: str
    wallet_transaction_id: str
    paid_at: datetime
