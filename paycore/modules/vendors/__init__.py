"""Vendor directory and vendor bill exports"""

from .bills import VendorBillBook, payment_term_days
from .models import (
    ACTIVE,
    BILL_STATUSES,
    INACTIVE,
    OPEN_BILL_STATUSES,
    PAID,
    PARTIALLY_PAID,
    PENDING,
    VENDOR_STATUSES,
    BillPayment,
    Vendor,
    VendorBill,
    VendorBillDraft,
    VendorDraft,
)
from .repository import VendorBillRepository, VendorRepository
from .service import VendorDirectory

__all__ = [
    "ACTIVE",
    "BILL_STATUSES",
    "BillPayment",
    "INACTIVE",
    "OPEN_BILL_STATUSES",
    "PAID",
    "PARTIALLY_PAID",
    "PENDING",
    "VENDOR_STATUSES",
    "Vendor",
    "VendorBill",
    "VendorBillBook",
    "VendorBillDraft",
    "VendorBillRepository",
    "VendorDirectory",
    "VendorDraft",
    "VendorRepository",
    "payment_term_days",
]
