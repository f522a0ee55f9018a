"""Vendor bills and their settlement from the store wallet."""

from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional, Sequence

from paycore.core.errors import NotFoundError, StateError, ValidationError
from paycore.core.identifiers import Clock, random_token, utcnow
from paycore.core.locks import KeyedLocks
from paycore.core.money import AmountLike, to_amount
from paycore.modules.wallets import WalletLedger

from .models import OPEN_BILL_STATUSES, PAID, PARTIALLY_PAID, BillPayment, VendorBill, VendorBillDraft
from .repository import VendorBillRepository
from .service import VendorDirectory

logger = logging.getLogger(__name__)

DEFAULT_TERM_DAYS = 30

_DIGITS = re.compile(r"\d+")


def payment_term_days(payment_terms: str) -> int:
    """Days until a bill falls due, read from terms such as ``Net 45``."""
    match = _DIGITS.search(payment_terms or "")
    days = int(match.group()) if match else 0
    return days or DEFAULT_TERM_DAYS


def generate_bill_number(moment: datetime) -> str:
    return f"BILL-{moment:%Y%m%d}-{random_token(6).upper()}"


class VendorBillBook:
    """Records what the store owes each vendor and pays it down.

    Creating a bill raises the vendor's ``total_owed`` by the bill total. Every
    payment debits the wallet, then moves the same amount from ``total_owed``
    to ``total_paid``. Payments on one bill are serialised.
    """

    def __init__(
        self,
        repository: VendorBillRepository,
        vendors: VendorDirectory,
        wallet: WalletLedger,
        *,
        locks: Optional[KeyedLocks] = None,
        clock: Clock = utcnow,
    ) -> None:
        self._repository = repository
        self._vendors = vendors
        self._wallet = wallet
        self._locks = locks or KeyedLocks()
        self._clock = clock

    async def create(
        self,
        vendor_id: int,
        amount: AmountLike,
        description: str,
        *,
        tax_amount: Optional[AmountLike] = None,
        bill_number: Optional[str] = None,
        due_date: Optional[datetime] = None,
        category: Optional[str] = None,
        actor: Optional[str] = None,
    ) -> VendorBill:
        if not (description or "").strip():
            raise ValidationError("Vendor ID, amount, and description are required", code="INVALID_BILL")
        value = to_amount(amount)
        tax = _tax(tax_amount)
        vendor = await self._vendors.get(vendor_id)
        now = self._clock()
        bill = await self._repository.create(
            VendorBillDraft(
                vendor_id=vendor.id,
                vendor_name=vendor.name,
                bill_number=(bill_number or "").strip() or generate_bill_number(now),
                description=description.strip(),
                amount=value,
                tax_amount=tax,
                due_date=due_date or now + timedelta(days=payment_term_days(vendor.payment_terms)),
                created_at=now,
                category=category or "general",
                created_by=actor,
            )
        )
        await self._vendors.add_owed(vendor.id, bill.total_amount, now)
        logger.info("Vendor %s billed %s (%s), due %s", vendor.id, bill.total_amount, bill.bill_number, bill.due_date)
        return bill

    async def get(self, bill_id: int) -> VendorBill:
        bill = await self._repository.get(bill_id)
        if bill is None:
            raise NotFoundError("Bill not found", code="BILL_NOT_FOUND")
        return bill

    async def list(self, vendor_id: Optional[int] = None) -> Sequence[VendorBill]:
        if vendor_id is not None:
            await self._vendors.get(vendor_id)
        return await self._repository.list(vendor_id=vendor_id)

    async def pending(self) -> Sequence[VendorBill]:
        """Bills with money still owed, earliest due date first."""
        return await self._repository.list(statuses=OPEN_BILL_STATUSES)

    async def overdue(self) -> Sequence[VendorBill]:
        now = self._clock()
        return [bill for bill in await self.pending() if bill.is_overdue(now)]

    async def pay(
        self,
        bill_id: int,
        amount: Optional[AmountLike] = None,
        *,
        reference: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> BillPayment:
        """Pay ``amount`` towards the bill, or its whole balance when omitted."""
        async with self._locks.hold(f"vendor-bill:{bill_id}"):
            bill = await self.get(bill_id)
            if bill.status == PAID:
                raise StateError("Bill is already paid", code="BILL_ALREADY_PAID")
            balance = bill.balance_due
            value = balance if amount is None else to_amount(amount)
            if value > balance:
                raise ValidationError(
                    "Payment amount cannot exceed bill amount",
                    code="BILL_OVERPAYMENT",
                    details={"requested": str(value), "balance_due": str(balance)},
                )

            entry = await self._wallet.payment(
                value,
                payee=bill.vendor_name,
                reference=reference,
                description=notes or f"Vendor bill {bill.bill_number}",
            )
            now = self._clock()
            settled = value == balance
            updated = await self._repository.update(
                bill.id,
                {
                    "amount_paid": bill.amount_paid + value,
                    "status": PAID if settled else PARTIALLY_PAID,
                    "paid_at": now if settled else None,
                    "payment_references": [*bill.payment_references, entry.reference],
                    "updated_at": now,
                },
            )
            if updated is None:
                raise NotFoundError("Bill not found", code="BILL_NOT_FOUND")
            await self._vendors.record_payment(bill.vendor_id, value, now)
            await self._vendors.add_owed(bill.vendor_id, -value, now)

        logger.info("Paid %s on bill %s, status %s", value, updated.bill_number, updated.status)
        return BillPayment(
            bill=updated,
            amount=value,
            reference=entry.reference,
            wallet_transaction_id=entry.id,
            paid_at=now,
        )


def _tax(value: Optional[AmountLike]) -> Decimal:
    if value is None or value == "":
        return Decimal("0.00")
    if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool) and value == 0:
        return Decimal("0.00")
    return to_amount(value, label="Tax amount")


__all__ = ["DEFAULT_TERM_DAYS", "VendorBillBook", "generate_bill_number", "payment_term_days"]
