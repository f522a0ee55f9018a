from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Iterable, Mapping, Optional, Sequence

from paycore.modules.vendors import Vendor, VendorBill, VendorBillDraft, VendorDraft

from .base import InMemoryStore, detached, with_changes


class InMemoryVendorRepository(InMemoryStore):
    def __init__(self) -> None:
        super().__init__()
        self._rows: dict[int, Vendor] = {}

    async def create(self, draft: VendorDraft) -> Vendor:
        async with self._lock:
            vendor = Vendor.from_draft(self._next_id(), detached(draft))
            self._rows[vendor.id] = vendor
            return detached(vendor)

    async def get(self, vendor_id: int) -> Vendor | None:
        async with self._lock:
            return detached(self._rows.get(vendor_id))

    async def list(self) -> Sequence[Vendor]:
        async with self._lock:
            return [detached(row) for row in sorted(self._rows.values(), key=lambda row: row.id)]

    async def update(self, vendor_id: int, changes: Mapping[str, Any]) -> Vendor | None:
        async with self._lock:
            current = self._rows.get(vendor_id)
            if current is None:
                return None
            updated = self._rows[vendor_id] = with_changes(current, changes)
            return detached(updated)

    async def add_payment(self, vendor_id: int, amount: Decimal, at: datetime) -> Vendor | None:
        async with self._lock:
            vendor = self._rows.get(vendor_id)
            if vendor is None:
                return None
            vendor.total_paid += amount
            vendor.last_payment_date = at
            vendor.updated_at = at
            return detached(vendor)

    async def add_owed(self, vendor_id: int, amount: Decimal, at: datetime) -> Vendor | None:
        async with self._lock:
            vendor = self._rows.get(vendor_id)
            if vendor is None:
                return None
            vendor.total_owed += amount
            vendor.updated_at = at
            return detached(vendor)


class InMemoryVendorBillRepository(InMemoryStore):
    def __init__(self) -> None:
        super().__init__()
        self._rows: dict[int, VendorBill] = {}

    async def create(self, draft: VendorBillDraft) -> VendorBill:
        async with self._lock:
            bill = VendorBill.from_draft(self._next_id(), detached(draft))
            self._rows[bill.id] = bill
            return detached(bill)

    async def get(self, bill_id: int) -> VendorBill | None:
        async with self._lock:
            return detached(self._rows.get(bill_id))

    async def list(
        self,
        *,
        vendor_id: Optional[int] = None,
        statuses: Optional[Iterable[str]] = None,
    ) -> Sequence[VendorBill]:
        wanted = set(statuses) if statuses is not None else None
        async with self._lock:
            rows = [
                row
                for row in self._rows.values()
                if (vendor_id is None or row.vendor_id == vendor_id) and (wanted is None or row.status in wanted)
            ]
        rows.sort(key=lambda row: (row.due_date, row.id))
        return [detached(row) for row in rows]

    async def update(self, bill_id: int, changes: Mapping[str, Any]) -> VendorBill | None:
        async with self._lock:
            current = self._rows.get(bill_id)
            if current is None:
                return None
            updated = self._rows[bill_id] = with_changes(current, changes)
            return detached(updated)
