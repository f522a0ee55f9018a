"""Repository protocols for vendors and their bills."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Iterable, Mapping, Optional, Protocol, Sequence

from .models import Vendor, VendorBill, VendorBillDraft, VendorDraft


class VendorRepository(Protocol):
    async def create(self, draft: VendorDraft) -> Vendor:
        ...

    async def get(self, vendor_id: int) -> Vendor | None:
        ...

    async def list(self) -> Sequence[Vendor]:
        ...

    async def update(self, vendor_id: int, changes: Mapping[str, Any]) -> Vendor | None:
        ...

    async def add_payment(self, vendor_id: int, amount: Decimal, at: datetime) -> Vendor | None:
        """Atomically add ``amount`` to ``total_paid`` and stamp ``last_payment_date``."""
        ...

    async def add_owed(self, vendor_id: int, amount: Decimal, at: datetime) -> Vendor | None:
        """Atomically add ``amount`` (negative to settle) to ``total_owed``."""
        ...


class VendorBillRepository(Protocol):
    async def create(self, draft: VendorBillDraft) -> VendorBill:
        ...

    async def get(self, bill_id: int) -> VendorBill | None:
        ...

    async def list(
        self,
        *,
        vendor_id: Optional[int] = None,
        statuses: Optional[Iterable[str]] = None,
    ) -> Sequence[VendorBill]:
        """Ordered by due date, earliest first."""
        ...

    async def update(self, bill_id: int, changes: Mapping[str, Any]) -> VendorBill | None:
        ...
