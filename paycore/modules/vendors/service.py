"""Vendor directory use cases."""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Mapping, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from paycore.core.errors import NotFoundError, ValidationError
from paycore.core.identifiers import Clock, utcnow
from paycore.core.money import AmountLike, to_amount

from .models import EDITABLE_FIELDS, VENDOR_STATUSES, Vendor, VendorDraft
from .repository import VendorRepository

logger = logging.getLogger(__name__)


class VendorDirectory:
    def __init__(self, repository: VendorRepository, *, clock: Clock = utcnow) -> None:
        self._repository = repository
        self._clock = clock

    @classmethod
    def with_session(cls, session: AsyncSession, **kwargs) -> "VendorDirectory":
        from paycore.infrastructure.database.repositories.vendor_repository import SqlVendorRepository

        return cls(SqlVendorRepository(session), **kwargs)

    async def create(
        self,
        name: str,
        email: str,
        phone: str,
        *,
        address: str = "",
        tax_id: str = "",
        bank_account: str = "",
        payment_terms: str = "Net 30",
    ) -> Vendor:
        if not (name or "").strip() or not (email or "").strip() or not (phone or "").strip():
            raise ValidationError("Vendor name, email, and phone are required", code="INVALID_VENDOR")
        vendor = await self._repository.create(
            VendorDraft(
                name=name.strip(),
                email=email.strip(),
                phone=phone.strip(),
                created_at=self._clock(),
                address=address,
                tax_id=tax_id,
                bank_account=bank_account,
                payment_terms=payment_terms or "Net 30",
            )
        )
        logger.info("Created vendor %s (%s)", vendor.id, vendor.name)
        return vendor

    async def get(self, vendor_id: int) -> Vendor:
        vendor = await self._repository.get(vendor_id)
        if vendor is None:
            raise NotFoundError("Vendor not found", code="VENDOR_NOT_FOUND")
        return vendor

    async def exists(self, vendor_id: int) -> bool:
        return await self._repository.get(vendor_id) is not None

    async def list(self) -> Sequence[Vendor]:
        return await self._repository.list()

    async def update(self, vendor_id: int, changes: Mapping[str, Any]) -> Vendor:
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError(
                f"Fields cannot be updated: {', '.join(sorted(unknown))}",
                code="INVALID_VENDOR_FIELDS",
            )
        for required in ("name", "email", "phone"):
            if required in changes and not str(changes[required] or "").strip():
                raise ValidationError(f"Vendor {required} cannot be empty", code="INVALID_VENDOR")
        if "status" in changes and changes["status"] not in VENDOR_STATUSES:
            raise ValidationError("Invalid vendor status", code="INVALID_VENDOR")
        return await self._update(vendor_id, {**changes, "updated_at": self._clock()})

    async def record_payment(
        self,
        vendor_id: int,
        amount: AmountLike,
        at: Optional[datetime] = None,
    ) -> Vendor:
        """Add ``amount`` to the vendor's paid total."""
        value = to_amount(amount)
        vendor = await self._repository.add_payment(vendor_id, value, at or self._clock())
        if vendor is None:
            raise NotFoundError("Vendor not found", code="VENDOR_NOT_FOUND")
        return vendor

    async def add_owed(self, vendor_id: int, amount: Decimal, at: Optional[datetime] = None) -> Vendor:
        """Move the vendor's owed total by ``amount``; negative settles."""
        vendor = await self._repository.add_owed(vendor_id, amount, at or self._clock())
        if vendor is None:
            raise NotFoundError("Vendor not found", code="VENDOR_NOT_FOUND")
        return vendor

    async def _update(self, vendor_id: int, changes: Mapping[str, Any]) -> Vendor:
        vendor = await self._repository.update(vendor_id, changes)
        if vendor is None:
            raise NotFoundError("Vendor not found", code="VENDOR_NOT_FOUND")
        return vendor


__all__ = ["VendorDirectory"]
