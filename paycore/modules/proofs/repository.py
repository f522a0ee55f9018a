"""Repository protocol for payment proofs."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Protocol, Sequence

from .models import PaymentProof, ProofDraft


class ProofRepository(Protocol):
    async def create(self, draft: ProofDraft) -> PaymentProof:
        ...

    async def get_by_file_name(self, file_name: str) -> PaymentProof | None:
        ...

    async def get_by_storage_key(self, key: str) -> PaymentProof | None:
        """Proof whose image or thumbnail is stored under ``key``."""
        ...

    async def list_by_order(self, order_id: int) -> Sequence[PaymentProof]:
        ...

    async def list_by_status(self, status: str) -> Sequence[PaymentProof]:
        """Oldest upload first."""
        ...

    async def list_uploaded_before(self, cutoff: datetime) -> Sequence[PaymentProof]:
        """Proofs not yet deleted whose upload time is before ``cutoff``."""
        ...

    async def count_active(self) -> int:
        ...

    async def update(self, file_name: str, changes: Mapping[str, Any]) -> PaymentProof | None:
        ...

    async def discard(self, file_name: str) -> None:
        """Remove a record whose upload never completed."""
        ...
