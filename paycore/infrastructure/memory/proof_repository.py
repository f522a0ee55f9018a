from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Sequence

from paycore.modules.proofs import DELETED, PaymentProof, ProofDraft

from .base import InMemoryStore, detached, with_changes


class InMemoryProofRepository(InMemoryStore):
    def __init__(self) -> None:
        super().__init__()
        self._rows: dict[str, PaymentProof] = {}

    async def create(self, draft: ProofDraft) -> PaymentProof:
        async with self._lock:
            if draft.file_name in self._rows:
                raise ValueError(f"Duplicate proof file name {draft.file_name}")
            proof = PaymentProof.from_draft(self._next_id(), detached(draft))
            self._rows[proof.file_name] = proof
            return detached(proof)

    async def get_by_file_name(self, file_name: str) -> PaymentProof | None:
        async with self._lock:
            return detached(self._rows.get(file_name))

    async def get_by_storage_key(self, key: str) -> PaymentProof | None:
        async with self._lock:
            for proof in self._rows.values():
                if key in (proof.storage_key, proof.thumbnail_key):
                    return detached(proof)
            return None

    async def list_by_order(self, order_id: int) -> Sequence[PaymentProof]:
        async with self._lock:
            return [detached(row) for row in self._rows.values() if row.order_id == order_id]

    async def list_by_status(self, status: str) -> Sequence[PaymentProof]:
        async with self._lock:
            rows = [row for row in self._rows.values() if row.status == status]
        rows.sort(key=lambda row: (row.uploaded_at, row.id))
        return [detached(row) for row in rows]

    async def list_uploaded_before(self, cutoff: datetime) -> Sequence[PaymentProof]:
        async with self._lock:
            return [
                detached(row)
                for row in self._rows.values()
                if row.status != DELETED and row.uploaded_at < cutoff
            ]

    async def count_active(self) -> int:
        async with self._lock:
            return sum(1 for row in self._rows.values() if row.status != DELETED)

    async def update(self, file_name: str, changes: Mapping[str, Any]) -> PaymentProof | None:
        async with self._lock:
            current = self._rows.get(file_name)
            if current is None:
                return None
            updated = self._rows[file_name] = with_changes(current, changes)
            return detached(updated)

    async def discard(self, file_name: str) -> None:
        async with self._lock:
            self._rows.pop(file_name, None)
