from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional, Sequence

from paycore.modules.quarantine import DELETED, QuarantineDraft, QuarantineEntry

from .base import InMemoryStore, detached, with_changes


class InMemoryQuarantineRepository(InMemoryStore):
    def __init__(self) -> None:
        super().__init__()
        self._rows: dict[int, QuarantineEntry] = {}

    async def create(self, draft: QuarantineDraft) -> QuarantineEntry:
        async with self._lock:
            entry = QuarantineEntry.from_draft(self._next_id(), detached(draft))
            self._rows[entry.id] = entry
            return detached(entry)

    async def get(self, quarantine_id: int) -> QuarantineEntry | None:
        async with self._lock:
            return detached(self._rows.get(quarantine_id))

    async def list(self, status: Optional[str] = None) -> Sequence[QuarantineEntry]:
        async with self._lock:
            rows = [row for row in self._rows.values() if status is None or row.status == status]
            rows.sort(key=lambda row: (row.quarantined_at, row.id), reverse=True)
            return [detached(row) for row in rows]

    async def update(self, quarantine_id: int, changes: Mapping[str, Any]) -> QuarantineEntry | None:
        async with self._lock:
            current = self._rows.get(quarantine_id)
            if current is None:
                return None
            updated = self._rows[quarantine_id] = with_changes(current, changes)
            return detached(updated)

    async def list_due_for_deletion(self, now: datetime) -> Sequence[QuarantineEntry]:
        async with self._lock:
            return [
                detached(row)
                for row in self._rows.values()
                if row.status != DELETED and row.auto_delete_after <= now
            ]
