from __future__ import annotations

from typing import Sequence

from paycore.modules.audit import AuditEntry, AuditFilter

from .base import InMemoryStore, detached


class InMemoryAuditRepository(InMemoryStore):
    """Append-only; entries are frozen and never replaced."""

    def __init__(self) -> None:
        super().__init__()
        self._entries: list[AuditEntry] = []

    async def append(self, entry: AuditEntry) -> None:
        async with self._lock:
            self._entries.append(detached(entry))

    async def query(self, filters: AuditFilter) -> Sequence[AuditEntry]:
        async with self._lock:
            matches = [entry for entry in self._entries if filters.matches(entry)]
        matches.sort(key=lambda entry: entry.timestamp, reverse=True)
        return [detached(entry) for entry in matches]
