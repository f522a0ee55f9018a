"""Repository protocol for the audit trail."""

from __future__ import annotations

from typing import Protocol, Sequence

from .models import AuditEntry, AuditFilter


class AuditRepository(Protocol):
    async def append(self, entry: AuditEntry) -> None:
        ...

    async def query(self, filters: AuditFilter) -> Sequence[AuditEntry]:
        """Matching entries, newest first."""
        ...
