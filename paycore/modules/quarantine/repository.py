"""Repository protocol for quarantine entries."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional, Protocol, Sequence

from .models import QuarantineDraft, QuarantineEntry


class QuarantineRepository(Protocol):
    async def create(self, draft: QuarantineDraft) -> QuarantineEntry:
        ...

    async def get(self, quarantine_id: int) -> QuarantineEntry | None:
        ...

    async def list(self, status: Optional[str] = None) -> Sequence[QuarantineEntry]:
        """Newest first."""
        ...

    async def update(self, quarantine_id: int, changes: Mapping[str, Any]) -> QuarantineEntry | None:
        ...

    async def list_due_for_deletion(self, now: datetime) -> Sequence[QuarantineEntry]:
        """Entries not yet deleted whose ``auto_delete_after`` has passed."""
        ...
