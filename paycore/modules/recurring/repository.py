"""Repository protocol for recurring plans and their scheduled payments."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional, Protocol, Sequence

from .models import RecurringPayment, RecurringPlanDraft, ScheduledPayment, ScheduledPaymentDraft


class RecurringRepository(Protocol):
    async def create_plan(self, draft: RecurringPlanDraft) -> RecurringPayment:
        ...

    async def get_plan(self, plan_id: int) -> RecurringPayment | None:
        ...

    async def list_plans(self, status: Optional[str] = None) -> Sequence[RecurringPayment]:
        """Ordered by next payment date."""
        ...

    async def update_plan(self, plan_id: int, changes: Mapping[str, Any]) -> RecurringPayment | None:
        ...

    async def create_scheduled(self, draft: ScheduledPaymentDraft) -> ScheduledPayment:
        ...

    async def get_scheduled(self, scheduled_id: int) -> ScheduledPayment | None:
        ...

    async def update_scheduled(self, scheduled_id: int, changes: Mapping[str, Any]) -> ScheduledPayment | None:
        ...

    async def list_due(self, now: datetime) -> Sequence[ScheduledPayment]:
        """Pending entries scheduled at or before ``now``, earliest first."""
        ...

    async def list_pending(
        self,
        plan_id: Optional[int] = None,
        until: Optional[datetime] = None,
    ) -> Sequence[ScheduledPayment]:
        """Pending entries, earliest first."""
        ...

    async def list_processed_since(self, since: datetime) -> Sequence[ScheduledPayment]:
        """Completed or failed entries processed at or after ``since``."""
        ...

    async def delete_pending(self, plan_id: int) -> int:
        """Drop every pending entry of ``plan_id``; returns how many were removed."""
        ...
