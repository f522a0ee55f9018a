from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional, Sequence

from paycore.modules.recurring import (
    PENDING,
    RecurringPayment,
    RecurringPlanDraft,
    ScheduledPayment,
    ScheduledPaymentDraft,
)

from .base import InMemoryStore, detached, with_changes


class InMemoryRecurringRepository(InMemoryStore):
    def __init__(self) -> None:
        super().__init__()
        self._plans: dict[int, RecurringPayment] = {}
        self._scheduled: dict[int, ScheduledPayment] = {}
        self._last_scheduled_id = 0

    async def create_plan(self, draft: RecurringPlanDraft) -> RecurringPayment:
        async with self._lock:
            plan = RecurringPayment.from_draft(self._next_id(), detached(draft))
            self._plans[plan.id] = plan
            return detached(plan)

    async def get_plan(self, plan_id: int) -> RecurringPayment | None:
        async with self._lock:
            return detached(self._plans.get(plan_id))

    async def list_plans(self, status: Optional[str] = None) -> Sequence[RecurringPayment]:
        async with self._lock:
            rows = [row for row in self._plans.values() if status is None or row.status == status]
        rows.sort(key=lambda row: (row.next_payment_date, row.id))
        return [detached(row) for row in rows]

    async def update_plan(self, plan_id: int, changes: Mapping[str, Any]) -> RecurringPayment | None:
        async with self._lock:
            current = self._plans.get(plan_id)
            if current is None:
                return None
            updated = self._plans[plan_id] = with_changes(current, changes)
            return detached(updated)

    async def create_scheduled(self, draft: ScheduledPaymentDraft) -> ScheduledPayment:
        async with self._lock:
            self._last_scheduled_id += 1
            scheduled = ScheduledPayment.from_draft(self._last_scheduled_id, detached(draft))
            self._scheduled[scheduled.id] = scheduled
            return detached(scheduled)

    async def get_scheduled(self, scheduled_id: int) -> ScheduledPayment | None:
        async with self._lock:
            return detached(self._scheduled.get(scheduled_id))

    async def update_scheduled(self, scheduled_id: int, changes: Mapping[str, Any]) -> ScheduledPayment | None:
        async with self._lock:
            current = self._scheduled.get(scheduled_id)
            if current is None:
                return None
            updated = self._scheduled[scheduled_id] = with_changes(current, changes)
            return detached(updated)

    async def list_due(self, now: datetime) -> Sequence[ScheduledPayment]:
        return await self._pending(lambda row: row.scheduled_date <= now)

    async def list_pending(
        self,
        plan_id: Optional[int] = None,
        until: Optional[datetime] = None,
    ) -> Sequence[ScheduledPayment]:
        return await self._pending(
            lambda row: (plan_id is None or row.recurring_payment_id == plan_id)
            and (until is None or row.scheduled_date <= until)
        )

    async def list_processed_since(self, since: datetime) -> Sequence[ScheduledPayment]:
        async with self._lock:
            return [
                detached(row)
                for row in self._scheduled.values()
                if row.status != PENDING and row.processed_at is not None and row.processed_at >= since
            ]

    async def delete_pending(self, plan_id: int) -> int:
        async with self._lock:
            doomed = [
                key
                for key, row in self._scheduled.items()
                if row.recurring_payment_id == plan_id and row.status == PENDING
            ]
            for key in doomed:
                del self._scheduled[key]
            return len(doomed)

    async def _pending(self, predicate) -> Sequence[ScheduledPayment]:
        async with self._lock:
            rows = [row for row in self._scheduled.values() if row.status == PENDING and predicate(row)]
        rows.sort(key=lambda row: (row.scheduled_date, row.id))
        return [detached(row) for row in rows]
