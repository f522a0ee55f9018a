"""SQLAlchemy implementation for the audit trail"""

from __future__ import annotations

from typing import Sequence

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from paycore.infrastructure.database.models import AuditRecord
from paycore.modules.audit import AuditEntry, AuditFilter


def _to_domain(row: AuditRecord) -> AuditEntry:
    return AuditEntry(
        id=row.id,
        timestamp=row.timestamp,
        action=row.action,
        actor=row.actor,
        subject_id=row.subject_id,
        outcome=row.outcome,
        order_id=row.order_id,
        client_ip=row.client_ip,
        reason=row.reason,
        details=dict(row.details or {}),
    )


class SqlAuditRepository:
    """Insert-only: the table is never updated or deleted from."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def append(self, entry: AuditEntry) -> None:
        self.session.add(
            AuditRecord(
                id=entry.id,
                timestamp=entry.timestamp,
                action=entry.action,
                actor=entry.actor,
                subject_id=entry.subject_id,
                outcome=entry.outcome,
                order_id=entry.order_id,
                client_ip=entry.client_ip,
                reason=entry.reason,
                details=dict(entry.details),
            )
        )
        await self.session.flush()

    async def query(self, filters: AuditFilter) -> Sequence[AuditEntry]:
        stmt = select(AuditRecord)
        if filters.start is not None:
            stmt = stmt.where(AuditRecord.timestamp >= filters.start)
        if filters.end is not None:
            stmt = stmt.where(AuditRecord.timestamp <= filters.end)
        if filters.actor is not None:
            stmt = stmt.where(AuditRecord.actor == filters.actor)
        if filters.subject is not None:
            stmt = stmt.where(AuditRecord.subject_id.contains(filters.subject, autoescape=True))
        if filters.order_id is not None:
            stmt = stmt.where(AuditRecord.order_id == filters.order_id)
        if filters.action is not None:
            stmt = stmt.where(AuditRecord.action == filters.action)
        if filters.outcome is not None:
            stmt = stmt.where(AuditRecord.outcome == filters.outcome)
        stmt = stmt.order_by(desc(AuditRecord.timestamp))
        result = await self.session.execute(stmt)
        return [_to_domain(row) for row in result.scalars().all()]
