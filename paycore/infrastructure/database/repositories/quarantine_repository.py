"""SQLAlchemy implementation for the quarantine registry"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional, Sequence

from sqlalchemy import desc, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from paycore.infrastructure.database.models import QuarantineRecord
from paycore.modules.quarantine import DELETED, QuarantineDraft, QuarantineEntry


def _to_domain(row: QuarantineRecord) -> QuarantineEntry:
    return QuarantineEntry(
        id=row.id,
        original_file_name=row.original_file_name,
        file_size=row.file_size,
        mime_type=row.mime_type,
        threats=list(row.threats or []),
        risk_level=row.risk_level,
        scan_engine=row.scan_engine,
        quarantined_at=row.quarantined_at,
        auto_delete_after=row.auto_delete_after,
        isolation_key=row.isolation_key,
        status=row.status,
        source=row.source,
        order_id=row.order_id,
        subject_id=row.subject_id,
        reviewed_at=row.reviewed_at,
        reviewed_by=row.reviewed_by,
        action=row.action,
        deleted_at=row.deleted_at,
    )


class SqlQuarantineRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, draft: QuarantineDraft) -> QuarantineEntry:
        row = QuarantineRecord(
            original_file_name=draft.original_file_name,
            file_size=draft.file_size,
            mime_type=draft.mime_type,
            threats=list(draft.threats),
            risk_level=draft.risk_level,
            scan_engine=draft.scan_engine,
            quarantined_at=draft.quarantined_at,
            auto_delete_after=draft.auto_delete_after,
            isolation_key=draft.isolation_key,
            status="quarantined",
            source=draft.source,
            order_id=draft.order_id,
            subject_id=draft.subject_id,
        )
        self.session.add(row)
        await self.session.flush()
        await self.session.refresh(row)
        return _to_domain(row)

    async def get(self, quarantine_id: int) -> QuarantineEntry | None:
        row = await self.session.get(QuarantineRecord, quarantine_id)
        return _to_domain(row) if row else None

    async def list(self, status: Optional[str] = None) -> Sequence[QuarantineEntry]:
        stmt = select(QuarantineRecord)
        if status is not None:
            stmt = stmt.where(QuarantineRecord.status == status)
        stmt = stmt.order_by(desc(QuarantineRecord.quarantined_at), desc(QuarantineRecord.id))
        result = await self.session.execute(stmt)
        return [_to_domain(row) for row in result.scalars().all()]

    async def update(self, quarantine_id: int, changes: Mapping[str, Any]) -> QuarantineEntry | None:
        stmt = (
            update(QuarantineRecord)
            .where(QuarantineRecord.id == quarantine_id)
            .values(**changes)
            .execution_options(synchronize_session="fetch")
            .returning(QuarantineRecord)
        )
        result = await self.session.execute(stmt)
        row = result.scalars().first()
        return _to_domain(row) if row else None

    async def list_due_for_deletion(self, now: datetime) -> Sequence[QuarantineEntry]:
        stmt = (
            select(QuarantineRecord)
            .where(QuarantineRecord.status != DELETED, QuarantineRecord.auto_delete_after <= now)
            .order_by(QuarantineRecord.id)
        )
        result = await self.session.execute(stmt)
        return [_to_domain(row) for row in result.scalars().all()]
