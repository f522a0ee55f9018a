"""SQLAlchemy implementation for payment proofs"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Sequence

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from paycore.infrastructure.database.models import PaymentProofRecord
from paycore.modules.proofs import DELETED, PaymentProof, ProofDraft


def _to_domain(row: PaymentProofRecord) -> PaymentProof:
    return PaymentProof(
        id=row.id,
        file_name=row.file_name,
        original_name=row.original_name,
        mime_type=row.mime_type,
        file_size=row.file_size,
        checksum=row.checksum,
        order_id=row.order_id,
        transaction_id=row.transaction_id,
        user_id=row.user_id,
        uploaded_at=row.uploaded_at,
        expires_at=row.expires_at,
        bucket=row.bucket,
        storage_key=row.storage_key,
        thumbnail_key=row.thumbnail_key,
        width=row.width,
        height=row.height,
        status=row.status,
        quarantine_status=row.quarantine_status,
        scan_result=dict(row.scan_result or {}),
        reviewed_at=row.reviewed_at,
        reviewed_by=row.reviewed_by,
        review_notes=row.review_notes,
        deleted_at=row.deleted_at,
        deleted_by=row.deleted_by,
    )


class SqlProofRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, draft: ProofDraft) -> PaymentProof:
        row = PaymentProofRecord(
            file_name=draft.file_name,
            original_name=draft.original_name,
            mime_type=draft.mime_type,
            file_size=draft.file_size,
            checksum=draft.checksum,
            order_id=draft.order_id,
            transaction_id=draft.transaction_id,
            user_id=draft.user_id,
            uploaded_at=draft.uploaded_at,
            expires_at=draft.expires_at,
            bucket=draft.bucket,
            storage_key=draft.storage_key,
            thumbnail_key=draft.thumbnail_key,
            width=draft.width,
            height=draft.height,
            status=draft.status,
            quarantine_status="clean",
            scan_result=dict(draft.scan_result),
        )
        self.session.add(row)
        await self.session.flush()
        await self.session.refresh(row)
        return _to_domain(row)

    async def get_by_file_name(self, file_name: str) -> PaymentProof | None:
        return await self._first(select(PaymentProofRecord).where(PaymentProofRecord.file_name == file_name))

    async def get_by_storage_key(self, key: str) -> PaymentProof | None:
        return await self._first(
            select(PaymentProofRecord).where(
                or_(PaymentProofRecord.storage_key == key, PaymentProofRecord.thumbnail_key == key)
            )
        )

    async def list_by_order(self, order_id: int) -> Sequence[PaymentProof]:
        return await self._all(
            select(PaymentProofRecord).where(PaymentProofRecord.order_id == order_id).order_by(PaymentProofRecord.id)
        )

    async def list_by_status(self, status: str) -> Sequence[PaymentProof]:
        return await self._all(
            select(PaymentProofRecord)
            .where(PaymentProofRecord.status == status)
            .order_by(PaymentProofRecord.uploaded_at, PaymentProofRecord.id)
        )

    async def list_uploaded_before(self, cutoff: datetime) -> Sequence[PaymentProof]:
        return await self._all(
            select(PaymentProofRecord)
            .where(PaymentProofRecord.status != DELETED, PaymentProofRecord.uploaded_at < cutoff)
            .order_by(PaymentProofRecord.id)
        )

    async def count_active(self) -> int:
        stmt = select(func.count()).select_from(PaymentProofRecord).where(PaymentProofRecord.status != DELETED)
        return int(await self.session.scalar(stmt) or 0)

    async def update(self, file_name: str, changes: Mapping[str, Any]) -> PaymentProof | None:
        stmt = (
            update(PaymentProofRecord)
            .where(PaymentProofRecord.file_name == file_name)
            .values(**changes)
            .execution_options(synchronize_session="fetch")
            .returning(PaymentProofRecord)
        )
        result = await self.session.execute(stmt)
        row = result.scalars().first()
        return _to_domain(row) if row else None

    async def discard(self, file_name: str) -> None:
        await self.session.execute(
            delete(PaymentProofRecord)
            .where(PaymentProofRecord.file_name == file_name)
            .execution_options(synchronize_session="fetch")
        )

    async def _first(self, stmt) -> PaymentProof | None:
        result = await self.session.execute(stmt)
        row = result.scalars().first()
        return _to_domain(row) if row else None

    async def _all(self, stmt) -> Sequence[PaymentProof]:
        result = await self.session.execute(stmt)
        return [_to_domain(row) for row in result.scalars().all()]
