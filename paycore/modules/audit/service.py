"""Append-only audit trail for file access and quarantine actions."""

from __future__ import annotations

import csv
import io
import json
from typing import Any, Mapping, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from paycore.core.errors import ValidationError
from paycore.core.identifiers import Clock, generate_audit_id, utcnow

from .models import AuditEntry, AuditExport, AuditFilter
from .repository import AuditRepository

EXPORT_FORMATS = {"json": "application/json", "csv": "text/csv"}

_CSV_COLUMNS = (
    "id",
    "timestamp",
    "action",
    "actor",
    "subject_id",
    "outcome",
    "order_id",
    "client_ip",
    "reason",
    "details",
)


def mask_token(token: Optional[str]) -> Optional[str]:
    if not token:
        return None
    return token[:8] + "..."


class AuditTrail:
    def __init__(self, repository: AuditRepository, *, clock: Clock = utcnow) -> None:
        self._repository = repository
        self._clock = clock

    @classmethod
    def with_session(cls, session: AsyncSession, **kwargs) -> "AuditTrail":
        from paycore.infrastructure.database.repositories.audit_repository import SqlAuditRepository

        return cls(SqlAuditRepository(session), **kwargs)

    async def record(
        self,
        action: str,
        *,
        actor: str,
        subject_id: str,
        outcome: str,
        order_id: Optional[int] = None,
        client_ip: Optional[str] = None,
        reason: Optional[str] = None,
        details: Optional[Mapping[str, Any]] = None,
    ) -> AuditEntry:
        now = self._clock()
        entry = AuditEntry(
            id=generate_audit_id(now),
            timestamp=now,
            action=action,
            actor=actor,
            subject_id=subject_id,
            outcome=outcome,
            order_id=order_id,
            client_ip=client_ip,
            reason=reason,
            details=dict(details or {}),
        )
        await self._repository.append(entry)
        return entry

    async def query(self, filters: Optional[AuditFilter] = None) -> Sequence[AuditEntry]:
        return await self._repository.query(filters or AuditFilter())

    async def export(
        self,
        format: str = "json",
        filters: Optional[AuditFilter] = None,
        *,
        exported_by: str = "system",
    ) -> AuditExport:
        """Render matching entries as a compliance bundle. Read-only."""
        format = format.lower()
        if format not in EXPORT_FORMATS:
            raise ValidationError(
                f"Unsupported export format: {format}. Use json or csv.",
                code="INVALID_EXPORT_FORMAT",
            )
        filters = filters or AuditFilter()
        entries = await self.query(filters)
        exported = AuditExport(
            exported_at=self._clock(),
            exported_by=exported_by,
            format=format,
            total_records=len(entries),
            filters=filters.to_dict(),
            content="",
            media_type=EXPORT_FORMATS[format],
        )
        exported.content = _to_csv(entries) if format == "csv" else _to_json(exported, entries)
        return exported


def _to_json(exported: AuditExport, entries: Sequence[AuditEntry]) -> str:
    payload = {
        "exported_at": exported.exported_at.isoformat(),
        "exported_by": exported.exported_by,
        "format": exported.format,
        "total_records": exported.total_records,
        "filters": exported.filters,
        "compliance": exported.compliance,
        "data": [entry.to_dict() for entry in entries],
    }
    return json.dumps(payload, indent=2, default=str)


def _to_csv(entries: Sequence[AuditEntry]) -> str:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=_CSV_COLUMNS)
    writer.writeheader()
    for entry in entries:
        row = entry.to_dict()
        row["details"] = json.dumps(row["details"], default=str, sort_keys=True)
        writer.writerow(row)
    return buffer.getvalue()


__all__ = ["AuditTrail", "EXPORT_FORMATS", "mask_token"]
