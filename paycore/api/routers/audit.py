"""Audit trail queries and compliance export."""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from paycore.core.container import ServiceSet
from paycore.interfaces.http.deps import get_services, require_admin
from paycore.modules.audit import AuditFilter
from paycore.schemas import AuditEntryResponse, AuditListResponse

router = APIRouter()


def get_audit_filter(
    start: Optional[datetime] = Query(default=None),
    end: Optional[datetime] = Query(default=None),
    actor: Optional[str] = Query(default=None),
    subject: Optional[str] = Query(default=None),
    order_id: Optional[int] = Query(default=None),
    action: Optional[str] = Query(default=None),
    outcome: Optional[str] = Query(default=None),
) -> AuditFilter:
    return AuditFilter(
        start=start,
        end=end,
        actor=actor,
        subject=subject,
        order_id=order_id,
        action=action,
        outcome=outcome,
    )


@router.get("", response_model=AuditListResponse)
async def query_audit(
    filters: AuditFilter = Depends(get_audit_filter),
    services: ServiceSet = Depends(get_services),
    actor: str = Depends(require_admin),
):
    entries = await services.audit.query(filters)
    return AuditListResponse(
        total=len(entries),
        entries=[AuditEntryResponse.model_validate(entry) for entry in entries],
    )


@router.get("/export")
async def export_audit(
    format: str = Query(default="json"),
    filters: AuditFilter = Depends(get_audit_filter),
    services: ServiceSet = Depends(get_services),
    actor: str = Depends(require_admin),
):
    exported = await services.audit.export(format, filters, exported_by=actor)
    stamp = exported.exported_at.strftime("%Y%m%dT%H%M%SZ")
    return Response(
        content=exported.content,
        media_type=exported.media_type,
        headers={"Content-Disposition": f'attachment; filename="audit-{stamp}.{exported.format}"'},
    )
