"""Quarantine review endpoints."""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from paycore.core.container import ServiceSet
from paycore.interfaces.http.deps import AdminIdentity, get_admin_identity, get_services, require_admin
from paycore.schemas import (
    BulkQuarantineReviewRequest,
    BulkQuarantineReviewResponse,
    QuarantineEntryResponse,
    QuarantineReviewRequest,
    QuarantineStatisticsResponse,
)

router = APIRouter()


@router.get("", response_model=list[QuarantineEntryResponse])
async def list_quarantined(
    status: Optional[str] = Query(default=None),
    services: ServiceSet = Depends(get_services),
    actor: str = Depends(require_admin),
):
    return [QuarantineEntryResponse.model_validate(entry) for entry in await services.quarantine.list(status)]


@router.get("/stats", response_model=QuarantineStatisticsResponse)
async def quarantine_statistics(services: ServiceSet = Depends(get_services), actor: str = Depends(require_admin)):
    return QuarantineStatisticsResponse.model_validate(await services.quarantine.statistics())


@router.post("/bulk-review", response_model=BulkQuarantineReviewResponse)
async def bulk_review(
    payload: BulkQuarantineReviewRequest,
    identity: AdminIdentity = Depends(get_admin_identity),
    services: ServiceSet = Depends(get_services),
):
    result = await services.quarantine.bulk_review(
        payload.quarantine_ids,
        payload.action,
        identity.role,
        identity.session_token,
    )
    return BulkQuarantineReviewResponse.model_validate(result)


@router.get("/{quarantine_id}", response_model=QuarantineEntryResponse)
async def get_quarantined(
    quarantine_id: int,
    services: ServiceSet = Depends(get_services),
    actor: str = Depends(require_admin),
):
    return QuarantineEntryResponse.model_validate(await services.quarantine.get(quarantine_id))


@router.post("/{quarantine_id}/review", response_model=QuarantineEntryResponse)
async def review_quarantined(
    quarantine_id: int,
    payload: QuarantineReviewRequest,
    identity: AdminIdentity = Depends(get_admin_identity),
    services: ServiceSet = Depends(get_services),
):
    entry = await services.quarantine.review(quarantine_id, payload.action, identity.role, identity.session_token)
    return QuarantineEntryResponse.model_validate(entry)
