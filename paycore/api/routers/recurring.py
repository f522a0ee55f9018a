"""Recurring vendor payments."""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from paycore.core.container import ServiceSet
from paycore.interfaces.http.deps import get_services, require_admin, require_payment_manager
from paycore.schemas import (
    BatchResultResponse,
    RecurringAnalyticsResponse,
    RecurringPaymentCreate,
    RecurringPaymentResponse,
    RecurringPaymentUpdate,
    ScheduledPaymentViewResponse,
)

router = APIRouter()


@router.post("", response_model=RecurringPaymentResponse, status_code=status.HTTP_201_CREATED)
async def create_recurring(
    payload: RecurringPaymentCreate,
    services: ServiceSet = Depends(get_services),
    actor: str = Depends(require_payment_manager),
):
    plan = await services.recurring.create(
        payload.name,
        payload.vendor_id,
        payload.amount,
        payload.frequency,
        start_date=payload.start_date,
        end_date=payload.end_date,
        description=payload.description,
        payment_method=payload.payment_method,
        auto_retry=payload.auto_retry,
        max_retries=payload.max_retries,
        retry_interval_hours=payload.retry_interval_hours,
        created_by=actor,
        metadata=payload.metadata,
    )
    return RecurringPaymentResponse.model_validate(plan)


@router.get("", response_model=list[RecurringPaymentResponse])
async def list_recurring(
    status: Optional[str] = Query(default=None),
    services: ServiceSet = Depends(get_services),
    actor: str = Depends(require_admin),
):
    return [RecurringPaymentResponse.model_validate(plan) for plan in await services.recurring.list(status)]


@router.get("/scheduled", response_model=list[ScheduledPaymentViewResponse])
async def list_scheduled(
    days: int = Query(default=30, gt=0, le=366),
    services: ServiceSet = Depends(get_services),
    actor: str = Depends(require_admin),
):
    views = await services.recurring.list_scheduled(days)
    return [ScheduledPaymentViewResponse.model_validate(view) for view in views]


@router.get("/analytics", response_model=RecurringAnalyticsResponse)
async def recurring_analytics(
    days: int = Query(default=30, gt=0, le=366),
    services: ServiceSet = Depends(get_services),
    actor: str = Depends(require_admin),
):
    return RecurringAnalyticsResponse.model_validate(await services.recurring.analytics(days=days))


@router.post("/process", response_model=BatchResultResponse)
async def process_due(services: ServiceSet = Depends(get_services), actor: str = Depends(require_payment_manager)):
    return BatchResultResponse.model_validate(await services.recurring.process_due())


@router.get("/{plan_id}", response_model=RecurringPaymentResponse)
async def get_recurring(plan_id: int, services: ServiceSet = Depends(get_services), actor: str = Depends(require_admin)):
    return RecurringPaymentResponse.model_validate(await services.recurring.get(plan_id))


@router.patch("/{plan_id}", response_model=RecurringPaymentResponse)
async def update_recurring(
    plan_id: int,
    payload: RecurringPaymentUpdate,
    services: ServiceSet = Depends(get_services),
    actor: str = Depends(require_payment_manager),
):
    plan = await services.recurring.update(plan_id, payload.model_dump(exclude_unset=True))
    return RecurringPaymentResponse.model_validate(plan)


@router.post("/{plan_id}/pause", response_model=RecurringPaymentResponse)
async def pause_recurring(
    plan_id: int,
    services: ServiceSet = Depends(get_services),
    actor: str = Depends(require_payment_manager),
):
    return RecurringPaymentResponse.model_validate(await services.recurring.pause(plan_id, actor=actor))


@router.post("/{plan_id}/resume", response_model=RecurringPaymentResponse)
async def resume_recurring(
    plan_id: int,
    services: ServiceSet = Depends(get_services),
    actor: str = Depends(require_payment_manager),
):
    return RecurringPaymentResponse.model_validate(await services.recurring.resume(plan_id, actor=actor))


@router.post("/{plan_id}/cancel", response_model=RecurringPaymentResponse)
async def cancel_recurring(
    plan_id: int,
    services: ServiceSet = Depends(get_services),
    actor: str = Depends(require_payment_manager),
):
    return RecurringPaymentResponse.model_validate(await services.recurring.cancel(plan_id, actor=actor))
