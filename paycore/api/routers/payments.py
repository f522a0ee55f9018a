"""Card and digital wallet checkout plus the transaction ledger."""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from paycore.core.container import ApplicationContainer, ServiceSet
from paycore.interfaces.http.deps import get_app_container, get_services, require_payment_manager
from paycore.modules.checkout import CardDetails
from paycore.schemas import (
    CardPaymentRequest,
    PaymentMethodResponse,
    RetryPaymentRequest,
    TransactionListResponse,
    TransactionResponse,
    VerificationResponse,
    VerifyTransactionRequest,
    WalletPaymentRequest,
)

router = APIRouter()


@router.get("/methods", response_model=list[PaymentMethodResponse])
async def available_payment_methods(container: ApplicationContainer = Depends(get_app_container)):
    return [PaymentMethodResponse.model_validate(method) for method in container.router.payment_methods(enabled_only=True)]


@router.get("/gateways", response_model=list[PaymentMethodResponse])
async def list_gateways(
    container: ApplicationContainer = Depends(get_app_container),
    actor: str = Depends(require_payment_manager),
):
    return [PaymentMethodResponse.model_validate(method) for method in container.router.payment_methods()]


@router.post("/gateways/{gateway}/enable", response_model=PaymentMethodResponse)
async def enable_gateway(
    gateway: str,
    container: ApplicationContainer = Depends(get_app_container),
    actor: str = Depends(require_payment_manager),
):
    return PaymentMethodResponse.model_validate(container.router.enable(gateway))


@router.post("/gateways/{gateway}/disable", response_model=PaymentMethodResponse)
async def disable_gateway(
    gateway: str,
    container: ApplicationContainer = Depends(get_app_container),
    actor: str = Depends(require_payment_manager),
):
    return PaymentMethodResponse.model_validate(container.router.disable(gateway))


@router.post("/card", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED)
async def charge_card(payload: CardPaymentRequest, services: ServiceSet = Depends(get_services)):
    card = CardDetails(
        number=payload.card_number,
        expiry=payload.expiry_date,
        cvv=payload.cvv,
        holder_name=payload.cardholder_name,
    )
    transaction = await services.checkout.charge_card(card, payload.amount, payload.order_id)
    return TransactionResponse.model_validate(transaction)


@router.post("/wallet", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED)
async def charge_wallet(payload: WalletPaymentRequest, services: ServiceSet = Depends(get_services)):
    transaction = await services.checkout.charge_wallet(
        payload.gateway,
        payload.amount,
        payload.order_id,
        payload.phone,
        timeout=payload.timeout_seconds,
    )
    return TransactionResponse.model_validate(transaction)


@router.get("/transactions", response_model=TransactionListResponse)
async def list_transactions(
    order_id: Optional[int] = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, gt=0, le=500),
    services: ServiceSet = Depends(get_services),
    actor: str = Depends(require_payment_manager),
):
    if order_id is not None:
        items = await services.ledger.list_by_order(order_id)
        return TransactionListResponse(
            total=len(items),
            items=[TransactionResponse.model_validate(item) for item in items],
        )
    page = await services.ledger.list_page(offset, limit)
    return TransactionListResponse(
        total=page.total,
        items=[TransactionResponse.model_validate(item) for item in page.items],
    )


@router.get("/transactions/{transaction_id}", response_model=TransactionResponse)
async def get_transaction(
    transaction_id: str,
    services: ServiceSet = Depends(get_services),
    actor: str = Depends(require_payment_manager),
):
    return TransactionResponse.model_validate(await services.ledger.get(transaction_id))


@router.post("/transactions/{transaction_id}/verify", response_model=VerificationResponse)
async def verify_transaction(
    transaction_id: str,
    payload: VerifyTransactionRequest,
    services: ServiceSet = Depends(get_services),
    actor: str = Depends(require_payment_manager),
):
    result = await services.ledger.verify(transaction_id, payload.evidence, approved=payload.approved)
    return VerificationResponse.model_validate(result)


@router.post(
    "/transactions/{transaction_id}/retry",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def retry_transaction(
    transaction_id: str,
    payload: RetryPaymentRequest,
    services: ServiceSet = Depends(get_services),
):
    overrides = payload.model_dump(exclude_none=True)
    transaction = await services.checkout.retry_payment(transaction_id, overrides)
    return TransactionResponse.model_validate(transaction)
