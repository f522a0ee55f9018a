"""Store wallet ledger."""

from fastapi import APIRouter, Depends, Query, status

from paycore.core.container import ServiceSet
from paycore.interfaces.http.deps import get_services, require_payment_manager
from paycore.schemas import (
    WalletAmountRequest,
    WalletPaymentOutRequest,
    WalletSnapshotResponse,
    WalletTransactionResponse,
    WalletTransferRequest,
)

router = APIRouter(dependencies=[Depends(require_payment_manager)])


@router.get("", response_model=WalletSnapshotResponse)
async def wallet_snapshot(
    limit: int = Query(default=20, gt=0, le=500),
    services: ServiceSet = Depends(get_services),
):
    account = await services.wallet.account()
    history = await services.wallet.history(limit)
    return WalletSnapshotResponse(
        account_id=account.account_id,
        balance=account.balance,
        transactions=[WalletTransactionResponse.model_validate(entry) for entry in history],
    )


@router.post("/deposit", response_model=WalletTransactionResponse, status_code=status.HTTP_201_CREATED)
async def deposit(payload: WalletAmountRequest, services: ServiceSet = Depends(get_services)):
    entry = await services.wallet.deposit(payload.amount, reference=payload.reference, description=payload.description)
    return WalletTransactionResponse.model_validate(entry)


@router.post("/withdraw", response_model=WalletTransactionResponse, status_code=status.HTTP_201_CREATED)
async def withdraw(payload: WalletAmountRequest, services: ServiceSet = Depends(get_services)):
    entry = await services.wallet.withdraw(payload.amount, reference=payload.reference, description=payload.description)
    return WalletTransactionResponse.model_validate(entry)


@router.post("/transfer", response_model=WalletTransactionResponse, status_code=status.HTTP_201_CREATED)
async def transfer(payload: WalletTransferRequest, services: ServiceSet = Depends(get_services)):
    entry = await services.wallet.transfer(
        payload.amount,
        payload.recipient,
        reference=payload.reference,
        description=payload.description,
    )
    return WalletTransactionResponse.model_validate(entry)


@router.post("/pay", response_model=WalletTransactionResponse, status_code=status.HTTP_201_CREATED)
async def pay(payload: WalletPaymentOutRequest, services: ServiceSet = Depends(get_services)):
    entry = await services.wallet.payment(
        payload.amount,
        payee=payload.payee,
        reference=payload.reference,
        description=payload.description,
    )
    return WalletTransactionResponse.model_validate(entry)


@router.get("/transactions", response_model=list[WalletTransactionResponse])
async def wallet_history(
    limit: int = Query(default=50, gt=0, le=500),
    services: ServiceSet = Depends(get_services),
):
    return [WalletTransactionResponse.model_validate(entry) for entry in await services.wallet.history(limit)]


@router.get("/transactions/{entry_id}", response_model=WalletTransactionResponse)
async def wallet_transaction(entry_id: str, services: ServiceSet = Depends(get_services)):
    return WalletTransactionResponse.model_validate(await services.wallet.get_transaction(entry_id))
