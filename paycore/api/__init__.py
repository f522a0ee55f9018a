from fastapi import APIRouter

from paycore.api.routers import audit, payments, phones, proofs, quarantine, recurring, vendors, wallet


def create_api_router(prefix: str = "") -> APIRouter:
    router = APIRouter(prefix=prefix)
    router.include_router(phones.router, prefix="/phones", tags=["phones"])
    router.include_router(payments.router, prefix="/payments", tags=["payments"])
    router.include_router(wallet.router, prefix="/wallet", tags=["wallet"])
    router.include_router(proofs.router, prefix="/proofs", tags=["proofs"])
    router.include_router(quarantine.router, prefix="/quarantine", tags=["quarantine"])
    router.include_router(audit.router, prefix="/audit", tags=["audit"])
    router.include_router(vendors.router, prefix="/vendors", tags=["vendors"])
    router.include_router(recurring.router, prefix="/recurring", tags=["recurring"])
    return router


__all__ = [
    "create_api_router",
]
