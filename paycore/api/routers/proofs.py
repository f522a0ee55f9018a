"""Payment proof upload, secure access and review."""
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile, status

from paycore.core.container import ServiceSet
from paycore.interfaces.http.deps import (
    AdminIdentity,
    get_admin_identity,
    get_client_ip,
    get_services,
    require_admin,
    require_payment_manager,
)
from paycore.modules.proofs import UploadedFile
from paycore.schemas import (
    CleanupReportResponse,
    PaymentProofResponse,
    ProofAccessResponse,
    ProofReviewRequest,
    ProofReviewResponse,
    RetentionStatusResponse,
    RetentionUpdateRequest,
)

router = APIRouter()


@router.post("", response_model=PaymentProofResponse, status_code=status.HTTP_201_CREATED)
async def upload_proof(
    file: UploadFile = File(...),
    order_id: int = Form(...),
    transaction_id: Optional[str] = Form(default=None),
    user_id: Optional[str] = Form(default=None),
    services: ServiceSet = Depends(get_services),
    client_ip: Optional[str] = Depends(get_client_ip),
):
    upload = UploadedFile(
        file_name=file.filename or "",
        content_type=file.content_type or "",
        content=await file.read(services.uploads.policy.max_size_bytes + 1),
    )
    proof = await services.uploads.upload(upload, order_id, transaction_id, user_id, client_ip=client_ip)
    return PaymentProofResponse.model_validate(proof)


@router.get("", response_model=list[PaymentProofResponse])
async def list_order_proofs(
    order_id: int = Query(...),
    services: ServiceSet = Depends(get_services),
    actor: str = Depends(require_admin),
):
    return [PaymentProofResponse.model_validate(proof) for proof in await services.reviews.list_by_order(order_id)]


@router.get("/download")
async def download_proof(
    key: str = Query(...),
    expires: int = Query(...),
    signature: str = Query(...),
    services: ServiceSet = Depends(get_services),
    client_ip: Optional[str] = Depends(get_client_ip),
):
    content = await services.access.open_signed(key, expires, signature, client_ip=client_ip)
    return Response(content=content.content, media_type=content.media_type, headers=content.headers)


@router.get("/queue", response_model=list[PaymentProofResponse])
async def review_queue(services: ServiceSet = Depends(get_services), actor: str = Depends(require_payment_manager)):
    return [PaymentProofResponse.model_validate(proof) for proof in await services.reviews.queue()]


@router.get("/retention", response_model=RetentionStatusResponse)
async def retention_status(services: ServiceSet = Depends(get_services), actor: str = Depends(require_admin)):
    return RetentionStatusResponse.model_validate(services.retention.status())


@router.put("/retention", response_model=RetentionStatusResponse)
async def update_retention(
    payload: RetentionUpdateRequest,
    services: ServiceSet = Depends(get_services),
    actor: str = Depends(require_payment_manager),
):
    services.retention.set_retention_days(payload.retention_days)
    return RetentionStatusResponse.model_validate(services.retention.status())


@router.post("/retention/run", response_model=CleanupReportResponse)
async def run_retention(services: ServiceSet = Depends(get_services), actor: str = Depends(require_payment_manager)):
    return CleanupReportResponse.model_validate(await services.retention.run())


@router.get("/{file_name}/access", response_model=ProofAccessResponse)
async def access_proof(
    file_name: str,
    response: Response,
    identity: AdminIdentity = Depends(get_admin_identity),
    services: ServiceSet = Depends(get_services),
    client_ip: Optional[str] = Depends(get_client_ip),
):
    descriptor = await services.access.fetch(file_name, identity.role, identity.session_token, client_ip)
    response.headers.update(descriptor.headers)
    response.headers["Cache-Control"] = descriptor.cache_control
    return ProofAccessResponse.model_validate(descriptor)


@router.post("/{file_name}/submit", response_model=PaymentProofResponse)
async def submit_proof(file_name: str, services: ServiceSet = Depends(get_services)):
    return PaymentProofResponse.model_validate(await services.reviews.submit(file_name))


@router.post("/{file_name}/review", response_model=ProofReviewResponse)
async def review_proof(
    file_name: str,
    payload: ProofReviewRequest,
    identity: AdminIdentity = Depends(get_admin_identity),
    services: ServiceSet = Depends(get_services),
):
    outcome = await services.reviews.review(
        file_name,
        payload.approved,
        identity.role,
        identity.session_token,
        notes=payload.notes,
    )
    return ProofReviewResponse.model_validate(outcome)


@router.delete("/{file_name}", response_model=PaymentProofResponse)
async def delete_proof(
    file_name: str,
    identity: AdminIdentity = Depends(get_admin_identity),
    services: ServiceSet = Depends(get_services),
):
    proof = await services.reviews.soft_delete(file_name, identity.role, identity.session_token)
    return PaymentProofResponse.model_validate(proof)
