"""Vendor directory and vendor bills."""

from fastapi import APIRouter, Depends, status

from paycore.core.container import ServiceSet
from paycore.interfaces.http.deps import get_services, require_admin, require_payment_manager
from paycore.schemas import (
    BillPaymentRequest,
    BillPaymentResponse,
    VendorBillCreate,
    VendorBillResponse,
    VendorCreate,
    VendorResponse,
    VendorUpdate,
)

router = APIRouter()


@router.post("", response_model=VendorResponse, status_code=status.HTTP_201_CREATED)
async def create_vendor(
    payload: VendorCreate,
    services: ServiceSet = Depends(get_services),
    actor: str = Depends(require_payment_manager),
):
    vendor = await services.vendors.create(
        payload.name,
        payload.email,
        payload.phone,
        address=payload.address,
        tax_id=payload.tax_id,
        bank_account=payload.bank_account,
        payment_terms=payload.payment_terms,
    )
    return VendorResponse.model_validate(vendor)


@router.get("/bills/pending", response_model=list[VendorBillResponse])
async def pending_bills(services: ServiceSet = Depends(get_services), actor: str = Depends(require_payment_manager)):
    return [VendorBillResponse.model_validate(bill) for bill in await services.bills.pending()]


@router.get("/bills/overdue", response_model=list[VendorBillResponse])
async def overdue_bills(services: ServiceSet = Depends(get_services), actor: str = Depends(require_payment_manager)):
    return [VendorBillResponse.model_validate(bill) for bill in await services.bills.overdue()]


@router.get("/bills/{bill_id}", response_model=VendorBillResponse)
async def get_bill(bill_id: int, services: ServiceSet = Depends(get_services), actor: str = Depends(require_payment_manager)):
    return VendorBillResponse.model_validate(await services.bills.get(bill_id))


@router.post("/bills/{bill_id}/payments", response_model=BillPaymentResponse, status_code=status.HTTP_201_CREATED)
async def pay_bill(
    bill_id: int,
    payload: BillPaymentRequest,
    services: ServiceSet = Depends(get_services),
    actor: str = Depends(require_payment_manager),
):
    payment = await services.bills.pay(bill_id, payload.amount, reference=payload.reference, notes=payload.notes)
    return BillPaymentResponse.model_validate(payment)


@router.get("", response_model=list[VendorResponse])
async def list_vendors(services: ServiceSet = Depends(get_services), actor: str = Depends(require_admin)):
    return [VendorResponse.model_validate(vendor) for vendor in await services.vendors.list()]


@router.get("/{vendor_id}", response_model=VendorResponse)
async def get_vendor(vendor_id: int, services: ServiceSet = Depends(get_services), actor: str = Depends(require_admin)):
    return VendorResponse.model_validate(await services.vendors.get(vendor_id))


@router.patch("/{vendor_id}", response_model=VendorResponse)
async def update_vendor(
    vendor_id: int,
    payload: VendorUpdate,
    services: ServiceSet = Depends(get_services),
    actor: str = Depends(require_payment_manager),
):
    vendor = await services.vendors.update(vendor_id, payload.model_dump(exclude_unset=True))
    return VendorResponse.model_validate(vendor)


@router.post("/{vendor_id}/bills", response_model=VendorBillResponse, status_code=status.HTTP_201_CREATED)
async def create_bill(
    vendor_id: int,
    payload: VendorBillCreate,
    services: ServiceSet = Depends(get_services),
    actor: str = Depends(require_payment_manager),
):
    bill = await services.bills.create(
        vendor_id,
        payload.amount,
        payload.description,
        tax_amount=payload.tax_amount,
        bill_number=payload.bill_number,
        due_date=payload.due_date,
        category=payload.category,
        actor=actor,
    )
    return VendorBillResponse.model_validate(bill)


@router.get("/{vendor_id}/bills", response_model=list[VendorBillResponse])
async def list_vendor_bills(
    vendor_id: int,
    services: ServiceSet = Depends(get_services),
    actor: str = Depends(require_payment_manager),
):
    return [VendorBillResponse.model_validate(bill) for bill in await services.bills.list(vendor_id)]
