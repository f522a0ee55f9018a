"""Pydantic schemas used by the HTTP layer."""
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class ErrorBody(BaseModel):
    kind: str
    code: str
    message: str
    retryable: bool = False
    details: dict[str, Any] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    error: ErrorBody


class PhoneValidationRequest(BaseModel):
    phone: str


class PhoneValidationResponse(BaseModel):
    phone: str
    valid: bool
    normalized: str
    network: Optional[str] = None


class CardPaymentRequest(BaseModel):
    order_id: int
    amount: Decimal
    card_number: str
    expiry_date: str = Field(..., description="MM/YY")
    cvv: str
    cardholder_name: str


class WalletPaymentRequest(BaseModel):
    gateway: str = Field(..., description="jazzcash, easypaisa, upaisa, sadapay")
    order_id: int
    amount: Decimal
    phone: str
    timeout_seconds: Optional[float] = Field(default=None, gt=0)


class RetryPaymentRequest(BaseModel):
    payment_method: Optional[str] = None
    phone: Optional[str] = None
    amount: Optional[Decimal] = None
    card_last4: Optional[str] = None
    card_brand: Optional[str] = None


class VerifyTransactionRequest(BaseModel):
    approved: Optional[bool] = None
    evidence: dict[str, Any] = Field(default_factory=dict)


class TransactionErrorResponse(BaseModel):
    code: str
    message: str
    category: str

    model_config = ConfigDict(from_attributes=True)


class TransactionResponse(BaseModel):
    id: int
    transaction_id: str
    order_id: int
    amount: Decimal
    payment_method: str
    status: str
    timestamp: datetime
    retry_count: int
    error: Optional[TransactionErrorResponse] = None
    gateway_response: Optional[dict[str, Any]] = None
    phone: Optional[str] = None
    card_last4: Optional[str] = None
    card_brand: Optional[str] = None
    original_transaction_id: Optional[str] = None
    proof_file_name: Optional[str] = None
    verified_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class TransactionListResponse(BaseModel):
    total: int
    items: list[TransactionResponse]


class VerificationResponse(BaseModel):
    verified: bool
    transaction: TransactionResponse

    model_config = ConfigDict(from_attributes=True)


class PaymentMethodResponse(BaseModel):
    name: str
    display_name: str
    kind: str
    enabled: bool

    model_config = ConfigDict(from_attributes=True)


class WalletAmountRequest(BaseModel):
    amount: Decimal
    reference: Optional[str] = None
    description: Optional[str] = None


class WalletTransferRequest(WalletAmountRequest):
    recipient: str


class WalletPaymentOutRequest(WalletAmountRequest):
    payee: Optional[str] = None


class WalletTransactionResponse(BaseModel):
    id: str
    account_id: str
    type: str
    amount: Decimal
    balance_after: Decimal
    timestamp: datetime
    reference: str
    description: Optional[str] = None
    counterparty: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class WalletSnapshotResponse(BaseModel):
    account_id: str
    balance: Decimal
    transactions: list[WalletTransactionResponse]


class PaymentProofResponse(BaseModel):
    id: int
    file_name: str
    original_name: str
    mime_type: str
    file_size: int
    checksum: str
    order_id: int
    transaction_id: Optional[str] = None
    user_id: str
    uploaded_at: datetime
    expires_at: datetime
    storage_key: str
    thumbnail_key: str
    width: int
    height: int
    status: str
    quarantine_status: str
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None
    review_notes: Optional[str] = None
    deleted_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class SignedUrlResponse(BaseModel):
    url: str
    key: str
    expires_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProofAccessResponse(BaseModel):
    file_name: str
    original_name: str
    mime_type: str
    file_size: int
    checksum: str
    bucket: str
    quarantine_status: str
    full_image: SignedUrlResponse
    thumbnail: SignedUrlResponse
    expires_at: datetime
    content_disposition: str
    cache_control: str
    accessed_by: str
    accessed_at: datetime
    audit_id: str

    model_config = ConfigDict(from_attributes=True)


class ProofReviewRequest(BaseModel):
    approved: bool
    notes: Optional[str] = Field(default=None, max_length=1000)


class ProofReviewResponse(BaseModel):
    proof: PaymentProofResponse
    verification: Optional[VerificationResponse] = None

    model_config = ConfigDict(from_attributes=True)


class RetentionUpdateRequest(BaseModel):
    retention_days: int


class CleanupReportResponse(BaseModel):
    started_at: datetime
    finished_at: Optional[datetime] = None
    files_scanned: int
    files_deleted: int
    space_reclaimed: int
    quarantine_purged: int
    errors: list[dict[str, Any]]

    model_config = ConfigDict(from_attributes=True)


class RetentionStatusResponse(BaseModel):
    retention_days: int
    runs: int
    last_run_at: Optional[datetime] = None
    last_report: Optional[CleanupReportResponse] = None

    model_config = ConfigDict(from_attributes=True)


class QuarantineEntryResponse(BaseModel):
    id: int
    original_file_name: str
    file_size: int
    mime_type: Optional[str] = None
    threats: list[str]
    risk_level: str
    scan_engine: str
    quarantined_at: datetime
    auto_delete_after: datetime
    status: str
    source: str
    order_id: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None
    action: Optional[str] = None
    review_required: bool

    model_config = ConfigDict(from_attributes=True)


class QuarantineReviewRequest(BaseModel):
    action: str = Field(..., description="release, delete, extend_quarantine")


class BulkQuarantineReviewRequest(QuarantineReviewRequest):
    quarantine_ids: list[int] = Field(..., min_length=1)


class BulkQuarantineReviewResponse(BaseModel):
    action: str
    successful: int
    failed: int
    errors: list[dict[str, Any]]

    model_config = ConfigDict(from_attributes=True)


class QuarantineStatisticsResponse(BaseModel):
    total: int
    active: int
    released: int
    deleted: int
    extended: int
    pending_review: int
    threat_breakdown: dict[str, int]

    model_config = ConfigDict(from_attributes=True)


class AuditEntryResponse(BaseModel):
    id: str
    timestamp: datetime
    action: str
    actor: str
    subject_id: str
    outcome: str
    order_id: Optional[int] = None
    client_ip: Optional[str] = None
    reason: Optional[str] = None
    details: dict[str, Any]

    model_config = ConfigDict(from_attributes=True)


class AuditListResponse(BaseModel):
    total: int
    entries: list[AuditEntryResponse]


class VendorCreate(BaseModel):
    name: str
    email: str
    phone: str
    address: str = ""
    tax_id: str = ""
    bank_account: str = ""
    payment_terms: str = "Net 30"


class VendorUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    tax_id: Optional[str] = None
    bank_account: Optional[str] = None
    payment_terms: Optional[str] = None
    status: Optional[str] = None


class VendorResponse(BaseModel):
    id: int
    name: str
    email: str
    phone: str
    address: str
    tax_id: str
    bank_account: str
    payment_terms: str
    status: str
    total_paid: Decimal
    total_owed: Decimal
    last_payment_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class VendorBillCreate(BaseModel):
    amount: Decimal
    description: str
    tax_amount: Decimal = Decimal("0")
    bill_number: Optional[str] = None
    due_date: Optional[datetime] = None
    category: Optional[str] = None


class VendorBillResponse(BaseModel):
    id: int
    vendor_id: int
    vendor_name: str
    bill_number: str
    description: str
    category: str
    amount: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    amount_paid: Decimal
    balance_due: Decimal
    due_date: datetime
    status: str
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    paid_at: Optional[datetime] = None
    payment_references: list[str]

    model_config = ConfigDict(from_attributes=True)


class BillPaymentRequest(BaseModel):
    amount: Optional[Decimal] = None
    reference: Optional[str] = None
    notes: Optional[str] = None


class BillPaymentResponse(BaseModel):
    bill: VendorBillResponse
    amount: Decimal
    reference: str
    wallet_transaction_id: str
    paid_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RecurringPaymentCreate(BaseModel):
    name: str
    vendor_id: int
    amount: Decimal
    frequency: str
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    description: Optional[str] = None
    payment_method: str = "wallet"
    auto_retry: bool = True
    max_retries: Optional[int] = None
    retry_interval_hours: Optional[int] = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class RecurringPaymentUpdate(BaseModel):
    name: Optional[str] = None
    vendor_id: Optional[int] = None
    amount: Optional[Decimal] = None
    frequency: Optional[str] = None
    end_date: Optional[datetime] = None
    description: Optional[str] = None
    auto_retry: Optional[bool] = None
    max_retries: Optional[int] = None
    retry_interval_hours: Optional[int] = None
    metadata: Optional[dict[str, Any]] = None


class RecurringPaymentResponse(BaseModel):
    id: int
    name: str
    vendor_id: int
    vendor_name: str
    amount: Decimal
    frequency: str
    start_date: datetime
    end_date: Optional[datetime] = None
    next_payment_date: datetime
    status: str
    description: str
    payment_method: str
    auto_retry: bool
    max_retries: int
    retry_interval_hours: int
    total_payments: int
    successful_payments: int
    failed_payments: int
    last_payment_date: Optional[datetime] = None
    last_payment_status: Optional[str] = None
    last_payment_amount: Optional[Decimal] = None
    failure_reason: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    metadata: dict[str, Any]

    model_config = ConfigDict(from_attributes=True)


class ScheduledPaymentResponse(BaseModel):
    id: int
    recurring_payment_id: int
    scheduled_date: datetime
    amount: Decimal
    status: str
    retry_count: int
    is_retry: bool
    original_scheduled_payment_id: Optional[int] = None
    processed_at: Optional[datetime] = None
    failure_reason: Optional[str] = None
    payment_reference: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ScheduledPaymentViewResponse(BaseModel):
    scheduled: ScheduledPaymentResponse
    plan: Optional[RecurringPaymentResponse] = None

    model_config = ConfigDict(from_attributes=True)


class ScheduledItemResponse(BaseModel):
    scheduled_payment_id: int
    recurring_payment_id: int
    success: bool
    reference: Optional[str] = None
    error: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class BatchResultResponse(BaseModel):
    processed: int
    successful: int
    failed: int
    errors: list[dict[str, Any]]
    items: list[ScheduledItemResponse]

    model_config = ConfigDict(from_attributes=True)


class RecurringAnalyticsResponse(BaseModel):
    active_recurring_payments: int
    recurring_by_frequency: dict[str, int]
    monthly_projection: Decimal
    success_rate: float
    upcoming_payments: int
    completed_payments: int
    failed_payments: int
    total_automated_amount: Decimal
    avg_payment_amount: Decimal

    model_config = ConfigDict(from_attributes=True)

