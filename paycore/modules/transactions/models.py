"""Domain models for payment transactions."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

PROCESSING = "processing"
COMPLETED = "completed"
FAILED = "failed"
VERIFICATION_FAILED = "verification_failed"

TRANSACTION_STATUSES = (PROCESSING, COMPLETED, FAILED, VERIFICATION_FAILED)


@dataclass(slots=True, frozen=True)
class TransactionErrorInfo:
    code: str
    message: str
    category: str


@dataclass(slots=True)
class TransactionDraft:
    """Everything a new ledger entry needs except its numeric id."""

    transaction_id: str
    order_id: int
    amount: Decimal
    payment_method: str
    status: str
    timestamp: datetime
    retry_count: int = 0
    error: Optional[TransactionErrorInfo] = None
    gateway_response: Optional[dict[str, Any]] = None
    phone: Optional[str] = None
    card_last4: Optional[str] = None
    card_brand: Optional[str] = None
    original_transaction_id: Optional[str] = None


@dataclass(slots=True)
class Transaction:
    id: int
    transaction_id: str
    order_id: int
    amount: Decimal
    payment_method: str
    status: str
    timestamp: datetime
    retry_count: int = 0
    error: Optional[TransactionErrorInfo] = None
    gateway_response: Optional[dict[str, Any]] = None
    phone: Optional[str] = None
    card_last4: Optional[str] = None
    card_brand: Optional[str] = None
    original_transaction_id: Optional[str] = None
    proof_file_name: Optional[str] = None
    verified_at: Optional[datetime] = None
    verification_data: Optional[dict[str, Any]] = None
    updated_at: Optional[datetime] = None

    @property
    def is_retry(self) -> bool:
        return self.original_transaction_id is not None

    @property
    def is_completed(self) -> bool:
        return self.status == COMPLETED

    @classmethod
    def from_draft(cls, id: int, draft: TransactionDraft) -> "Transaction":
        return cls(
            id=id,
            transaction_id=draft.transaction_id,
            order_id=draft.order_id,
            amount=draft.amount,
            payment_method=draft.payment_method,
            status=draft.status,
            timestamp=draft.timestamp,
            retry_count=draft.retry_count,
            error=draft.error,
            gateway_response=draft.gateway_response,
            phone=draft.phone,
            card_last4=draft.card_last4,
            card_brand=draft.card_brand,
            original_transaction_id=draft.original_transaction_id,
        )


@dataclass(slots=True)
class VerificationResult:
    verified: bool
    transaction: Transaction


@dataclass(slots=True)
class TransactionPage:
    total: int
    items: list[Transaction] = field(default_factory=list)
