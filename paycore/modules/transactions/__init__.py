"""Transaction ledger exports"""

from .models import (
    COMPLETED,
    FAILED,
    PROCESSING,
    TRANSACTION_STATUSES,
    VERIFICATION_FAILED,
    Transaction,
    TransactionDraft,
    TransactionErrorInfo,
    TransactionPage,
    VerificationResult,
)
from .repository import TransactionRepository
from .service import SimulatedVerifier, TransactionLedger, TransactionVerifier

__all__ = [
    "COMPLETED",
    "FAILED",
    "PROCESSING",
    "SimulatedVerifier",
    "TRANSACTION_STATUSES",
    "Transaction",
    "TransactionDraft",
    "TransactionErrorInfo",
    "TransactionLedger",
    "TransactionPage",
    "TransactionRepository",
    "TransactionVerifier",
    "VERIFICATION_FAILED",
    "VerificationResult",
]
