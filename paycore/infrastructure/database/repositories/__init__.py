"""SQLAlchemy-backed repository implementations."""

from .audit_repository import SqlAuditRepository
from .proof_repository import SqlProofRepository
from .quarantine_repository import SqlQuarantineRepository
from .recurring_repository import SqlRecurringRepository
from .transaction_repository import SqlTransactionRepository
from .vendor_repository import SqlVendorBillRepository, SqlVendorRepository
from .wallet_repository import SqlWalletRepository

__all__ = [
    "SqlAuditRepository",
    "SqlProofRepository",
    "SqlQuarantineRepository",
    "SqlRecurringRepository",
    "SqlTransactionRepository",
    "SqlVendorBillRepository",
    "SqlVendorRepository",
    "SqlWalletRepository",
]
