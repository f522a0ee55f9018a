"""In-memory repository implementations"""

from .audit_repository import InMemoryAuditRepository
from .proof_repository import InMemoryProofRepository
from .quarantine_repository import InMemoryQuarantineRepository
from .recurring_repository import InMemoryRecurringRepository
from .transaction_repository import InMemoryTransactionRepository
from .vendor_repository import InMemoryVendorBillRepository, InMemoryVendorRepository
from .wallet_repository import InMemoryWalletRepository

__all__ = [
    "InMemoryAuditRepository",
    "InMemoryProofRepository",
    "InMemoryQuarantineRepository",
    "InMemoryRecurringRepository",
    "InMemoryTransactionRepository",
    "InMemoryVendorBillRepository",
    "InMemoryVendorRepository",
    "InMemoryWalletRepository",
]
