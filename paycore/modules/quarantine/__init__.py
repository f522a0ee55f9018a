"""Quarantine exports"""

from .models import (
    DELETE,
    DELETED,
    EXTEND,
    EXTENDED,
    QUARANTINE_STATUSES,
    QUARANTINED,
    RELEASE,
    RELEASED,
    REVIEW_ACTIONS,
    BulkReviewItem,
    BulkReviewResult,
    QuarantineDraft,
    QuarantineEntry,
    QuarantineStatistics,
)
from .repository import QuarantineRepository
from .service import QuarantineRegistry, QuarantineSubjects

__all__ = [
    "BulkReviewItem",
    "BulkReviewResult",
    "DELETE",
    "DELETED",
    "EXTEND",
    "EXTENDED",
    "QUARANTINED",
    "QUARANTINE_STATUSES",
    "QuarantineDraft",
    "QuarantineEntry",
    "QuarantineRegistry",
    "QuarantineRepository",
    "QuarantineStatistics",
    "QuarantineSubjects",
    "RELEASE",
    "RELEASED",
    "REVIEW_ACTIONS",
]
