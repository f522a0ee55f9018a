"""Audit trail exports"""

from .models import DENIED, FAILED, SUCCESS, AuditEntry, AuditExport, AuditFilter
from .repository import AuditRepository
from .service import EXPORT_FORMATS, AuditTrail, mask_token

__all__ = [
    "AuditEntry",
    "AuditExport",
    "AuditFilter",
    "AuditRepository",
    "AuditTrail",
    "DENIED",
    "EXPORT_FORMATS",
    "FAILED",
    "SUCCESS",
    "mask_token",
]
