"""Audit trail models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

SUCCESS = "success"
DENIED = "denied"
FAILED = "failed"

FILE_UPLOAD = "file_upload"
ADMIN_FILE_ACCESS = "admin_file_access"
SIGNED_DOWNLOAD = "signed_url_download"
FILE_QUARANTINED = "file_quarantined"
PROOF_SUBMITTED = "proof_submitted"
PROOF_REVIEWED = "proof_reviewed"
PROOF_DELETED = "proof_deleted"
PROOF_EXPIRED_CLEANUP = "proof_expired_cleanup"
QUARANTINE_PURGED = "quarantine_auto_delete"

COMPLIANCE_METADATA = {
    "data_retention_policy": "7_years",
    "gdpr_compliant": True,
    "audit_standard": "ISO_27001",
    "encryption_level": "AES_256",
}


def quarantine_action(action: str) -> str:
    return f"quarantine_{action}"


@dataclass(slots=True, frozen=True)
class AuditEntry:
    id: str
    timestamp: datetime
    action: str
    actor: str
    subject_id: str
    outcome: str
    order_id: Optional[int] = None
    client_ip: Optional[str] = None
    reason: Optional[str] = None
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "action": self.action,
            "actor": self.actor,
            "subject_id": self.subject_id,
            "outcome": self.outcome,
            "order_id": self.order_id,
            "client_ip": self.client_ip,
            "reason": self.reason,
            "details": dict(self.details),
        }


@dataclass(slots=True)
class AuditFilter:
    """Every set field narrows the result; ``subject`` matches a substring."""

    start: Optional[datetime] = None
    end: Optional[datetime] = None
    actor: Optional[str] = None
    subject: Optional[str] = None
    order_id: Optional[int] = None
    action: Optional[str] = None
    outcome: Optional[str] = None

    def matches(self, entry: AuditEntry) -> bool:
        if self.start is not None and entry.timestamp < self.start:
            return False
        if self.end is not None and entry.timestamp > self.end:
            return False
        if self.actor is not None and entry.actor != self.actor:
            return False
        if self.subject is not None and self.subject not in entry.subject_id:
            return False
        if self.order_id is not None and entry.order_id != self.order_id:
            return False
        if self.action is not None and entry.action != self.action:
            return False
        if self.outcome is not None and entry.outcome != self.outcome:
            return False
        return True

    def to_dict(self) -> dict[str, Any]:
        values = {
            "start": self.start.isoformat() if self.start else None,
            "end": self.end.isoformat() if self.end else None,
            "actor": self.actor,
            "subject": self.subject,
            "order_id": self.order_id,
            "action": self.action,
            "outcome": self.outcome,
        }
        return {key: value for key, value in values.items() if value is not None}


@dataclass(slots=True)
class AuditExport:
    exported_at: datetime
    exported_by: str
    format: str
    total_records: int
    filters: dict[str, Any]
    content: str
    media_type: str
    compliance: dict[str, Any] = field(default_factory=lambda: dict(COMPLIANCE_METADATA))
