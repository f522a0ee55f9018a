"""Payment proof models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

UPLOADED = "uploaded"
PENDING_VERIFICATION = "pending_verification"
VERIFIED = "verified"
REJECTED = "rejected"
DELETED = "deleted"

PROOF_STATUSES = (UPLOADED, PENDING_VERIFICATION, VERIFIED, REJECTED, DELETED)

CLEAN = "clean"
QUARANTINED = "quarantined"

# Key in ``scan_result`` recording an admin release from quarantine.
RELEASE_MARKER = "quarantine_release"


@dataclass(slots=True)
class UploadedFile:
    """An upload as received, before any validation."""

    file_name: str
    content_type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def extension(self) -> str:
        if "." not in self.file_name:
            return ""
        return self.file_name.rsplit(".", 1)[-1].lower()


@dataclass(slots=True, frozen=True)
class ImageInfo:
    width: int
    height: int
    format: str


@dataclass(slots=True)
class ProofDraft:
    file_name: str
    original_name: str
    mime_type: str
    file_size: int
    checksum: str
    order_id: int
    transaction_id: Optional[str]
    user_id: str
    uploaded_at: datetime
    expires_at: datetime
    bucket: str
    storage_key: str
    thumbnail_key: str
    width: int
    height: int
    status: str = UPLOADED
    scan_result: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class PaymentProof:
    id: int
    file_name: str
    original_name: str
    mime_type: str
    file_size: int
    checksum: str
    order_id: int
    transaction_id: Optional[str]
    user_id: str
    uploaded_at: datetime
    expires_at: datetime
    bucket: str
    storage_key: str
    thumbnail_key: str
    width: int
    height: int
    status: str = UPLOADED
    quarantine_status: str = CLEAN
    scan_result: dict[str, Any] = field(default_factory=dict)
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None
    review_notes: Optional[str] = None
    deleted_at: Optional[datetime] = None
    deleted_by: Optional[str] = None

    @property
    def is_deleted(self) -> bool:
        return self.status == DELETED

    @property
    def is_quarantined(self) -> bool:
        return self.quarantine_status == QUARANTINED

    @property
    def is_released(self) -> bool:
        return RELEASE_MARKER in self.scan_result

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

    @classmethod
    def from_draft(cls, id: int, draft: ProofDraft) -> "PaymentProof":
        return cls(
            id=id,
            file_name=draft.file_name,
            original_name=draft.original_name,
            mime_type=draft.mime_type,
            file_size=draft.file_size,
            checksum=draft.checksum,
            order_id=draft.order_id,
            transaction_id=draft.transaction_id,
            user_id=draft.user_id,
            uploaded_at=draft.uploaded_at,
            expires_at=draft.expires_at,
            bucket=draft.bucket,
            storage_key=draft.storage_key,
            thumbnail_key=draft.thumbnail_key,
            width=draft.width,
            height=draft.height,
            status=draft.status,
            scan_result=dict(draft.scan_result),
        )


@dataclass(slots=True, frozen=True)
class SignedUrl:
    url: str
    key: str
    expires_at: datetime


@dataclass(slots=True)
class ProofAccessDescriptor:
    file_name: str
    original_name: str
    mime_type: str
    file_size: int
    checksum: str
    bucket: str
    storage_key: str
    quarantine_status: str
    full_image: SignedUrl
    thumbnail: SignedUrl
    expires_at: datetime
    headers: dict[str, str]
    content_disposition: str
    cache_control: str
    accessed_by: str
    accessed_at: datetime
    client_ip: Optional[str]
    audit_id: str


@dataclass(slots=True)
class ProofContent:
    file_name: str
    media_type: str
    content: bytes
    headers: dict[str, str]


@dataclass(slots=True)
class CleanupReport:
    started_at: datetime
    finished_at: Optional[datetime] = None
    files_scanned: int = 0
    files_deleted: int = 0
    space_reclaimed: int = 0
    quarantine_purged: int = 0
    errors: list[dict[str, Any]] = field(default_factory=list)


@dataclass(slots=True)
class RetentionStatus:
    retention_days: int
    runs: int
    last_run_at: Optional[datetime]
    last_report: Optional[CleanupReport]


@dataclass(slots=True)
class RetentionTracker:
    """Retention settings and run history that outlive a single service instance."""

    retention_days: int = 30
    runs: int = 0
    last_run_at: Optional[datetime] = None
    last_report: Optional[CleanupReport] = None

    def snapshot(self) -> RetentionStatus:
        return RetentionStatus(
            retention_days=self.retention_days,
            runs=self.runs,
            last_run_at=self.last_run_at,
            last_report=self.last_report,
        )
