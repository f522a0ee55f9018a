"""Quarantine models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

QUARANTINED = "quarantined"
RELEASED = "released"
DELETED = "deleted"
EXTENDED = "extended"

QUARANTINE_STATUSES = (QUARANTINED, RELEASED, DELETED, EXTENDED)
OPEN_STATUSES = frozenset({QUARANTINED, EXTENDED})

RELEASE = "release"
DELETE = "delete"
EXTEND = "extend_quarantine"

REVIEW_ACTIONS = (RELEASE, DELETE, EXTEND)

SOURCE_UPLOAD = "upload"
SOURCE_ACCESS_RESCAN = "access_rescan"


@dataclass(slots=True)
class QuarantineDraft:
    original_file_name: str
    file_size: int
    mime_type: Optional[str]
    threats: list[str]
    risk_level: str
    scan_engine: str
    quarantined_at: datetime
    auto_delete_after: datetime
    isolation_key: str
    source: str = SOURCE_UPLOAD
    order_id: Optional[int] = None
    subject_id: Optional[str] = None


@dataclass(slots=True)
class QuarantineEntry:
    id: int
    original_file_name: str
    file_size: int
    mime_type: Optional[str]
    threats: list[str]
    risk_level: str
    scan_engine: str
    quarantined_at: datetime
    auto_delete_after: datetime
    isolation_key: str
    status: str = QUARANTINED
    source: str = SOURCE_UPLOAD
    order_id: Optional[int] = None
    subject_id: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None
    action: Optional[str] = None
    deleted_at: Optional[datetime] = None

    @property
    def review_required(self) -> bool:
        return self.status in OPEN_STATUSES

    @classmethod
    def from_draft(cls, id: int, draft: QuarantineDraft) -> "QuarantineEntry":
        return cls(
            id=id,
            original_file_name=draft.original_file_name,
            file_size=draft.file_size,
            mime_type=draft.mime_type,
            threats=list(draft.threats),
            risk_level=draft.risk_level,
            scan_engine=draft.scan_engine,
            quarantined_at=draft.quarantined_at,
            auto_delete_after=draft.auto_delete_after,
            isolation_key=draft.isolation_key,
            source=draft.source,
            order_id=draft.order_id,
            subject_id=draft.subject_id,
        )


@dataclass(slots=True)
class BulkReviewItem:
    quarantine_id: int
    success: bool
    entry: Optional[QuarantineEntry] = None
    error: Optional[dict[str, Any]] = None


@dataclass(slots=True)
class BulkReviewResult:
    action: str
    items: list[BulkReviewItem] = field(default_factory=list)

    @property
    def successful(self) -> int:
        return sum(1 for item in self.items if item.success)

    @property
    def failed(self) -> int:
        return sum(1 for item in self.items if not item.success)

    @property
    def errors(self) -> list[dict[str, Any]]:
        return [{"quarantine_id": item.quarantine_id, **(item.error or {})} for item in self.items if not item.success]


@dataclass(slots=True)
class QuarantineStatistics:
    total: int
    active: int
    released: int
    deleted: int
    extended: int
    pending_review: int
    threat_breakdown: dict[str, int] = field(default_factory=dict)
