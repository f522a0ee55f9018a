"""Quarantine registry for files that failed a security scan."""

from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime, timedelta
from typing import Iterable, Optional, Protocol, Sequence

from paycore.core.errors import NotFoundError, PaymentError, StateError, ValidationError
from paycore.core.identifiers import Clock, epoch_millis, random_token, utcnow
from paycore.core.security import Authorizer
from paycore.infrastructure.storage import ObjectStorage
from paycore.modules.audit import SUCCESS, AuditTrail
from paycore.modules.audit.models import FILE_QUARANTINED, QUARANTINE_PURGED, quarantine_action
from paycore.modules.scanning import ScanResult

from .models import (
    DELETE,
    DELETED,
    EXTEND,
    EXTENDED,
    QUARANTINED,
    RELEASE,
    RELEASED,
    REVIEW_ACTIONS,
    SOURCE_UPLOAD,
    BulkReviewItem,
    BulkReviewResult,
    QuarantineDraft,
    QuarantineEntry,
    QuarantineStatistics,
)
from .repository import QuarantineRepository

logger = logging.getLogger(__name__)

SCANNER_ACTOR = "malware_scanner"


class QuarantineSubjects(Protocol):
    """Records a quarantine entry points at through ``subject_id``."""

    async def release(self, subject_id: str, entry: QuarantineEntry, actor: str) -> None: ...

    async def discard(self, subject_id: str, entry: QuarantineEntry, actor: str) -> None: ...


class QuarantineRegistry:
    """Isolates infected files and records every admin decision about them.

    Quarantined bytes live under ``isolation_prefix`` in object storage until
    an admin deletes them or ``auto_delete_after`` passes.
    """

    def __init__(
        self,
        repository: QuarantineRepository,
        storage: ObjectStorage,
        audit: AuditTrail,
        authorizer: Authorizer,
        *,
        isolation_prefix: str = "quarantine/isolation",
        retention_days: int = 30,
        subjects: Optional[QuarantineSubjects] = None,
        clock: Clock = utcnow,
    ) -> None:
        self._repository = repository
        self._storage = storage
        self._audit = audit
        self._authorizer = authorizer
        self._subjects = subjects
        self.isolation_prefix = isolation_prefix.strip("/")
        self.retention_days = retention_days
        self._clock = clock

    async def quarantine(
        self,
        file_name: str,
        content: bytes,
        scan: ScanResult,
        *,
        mime_type: Optional[str] = None,
        source: str = SOURCE_UPLOAD,
        order_id: Optional[int] = None,
        subject_id: Optional[str] = None,
    ) -> QuarantineEntry:
        now = self._clock()
        isolation_key = f"{self.isolation_prefix}/{epoch_millis(now)}_{random_token(6)}"
        await self._storage.put(isolation_key, content, "application/octet-stream")
        entry = await self._repository.create(
            QuarantineDraft(
                original_file_name=file_name,
                file_size=len(content),
                mime_type=mime_type,
                threats=list(scan.threats),
                risk_level=scan.risk_level,
                scan_engine=scan.engine,
                quarantined_at=now,
                auto_delete_after=now + timedelta(days=self.retention_days),
                isolation_key=isolation_key,
                source=source,
                order_id=order_id,
                subject_id=subject_id,
            )
        )
        await self._audit.record(
            FILE_QUARANTINED,
            actor=SCANNER_ACTOR,
            subject_id=subject_id or file_name,
            outcome=SUCCESS,
            order_id=order_id,
            details={
                "quarantine_id": entry.id,
                "threats": list(entry.threats),
                "risk_level": entry.risk_level,
                "source": source,
            },
        )
        logger.warning(
            "Quarantined %s as #%s (%s): %s",
            file_name,
            entry.id,
            source,
            ", ".join(entry.threats),
        )
        return entry

    async def get(self, quarantine_id: int) -> QuarantineEntry:
        entry = await self._repository.get(quarantine_id)
        if entry is None:
            raise NotFoundError("Quarantined file not found", code="QUARANTINE_NOT_FOUND")
        return entry

    async def list(self, status: Optional[str] = None) -> Sequence[QuarantineEntry]:
        return await self._repository.list(status)

    async def review(
        self,
        quarantine_id: int,
        action: str,
        role: Optional[str],
        session_token: Optional[str] = None,
    ) -> QuarantineEntry:
        actor = self._authorizer.require_quarantine_admin(role, session_token)
        return await self._review(quarantine_id, action, actor)

    async def bulk_review(
        self,
        quarantine_ids: Iterable[int],
        action: str,
        role: Optional[str],
        session_token: Optional[str] = None,
    ) -> BulkReviewResult:
        """Apply ``action`` per id; one failure never aborts the batch."""
        actor = self._authorizer.require_quarantine_admin(role, session_token)
        result = BulkReviewResult(action=action)
        for quarantine_id in quarantine_ids:
            try:
                entry = await self._review(quarantine_id, action, actor)
            except PaymentError as exc:
                result.items.append(
                    BulkReviewItem(quarantine_id=quarantine_id, success=False, error={"code": exc.code, "message": exc.message})
                )
            else:
                result.items.append(BulkReviewItem(quarantine_id=quarantine_id, success=True, entry=entry))
        logger.info(
            "Bulk quarantine %s by %s: %s succeeded, %s failed",
            action,
            actor,
            result.successful,
            result.failed,
        )
        return result

    async def statistics(self) -> QuarantineStatistics:
        entries = await self._repository.list()
        statuses = Counter(entry.status for entry in entries)
        threats: Counter[str] = Counter()
        for entry in entries:
            threats.update(entry.threats)
        return QuarantineStatistics(
            total=len(entries),
            active=statuses[QUARANTINED],
            released=statuses[RELEASED],
            deleted=statuses[DELETED],
            extended=statuses[EXTENDED],
            pending_review=sum(1 for entry in entries if entry.review_required),
            threat_breakdown=dict(threats),
        )

    async def purge_expired(self, now: Optional[datetime] = None) -> list[QuarantineEntry]:
        """Delete isolated bytes of entries past ``auto_delete_after``."""
        now = now or self._clock()
        purged: list[QuarantineEntry] = []
        for entry in await self._repository.list_due_for_deletion(now):
            await self._storage.delete(entry.isolation_key)
            updated = await self._repository.update(entry.id, {"status": DELETED, "deleted_at": now})
            await self._audit.record(
                QUARANTINE_PURGED,
                actor="retention_service",
                subject_id=entry.subject_id or entry.original_file_name,
                outcome=SUCCESS,
                order_id=entry.order_id,
                details={"quarantine_id": entry.id},
            )
            purged.append(updated or entry)
        if purged:
            logger.info("Purged %s expired quarantine entries", len(purged))
        return purged

    async def _review(self, quarantine_id: int, action: str, actor: str) -> QuarantineEntry:
        if action not in REVIEW_ACTIONS:
            raise ValidationError("Invalid quarantine action", code="INVALID_QUARANTINE_ACTION")
        entry = await self.get(quarantine_id)
        if entry.status == DELETED:
            raise StateError("Quarantined file has already been deleted", code="QUARANTINE_DELETED")

        now = self._clock()
        changes: dict[str, object] = {"reviewed_at": now, "reviewed_by": actor, "action": action}
        if action == RELEASE:
            changes["status"] = RELEASED
        elif action == DELETE:
            await self._storage.delete(entry.isolation_key)
            changes["status"] = DELETED
            changes["deleted_at"] = now
        elif action == EXTEND:
            changes["status"] = EXTENDED
            changes["auto_delete_after"] = now + timedelta(days=self.retention_days)

        updated = await self._repository.update(quarantine_id, changes)
        if updated is None:
            raise NotFoundError("Quarantined file not found", code="QUARANTINE_NOT_FOUND")
        if entry.subject_id and self._subjects is not None:
            if action == RELEASE:
                await self._subjects.release(entry.subject_id, updated, actor)
            elif action == DELETE:
                await self._subjects.discard(entry.subject_id, updated, actor)
        await self._audit.record(
            quarantine_action(action),
            actor=actor,
            subject_id=entry.subject_id or entry.original_file_name,
            outcome=SUCCESS,
            order_id=entry.order_id,
            details={"quarantine_id": entry.id, "status": updated.status},
        )
        return updated


__all__ = ["QuarantineRegistry", "QuarantineSubjects", "SCANNER_ACTOR"]
