"""Retention sweep for expired proofs and quarantine entries."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Optional

from paycore.core.errors import ValidationError
from paycore.core.identifiers import Clock, utcnow
from paycore.infrastructure.storage import ObjectStorage
from paycore.modules.audit import SUCCESS, AuditTrail
from paycore.modules.audit.models import PROOF_EXPIRED_CLEANUP
from paycore.modules.quarantine import QuarantineRegistry

from .models import DELETED, CleanupReport, PaymentProof, RetentionStatus, RetentionTracker
from .repository import ProofRepository

logger = logging.getLogger(__name__)

RETENTION_ACTOR = "retention_service"
MIN_RETENTION_DAYS = 1
MAX_RETENTION_DAYS = 365


class ProofRetentionService:
    def __init__(
        self,
        repository: ProofRepository,
        storage: ObjectStorage,
        quarantine: QuarantineRegistry,
        audit: AuditTrail,
        *,
        retention_days: int = 30,
        tracker: Optional[RetentionTracker] = None,
        clock: Clock = utcnow,
    ) -> None:
        self._repository = repository
        self._storage = storage
        self._quarantine = quarantine
        self._audit = audit
        self._clock = clock
        self._tracker = tracker or RetentionTracker(retention_days=retention_days)

    @property
    def retention_days(self) -> int:
        return self._tracker.retention_days

    def set_retention_days(self, days: int) -> int:
        if isinstance(days, bool) or not isinstance(days, int) or not MIN_RETENTION_DAYS <= days <= MAX_RETENTION_DAYS:
            raise ValidationError(
                f"Retention period must be between {MIN_RETENTION_DAYS} and {MAX_RETENTION_DAYS} days",
                code="INVALID_RETENTION_PERIOD",
            )
        logger.info("Proof retention changed from %s to %s days", self.retention_days, days)
        self._tracker.retention_days = days
        return days

    def status(self) -> RetentionStatus:
        return self._tracker.snapshot()

    async def run(self, now: Optional[datetime] = None) -> CleanupReport:
        """Delete proofs older than the retention period, then purge quarantine.

        A failure on one file is recorded in the report and the sweep moves on.
        """
        now = now or self._clock()
        report = CleanupReport(started_at=now)
        cutoff = now - timedelta(days=self.retention_days)

        for proof in await self._repository.list_uploaded_before(cutoff):
            report.files_scanned += 1
            try:
                await self._expire(proof, now)
            except Exception as exc:
                logger.warning("Retention sweep failed for %s: %s", proof.file_name, exc)
                report.errors.append({"file_name": proof.file_name, "error": str(exc)})
            else:
                report.files_deleted += 1
                report.space_reclaimed += proof.file_size

        try:
            purged = await self._quarantine.purge_expired(now)
        except Exception as exc:
            logger.warning("Quarantine purge failed: %s", exc)
            report.errors.append({"file_name": None, "error": str(exc)})
        else:
            report.quarantine_purged = len(purged)

        report.finished_at = self._clock()
        self._tracker.runs += 1
        self._tracker.last_run_at = now
        self._tracker.last_report = report
        logger.info(
            "Retention sweep: %s scanned, %s deleted, %s bytes reclaimed, %s quarantine purged, %s errors",
            report.files_scanned,
            report.files_deleted,
            report.space_reclaimed,
            report.quarantine_purged,
            len(report.errors),
        )
        return report

    async def _expire(self, proof: PaymentProof, now: datetime) -> None:
        await self._storage.delete(proof.storage_key)
        await self._storage.delete(proof.thumbnail_key)
        await self._repository.update(
            proof.file_name,
            {"status": DELETED, "deleted_at": now, "deleted_by": RETENTION_ACTOR},
        )
        await self._audit.record(
            PROOF_EXPIRED_CLEANUP,
            actor=RETENTION_ACTOR,
            subject_id=proof.file_name,
            outcome=SUCCESS,
            order_id=proof.order_id,
            details={"file_size": proof.file_size, "uploaded_at": proof.uploaded_at.isoformat()},
        )


__all__ = ["MAX_RETENTION_DAYS", "MIN_RETENTION_DAYS", "ProofRetentionService", "RETENTION_ACTOR"]
