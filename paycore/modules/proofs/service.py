"""Proof upload pipeline and admin review workflow."""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional, Sequence

from paycore.core.errors import NotFoundError, SecurityError, StateError, ValidationError
from paycore.core.identifiers import Clock, epoch_millis, random_token, utcnow
from paycore.core.security import Authorizer
from paycore.infrastructure.storage import ObjectStorage
from paycore.modules.audit import SUCCESS, AuditTrail
from paycore.modules.audit.models import FILE_UPLOAD, PROOF_DELETED, PROOF_REVIEWED, PROOF_SUBMITTED
from paycore.modules.quarantine import QuarantineEntry, QuarantineRegistry
from paycore.modules.scanning import MalwareScanner
from paycore.modules.transactions import TransactionLedger, VerificationResult

from .imaging import make_thumbnail
from .models import (
    CLEAN,
    DELETED,
    PENDING_VERIFICATION,
    REJECTED,
    RELEASE_MARKER,
    UPLOADED,
    VERIFIED,
    PaymentProof,
    ProofDraft,
    UploadedFile,
)
from .repository import ProofRepository
from .validation import UploadPolicy, validate_upload

logger = logging.getLogger(__name__)

_UNSAFE_ID_CHARS = re.compile(r"[^A-Za-z0-9_-]")


def thumbnail_key_for(storage_key: str) -> str:
    stem, _, extension = storage_key.rpartition(".")
    return f"{stem}_thumb.{extension}"


class ProofUploadPipeline:
    """received -> validated -> scanned -> quarantined | accepted.

    Nothing is stored before the scan passes, and an upload aborted after that
    point removes whatever it already stored.
    """

    def __init__(
        self,
        repository: ProofRepository,
        storage: ObjectStorage,
        scanner: MalwareScanner,
        quarantine: QuarantineRegistry,
        audit: AuditTrail,
        ledger: TransactionLedger,
        *,
        policy: Optional[UploadPolicy] = None,
        thumbnail_size: int = 120,
        retention_days: int = 30,
        key_prefix: str = "payment-proofs",
        clock: Clock = utcnow,
    ) -> None:
        self._repository = repository
        self._storage = storage
        self._scanner = scanner
        self._quarantine = quarantine
        self._audit = audit
        self._ledger = ledger
        self.policy = policy or UploadPolicy()
        self.thumbnail_size = thumbnail_size
        self.retention_days = retention_days
        self.key_prefix = key_prefix.strip("/")
        self._clock = clock

    async def upload(
        self,
        file: UploadedFile,
        order_id: int,
        transaction_id: Optional[str] = None,
        user_id: Optional[str] = None,
        *,
        client_ip: Optional[str] = None,
    ) -> PaymentProof:
        if not file.file_name:
            raise ValidationError("Invalid file provided", code="INVALID_FILE")
        try:
            info = validate_upload(file, self.policy)
        except ValidationError as exc:
            logger.info("Rejected proof upload %s for order %s: %s", file.file_name, order_id, exc.code)
            raise

        scan = await self._scanner.scan(file.file_name, file.content)
        if not scan.clean:
            entry = await self._quarantine.quarantine(
                file.file_name,
                file.content,
                scan,
                mime_type=file.content_type,
                order_id=order_id,
            )
            threats = ", ".join(scan.threats)
            raise SecurityError(
                f"File failed security scan due to detected threats: {threats}. "
                f"File has been quarantined for security review (ID: {entry.id}). "
                "Please ensure the file is safe and try again.",
                details={"quarantine_id": entry.id, "threats": list(scan.threats)},
            )

        now = self._clock()
        owner = _UNSAFE_ID_CHARS.sub("-", user_id) if user_id else f"user_{random_token(6)}"
        file_name = f"{order_id}_{owner}_{epoch_millis(now)}_{random_token(6)}.{file.extension}"
        storage_key = f"{self.key_prefix}/{file_name}"
        thumbnail_key = thumbnail_key_for(storage_key)

        stored_keys: list[str] = []
        created = False
        try:
            thumbnail = await asyncio.to_thread(make_thumbnail, file.content, file.extension, self.thumbnail_size)
            stored = await self._storage.put(storage_key, file.content, file.content_type)
            stored_keys.append(storage_key)
            await self._storage.put(thumbnail_key, thumbnail, file.content_type)
            stored_keys.append(thumbnail_key)

            linked = await self._ledger.find(transaction_id) if transaction_id else None
            proof = await self._repository.create(
                ProofDraft(
                    file_name=file_name,
                    original_name=file.file_name,
                    mime_type=file.content_type,
                    file_size=file.size,
                    checksum=stored.checksum,
                    order_id=order_id,
                    transaction_id=transaction_id,
                    user_id=owner,
                    uploaded_at=now,
                    expires_at=now + timedelta(days=self.retention_days),
                    bucket=self._storage.bucket,
                    storage_key=storage_key,
                    thumbnail_key=thumbnail_key,
                    width=info.width,
                    height=info.height,
                    status=PENDING_VERIFICATION if linked is not None else UPLOADED,
                    scan_result=scan.to_dict(),
                )
            )
            created = True
            # Completed transactions are immutable; the proof keeps the link.
            if linked is not None and not linked.is_completed:
                await self._ledger.attach_proof(transaction_id, file_name)
            await self._audit.record(
                FILE_UPLOAD,
                actor=owner,
                subject_id=file_name,
                outcome=SUCCESS,
                order_id=order_id,
                client_ip=client_ip,
                details={
                    "original_name": file.file_name,
                    "file_size": file.size,
                    "mime_type": file.content_type,
                    "checksum": stored.checksum,
                    "transaction_id": transaction_id,
                },
            )
        except BaseException:
            logger.warning("Upload of %s aborted, removing %s stored objects", file_name, len(stored_keys))
            if created:
                await self._repository.discard(file_name)
            for key in stored_keys:
                await self._storage.delete(key)
            raise

        logger.info("Accepted proof %s for order %s (%s bytes)", file_name, order_id, file.size)
        return proof


@dataclass(slots=True)
class ProofReviewOutcome:
    proof: PaymentProof
    verification: Optional[VerificationResult] = None


class ProofReviewService:
    """Admin side of the proof lifecycle: queue, review, soft delete."""

    def __init__(
        self,
        repository: ProofRepository,
        ledger: TransactionLedger,
        audit: AuditTrail,
        authorizer: Authorizer,
        *,
        clock: Clock = utcnow,
    ) -> None:
        self._repository = repository
        self._ledger = ledger
        self._audit = audit
        self._authorizer = authorizer
        self._clock = clock

    async def get(self, file_name: str) -> PaymentProof:
        proof = await self._repository.get_by_file_name(file_name)
        if proof is None:
            raise NotFoundError("Payment proof not found", code="PROOF_NOT_FOUND")
        return proof

    async def list_by_order(self, order_id: int) -> Sequence[PaymentProof]:
        return await self._repository.list_by_order(order_id)

    async def queue(self) -> Sequence[PaymentProof]:
        """Proofs awaiting verification, oldest first."""
        return await self._repository.list_by_status(PENDING_VERIFICATION)

    async def submit(self, file_name: str, *, actor: str = "customer") -> PaymentProof:
        proof = await self.get(file_name)
        if proof.status != UPLOADED:
            raise StateError(
                f"Payment proof is {proof.status} and cannot be submitted",
                code="PROOF_NOT_SUBMITTABLE",
            )
        updated = await self._update(file_name, {"status": PENDING_VERIFICATION})
        await self._audit.record(
            PROOF_SUBMITTED,
            actor=actor,
            subject_id=file_name,
            outcome=SUCCESS,
            order_id=proof.order_id,
        )
        return updated

    async def review(
        self,
        file_name: str,
        approved: bool,
        role: Optional[str],
        session_token: Optional[str] = None,
        *,
        notes: Optional[str] = None,
    ) -> ProofReviewOutcome:
        actor = self._authorizer.require_payment_manager(role, session_token)
        proof = await self.get(file_name)
        if proof.status != PENDING_VERIFICATION:
            raise StateError(
                f"Payment proof is {proof.status}, not awaiting verification",
                code="PROOF_NOT_PENDING",
            )

        now = self._clock()
        updated = await self._update(
            file_name,
            {
                "status": VERIFIED if approved else REJECTED,
                "reviewed_at": now,
                "reviewed_by": actor,
                "review_notes": notes,
            },
        )
        verification = None
        if proof.transaction_id and await self._ledger.exists(proof.transaction_id):
            verification = await self._ledger.verify(
                proof.transaction_id,
                {"proof_file_name": file_name, "reviewed_by": actor, "notes": notes},
                approved=approved,
            )
        await self._audit.record(
            PROOF_REVIEWED,
            actor=actor,
            subject_id=file_name,
            outcome=SUCCESS,
            order_id=proof.order_id,
            details={"approved": approved, "notes": notes, "transaction_id": proof.transaction_id},
        )
        logger.info("Proof %s %s by %s", file_name, updated.status, actor)
        return ProofReviewOutcome(proof=updated, verification=verification)

    async def soft_delete(
        self,
        file_name: str,
        role: Optional[str],
        session_token: Optional[str] = None,
    ) -> PaymentProof:
        actor = self._authorizer.require_payment_manager(role, session_token)
        proof = await self.get(file_name)
        if proof.is_deleted:
            raise StateError("Payment proof has already been removed", code="PROOF_DELETED")
        updated = await self._update(
            file_name,
            {"status": DELETED, "deleted_at": self._clock(), "deleted_by": actor},
        )
        await self._audit.record(
            PROOF_DELETED,
            actor=actor,
            subject_id=file_name,
            outcome=SUCCESS,
            order_id=proof.order_id,
        )
        return updated

    async def _update(self, file_name: str, changes: dict) -> PaymentProof:
        updated = await self._repository.update(file_name, changes)
        if updated is None:
            raise NotFoundError("Payment proof not found", code="PROOF_NOT_FOUND")
        return updated


class QuarantinedProofs:
    """Applies quarantine review decisions to the proof a rescan flagged."""

    def __init__(self, repository: ProofRepository, storage: ObjectStorage, *, clock: Clock = utcnow) -> None:
        self._repository = repository
        self._storage = storage
        self._clock = clock

    async def release(self, subject_id: str, entry: QuarantineEntry, actor: str) -> None:
        proof = await self._repository.get_by_file_name(subject_id)
        if proof is None:
            return
        scan_result = dict(proof.scan_result)
        scan_result[RELEASE_MARKER] = {
            "quarantine_id": entry.id,
            "released_by": actor,
            "released_at": self._clock().isoformat(),
        }
        await self._repository.update(subject_id, {"quarantine_status": CLEAN, "scan_result": scan_result})
        logger.info("Proof %s released from quarantine #%s by %s", subject_id, entry.id, actor)

    async def discard(self, subject_id: str, entry: QuarantineEntry, actor: str) -> None:
        proof = await self._repository.get_by_file_name(subject_id)
        if proof is None or proof.is_deleted:
            return
        for key in (proof.storage_key, proof.thumbnail_key):
            await self._storage.delete(key)
        await self._repository.update(
            subject_id,
            {"status": DELETED, "deleted_at": self._clock(), "deleted_by": actor},
        )
        logger.info("Proof %s deleted with quarantine #%s by %s", subject_id, entry.id, actor)


__all__ = ["ProofReviewOutcome", "ProofReviewService", "ProofUploadPipeline", "QuarantinedProofs", "thumbnail_key_for"]
