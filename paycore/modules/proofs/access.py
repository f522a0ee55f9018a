"""Audited, role-gated retrieval of stored payment proofs."""

from __future__ import annotations

import logging
import re
from typing import Optional
from urllib.parse import quote

from paycore.core.errors import (
    ExpiredError,
    IntegrityError,
    NotFoundError,
    PaymentError,
    QuarantinedError,
    SecurityError,
)
from paycore.core.identifiers import Clock, utcnow
from paycore.core.security import Authorizer
from paycore.infrastructure.storage import ObjectStorage
from paycore.modules.audit import DENIED, SUCCESS, AuditTrail, mask_token
from paycore.modules.audit.models import ADMIN_FILE_ACCESS, SIGNED_DOWNLOAD
from paycore.modules.quarantine import QuarantineRegistry
from paycore.modules.quarantine.models import SOURCE_ACCESS_RESCAN
from paycore.modules.scanning import MalwareScanner

from .models import QUARANTINED, PaymentProof, ProofAccessDescriptor, ProofContent
from .repository import ProofRepository
from .signing import UrlSigner

logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Content-Security-Policy": "default-src 'none'; img-src 'self' data: https://*.amazonaws.com; style-src 'unsafe-inline';",
    "X-XSS-Protection": "1; mode=block",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
    "X-Download-Options": "noopen",
    "X-Permitted-Cross-Domain-Policies": "none",
}

PRIVATE_CACHE_CONTROL = "private, no-cache, no-store, must-revalidate"

_HEADER_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def inline_disposition(original_name: str) -> str:
    """``inline`` disposition with an ASCII fallback and an RFC 5987 UTF-8 name."""
    fallback = _HEADER_UNSAFE_CHARS.sub("_", original_name) or "proof"
    return f"inline; filename=\"{fallback}\"; filename*=UTF-8''{quote(original_name, safe='')}"


class SecureProofAccessGateway:
    """Issues signed URLs for a proof after a fixed sequence of checks.

    Checks run in order and stop at the first failure: role and session,
    existence, quarantine, expiry, checksum, stored objects, live re-scan.
    Every attempt lands in the audit trail whatever its outcome.
    """

    def __init__(
        self,
        repository: ProofRepository,
        storage: ObjectStorage,
        scanner: MalwareScanner,
        quarantine: QuarantineRegistry,
        audit: AuditTrail,
        authorizer: Authorizer,
        signer: UrlSigner,
        *,
        clock: Clock = utcnow,
    ) -> None:
        self._repository = repository
        self._storage = storage
        self._scanner = scanner
        self._quarantine = quarantine
        self._audit = audit
        self._authorizer = authorizer
        self._signer = signer
        self._clock = clock

    async def fetch(
        self,
        file_name: str,
        role: Optional[str],
        session_token: Optional[str] = None,
        client_ip: Optional[str] = None,
    ) -> ProofAccessDescriptor:
        proof: Optional[PaymentProof] = None
        try:
            actor = self._authorizer.require_proof_access(role, session_token)
            proof = await self._repository.get_by_file_name(file_name)
            if proof is None:
                raise NotFoundError("Payment proof not found or access denied", code="PROOF_NOT_FOUND")
            if proof.is_deleted:
                raise NotFoundError("Payment proof has been removed", code="PROOF_DELETED")
            self._ensure_servable(proof)
            await self._verify_stored(proof)
            await self._rescan(proof)
        except PaymentError as exc:
            logger.warning("Denied %s access to proof %s: %s", role, file_name, exc.code)
            await self._audit.record(
                ADMIN_FILE_ACCESS,
                actor=role or "anonymous",
                subject_id=file_name,
                outcome=DENIED,
                order_id=proof.order_id if proof else None,
                client_ip=client_ip,
                reason=exc.code,
                details={"session": mask_token(session_token)},
            )
            raise

        now = self._clock()
        full_image = self._signer.sign(proof.storage_key, now)
        thumbnail = self._signer.sign(proof.thumbnail_key, now)
        entry = await self._audit.record(
            ADMIN_FILE_ACCESS,
            actor=actor,
            subject_id=file_name,
            outcome=SUCCESS,
            order_id=proof.order_id,
            client_ip=client_ip,
            details={
                "session": mask_token(session_token),
                "transaction_id": proof.transaction_id,
                "storage_key": proof.storage_key,
                "access_method": "signed_url_generation",
                "expires_at": full_image.expires_at.isoformat(),
            },
        )
        logger.info("Granted %s access to proof %s", actor, file_name)
        return ProofAccessDescriptor(
            file_name=proof.file_name,
            original_name=proof.original_name,
            mime_type=proof.mime_type,
            file_size=proof.file_size,
            checksum=proof.checksum,
            bucket=proof.bucket,
            storage_key=proof.storage_key,
            quarantine_status=proof.quarantine_status,
            full_image=full_image,
            thumbnail=thumbnail,
            expires_at=full_image.expires_at,
            headers=dict(SECURITY_HEADERS),
            content_disposition=inline_disposition(proof.original_name),
            cache_control=PRIVATE_CACHE_CONTROL,
            accessed_by=actor,
            accessed_at=now,
            client_ip=client_ip,
            audit_id=entry.id,
        )

    async def open_signed(
        self,
        key: str,
        expires: int,
        signature: str,
        *,
        client_ip: Optional[str] = None,
    ) -> ProofContent:
        """Resolve a signed URL issued by :meth:`fetch` to the stored bytes."""
        proof: Optional[PaymentProof] = None
        try:
            self._signer.check(key, expires, signature)
            proof = await self._repository.get_by_storage_key(key)
            if proof is None or proof.is_deleted:
                raise NotFoundError("Payment proof not found or access denied", code="PROOF_NOT_FOUND")
            self._ensure_servable(proof)
            content = await self._storage.get(key)
            if content is None:
                raise NotFoundError("File not found in storage", code="STORAGE_OBJECT_MISSING")
        except PaymentError as exc:
            logger.warning("Denied signed download of %s: %s", key, exc.code)
            await self._audit.record(
                SIGNED_DOWNLOAD,
                actor="signed_url",
                subject_id=proof.file_name if proof else key,
                outcome=DENIED,
                order_id=proof.order_id if proof else None,
                client_ip=client_ip,
                reason=exc.code,
            )
            raise

        await self._audit.record(
            SIGNED_DOWNLOAD,
            actor="signed_url",
            subject_id=proof.file_name,
            outcome=SUCCESS,
            order_id=proof.order_id,
            client_ip=client_ip,
            details={"storage_key": key},
        )
        headers = dict(SECURITY_HEADERS)
        headers["Cache-Control"] = PRIVATE_CACHE_CONTROL
        headers["Content-Disposition"] = inline_disposition(proof.original_name)
        return ProofContent(file_name=proof.file_name, media_type=proof.mime_type, content=content, headers=headers)

    def _ensure_servable(self, proof: PaymentProof) -> None:
        if proof.is_quarantined:
            raise QuarantinedError(
                "File access denied - file is currently quarantined due to security concerns",
            )
        if proof.is_expired(self._clock()):
            raise ExpiredError("Payment proof has expired and been archived", code="PROOF_EXPIRED")

    async def _verify_stored(self, proof: PaymentProof) -> None:
        stored = await self._storage.stat(proof.storage_key)
        if stored is not None and stored.checksum != proof.checksum:
            raise IntegrityError("File integrity check failed")
        if stored is None:
            raise NotFoundError("File not found in storage", code="STORAGE_OBJECT_MISSING")
        if await self._storage.stat(proof.thumbnail_key) is None:
            raise NotFoundError("Thumbnail not found in storage", code="STORAGE_OBJECT_MISSING")

    async def _rescan(self, proof: PaymentProof) -> None:
        if proof.is_released:
            return
        content = await self._storage.get(proof.storage_key)
        if content is None:
            raise NotFoundError("File not found in storage", code="STORAGE_OBJECT_MISSING")
        scan = await self._scanner.scan(proof.file_name, content)
        if scan.clean:
            return
        entry = await self._quarantine.quarantine(
            proof.original_name,
            content,
            scan,
            mime_type=proof.mime_type,
            source=SOURCE_ACCESS_RESCAN,
            order_id=proof.order_id,
            subject_id=proof.file_name,
        )
        await self._repository.update(proof.file_name, {"quarantine_status": QUARANTINED})
        raise SecurityError(
            "File access denied due to security concerns",
            details={"quarantine_id": entry.id, "threats": list(scan.threats)},
        )


__all__ = ["PRIVATE_CACHE_CONTROL", "SECURITY_HEADERS", "SecureProofAccessGateway", "inline_disposition"]
