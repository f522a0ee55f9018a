"""Payment proof exports"""

from .access import SECURITY_HEADERS, SecureProofAccessGateway
from .models import (
    DELETED,
    PENDING_VERIFICATION,
    PROOF_STATUSES,
    REJECTED,
    UPLOADED,
    VERIFIED,
    CleanupReport,
    ImageInfo,
    PaymentProof,
    ProofAccessDescriptor,
    ProofContent,
    ProofDraft,
    RetentionStatus,
    RetentionTracker,
    SignedUrl,
    UploadedFile,
)
from .repository import ProofRepository
from .retention import ProofRetentionService
from .service import ProofReviewOutcome, ProofReviewService, ProofUploadPipeline, QuarantinedProofs
from .signing import UrlSigner
from .validation import UploadPolicy

__all__ = [
    "CleanupReport",
    "DELETED",
    "ImageInfo",
    "PENDING_VERIFICATION",
    "PROOF_STATUSES",
    "PaymentProof",
    "ProofAccessDescriptor",
    "ProofContent",
    "ProofDraft",
    "ProofRepository",
    "ProofRetentionService",
    "ProofReviewOutcome",
    "ProofReviewService",
    "ProofUploadPipeline",
    "QuarantinedProofs",
    "REJECTED",
    "RetentionStatus",
    "RetentionTracker",
    "SECURITY_HEADERS",
    "SecureProofAccessGateway",
    "SignedUrl",
    "UPLOADED",
    "UploadPolicy",
    "UploadedFile",
    "UrlSigner",
    "VERIFIED",
]
