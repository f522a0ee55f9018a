"""Upload checks run before a proof ever reaches the scanner."""

from __future__ import annotations

from dataclasses import dataclass

from paycore.core.errors import ValidationError

from .imaging import inspect_image
from .models import ImageInfo, UploadedFile

ALLOWED_MIME_TYPES = ("image/jpeg", "image/png", "image/jpg", "image/webp")
ALLOWED_EXTENSIONS = ("jpg", "jpeg", "png", "webp")
SUSPICIOUS_PATTERNS = (".exe", ".bat", ".cmd", ".scr", ".pif", ".com")


@dataclass(slots=True)
class UploadPolicy:
    min_size_bytes: int = 1024
    max_size_bytes: int = 5 * 1024 * 1024
    max_filename_length: int = 255
    min_width: int = 100
    min_height: int = 100


def validate_upload(upload: UploadedFile, policy: UploadPolicy) -> ImageInfo:
    """Check ``upload`` against ``policy`` in a fixed order.

    The first failing check raises; image decoding only happens once every
    cheaper check has passed.
    """
    if upload.content_type not in ALLOWED_MIME_TYPES:
        raise ValidationError(
            f"Invalid file type: {upload.content_type}. Only image files (JPEG, PNG, WebP) are allowed for payment proofs.",
            code="INVALID_FILE_TYPE",
        )

    if upload.extension not in ALLOWED_EXTENSIONS:
        raise ValidationError(
            f"Invalid file extension: .{upload.extension}. Only {', '.join(ALLOWED_EXTENSIONS)} extensions are allowed.",
            code="INVALID_FILE_EXTENSION",
        )

    if upload.size > policy.max_size_bytes:
        raise ValidationError(
            f"Image size too large: {upload.size / 1024 / 1024:.2f}MB. "
            f"Maximum allowed size is {policy.max_size_bytes // (1024 * 1024)}MB.",
            code="FILE_TOO_LARGE",
        )

    if upload.size < policy.min_size_bytes:
        raise ValidationError(
            f"Image file too small: {upload.size} bytes. Minimum file size is {policy.min_size_bytes // 1024}KB.",
            code="FILE_TOO_SMALL",
        )

    if len(upload.file_name) > policy.max_filename_length:
        raise ValidationError(
            f"Filename too long. Maximum {policy.max_filename_length} characters allowed.",
            code="FILENAME_TOO_LONG",
        )

    lowered = upload.file_name.lower()
    if any(pattern in lowered for pattern in SUSPICIOUS_PATTERNS):
        raise ValidationError(
            "Suspicious file detected. Please upload a valid image.",
            code="SUSPICIOUS_FILENAME",
        )

    info = inspect_image(upload.content)
    if info.width < policy.min_width or info.height < policy.min_height:
        raise ValidationError(
            f"Image dimensions too small. Minimum size is {policy.min_width}x{policy.min_height} pixels.",
            code="IMAGE_TOO_SMALL",
        )
    return info


__all__ = [
    "ALLOWED_EXTENSIONS",
    "ALLOWED_MIME_TYPES",
    "SUSPICIOUS_PATTERNS",
    "UploadPolicy",
    "validate_upload",
]
