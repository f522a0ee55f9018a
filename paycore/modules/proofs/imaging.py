"""Pillow helpers for proof images."""

from __future__ import annotations

import io

from PIL import Image, ImageOps, UnidentifiedImageError

from paycore.core.errors import ValidationError

from .models import ImageInfo

PILLOW_FORMATS = {"jpg": "JPEG", "jpeg": "JPEG", "png": "PNG", "webp": "WEBP"}


def inspect_image(content: bytes) -> ImageInfo:
    try:
        with Image.open(io.BytesIO(content)) as image:
            image.load()
            width, height = image.size
            return ImageInfo(width=width, height=height, format=image.format or "")
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError):
        raise ValidationError(
            "Invalid image file or corrupted image data.",
            code="INVALID_IMAGE",
        ) from None


def make_thumbnail(content: bytes, extension: str, size: int = 120) -> bytes:
    """Square ``size``x``size`` thumbnail encoded like the source extension."""
    target_format = PILLOW_FORMATS.get(extension.lower(), "PNG")
    buffer = io.BytesIO()
    try:
        with Image.open(io.BytesIO(content)) as image:
            thumbnail = ImageOps.fit(image, (size, size))
            if target_format == "JPEG" and thumbnail.mode not in ("RGB", "L"):
                thumbnail = thumbnail.convert("RGB")
            thumbnail.save(buffer, format=target_format)
    except (UnidentifiedImageError, OSError, ValueError):
        raise ValidationError(
            "Invalid image file or corrupted image data.",
            code="INVALID_IMAGE",
        ) from None
    return buffer.getvalue()


__all__ = ["PILLOW_FORMATS", "inspect_image", "make_thumbnail"]
