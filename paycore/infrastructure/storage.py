"""Object storage backends for proof images and quarantined files."""

from __future__ import annotations

import asyncio
import hashlib
import mimetypes
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Optional, Protocol


@dataclass(slots=True, frozen=True)
class StoredObject:
    key: str
    size: int
    checksum: str
    content_type: Optional[str] = None


def sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def _validate_key(key: str) -> str:
    path = PurePosixPath(key)
    if not key or path.is_absolute() or ".." in path.parts:
        raise ValueError(f"Invalid storage key: {key!r}")
    return key


class ObjectStorage(Protocol):
    bucket: str

    async def put(self, key: str, data: bytes, content_type: Optional[str] = None) -> StoredObject:
        ...

    async def get(self, key: str) -> bytes | None:
        ...

    async def stat(self, key: str) -> StoredObject | None:
        """Metadata of the stored bytes, checksum computed from what is stored now."""
        ...

    async def delete(self, key: str) -> bool:
        ...

    def url_for(self, key: str) -> str:
        ...


class InMemoryObjectStorage:
    def __init__(self, bucket: str = "payment-proofs", base_url: str = "memory://payment-proofs") -> None:
        self.bucket = bucket
        self.base_url = base_url.rstrip("/")
        self._objects: dict[str, tuple[bytes, Optional[str]]] = {}
        self._lock = asyncio.Lock()

    async def put(self, key: str, data: bytes, content_type: Optional[str] = None) -> StoredObject:
        _validate_key(key)
        async with self._lock:
            self._objects[key] = (bytes(data), content_type)
        return StoredObject(key=key, size=len(data), checksum=sha256_hex(data), content_type=content_type)

    async def get(self, key: str) -> bytes | None:
        item = self._objects.get(key)
        return item[0] if item else None

    async def stat(self, key: str) -> StoredObject | None:
        item = self._objects.get(key)
        if item is None:
            return None
        data, content_type = item
        return StoredObject(key=key, size=len(data), checksum=sha256_hex(data), content_type=content_type)

    async def delete(self, key: str) -> bool:
        async with self._lock:
            return self._objects.pop(key, None) is not None

    def url_for(self, key: str) -> str:
        return f"{self.base_url}/{key}"

    def keys(self) -> list[str]:
        return sorted(self._objects)


class LocalObjectStorage:
    """Stores objects as files below ``root``; keys map to relative paths."""

    def __init__(self, root: Path, bucket: str, base_url: str) -> None:
        self.root = Path(root).resolve()
        self.bucket = bucket
        self.base_url = base_url.rstrip("/")

    def _path(self, key: str) -> Path:
        return self.root / _validate_key(key)

    async def put(self, key: str, data: bytes, content_type: Optional[str] = None) -> StoredObject:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("wb") as buffer:
            buffer.write(data)
        return StoredObject(key=key, size=len(data), checksum=sha256_hex(data), content_type=content_type)

    async def get(self, key: str) -> bytes | None:
        path = self._path(key)
        if not path.is_file():
            return None
        with path.open("rb") as stream:
            return stream.read()

    async def stat(self, key: str) -> StoredObject | None:
        data = await self.get(key)
        if data is None:
            return None
        content_type, _ = mimetypes.guess_type(key)
        return StoredObject(key=key, size=len(data), checksum=sha256_hex(data), content_type=content_type)

    async def delete(self, key: str) -> bool:
        path = self._path(key)
        if not path.exists():
            return False
        path.unlink(missing_ok=True)
        return True

    def url_for(self, key: str) -> str:
        return f"{self.base_url}/{key}"


__all__ = [
    "InMemoryObjectStorage",
    "LocalObjectStorage",
    "ObjectStorage",
    "StoredObject",
    "sha256_hex",
]
