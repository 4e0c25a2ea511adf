"""Storage interfaces and shared dataclasses for file storage backends."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Protocol, runtime_checkable


@dataclass
class StoredObject:
    """Result of storing an object in one backend."""

    key: str
    url: str
    backend: str  # s3 | local
    size: Optional[int] = None
    content_type: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class UploadResult:
    """What the storage service hands back to upload callers.

    Callers persist ``cdn_url or url``.
    """

    key: str
    url: str
    backend: str
    cdn_url: Optional[str] = None
    size: Optional[int] = None
    content_type: Optional[str] = None

    @property
    def persisted_url(self) -> str:
        return self.cdn_url or self.url

    def to_dict(self):
        return {
            'key': self.key,
            'url': self.url,
            'cdnUrl': self.cdn_url,
            'backend': self.backend,
            'size': self.size,
            'contentType': self.content_type,
        }


@dataclass
class FileDelivery:
    """How the serving endpoint should hand a stored object to a client."""

    mode: str  # local_file | stream
    mimetype: Optional[str] = None
    local_path: Optional[str] = None
    body: Optional[bytes] = None


@runtime_checkable
class StorageBackend(Protocol):
    """Contract shared by the S3 and local filesystem backends."""

    kind: str

    def upload(self, data: bytes, original_name: str, content_type: Optional[str] = None,
               key: Optional[str] = None) -> StoredObject:
        ...

    def exists(self, key: str) -> bool:
        """True/False when certain; raises TransientBackendError otherwise."""
        ...

    def delete(self, key: str) -> None:
        """Remove an object; absent keys are not an error."""
        ...

    def public_url(self, key: str) -> str:
        ...

    def read(self, key: str) -> Optional[FileDelivery]:
        ...
