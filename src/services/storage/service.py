"""Storage service facade over the S3 and local filesystem backends."""

from __future__ import annotations

import logging
import threading
from typing import List, Optional, Tuple

from .exceptions import NotFoundError, TransientBackendError, UploadValidationError
from .factory import StorageSettings, build_local_backend, build_s3_backend, load_storage_settings_from_env
from .interfaces import FileDelivery, UploadResult
from .keys import classify_url, derive_key, extract_key, namespace_for_category, require_key

logger = logging.getLogger(__name__)


class StorageService:
    """Facade to hide storage backend details from business logic.

    The backend is picked once, here, from configuration presence: S3 when
    credentials and a bucket are configured, the local filesystem otherwise.
    The local backend is always built because S3 upload failures fall back
    to it, so reads and existence checks consult it as a second source.
    """

    def __init__(self, settings: Optional[StorageSettings] = None):
        self.settings = settings or load_storage_settings_from_env()
        self.local = build_local_backend(self.settings)
        self.s3 = build_s3_backend(self.settings)
        self.backend = self.s3 or self.local

    @property
    def backend_kind(self) -> str:
        return self.backend.kind

    @property
    def durable(self) -> bool:
        return self.s3 is not None

    def known_url_bases(self) -> List[Tuple[str, str]]:
        bases = []
        if self.settings.cdn_base_url:
            bases.append(('cdn', self.settings.cdn_base_url))
        if self.settings.s3_endpoint_url and self.settings.s3_bucket_name:
            bases.append(('s3', f"{self.settings.s3_endpoint_url.rstrip('/')}/{self.settings.s3_bucket_name}"))
        return bases

    def extract_key(self, url: Optional[str]) -> Optional[str]:
        return extract_key(url, self.known_url_bases())

    def classify_url(self, url: Optional[str]) -> str:
        return classify_url(url, self.known_url_bases())

    def cdn_url(self, key: str) -> Optional[str]:
        if not self.settings.cdn_base_url:
            return None
        return f"{self.settings.cdn_base_url.rstrip('/')}/{key}"

    def public_url(self, key: str) -> str:
        return self.backend.public_url(key)

    def upload(self, data: bytes, original_name: str, content_type: Optional[str] = None,
               category: Optional[str] = None) -> UploadResult:
        """Store ``data`` and return where it can be fetched from.

        An S3 failure of any kind is logged and the same key is written to
        local storage instead; the caller only sees the resulting URL.
        """
        if not data:
            raise UploadValidationError('The uploaded file is empty.')

        key = derive_key(original_name, namespace_for_category(category))

        if self.s3 is not None:
            try:
                stored = self.s3.upload(data, original_name, content_type, key=key)
                return UploadResult(key=stored.key, url=stored.url, backend=stored.backend,
                                    cdn_url=self.cdn_url(stored.key), size=stored.size,
                                    content_type=stored.content_type)
            except Exception as exc:
                logger.warning("S3 upload failed for %s, falling back to local storage: %s", key, exc)

        stored = self.local.upload(data, original_name, content_type, key=key)
        return UploadResult(key=stored.key, url=stored.url, backend=stored.backend,
                            size=stored.size, content_type=stored.content_type)

    def exists(self, key: Optional[str]) -> Optional[bool]:
        """Three-valued existence check.

        Returns True or False when a backend answered definitively and None
        when the answer is unknown (backend error). None must never be
        treated as "missing".
        """
        if not key:
            return None

        unknown = False
        if self.s3 is not None:
            try:
                if self.s3.exists(key):
                    return True
            except TransientBackendError as exc:
                logger.warning("Existence of %s unknown: %s", key, exc)
                unknown = True

        try:
            if self.local.exists(key):
                return True
        except TransientBackendError as exc:
            logger.warning("Existence of %s unknown: %s", key, exc)
            unknown = True

        return None if unknown else False

    def delete(self, key: Optional[str]) -> None:
        """Delete ``key`` everywhere it might live. Absent keys are fine."""
        if not key:
            return
        backends = [self.s3, self.local] if self.s3 is not None else [self.local]
        for backend in backends:
            try:
                backend.delete(key)
            except (TransientBackendError, OSError, ValueError) as exc:
                logger.warning("Delete of %s from %s storage failed, continuing: %s", key, backend.kind, exc)

    def read(self, key: Optional[str]) -> Optional[FileDelivery]:
        """Fetch an object for serving, S3 first, then local storage."""
        if not key:
            return None
        if self.s3 is not None:
            try:
                delivery = self.s3.read(key)
                if delivery is not None:
                    return delivery
            except TransientBackendError as exc:
                logger.warning("S3 read failed for %s, trying local storage: %s", key, exc)
        try:
            return self.local.read(key)
        except TransientBackendError as exc:
            logger.warning("Local read failed for %s: %s", key, exc)
            return None

    def open_url(self, url: Optional[str]) -> FileDelivery:
        """Resolve a stored URL to deliverable bytes.

        Raises UnparseableReferenceError when no key can be derived and
        NotFoundError when no backend holds the object.
        """
        key = require_key(url, self.known_url_bases())
        delivery = self.read(key)
        if delivery is None:
            raise NotFoundError(f"No stored object for key {key}", key=key)
        return delivery


_storage_service_singleton: Optional[StorageService] = None
_storage_service_singleton_lock = threading.Lock()


def get_storage_service() -> StorageService:
    global _storage_service_singleton
    if _storage_service_singleton is None:
        with _storage_service_singleton_lock:
            if _storage_service_singleton is None:
                _storage_service_singleton = StorageService()
    return _storage_service_singleton


def set_storage_service(service: Optional[StorageService]) -> None:
    global _storage_service_singleton
    with _storage_service_singleton_lock:
        _storage_service_singleton = service


def reset_storage_service_singleton() -> None:
    set_storage_service(None)
