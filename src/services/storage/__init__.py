"""Unified file storage service supporting local and S3 backends."""

from .exceptions import (
    NotFoundError,
    ReconciliationWriteError,
    StorageError,
    TransientBackendError,
    UnparseableReferenceError,
    UploadValidationError,
)
from .factory import StorageSettings, load_storage_settings_from_env
from .interfaces import FileDelivery, StorageBackend, StoredObject, UploadResult
from .keys import classify_url, derive_key, extract_key, namespace_for_category, require_key
from .local import LocalStorageBackend
from .s3 import S3StorageBackend
from .service import StorageService, get_storage_service, reset_storage_service_singleton, set_storage_service

__all__ = [
    'NotFoundError',
    'ReconciliationWriteError',
    'StorageError',
    'TransientBackendError',
    'UnparseableReferenceError',
    'UploadValidationError',
    'StorageSettings',
    'load_storage_settings_from_env',
    'FileDelivery',
    'StorageBackend',
    'StoredObject',
    'UploadResult',
    'classify_url',
    'derive_key',
    'extract_key',
    'namespace_for_category',
    'require_key',
    'LocalStorageBackend',
    'S3StorageBackend',
    'StorageService',
    'get_storage_service',
    'reset_storage_service_singleton',
    'set_storage_service',
]
