"""Factory for configuring file storage backends from environment variables."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .local import LocalStorageBackend
from .s3 import S3StorageBackend


@dataclass
class StorageSettings:
    local_root: str
    legacy_local_root: Optional[str] = None
    cdn_base_url: Optional[str] = None
    s3_bucket_name: Optional[str] = None
    s3_region: Optional[str] = None
    s3_endpoint_url: Optional[str] = None
    s3_access_key_id: Optional[str] = None
    s3_secret_access_key: Optional[str] = None
    s3_session_token: Optional[str] = None
    s3_use_path_style: bool = False
    s3_verify_ssl: bool = True

    @property
    def durable_configured(self) -> bool:
        """Presence check only; no connection is attempted."""
        return bool(self.s3_access_key_id and self.s3_secret_access_key and self.s3_bucket_name)


def load_storage_settings_from_env() -> StorageSettings:
    from src.config import app_config

    return StorageSettings(
        local_root=app_config.PERSISTENT_UPLOAD_DIR,
        legacy_local_root=app_config.LEGACY_UPLOAD_DIR,
        cdn_base_url=(app_config.CDN_BASE_URL or '').rstrip('/') or None,
        s3_bucket_name=app_config.AWS_S3_BUCKET,
        s3_region=app_config.AWS_REGION,
        s3_endpoint_url=app_config.S3_ENDPOINT_URL,
        s3_access_key_id=app_config.AWS_ACCESS_KEY_ID,
        s3_secret_access_key=app_config.AWS_SECRET_ACCESS_KEY,
        s3_session_token=app_config.AWS_SESSION_TOKEN,
        s3_use_path_style=bool(app_config.S3_USE_PATH_STYLE),
        s3_verify_ssl=bool(app_config.S3_VERIFY_SSL),
    )


def build_local_backend(settings: StorageSettings) -> LocalStorageBackend:
    return LocalStorageBackend(settings.local_root, settings.legacy_local_root)


def build_s3_backend(settings: StorageSettings) -> Optional[S3StorageBackend]:
    if not settings.durable_configured:
        return None
    return S3StorageBackend(
        bucket=settings.s3_bucket_name,
        region=settings.s3_region,
        endpoint_url=settings.s3_endpoint_url,
        access_key_id=settings.s3_access_key_id,
        secret_access_key=settings.s3_secret_access_key,
        session_token=settings.s3_session_token,
        use_path_style=settings.s3_use_path_style,
        verify_ssl=settings.s3_verify_ssl,
    )
