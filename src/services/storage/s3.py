"""S3-compatible storage backend (AWS S3 / MinIO)."""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import quote

from botocore.exceptions import BotoCoreError, ClientError

from .exceptions import TransientBackendError
from .interfaces import FileDelivery, StoredObject
from .keys import derive_key, guess_content_type

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = ('404', 'NoSuchKey', 'NotFound')


def _is_not_found(exc: ClientError) -> bool:
    response = getattr(exc, 'response', {}) or {}
    status_code = (response.get('ResponseMetadata') or {}).get('HTTPStatusCode')
    error_code = str((response.get('Error') or {}).get('Code') or '')
    return status_code == 404 or error_code in _NOT_FOUND_CODES


class S3StorageBackend:
    """S3 storage backend with lazy boto3 initialization."""

    kind = 's3'

    def __init__(self, *, bucket: str, region: Optional[str] = None, endpoint_url: Optional[str] = None,
                 access_key_id: Optional[str] = None, secret_access_key: Optional[str] = None,
                 session_token: Optional[str] = None, use_path_style: bool = False,
                 verify_ssl: bool = True):
        self.bucket = bucket
        self.region = region or 'us-east-1'
        self.endpoint_url = endpoint_url.rstrip('/') if endpoint_url else None
        self.access_key_id = access_key_id
        self.secret_access_key = secret_access_key
        self.session_token = session_token
        self.use_path_style = use_path_style
        self.verify_ssl = verify_ssl
        self._client = None

    def _get_client(self):
        if self._client is not None:
            return self._client

        import boto3
        from botocore.config import Config

        client_kwargs = {
            'service_name': 's3',
            'region_name': self.region,
            'verify': self.verify_ssl,
        }
        if self.endpoint_url:
            client_kwargs['endpoint_url'] = self.endpoint_url
        if self.access_key_id:
            client_kwargs['aws_access_key_id'] = self.access_key_id
        if self.secret_access_key:
            client_kwargs['aws_secret_access_key'] = self.secret_access_key
        if self.session_token:
            client_kwargs['aws_session_token'] = self.session_token

        addressing_style = 'path' if self.use_path_style else 'auto'
        client_kwargs['config'] = Config(
            signature_version='s3v4',
            s3={'addressing_style': addressing_style},
            connect_timeout=5,
            read_timeout=30,
            retries={'max_attempts': 2},
        )

        self._client = boto3.client(**client_kwargs)
        return self._client

    @property
    def public_base_url(self) -> str:
        if self.endpoint_url:
            return f"{self.endpoint_url}/{self.bucket}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com"

    def public_url(self, key: str) -> str:
        return f"{self.public_base_url}/{quote(key, safe='/')}"

    def upload(self, data: bytes, original_name: str, content_type: Optional[str] = None,
               key: Optional[str] = None) -> StoredObject:
        key = key or derive_key(original_name)
        content_type = content_type or guess_content_type(key) or 'application/octet-stream'
        client = self._get_client()
        client.put_object(Bucket=self.bucket, Key=key, Body=data, ContentType=content_type)
        logger.info("Uploaded %s (%d bytes) to s3://%s", key, len(data), self.bucket)
        return StoredObject(key=key, url=self.public_url(key), backend=self.kind,
                            size=len(data), content_type=content_type)

    def exists(self, key: str) -> bool:
        """HEAD the object. Only an explicit 404 counts as absent."""
        try:
            self._get_client().head_object(Bucket=self.bucket, Key=key)
            return True
        except ClientError as exc:
            if _is_not_found(exc):
                return False
            raise TransientBackendError(f"S3 head_object failed for {key}: {exc}", backend=self.kind, key=key) from exc
        except BotoCoreError as exc:
            raise TransientBackendError(f"S3 unreachable for {key}: {exc}", backend=self.kind, key=key) from exc

    def delete(self, key: str) -> None:
        try:
            self._get_client().delete_object(Bucket=self.bucket, Key=key)
        except ClientError as exc:
            if not _is_not_found(exc):
                raise TransientBackendError(f"S3 delete_object failed for {key}: {exc}", backend=self.kind, key=key) from exc
        except BotoCoreError as exc:
            raise TransientBackendError(f"S3 unreachable for {key}: {exc}", backend=self.kind, key=key) from exc
        logger.info("Deleted %s from s3://%s", key, self.bucket)

    def read(self, key: str) -> Optional[FileDelivery]:
        try:
            response = self._get_client().get_object(Bucket=self.bucket, Key=key)
        except ClientError as exc:
            if _is_not_found(exc):
                return None
            raise TransientBackendError(f"S3 get_object failed for {key}: {exc}", backend=self.kind, key=key) from exc
        except BotoCoreError as exc:
            raise TransientBackendError(f"S3 unreachable for {key}: {exc}", backend=self.kind, key=key) from exc
        body = response['Body'].read()
        mimetype = response.get('ContentType') or guess_content_type(key) or 'application/octet-stream'
        return FileDelivery(mode='stream', body=body, mimetype=mimetype)
