"""Object storage backed by S3 or any S3-compatible endpoint, via the MinIO client.

The MinIO SDK is blocking, so every call is pushed to Starlette's threadpool.
SDK and transport failures are reported as :class:`StorageError`.
"""

from __future__ import annotations

import io
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse

import structlog
from minio import Minio
from minio.error import S3Error
from starlette.concurrency import run_in_threadpool
from urllib3.exceptions import HTTPError

from inkwell.core.config.settings import Settings
from inkwell.core.exceptions import StorageError

logger = structlog.get_logger(__name__)

AWS_DEFAULT_ENDPOINT = "s3.amazonaws.com"
_MISSING_CODES = frozenset({"NoSuchKey", "NoSuchObject", "ResourceNotFound"})


@dataclass(frozen=True, slots=True)
class StoredObject:
    key: str
    size: int
    content_type: Optional[str]
    etag: Optional[str]


def create_minio_client(settings: Settings) -> Minio:
    endpoint = settings.AWS_ENDPOINT or AWS_DEFAULT_ENDPOINT
    secure = settings.AWS_SECURE
    parsed = urlparse(endpoint if "://" in endpoint else f"//{endpoint}")
    if parsed.scheme:
        secure = parsed.scheme == "https"
    return Minio(
        parsed.netloc,
        access_key=settings.AWS_ACCESS_KEY_ID or None,
        secret_key=settings.AWS_SECRET_ACCESS_KEY.get_secret_value() or None,
        secure=secure,
        region=settings.AWS_REGION,
    )


class ObjectStorage:
    """put / get / delete / list / head over a single bucket."""

    def __init__(self, client: Minio, bucket: str, public_url: str = ""):
        self._client = client
        self._bucket = bucket
        self._public_url = public_url.rstrip("/")

    @classmethod
    def from_settings(cls, settings: Settings) -> "ObjectStorage":
        public_url = settings.AWS_PUBLIC_URL
        if not public_url:
            if settings.AWS_ENDPOINT:
                base = settings.AWS_ENDPOINT if "://" in settings.AWS_ENDPOINT else f"https://{settings.AWS_ENDPOINT}"
                public_url = f"{base.rstrip('/')}/{settings.AWS_BUCKET_NAME}"
            else:
                public_url = f"https://{settings.AWS_BUCKET_NAME}.s3.{settings.AWS_REGION}.amazonaws.com"
        return cls(create_minio_client(settings), settings.AWS_BUCKET_NAME, public_url)

    @property
    def bucket(self) -> str:
        return self._bucket

    def object_url(self, key: str) -> str:
        return f"{self._public_url}/{key}"

    async def put_object(self, key: str, data: bytes, content_type: str) -> str:
        try:
            await run_in_threadpool(
                self._client.put_object,
                self._bucket,
                key,
                io.BytesIO(data),
                len(data),
                content_type=content_type,
            )
        except (S3Error, HTTPError) as exc:
            logger.error("storage_put_failed", key=key, error=str(exc))
            raise StorageError(f"Could not store object {key}") from exc
        logger.info("storage_object_stored", key=key, size=len(data))
        return key

    async def get_object(self, key: str) -> bytes:
        def _read() -> bytes:
            response = self._client.get_object(self._bucket, key)
            try:
                return response.read()
            finally:
                response.close()
                response.release_conn()

        try:
            return await run_in_threadpool(_read)
        except (S3Error, HTTPError) as exc:
            logger.error("storage_get_failed", key=key, error=str(exc))
            raise StorageError(f"Could not read object {key}") from exc

    async def delete_object(self, key: str) -> None:
        try:
            await run_in_threadpool(self._client.remove_object, self._bucket, key)
        except (S3Error, HTTPError) as exc:
            logger.error("storage_delete_failed", key=key, error=str(exc))
            raise StorageError(f"Could not delete object {key}") from exc
        logger.info("storage_object_deleted", key=key)

    async def list_objects(self, prefix: str = "") -> list[str]:
        def _list() -> list[str]:
            return [
                obj.object_name
                for obj in self._client.list_objects(self._bucket, prefix=prefix, recursive=True)
            ]

        try:
            return await run_in_threadpool(_list)
        except (S3Error, HTTPError) as exc:
            logger.error("storage_list_failed", prefix=prefix, error=str(exc))
            raise StorageError(f"Could not list objects under {prefix!r}") from exc

    async def head_object(self, key: str) -> Optional[StoredObject]:
        """Object metadata, or ``None`` when the key does not exist."""
        try:
            stat = await run_in_threadpool(self._client.stat_object, self._bucket, key)
        except S3Error as exc:
            if exc.code in _MISSING_CODES:
                return None
            logger.error("storage_head_failed", key=key, error=str(exc))
            raise StorageError(f"Could not inspect object {key}") from exc
        except HTTPError as exc:
            logger.error("storage_head_failed", key=key, error=str(exc))
            raise StorageError(f"Could not inspect object {key}") from exc
        return StoredObject(key=key, size=stat.size, content_type=stat.content_type, etag=stat.etag)

    async def check_connection(self) -> None:
        """Raise :class:`StorageError` unless the bucket is reachable."""
        try:
            found = await run_in_threadpool(self._client.bucket_exists, self._bucket)
        except (S3Error, HTTPError) as exc:
            raise StorageError(f"Bucket {self._bucket} unreachable: {exc}") from exc
        if not found:
            raise StorageError(f"Bucket {self._bucket} does not exist")
