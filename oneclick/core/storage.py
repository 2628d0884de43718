"""S3-compatible file storage for profile photos."""

import mimetypes
import re
import time
from typing import Any

import boto3
import structlog
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError
from starlette.concurrency import run_in_threadpool

from oneclick.config import settings
from oneclick.core.exceptions import RemoteServiceException

logger = structlog.get_logger(__name__)

_storage_client: Any | None = None

_WHITESPACE = re.compile(r"[\s:\u202f]")
_UNSAFE = re.compile(r"[^a-zA-Z0-9._-]")


def get_storage_client() -> Any:
    """Get or create the S3 client."""
    global _storage_client

    if _storage_client is None:
        _storage_client = boto3.client(
            "s3",
            aws_access_key_id=settings.storage_access_key,
            aws_secret_access_key=settings.storage_secret_key,
            region_name=settings.storage_region,
            endpoint_url=settings.storage_endpoint_url,
            config=BotoConfig(connect_timeout=5, read_timeout=10),
        )

    return _storage_client


def sanitize_filename(filename: str) -> str:
    """Replace whitespace with underscores and drop anything not path-safe."""
    return _UNSAFE.sub("", _WHITESPACE.sub("_", filename)) or "photo"


def build_photo_path(owner_id: str, filename: str, now_ms: int | None = None) -> str:
    """Object path ``<owner>/<epoch-ms>_<name>`` under the owner's folder."""
    stamp = now_ms if now_ms is not None else int(time.time() * 1000)
    return f"{owner_id}/{stamp}_{sanitize_filename(filename)}"


class FileStorage:
    """Upload objects and resolve their public URLs."""

    def __init__(self, client: Any, bucket: str | None = None, public_base_url: str | None = None):
        """Initialize storage with an S3 client."""
        self.client = client
        self.bucket = bucket or settings.storage_bucket
        self.public_base_url = (public_base_url or settings.storage_public_url).rstrip("/")

    async def upload(self, path: str, data: bytes, content_type: str | None = None) -> str:
        """
        Upload ``data`` to ``path``, overwriting any existing object.

        Returns:
            The stored path

        Raises:
            RemoteServiceException: If the storage service rejects the upload
        """
        content_type = content_type or mimetypes.guess_type(path)[0] or "application/octet-stream"
        try:
            await run_in_threadpool(
                self.client.put_object,
                Bucket=self.bucket,
                Key=path,
                Body=data,
                ContentType=content_type,
                CacheControl="max-age=3600",
            )
        except (BotoCoreError, ClientError) as e:
            logger.error("file_upload_failed", path=path, error=str(e))
            raise RemoteServiceException(f"Photo upload failed: {e!s}")

        logger.info("file_uploaded", path=path, size=len(data))
        return path

    def public_url(self, path: str) -> str:
        """Public URL of an object."""
        return f"{self.public_base_url}/{path}"


def get_file_storage() -> FileStorage:
    """Dependency returning storage bound to the configured bucket."""
    return FileStorage(get_storage_client())
