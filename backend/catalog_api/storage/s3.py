"""S3 object-store backend.

Keys mirror the local partition scheme. boto3 is synchronous, so every
call runs in a worker thread; the client's connect/read timeouts and
retry budget bound how long a request can wait on the store.
"""

import asyncio
from typing import Any

import boto3
import structlog
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from catalog_api.core.config import settings
from catalog_api.core.file_validation import get_extension
from catalog_api.core.metrics import timed
from catalog_api.storage.base import StorageBackend, StorageError, build_object_path

logger = structlog.get_logger()

_CONTENT_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
}


def create_s3_client() -> Any:
    """Build an S3 client from settings with bounded timeouts."""
    return boto3.client(
        "s3",
        region_name=settings.aws_region,
        endpoint_url=settings.s3_endpoint_url or None,
        config=Config(
            connect_timeout=settings.aws_connect_timeout,
            read_timeout=settings.aws_read_timeout,
            retries={"max_attempts": settings.aws_max_attempts},
        ),
    )


class S3StorageBackend(StorageBackend):
    """Store objects in a single S3 bucket."""

    def __init__(self, bucket: str, client: Any | None = None) -> None:
        self.bucket = bucket
        self.client = client if client is not None else create_s3_client()

    async def store(
        self,
        content: bytes,
        *,
        owner_id: int,
        resource_id: int,
        display_name: str,
    ) -> str:
        key = build_object_path(owner_id, resource_id, display_name)
        extension = get_extension(key)
        params: dict[str, Any] = {
            "Bucket": self.bucket,
            "Key": key,
            "Body": content,
            # Fail instead of overwriting an existing object
            "IfNoneMatch": "*",
        }
        content_type = _CONTENT_TYPES.get(extension)
        if content_type:
            params["ContentType"] = content_type

        with timed("s3.call", operation="putObject", outcome="success") as tags:
            try:
                await asyncio.to_thread(self.client.put_object, **params)
            except (BotoCoreError, ClientError) as exc:
                tags["outcome"] = "error"
                logger.error(
                    "S3 store failed", bucket=self.bucket, key=key, error=str(exc)
                )
                msg = f"Failed to store object {key}"
                raise StorageError(msg) from exc

        logger.info("Object stored", backend="s3", key=key, size=len(content))
        return key

    async def delete(self, path: str) -> None:
        # delete_object succeeds for missing keys
        with timed("s3.call", operation="deleteObject", outcome="success") as tags:
            try:
                await asyncio.to_thread(
                    self.client.delete_object, Bucket=self.bucket, Key=path
                )
            except (BotoCoreError, ClientError) as exc:
                tags["outcome"] = "error"
                logger.error(
                    "S3 delete failed", bucket=self.bucket, key=path, error=str(exc)
                )
                msg = f"Failed to delete object {path}"
                raise StorageError(msg) from exc

        logger.info("Object deleted", backend="s3", key=path)
